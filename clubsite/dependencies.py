"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from clubsite.auth import AuthProvider, FirebaseAuthProvider, LocalAuthProvider
from clubsite.backends import BackendSelector
from clubsite.config import get_settings
from clubsite.kv_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    SqlKeyValueStore,
)
from clubsite.notifications import NotificationDispatcher, Notifier
from clubsite.repositories import Repositories, build_repositories
from clubsite.services import ClubService
from clubsite.storage import CosStorageClient, InMemoryStorageClient, StorageClient

_selector: BackendSelector | None = None
_kv_store: KeyValueStore | None = None
_storage_client: StorageClient | None = None
_repositories: Repositories | None = None
_dispatcher: NotificationDispatcher | None = None
_club_service: ClubService | None = None


def get_backend_selector() -> BackendSelector:
    """
    Return a singleton selector; remote initialization is attempted once per process.
    """
    global _selector
    if _selector:
        return _selector
    _selector = BackendSelector.from_settings(get_settings())
    return _selector


def get_kv_store() -> KeyValueStore:
    global _kv_store
    if _kv_store:
        return _kv_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _kv_store = InMemoryKeyValueStore()
    elif settings.local_store_redis_url:
        _kv_store = RedisKeyValueStore(
            url=settings.local_store_redis_url,
            namespace=settings.local_store_namespace,
        )
    else:
        _kv_store = SqlKeyValueStore(settings.local_store_url)
    return _kv_store


def get_storage_client() -> Optional[StorageClient]:
    """Object storage for inline images; None leaves images inline in the documents."""
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _storage_client = InMemoryStorageClient()
    elif settings.storage_bucket:
        _storage_client = CosStorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.storage_public_base_url,
        )
    return _storage_client


def get_repositories() -> Repositories:
    global _repositories
    if _repositories:
        return _repositories
    _repositories = build_repositories(
        get_backend_selector(), get_kv_store(), get_storage_client()
    )
    return _repositories


def get_auth_provider(repos: Repositories) -> AuthProvider:
    settings = get_settings()
    if get_backend_selector().is_remote_active() and settings.firebase_api_key:
        return FirebaseAuthProvider(settings.firebase_api_key)
    return LocalAuthProvider(repos.users)


def get_club_service() -> ClubService:
    global _club_service, _dispatcher
    if _club_service:
        return _club_service

    settings = get_settings()
    repos = get_repositories()
    _dispatcher = NotificationDispatcher(max_workers=settings.notification_workers)
    _club_service = ClubService(
        repos,
        Notifier.from_settings(settings, _dispatcher),
        get_auth_provider(repos),
        instagram_access_token=settings.instagram_access_token,
        instagram_import=settings.instagram_sync_import,
    )
    return _club_service


def shutdown_dependencies() -> None:
    """Drain pending notifications and drop the singletons."""
    global _selector, _kv_store, _storage_client, _repositories, _dispatcher, _club_service
    if _dispatcher:
        _dispatcher.shutdown(wait=True)
    _selector = None
    _kv_store = None
    _storage_client = None
    _repositories = None
    _dispatcher = None
    _club_service = None
