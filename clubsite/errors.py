"""
Exceptions raised by the data-access layer and mapped to HTTP errors by the app.
"""

from __future__ import annotations


class ClubSiteError(Exception):
    """Base class for errors raised by clubsite."""


class NotFoundError(ClubSiteError):
    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection}/{record_id} not found")


class RemoteOperationError(ClubSiteError):
    """A call to the remote document or object store failed."""


class DuplicateEmailError(ClubSiteError):
    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already exists")


class InvalidCredentialsError(ClubSiteError):
    pass


class PermissionDeniedError(ClubSiteError):
    pass
