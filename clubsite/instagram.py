"""
Instagram Basic Display API client used by the gallery sync.
"""

from __future__ import annotations

import logging

import requests

logger = logging.getLogger(__name__)

MEDIA_URL = "https://graph.instagram.com/me/media"
MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,thumbnail_url"
REQUEST_TIMEOUT = 30  # seconds


def fetch_instagram_posts(access_token: str) -> list[dict]:
    """
    Fetches the account's recent media.

    Args:
        access_token (str): A long-lived Instagram access token.

    Returns:
        list[dict]: Raw media objects, raises on HTTP errors.
    """
    response = requests.get(
        MEDIA_URL,
        params={"fields": MEDIA_FIELDS, "access_token": access_token},
        timeout=REQUEST_TIMEOUT,
    )
    response.raise_for_status()
    posts = response.json().get("data", [])
    logger.info("Fetched %d Instagram posts", len(posts))
    return posts


def post_to_gallery_fields(post: dict) -> dict:
    is_video = post.get("media_type") == "VIDEO"
    return {
        "url": post["media_url"],
        "caption": post.get("caption") or "Instagram Post",
        "source": "instagram",
        "type": "video" if is_video else "image",
        "approved": True,
    }
