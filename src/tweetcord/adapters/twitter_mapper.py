"""Tweepy-to-core post mapping adapter.

This keeps tweepy-specific details out of the core dispatcher.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from tweetcord.core.models import IncomingPost, PostAuthor, PostMedia


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _pick_author(tweet: Any, users: Iterable[Any]) -> Optional[Any]:
    users = [user for user in users if user is not None]
    if not users:
        return None
    author_id = _str_or_none(getattr(tweet, "author_id", None))
    if author_id:
        for user in users:
            if _str_or_none(getattr(user, "id", None)) == author_id:
                return user
    # Expansions list the author first when ids are missing.
    return users[0]


def build_author(user: Any) -> Optional[PostAuthor]:
    handle = getattr(user, "username", None)
    if not handle:
        return None
    return PostAuthor(
        id=str(getattr(user, "id", "")),
        name=getattr(user, "name", None) or handle,
        handle=handle,
        avatar_url=getattr(user, "profile_image_url", None),
    )


def build_media(items: Iterable[Any]) -> tuple[PostMedia, ...]:
    return tuple(
        PostMedia(
            key=str(getattr(item, "media_key", "")),
            type=str(getattr(item, "type", "")),
            url=getattr(item, "url", None),
        )
        for item in items
        if item is not None
    )


def build_post(response: Any) -> Optional[IncomingPost]:
    """Build an IncomingPost from a tweepy StreamResponse.

    Returns None for responses without tweet data (error-only frames).
    """

    tweet = getattr(response, "data", None)
    if tweet is None:
        return None

    includes = getattr(response, "includes", None) or {}
    user = _pick_author(tweet, includes.get("users") or [])

    return IncomingPost(
        id=str(tweet.id),
        text=getattr(tweet, "text", None) or "",
        author=build_author(user) if user is not None else None,
        media=build_media(includes.get("media") or []),
    )
