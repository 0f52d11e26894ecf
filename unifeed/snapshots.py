"""JSON snapshots of a Feed graph."""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .models import (
    Category,
    Content,
    Entry,
    Feed,
    Generator,
    Image,
    Link,
    Person,
)

logger = logging.getLogger(__name__)


def feed_to_dict(feed: Feed) -> Dict[str, Any]:
    """Return a JSON-serialisable representation of the feed."""
    return dataclasses.asdict(feed, dict_factory=_serialisable_dict)


def _serialisable_dict(items: List[tuple]) -> Dict[str, Any]:
    result = {}
    for key, value in items:
        if isinstance(value, datetime):
            value = value.isoformat()
        result[key] = value
    return result


def feed_from_dict(payload: Mapping[str, Any]) -> Feed:
    """Rebuild a Feed from the output of :func:`feed_to_dict`."""
    return Feed(
        id=payload["id"],
        title=payload["title"],
        updated=_datetime(payload.get("updated")),
        authors=_people(payload.get("authors")),
        description=payload.get("description"),
        link=_link(payload.get("link")),
        categories=_categories(payload.get("categories")),
        contributors=_people(payload.get("contributors")),
        generator=_generator(payload.get("generator")),
        icon=payload.get("icon"),
        language=payload.get("language"),
        logo=_image(payload.get("logo")),
        pub_date=_datetime(payload.get("pub_date")),
        rights=payload.get("rights"),
        subtitle=payload.get("subtitle"),
        ttl=payload.get("ttl"),
        entries=[_entry(item) for item in payload.get("entries") or []],
    )


def _entry(payload: Mapping[str, Any]) -> Entry:
    return Entry(
        id=payload["id"],
        title=payload["title"],
        updated=_datetime(payload.get("updated")),
        authors=_people(payload.get("authors")),
        content=Content(**payload["content"]) if payload.get("content") else None,
        link=_link(payload.get("link")),
        summary=payload.get("summary"),
        categories=_categories(payload.get("categories")),
        contributors=_people(payload.get("contributors")),
        published=_datetime(payload.get("published")),
        source=payload.get("source"),
        rights=payload.get("rights"),
    )


def _datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _people(items: Optional[List[Mapping[str, Any]]]) -> List[Person]:
    return [Person(**item) for item in items or []]


def _categories(items: Optional[List[Mapping[str, Any]]]) -> List[Category]:
    return [Category(**item) for item in items or []]


def _link(payload: Optional[Mapping[str, Any]]) -> Optional[Link]:
    return Link(**payload) if payload else None


def _generator(payload: Optional[Mapping[str, Any]]) -> Optional[Generator]:
    return Generator(**payload) if payload is not None else None


def _image(payload: Optional[Mapping[str, Any]]) -> Optional[Image]:
    if not payload:
        return None
    fields = dict(payload)
    fields["link"] = Link(**fields["link"])
    return Image(**fields)


def save_feed(path: str, feed: Feed, indent: int = 2) -> None:
    """Write the feed to PATH as a JSON snapshot."""
    location = Path(path)
    if location.parent and not location.parent.exists():
        location.parent.mkdir(parents=True, exist_ok=True)
    location.write_text(
        json.dumps(feed_to_dict(feed), indent=indent, ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info(
        "Saved feed '%s' with %d entries to %s", feed.id, len(feed.entries), location
    )


def load_feed(path: str) -> Feed:
    """Load a feed snapshot previously written by :func:`save_feed`."""
    location = Path(path)
    try:
        payload = json.loads(location.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise RuntimeError(f"Feed snapshot not found: {location}") from exc
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Feed snapshot is not valid JSON: {location}") from exc

    if not isinstance(payload, dict):
        raise RuntimeError("Feed snapshot must contain a JSON object.")

    try:
        feed = feed_from_dict(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise RuntimeError(f"Feed snapshot is malformed: {location}: {exc}") from exc

    logger.info(
        "Loaded feed '%s' with %d entries from %s",
        feed.id,
        len(feed.entries),
        location,
    )
    return feed
