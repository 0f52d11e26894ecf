"""Unified data model for RSS 1.0, RSS 2.0 and Atom feeds.

The model follows Atom, with RSS channels mapped to ``Feed`` and RSS items
mapped to ``Entry``. Every field any of the three formats can carry has a
home here; optionality follows the loosest format. ``id``, ``title`` and
``updated`` are required on feeds and entries and are synthesized when the
source omits them.

Timestamps are naive datetimes in UTC. Producers normalise offsets before
constructing values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from . import services

DEFAULT_IMAGE_WIDTH = 88
DEFAULT_IMAGE_HEIGHT = 31


def _new_id() -> str:
    return services.generate_id()


def _now() -> datetime:
    return services.current_time()


@dataclass
class Link:
    """Link to a resource associated with a feed, entry or image."""

    href: str
    rel: Optional[str] = None
    media_type: Optional[str] = None
    hreflang: Optional[str] = None
    title: Optional[str] = None
    # Byte count of the referenced resource.
    length: Optional[int] = None

    @classmethod
    def new(cls, href: str) -> "Link":
        return cls(href=href)


@dataclass
class Person:
    """Author, contributor or editor."""

    name: str
    uri: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def new(cls, name: str) -> "Person":
        # Empty names are accepted; producers are expected to avoid them.
        return cls(name=name)


@dataclass
class Category:
    """Category of a feed or entry."""

    term: str
    scheme: Optional[str] = None
    label: Optional[str] = None

    @classmethod
    def new(cls, term: str) -> "Category":
        return cls(term=term)


@dataclass
class Content:
    """Inline content of an entry, or a reference to it.

    ``content_type`` is a media type. Atom text constructs arrive as
    text/plain, text/html or application/xhtml+xml. Both ``src`` and
    ``inline`` may be set.
    """

    content_type: Optional[str] = None
    src: Optional[str] = None
    inline: Optional[str] = None

    @classmethod
    def new(cls) -> "Content":
        return cls()

    @property
    def is_external(self) -> bool:
        """True when consumers should prefer ``src`` over ``inline``."""
        return bool(self.src)


@dataclass
class Generator:
    """Software used to generate a feed."""

    uri: Optional[str] = None
    version: Optional[str] = None
    inline: Optional[str] = None

    @classmethod
    def new(cls) -> "Generator":
        return cls()


@dataclass
class Image:
    """Image identifying a feed (RSS ``image``, Atom ``logo``).

    Width and height keep the RSS 2.0 defaults unless set explicitly; the
    model never clamps them to the 144x400 maximum.
    """

    url: str
    title: str
    link: Link
    width: int = DEFAULT_IMAGE_WIDTH
    height: int = DEFAULT_IMAGE_HEIGHT
    description: Optional[str] = None

    @classmethod
    def new(cls, url: str, title: str, link: Link) -> "Image":
        return cls(url=url, title=title, link=link)


@dataclass
class Entry:
    """Single item within a feed (Atom ``entry``, RSS ``item``)."""

    id: str = field(default_factory=_new_id)
    title: str = ""
    updated: Optional[datetime] = field(default_factory=_now)

    authors: List[Person] = field(default_factory=list)
    content: Optional[Content] = None
    link: Optional[Link] = None
    summary: Optional[str] = None

    categories: List[Category] = field(default_factory=list)
    contributors: List[Person] = field(default_factory=list)
    # Original creation time. Never filled in from ``updated``.
    published: Optional[datetime] = None
    source: Optional[str] = None
    rights: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            self.id = _new_id()
        if not self.title:
            self.title = fallback_title("entry", self.id)
        if self.updated is None:
            self.updated = _now()

    @classmethod
    def new(cls) -> "Entry":
        return cls()

    def has_explicit_title(self) -> bool:
        """Return False while the title is still the synthesized fallback."""
        return self.title != fallback_title("entry", self.id)


@dataclass
class Feed:
    """Top-level feed (Atom ``feed``, RSS ``channel``)."""

    id: str = field(default_factory=_new_id)
    title: str = ""
    updated: Optional[datetime] = field(default_factory=_now)

    authors: List[Person] = field(default_factory=list)
    description: Optional[str] = None
    link: Optional[Link] = None

    categories: List[Category] = field(default_factory=list)
    contributors: List[Person] = field(default_factory=list)
    generator: Optional[Generator] = None
    icon: Optional[str] = None
    language: Optional[str] = None
    logo: Optional[Image] = None
    pub_date: Optional[datetime] = None
    rights: Optional[str] = None
    subtitle: Optional[str] = None
    # Minutes the feed may be cached before refreshing.
    ttl: Optional[int] = None

    entries: List[Entry] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = _new_id()
        if not self.title:
            self.title = fallback_title("feed", self.id)
        if self.updated is None:
            self.updated = _now()

    @classmethod
    def new(cls) -> "Feed":
        return cls()

    def has_explicit_title(self) -> bool:
        """Return False while the title is still the synthesized fallback."""
        return self.title != fallback_title("feed", self.id)


def fallback_title(kind: str, identifier: str) -> str:
    """Return the synthesized title used when a source has none."""
    return f"{kind}: {identifier}"
