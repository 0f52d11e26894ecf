"""Populate the unified model from feedparser results."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union

import feedparser

from .models import (
    Category,
    Content,
    Entry,
    Feed,
    Generator,
    Image,
    Link,
    Person,
    fallback_title,
)

logger = logging.getLogger(__name__)

RSS2_MAX_IMAGE_WIDTH = 144
RSS2_MAX_IMAGE_HEIGHT = 400


class FeedParseError(RuntimeError):
    """Raised when a document cannot be mapped onto a Feed."""


@dataclass
class MappingOptions:
    """Options controlling how parsed documents are mapped."""

    strict: bool = False
    clamp_images: bool = False


def parse_feed_document(
    source: Union[str, bytes, Path], options: Optional[MappingOptions] = None
) -> Feed:
    """Parse an RSS 1.0, RSS 2.0 or Atom document into a Feed."""
    options = options or MappingOptions()
    if isinstance(source, Path):
        logger.info("Reading feed document from %s", source)
        source = source.read_bytes()

    parsed = feedparser.parse(source)
    version = parsed.get("version") or ""
    if parsed.get("bozo"):
        problem = parsed.get("bozo_exception")
        if options.strict or not version:
            raise FeedParseError(f"Feed document is not well-formed: {problem}")
        logger.warning("Recovered from malformed feed document: %s", problem)
    if not version:
        raise FeedParseError("Document is not a recognised RSS or Atom feed.")

    return build_feed(parsed, options)


def build_feed(
    parsed: Mapping[str, Any], options: Optional[MappingOptions] = None
) -> Feed:
    """Map a feedparser result onto a new Feed."""
    options = options or MappingOptions()
    version = parsed.get("version") or ""
    is_atom = version.startswith("atom")
    channel = parsed.get("feed") or {}

    feed = Feed.new()
    _assign_identity(feed, "feed", channel)

    updated = _timestamp(channel, "updated_parsed")
    if updated:
        feed.updated = updated
    feed.pub_date = _timestamp(channel, "published_parsed")

    feed.authors = _people(channel.get("authors"), channel.get("author_detail"))
    feed.contributors = _people(channel.get("contributors"))
    publisher = _person(channel.get("publisher_detail"))
    if publisher and publisher not in feed.contributors:
        feed.contributors.append(publisher)

    if is_atom:
        feed.subtitle = channel.get("subtitle") or None
    else:
        feed.description = channel.get("subtitle") or None

    feed.link = _preferred_link(
        channel.get("links"), _bare_link(channel, is_atom)
    )
    feed.categories = _categories(channel.get("tags"))
    feed.generator = _generator(channel)
    feed.icon = channel.get("icon") or None
    feed.language = channel.get("language") or None
    feed.rights = channel.get("rights") or None
    feed.ttl = _non_negative_int(channel.get("ttl"), "ttl")

    feed.logo = _image(_image_detail(channel), feed)
    if feed.logo and options.clamp_images:
        clamp_image_dimensions(feed.logo)

    seen_ids = set()
    for item in parsed.get("entries") or []:
        entry = build_entry(item, is_atom=is_atom)
        if entry.id in seen_ids:
            logger.warning("Duplicate entry id '%s' in feed '%s'", entry.id, feed.id)
        seen_ids.add(entry.id)
        feed.entries.append(entry)

    logger.info(
        "Mapped %s feed '%s' with %d entries",
        version or "unknown",
        feed.title,
        len(feed.entries),
    )
    return feed


def build_entry(item: Mapping[str, Any], is_atom: bool = False) -> Entry:
    """Map a single feedparser entry onto a new Entry."""
    entry = Entry.new()
    _assign_identity(entry, "entry", item)

    updated = _timestamp(item, "updated_parsed")
    if updated:
        entry.updated = updated
    entry.published = _timestamp(item, "published_parsed")

    entry.authors = _people(item.get("authors"), item.get("author_detail"))
    entry.contributors = _people(item.get("contributors"))
    entry.content = _content(item.get("content"), item.get("links"))
    entry.link = _preferred_link(item.get("links"), _bare_link(item, is_atom))
    entry.summary = _summary(item)
    entry.categories = _categories(item.get("tags"))
    entry.source = _source_note(item.get("source"))
    entry.rights = item.get("rights") or None
    return entry


def _assign_identity(
    target: Union[Feed, Entry], kind: str, mapping: Mapping[str, Any]
) -> None:
    if mapping.get("id"):
        target.id = mapping["id"]
    if mapping.get("title"):
        target.title = mapping["title"]
    else:
        target.title = fallback_title(kind, target.id)
        logger.debug("No %s title in source; using '%s'", kind, target.title)


def clamp_image_dimensions(image: Image) -> Image:
    """Apply the RSS 2.0 maximum image size in place."""
    width = min(image.width, RSS2_MAX_IMAGE_WIDTH)
    height = min(image.height, RSS2_MAX_IMAGE_HEIGHT)
    if (width, height) != (image.width, image.height):
        logger.debug(
            "Clamping image %s from %dx%d to %dx%d",
            image.url,
            image.width,
            image.height,
            width,
            height,
        )
    image.width = width
    image.height = height
    return image


def to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert feedparser UTC timestamps to naive datetimes."""
    if value is None:
        return None
    return datetime(*value[:6])


def _timestamp(mapping: Mapping[str, Any], key: str) -> Optional[datetime]:
    # FeedParserDict aliases updated* to published* on lookup; read raw keys.
    if isinstance(mapping, dict):
        value = dict.get(mapping, key)
    else:
        value = mapping.get(key)
    try:
        return to_datetime(value)
    except (TypeError, ValueError) as exc:
        logger.warning("Dropping unparseable timestamp %s=%r: %s", key, value, exc)
        return None


def _person(detail: Optional[Mapping[str, Any]]) -> Optional[Person]:
    if not detail:
        return None
    name = detail.get("name") or detail.get("email")
    if not name:
        logger.debug("Skipping person without name or email: %r", detail)
        return None
    person = Person.new(name)
    person.uri = detail.get("href") or None
    person.email = detail.get("email") or None
    return person


def _people(
    details: Optional[Iterable[Mapping[str, Any]]],
    fallback: Optional[Mapping[str, Any]] = None,
) -> List[Person]:
    people: List[Person] = []
    for detail in details or ([fallback] if fallback else []):
        person = _person(detail)
        if person:
            people.append(person)
    return people


def _link(detail: Mapping[str, Any]) -> Optional[Link]:
    href = detail.get("href")
    if not href:
        return None
    link = Link.new(href)
    link.rel = detail.get("rel") or None
    link.media_type = detail.get("type") or None
    link.hreflang = detail.get("hreflang") or None
    link.title = detail.get("title") or None
    link.length = _non_negative_int(detail.get("length"), "link length")
    return link


def _preferred_link(
    details: Optional[Iterable[Mapping[str, Any]]], fallback: Optional[str]
) -> Optional[Link]:
    candidates = [
        detail for detail in details or [] if detail.get("rel") != "enclosure"
    ]
    for detail in candidates:
        if detail.get("rel") == "alternate" and detail.get("href"):
            return _link(detail)
    for detail in candidates:
        link = _link(detail)
        if link:
            return link
    if fallback:
        return Link.new(fallback)
    return None


def _bare_link(mapping: Mapping[str, Any], is_atom: bool) -> Optional[str]:
    # Atom links always arrive in "links"; a bare "link" is the id copied
    # over by feedparser. RSS 2.0 permalink guids are kept as links.
    if is_atom:
        return None
    return mapping.get("link") or None


def _summary(item: Mapping[str, Any]) -> Optional[str]:
    summary = item.get("summary") or None
    if summary is None or item.get("summary_detail"):
        return summary
    # feedparser fills summary from text/html content when the source has none.
    content = item.get("content") or []
    if content and content[0].get("value") == summary:
        logger.debug("Ignoring summary copied from content")
        return None
    return summary


def _content(
    items: Optional[List[Mapping[str, Any]]],
    links: Optional[Iterable[Mapping[str, Any]]],
) -> Optional[Content]:
    if items:
        first = items[0]
        content = Content.new()
        content.content_type = first.get("type") or None
        content.src = first.get("src") or None
        content.inline = first.get("value") or None
        return content

    for detail in links or []:
        if detail.get("rel") == "enclosure" and detail.get("href"):
            content = Content.new()
            content.content_type = detail.get("type") or None
            content.src = detail["href"]
            return content
    return None


def _categories(tags: Optional[Iterable[Mapping[str, Any]]]) -> List[Category]:
    categories: List[Category] = []
    for tag in tags or []:
        term = (tag.get("term") or "").strip()
        if not term:
            logger.debug("Skipping category without term: %r", tag)
            continue
        category = Category.new(term)
        category.scheme = tag.get("scheme") or None
        category.label = tag.get("label") or None
        categories.append(category)
    return categories


def _generator(channel: Mapping[str, Any]) -> Optional[Generator]:
    detail = channel.get("generator_detail")
    name = channel.get("generator")
    if not detail and not name:
        return None
    generator = Generator.new()
    if detail:
        generator.inline = detail.get("name") or None
        generator.uri = detail.get("href") or None
        generator.version = detail.get("version") or None
    if not generator.inline:
        generator.inline = name or None
    return generator


def _image_detail(channel: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    if channel.get("image"):
        return channel["image"]
    # Atom <logo> arrives as a plain URL string.
    if channel.get("logo"):
        return {"href": channel["logo"]}
    return None


def _image(detail: Optional[Mapping[str, Any]], feed: Feed) -> Optional[Image]:
    if not detail or not detail.get("href"):
        return None
    url = detail["href"]
    target = detail.get("link") or (feed.link.href if feed.link else None) or url
    image = Image.new(url, detail.get("title") or feed.title, Link.new(target))
    width = _non_negative_int(detail.get("width"), "image width")
    if width is not None:
        image.width = width
    height = _non_negative_int(detail.get("height"), "image height")
    if height is not None:
        image.height = height
    image.description = detail.get("description") or None
    return image


def _source_note(source: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not source:
        return None
    return source.get("title") or source.get("href") or source.get("link") or None


def _non_negative_int(value: Any, label: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        logger.warning("Dropping non-numeric %s: %r", label, value)
        return None
    if number < 0:
        logger.warning("Dropping negative %s: %r", label, value)
        return None
    return number
