"""Identifier and clock services used when constructing feeds and entries."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Protocol

logger = logging.getLogger(__name__)


class IdGenerator(Protocol):
    """Minimal protocol for identifier sources."""

    def __call__(self) -> str:
        """Return a new globally unique identifier."""


class Clock(Protocol):
    """Minimal protocol for time sources."""

    def __call__(self) -> datetime:
        """Return the current civil time without tzinfo."""


def uuid_gen() -> str:
    """Return a random UUID4 string."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return the current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


_id_generator: IdGenerator = uuid_gen
_clock: Clock = utc_now


def generate_id() -> str:
    return _id_generator()


def current_time() -> datetime:
    return _clock()


def install_id_generator(generator: IdGenerator) -> IdGenerator:
    """Replace the identifier source and return the previous one."""
    global _id_generator
    previous = _id_generator
    _id_generator = generator
    logger.debug("Installed identifier generator %r", generator)
    return previous


def install_clock(clock: Clock) -> Clock:
    """Replace the clock and return the previous one."""
    global _clock
    previous = _clock
    _clock = clock
    logger.debug("Installed clock %r", clock)
    return previous


def reset_services() -> None:
    """Restore the default identifier generator and clock."""
    install_id_generator(uuid_gen)
    install_clock(utc_now)
