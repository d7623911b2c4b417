"""Filesystem-safe, collision-free destination paths for exported items."""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path

LOGGER = logging.getLogger(__name__)

MESSAGE_SUFFIX = ".msg"
MAX_BASE_NAME_LENGTH = 160
NO_SUBJECT = "(no-subject)"
EMPTY_FIELD = "(empty)"

_INVALID_COMPONENT_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_component(value: str | None, placeholder: str = EMPTY_FIELD) -> str:
    """Replace characters invalid in a path component and trim whitespace."""
    cleaned = _INVALID_COMPONENT_CHARS.sub("-", value or "").strip()
    return cleaned or placeholder


def compose_base_name(day: str, sender: str | None, subject: str | None) -> str:
    """Return ``"{day} - {sender} - {subject}"`` capped at the length limit."""
    base = " - ".join(
        (
            day,
            sanitize_component(sender),
            sanitize_component(subject, NO_SUBJECT),
        )
    )
    return base[:MAX_BASE_NAME_LENGTH].rstrip()


class NamingResolver:
    """Derive archive paths of the form ``root/date/date - sender - subject.msg``."""

    def __init__(self, suffix: str = MESSAGE_SUFFIX) -> None:
        """Initialise the resolver with the file suffix to use."""
        self._suffix = suffix

    def resolve(
        self, root: Path, received: date, sender: str | None, subject: str | None
    ) -> Path:
        """Return the first free path for an item, creating its date directory."""
        day = received.strftime("%Y-%m-%d")
        directory = root / day
        directory.mkdir(parents=True, exist_ok=True)

        base = compose_base_name(day, sender, subject)
        candidate = directory / f"{base}{self._suffix}"
        counter = 0
        while candidate.exists():
            counter += 1
            candidate = directory / f"{base} ({counter}){self._suffix}"
        if counter:
            LOGGER.debug("Name collision for '%s'; using suffix (%s)", base, counter)
        return candidate


__all__ = [
    "EMPTY_FIELD",
    "MAX_BASE_NAME_LENGTH",
    "NO_SUBJECT",
    "NamingResolver",
    "compose_base_name",
    "sanitize_component",
]
