"""Structured item queries selecting tagged items, optionally by age."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.datetime_utils import ensure_aware, ensure_utc

CATEGORIES_PROPERTY = "urn:schemas-microsoft-com:office:office#Keywords"
RECEIVED_PROPERTY = "urn:schemas:httpmail:datereceived"
DASL_DATETIME_FORMAT = "%m/%d/%Y %I:%M %p"


def escape_like_literal(value: str) -> str:
    """Escape ``value`` for use inside a quoted DASL ``LIKE`` pattern."""
    escaped = value.replace("[", "[[]").replace("%", "[%]").replace("_", "[_]")
    return escaped.replace("'", "''")


@dataclass(frozen=True, slots=True)
class ItemQuery:
    """Predicate: tag set contains ``tag`` and, if set, received on or before a cutoff."""

    tag: str
    received_before: datetime | None = None

    def matches(self, categories: str | None, received_at: datetime) -> bool:
        """Evaluate the predicate against raw item fields."""
        if self.tag.lower() not in (categories or "").lower():
            return False
        if self.received_before is None:
            return True
        return ensure_aware(received_at) <= ensure_aware(self.received_before)

    def to_dasl(self) -> str:
        """Render the predicate as an Outlook ``@SQL=`` restriction."""
        clauses = [f"\"{CATEGORIES_PROPERTY}\" LIKE '%{escape_like_literal(self.tag)}%'"]
        if self.received_before is not None:
            cutoff = ensure_utc(self.received_before).strftime(DASL_DATETIME_FORMAT)
            clauses.append(f"\"{RECEIVED_PROPERTY}\" <= '{cutoff}'")
        return "@SQL=" + " AND ".join(clauses)


class ItemFilterBuilder:
    """Build :class:`ItemQuery` instances from the archive settings."""

    def build(
        self, tag: str, max_age_days: int, *, now: datetime | None = None
    ) -> ItemQuery:
        """Return a query for items tagged ``tag`` and at least ``max_age_days`` old."""
        if not tag.strip():
            raise ValueError("tag must not be blank")
        if max_age_days <= 0:
            return ItemQuery(tag=tag)
        reference = now if now is not None else datetime.now().astimezone()
        return ItemQuery(
            tag=tag, received_before=reference - timedelta(days=max_age_days)
        )


__all__ = ["ItemFilterBuilder", "ItemQuery", "escape_like_literal"]
