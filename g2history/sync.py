# g2history/sync.py
"""
Fetch-then-full-replace of the persisted upcoming matches.

A run never deletes anything until a fetch has succeeded, and every run
starts with a full delete, so re-running after a partial failure converges.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from .errors import FetchFailed, StoreError, SyncPersistError
from .scraper.matches import UpcomingMatch

logger = logging.getLogger(__name__)

IDLE = "idle"
FETCHING = "fetching"
PERSISTING = "persisting"
FAILED = "failed"


@dataclass(frozen=True)
class SyncResult:
    updated: int
    finished_at: str


def dedupe_matches(upcoming: List[UpcomingMatch]) -> List[UpcomingMatch]:
    """Keep the first match for each id."""
    seen = set()
    unique: List[UpcomingMatch] = []
    for match in upcoming:
        if match.id in seen:
            continue
        seen.add(match.id)
        unique.append(match)
    return unique


class MatchSync:
    """Runs the upcoming-matches sync against a fetcher and a store gateway."""

    def __init__(self, fetcher, db):
        self.fetcher = fetcher
        self.db = db
        self.state = IDLE
        self.last_result: Optional[SyncResult] = None
        self.last_error: Optional[str] = None

    async def sync_upcoming_matches(self) -> SyncResult:
        """
        Fetch upcoming matches and replace the stored set with them.

        The orchestrator is back in `idle` when this returns or raises;
        `last_error` holds the reason of a failed run.

        Raises:
            FetchFailed: the fetch failed; stored matches are untouched
            SyncPersistError: the replace failed after a successful fetch
        """
        self.state = FETCHING
        try:
            try:
                upcoming = await self.fetcher.fetch_upcoming_matches()
            except FetchFailed as exc:
                self._fail(exc)
                raise

            unique = dedupe_matches(upcoming)
            if len(unique) != len(upcoming):
                logger.info("Dropped %d duplicate matches from fetch", len(upcoming) - len(unique))

            self.state = PERSISTING
            try:
                updated = self.db.replace_upcoming_matches(match.to_row() for match in unique)
            except StoreError as exc:
                self._fail(exc)
                raise SyncPersistError(f"Failed to persist {len(unique)} upcoming matches: {exc}") from exc
        finally:
            self.state = IDLE

        result = SyncResult(
            updated=updated,
            finished_at=datetime.now(timezone.utc).isoformat(),
        )
        self.last_result = result
        self.last_error = None
        logger.info("Upcoming matches synced: %d rows", updated)
        return result

    def _fail(self, exc: Exception) -> None:
        self.state = FAILED
        self.last_error = str(exc)
        logger.error("Match sync failed: %s", exc)
