"""Turn full listing dumps into a stream of newly added listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping

from .models import Listing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiffResult:
    added: List[Listing]
    ended_ids: FrozenSet[str]


class SnapshotDiffer:
    """Holds the previous active set and diffs each new batch against it."""

    def __init__(self) -> None:
        self._previous: Dict[str, Listing] = {}

    @property
    def has_snapshot(self) -> bool:
        return bool(self._previous)

    @property
    def previous_active(self) -> Mapping[str, Listing]:
        return dict(self._previous)

    def diff(self, full_batch: Iterable[Listing]) -> DiffResult:
        """Return listings absent from the previous batch, then retain this batch."""
        fresh: Dict[str, Listing] = {}
        for listing in full_batch:
            fresh[listing.identity] = listing

        added = [listing for identity, listing in fresh.items() if identity not in self._previous]
        ended_ids = frozenset(identity for identity in self._previous if identity not in fresh)

        self._previous = fresh
        logger.info("Detected %d new fixed-price listings and %d ended listings", len(added), len(ended_ids))
        return DiffResult(added=added, ended_ids=ended_ids)


__all__ = ["DiffResult", "SnapshotDiffer"]
