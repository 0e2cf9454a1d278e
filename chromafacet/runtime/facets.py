# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Per-family facet counts for storefront filtering.

Counts are derived data: membership sets fed by FamilyChange events, and
rebuildable at any time from a snapshot of variant states. Events carry
the record version they produced; a rebuild keeps whatever an event newer
than the snapshot already placed.

Writers serialize on one lock and publish an immutable view of the
memberships; readers only ever load that view, so they never block and
never observe a variant in two families at once.
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from loguru import logger

from chromafacet.schema import FacetCount, FamilyChange, VariantColorState
from chromafacet.classify.catalog import FamilyCatalog

CountablePredicate = Callable[[str], bool]


def _always(variant_id: str) -> bool:
    return True


class FacetAggregator:
    """
    Count of countable variants per catalog family.

    Args:
        catalog: Families to count; every one of them is reported, zeros included
        is_countable: Predicate deciding whether a variant counts (e.g. its
            product is active). Defaults to counting everything.
    """

    def __init__(self, catalog: FamilyCatalog, is_countable: Optional[CountablePredicate] = None) -> None:
        self._is_countable = is_countable or _always
        self._lock = threading.Lock()
        self._family_ids = catalog.ids
        # Effective family of every variant seen, countable or not
        self._family_of: dict[str, str] = {}
        # Record version last applied per variant, from events or a snapshot
        self._seen: dict[str, int] = {}
        self._members: dict[str, frozenset[str]] = {fid: frozenset() for fid in self._family_ids}
        self._view: Mapping[str, frozenset[str]] = MappingProxyType(dict(self._members))

    # -- writers --------------------------------------------------------------

    def on_effective_family_changed(self, event: FamilyChange) -> None:
        """Move a variant between families. Subscribe this to the service."""
        self._place(event.variant_id, event.new_family, lookup=False, version=event.version)

    def recount(self, variant_id: str, family: Optional[str] = None) -> None:
        """
        Re-apply the countable predicate to one variant, e.g. after its
        product was activated or deactivated.
        """
        self._place(variant_id, family, lookup=family is None)

    def rebuild_all(
        self,
        states: Iterable[VariantColorState],
        catalog: Optional[FamilyCatalog] = None,
    ) -> dict[str, int]:
        """
        Recompute every membership from scratch. Idempotent.

        Variants changed by an event after the snapshot was taken keep their
        live placement, removals included.

        Args:
            states: Snapshot of every variant state
            catalog: New family vocabulary; defaults to the current one
        """
        family_ids = catalog.ids if catalog is not None else self._family_ids
        members: dict[str, set[str]] = {fid: set() for fid in family_ids}
        family_of: dict[str, str] = {}
        seen: dict[str, int] = {}
        for state in states:
            seen[state.variant_id] = state.version
            family = state.effective_family
            if family is None:
                continue
            family_of[state.variant_id] = family
            if family in members and self._is_countable(state.variant_id):
                members[family].add(state.variant_id)

        with self._lock:
            for variant_id, version in self._seen.items():
                if version <= seen.get(variant_id, 0):
                    continue
                seen[variant_id] = version
                stale = family_of.pop(variant_id, None)
                if stale in members:
                    members[stale].discard(variant_id)
                family = self._family_of.get(variant_id)
                if family is None:
                    continue
                family_of[variant_id] = family
                if family in members and variant_id in self._members.get(family, ()):
                    members[family].add(variant_id)

            self._family_ids = family_ids
            self._family_of = family_of
            self._seen = seen
            self._members = {fid: frozenset(ids) for fid, ids in members.items()}
            self._publish()

        counts = self.get_counts()
        logger.info("Facet counts rebuilt: {} variants counted", sum(counts.values()))
        return counts

    # -- readers --------------------------------------------------------------

    def get_counts(self) -> dict[str, int]:
        """Count per family in catalog order, zeros included."""
        view = self._view
        return {fid: len(ids) for fid, ids in view.items()}

    def facet_counts(self) -> list[FacetCount]:
        return [FacetCount(fid, n) for fid, n in self.get_counts().items()]

    def count(self, family_id: str) -> int:
        return len(self._view.get(family_id, ()))

    def members(self, family_ids: Iterable[str]) -> frozenset[str]:
        """Countable variants in any of the given families."""
        view = self._view
        result: frozenset[str] = frozenset()
        for family_id in family_ids:
            result = result.union(view.get(family_id.strip().lower(), ()))
        return result

    # -------------------------------------------------------------------------

    def _place(
        self,
        variant_id: str,
        family: Optional[str],
        lookup: bool,
        version: Optional[int] = None,
    ) -> None:
        countable = self._is_countable(variant_id)
        with self._lock:
            if version is not None:
                self._seen[variant_id] = version
            if lookup:
                family = self._family_of.get(variant_id)
            previous = self._family_of.pop(variant_id, None)
            if previous in self._members and variant_id in self._members[previous]:
                self._members[previous] = self._members[previous] - {variant_id}
            if family is not None:
                self._family_of[variant_id] = family
                if countable and family in self._members:
                    self._members[family] = self._members[family] | {variant_id}
            self._publish()

    def _publish(self) -> None:
        self._view = MappingProxyType(dict(self._members))
