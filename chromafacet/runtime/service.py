# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Per-variant color state machine.

States per variant: Auto (family follows the classifier) and
Manual(family) (family pinned by an operator).

    set_color      Auto   -> Auto, reclassified
                   Manual -> Manual, color stored, pin kept
    set_override   any    -> Manual(family)
    revert_to_auto Manual -> Auto, current color reclassified
                   Auto   -> Auto, no write (a lost family is reclassified)

Every transition runs under that variant's lock and persists in one
record write. The FamilyChange event is emitted after the write succeeds
and only when the effective family actually changed. A failed write
raises PersistenceFailed and leaves the stored record untouched.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Union

from loguru import logger

from chromafacet.errors import (
    CatalogMismatch,
    CorruptRecord,
    PersistenceFailed,
    StaleWrite,
)
from chromafacet.schema import (
    AUTO,
    UNCATEGORIZED,
    ClassificationResult,
    ColorValue,
    FamilyChange,
    VariantColorState,
)
from chromafacet.classify.catalog import FamilyCatalog
from chromafacet.classify.classifier import Classifier
from chromafacet.runtime.overrides import OverrideStore
from chromafacet.runtime.store import VariantStore, record_version, save_state

Listener = Callable[[FamilyChange], None]


# =============================================================================
# Per-variant locks
# =============================================================================


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class VariantLocks:
    """
    Arena of per-variant locks.

    A lock exists only while someone holds or waits for it; the registry
    guard is taken just long enough to find or retire the slot.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._slots: dict[str, _Slot] = {}

    @contextmanager
    def hold(self, variant_id: str) -> Iterator[None]:
        with self._guard:
            slot = self._slots.get(variant_id)
            if slot is None:
                slot = self._slots[variant_id] = _Slot()
            slot.users += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._guard:
                slot.users -= 1
                if slot.users == 0:
                    del self._slots[variant_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)


# =============================================================================
# Rebuild report
# =============================================================================


@dataclass
class RebuildReport:
    """
    Outcome of reclassify_all.

    Attributes:
        catalog_version: Catalog the rebuild ran against
        total: Parseable records visited
        updated: Variants whose record was rewritten
        corrupt: Variants skipped because their record cannot be parsed
        stale: Variants skipped after losing a concurrent write; a rerun
            picks them up
        mismatches: Pins to families the catalog no longer defines; those
            variants were returned to Auto
    """
    catalog_version: str
    total: int = 0
    updated: list[str] = field(default_factory=list)
    corrupt: list[Optional[str]] = field(default_factory=list)
    stale: list[str] = field(default_factory=list)
    mismatches: list[CatalogMismatch] = field(default_factory=list)

    @property
    def unchanged(self) -> int:
        return self.total - len(self.updated) - len(self.stale)

    def to_dict(self) -> dict:
        return {
            "catalogVersion": self.catalog_version,
            "total": self.total,
            "updated": list(self.updated),
            "corrupt": list(self.corrupt),
            "stale": list(self.stale),
            "mismatches": [
                {"variantId": m.variant_id, "familyId": m.family_id}
                for m in self.mismatches
            ],
        }


# =============================================================================
# Service
# =============================================================================


class ClassificationService:
    """
    Owns every write to variant color state.

    Args:
        store: Variant record store
        classifier: Classifier over the active catalog
    """

    def __init__(self, store: VariantStore, classifier: Classifier) -> None:
        self._store = store
        self._classifier = classifier
        self._overrides = OverrideStore(store, classifier)
        self._locks = VariantLocks()
        self._listeners: list[Listener] = []

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    @property
    def catalog(self) -> FamilyCatalog:
        return self._classifier.catalog

    @property
    def overrides(self) -> OverrideStore:
        return self._overrides

    @property
    def locks(self) -> VariantLocks:
        return self._locks

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a FamilyChange listener. Returns an unsubscribe callable;
        calling it again is a no-op.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- transitions ----------------------------------------------------------

    def set_color(self, variant_id: str, color: Union[str, ColorValue]) -> VariantColorState:
        """
        Store a new color for a variant, creating its record on first use.

        A missing or corrupt record is replaced by a fresh Auto state.

        Raises:
            InvalidColorFormat: before anything is read or written
            PersistenceFailed: if the write fails
        """
        value = ColorValue.parse(color)
        classifier = self._classifier
        with self._locks.hold(variant_id):
            raw = self._store.load(variant_id)
            before = self._parse(raw) if raw is not None else None

            if before is not None and before.is_manual:
                after = before.with_color(value)
            else:
                family = classifier.classify(value).family
                if before is None:
                    after = VariantColorState(variant_id, value, AUTO, family)
                else:
                    after = before.with_auto_family(value, family)

            stored = save_state(self._store, after, record_version(raw))
            logger.bind(variant_id=variant_id, family=stored.effective_family).info(
                "Color set to {} ({})", value.hex, stored.source.name,
            )
            self._emit(
                variant_id, before.effective_family if before else None,
                stored.effective_family, stored.version,
            )
            return stored

    def set_override(self, variant_id: str, family_id: str) -> VariantColorState:
        """
        Pin a variant to a family.

        Raises:
            UnknownFamily: if the family is not in the active catalog
            UnknownVariant: if the variant has no record
            CorruptRecord: if the record cannot be parsed
            PersistenceFailed: if the write fails
        """
        overrides = self._overrides
        family = overrides.classifier.catalog.require(family_id)
        with self._locks.hold(variant_id):
            before = overrides.load(variant_id)
            stored = overrides.pin(before, family)
            self._emit(variant_id, before.effective_family, stored.effective_family, stored.version)
            return stored

    def revert_to_auto(self, variant_id: str) -> VariantColorState:
        """
        Drop a variant's pin and reclassify its current color.

        Raises:
            UnknownVariant: if the variant has no record
            CorruptRecord: if the record cannot be parsed
            PersistenceFailed: if the write fails
        """
        overrides = self._overrides
        with self._locks.hold(variant_id):
            before = overrides.load(variant_id)
            stored = overrides.unpin(before)
            if stored is not before:
                self._emit(variant_id, before.effective_family, stored.effective_family, stored.version)
            return stored

    def remove_variant(self, variant_id: str) -> bool:
        """
        Delete a variant's record. Returns False if there was none.

        Raises:
            PersistenceFailed: if the delete fails
        """
        with self._locks.hold(variant_id):
            raw = self._store.load(variant_id)
            if raw is None:
                return False
            before = self._parse(raw)
            try:
                self._store.delete(variant_id)
            except Exception as exc:
                logger.bind(variant_id=variant_id).error("Store delete failed: {}", exc)
                raise PersistenceFailed(variant_id, str(exc)) from exc
            logger.bind(variant_id=variant_id).info("Variant removed")
            self._emit(
                variant_id, before.effective_family if before else None, None,
                record_version(raw) + 1, force=True,
            )
            return True

    # -- reads ----------------------------------------------------------------

    def get_state(self, variant_id: str) -> Optional[VariantColorState]:
        """
        Current stored state, or None if the variant has no record.

        Raises:
            CorruptRecord: if the record cannot be parsed
        """
        raw = self._store.load(variant_id)
        return VariantColorState.from_record(raw) if raw is not None else None

    def effective_family(self, variant_id: str) -> str:
        """Family to display for a variant; "uncategorized" if unknown or unreadable."""
        raw = self._store.load(variant_id)
        if raw is None:
            return UNCATEGORIZED
        state = self._parse(raw)
        return state.display_family if state is not None else UNCATEGORIZED

    def snapshot(self) -> list[VariantColorState]:
        """Every parseable stored state. Corrupt records are logged and skipped."""
        states = []
        for raw in self._store.scan():
            state = self._parse(raw)
            if state is not None:
                states.append(state)
        return states

    # -- bulk -----------------------------------------------------------------

    def reclassify_all(self) -> RebuildReport:
        """
        Bring every record in line with the active catalog.

        Auto records are reclassified. Manual records pinned to a family
        the catalog no longer defines fall back to Auto and are reported
        as mismatches. Records are revisited one at a time under their own
        lock, so transitions keep flowing during a rebuild. Running it
        again right after is a no-op.
        """
        classifier = self._classifier
        catalog = classifier.catalog
        report = RebuildReport(catalog_version=catalog.version)

        states = []
        for raw in self._store.scan():
            try:
                states.append(VariantColorState.from_record(raw))
            except CorruptRecord as exc:
                logger.bind(variant_id=exc.variant_id).warning("Skipping corrupt record: {}", exc.reason)
                report.corrupt.append(exc.variant_id)

        results = classifier.classify_many([s.color for s in states])
        for seen, result in zip(states, results):
            report.total += 1
            try:
                self._reconcile(seen, result, classifier, report)
            except StaleWrite:
                report.stale.append(seen.variant_id)
            except CorruptRecord as exc:
                logger.bind(variant_id=seen.variant_id).warning("Record went corrupt during rebuild: {}", exc.reason)
                report.corrupt.append(seen.variant_id)

        logger.bind(catalog=catalog.version).info(
            "Rebuild done: {} records, {} updated, {} mismatches, {} corrupt, {} stale",
            report.total, len(report.updated), len(report.mismatches),
            len(report.corrupt), len(report.stale),
        )
        return report

    def replace_catalog(self, catalog: FamilyCatalog) -> RebuildReport:
        """Switch to a new catalog and reclassify everything against it."""
        classifier = Classifier(catalog, self._classifier.config)
        self._classifier = classifier
        self._overrides = OverrideStore(self._store, classifier)
        logger.bind(catalog=catalog.version).info("Catalog replaced ({} families)", len(catalog))
        return self.reclassify_all()

    # -------------------------------------------------------------------------

    def _reconcile(
        self,
        seen: VariantColorState,
        result: ClassificationResult,
        classifier: Classifier,
        report: RebuildReport,
    ) -> None:
        variant_id = seen.variant_id
        with self._locks.hold(variant_id):
            raw = self._store.load(variant_id)
            if raw is None:
                return
            current = VariantColorState.from_record(raw)
            if current.color != seen.color:
                result = classifier.classify(current.color)

            if current.is_manual:
                if current.override_family in classifier.catalog:
                    return
                mismatch = CatalogMismatch(variant_id, current.override_family, classifier.catalog.version)
                logger.bind(variant_id=variant_id).warning("{}; reverting to auto", mismatch)
                report.mismatches.append(mismatch)
            elif current.effective_family == result.family:
                return

            stored = save_state(
                self._store,
                current.with_auto_family(current.color, result.family),
                current.version,
            )
            report.updated.append(variant_id)
            self._emit(variant_id, current.effective_family, stored.effective_family, stored.version)

    def _parse(self, raw: dict) -> Optional[VariantColorState]:
        try:
            return VariantColorState.from_record(raw)
        except CorruptRecord as exc:
            logger.bind(variant_id=exc.variant_id).warning("Corrupt record: {}", exc.reason)
            return None

    def _emit(
        self,
        variant_id: str,
        old_family: Optional[str],
        new_family: Optional[str],
        version: int,
        force: bool = False,
    ) -> None:
        if old_family == new_family and not force:
            return
        event = FamilyChange(variant_id, old_family, new_family, version)
        for listener in list(self._listeners):
            listener(event)
