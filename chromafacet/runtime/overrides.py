# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Manual family overrides.

An override lives on the variant record itself (``colorFamilySource`` =
``manual`` plus ``colorFamily``), so pinning and the effective family are
written together in one record write.

Callers serialize per variant; OverrideStore takes no locks of its own.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from chromafacet.errors import UnknownVariant
from chromafacet.schema import VariantColorState
from chromafacet.classify.classifier import Classifier
from chromafacet.runtime.store import VariantStore, save_state


class OverrideStore:
    """
    Auto / Manual(family) tracking over a VariantStore.

    Args:
        store: Variant record store
        classifier: Classifier for the active catalog; its catalog is the
            set of families an override may target
    """

    def __init__(self, store: VariantStore, classifier: Classifier) -> None:
        self._store = store
        self._classifier = classifier

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    def load(self, variant_id: str) -> VariantColorState:
        """
        Raises:
            UnknownVariant: if no record exists
            CorruptRecord: if the record cannot be parsed
        """
        record = self._store.load(variant_id)
        if record is None:
            raise UnknownVariant(variant_id)
        return VariantColorState.from_record(record)

    def get_override(self, variant_id: str) -> Optional[str]:
        """Pinned family, or None for an Auto (or unknown) variant."""
        record = self._store.load(variant_id)
        if record is None:
            return None
        return VariantColorState.from_record(record).override_family

    def set_override(self, variant_id: str, family_id: str) -> VariantColorState:
        """
        Pin a variant to a family.

        Raises:
            UnknownFamily: if the family is not in the active catalog
            UnknownVariant: if the variant has no record
            PersistenceFailed: if the write fails
        """
        family = self._classifier.catalog.require(family_id)
        return self.pin(self.load(variant_id), family)

    def clear_override(self, variant_id: str) -> VariantColorState:
        """
        Return a variant to automatic classification.

        Idempotent: an Auto variant is returned as stored, without a write.
        An Auto record whose family was lost is reclassified.
        """
        return self.unpin(self.load(variant_id))

    # -- transitions on an already loaded state -------------------------------

    def pin(self, state: VariantColorState, family_id: str) -> VariantColorState:
        family = self._classifier.catalog.require(family_id)
        stored = save_state(self._store, state.pinned(family), state.version)
        logger.bind(variant_id=state.variant_id, family=family).info(
            "Override set (was {} {})", state.source.name, state.display_family,
        )
        return stored

    def unpin(self, state: VariantColorState) -> VariantColorState:
        # Auto with a known family is already current
        if not state.is_manual and state.effective_family is not None:
            return state
        result = self._classifier.classify(state.color)
        stored = save_state(
            self._store,
            state.with_auto_family(state.color, result.family),
            state.version,
        )
        logger.bind(variant_id=state.variant_id, family=result.family).info(
            "Override cleared (was {})", state.display_family,
        )
        return stored
