# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
ColorEngine: the interface the storefront and admin panel talk to.

Wires the classifier, the state machine and the facet counts together,
and keeps the counts subscribed to every effective-family change.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from chromafacet.config import EngineConfig
from chromafacet.log import configure_logging
from chromafacet.schema import ClassificationResult, ColorValue, VariantColorState
from chromafacet.classify.catalog import FamilyCatalog, default_catalog
from chromafacet.classify.classifier import Classifier
from chromafacet.runtime.facets import CountablePredicate, FacetAggregator
from chromafacet.runtime.service import ClassificationService, RebuildReport
from chromafacet.runtime.store import InMemoryVariantStore, VariantStore


class ColorEngine:
    """
    Facade over classification, overrides and facet counts.

    Facet counts are rebuilt from the store on construction.

    Args:
        store: Variant record store (defaults to an empty in-memory store)
        classifier: Classifier over the active catalog (defaults to the
            built-in eleven families)
        is_countable: Predicate for variants that count toward facets
    """

    def __init__(
        self,
        store: Optional[VariantStore] = None,
        classifier: Optional[Classifier] = None,
        is_countable: Optional[CountablePredicate] = None,
    ) -> None:
        self._store = store if store is not None else InMemoryVariantStore()
        classifier = classifier or Classifier(default_catalog())
        self._service = ClassificationService(self._store, classifier)
        self._facets = FacetAggregator(classifier.catalog, is_countable)
        self._service.subscribe(self._facets.on_effective_family_changed)
        self._facets.rebuild_all(self._service.snapshot())

    @classmethod
    def from_config(
        cls,
        config: Optional[EngineConfig] = None,
        store: Optional[VariantStore] = None,
        is_countable: Optional[CountablePredicate] = None,
        setup_logging: bool = False,
    ) -> ColorEngine:
        """
        Build an engine from settings (``EngineConfig.from_env()`` if omitted).

        Loads the JSON catalog at ``catalog_path`` when set, else the
        default catalog with the configured neutral thresholds.
        """
        config = config or EngineConfig.from_env()
        if setup_logging:
            configure_logging(config.log_level)
        if config.catalog_path:
            catalog = FamilyCatalog.from_file(config.catalog_path)
        else:
            catalog = default_catalog(config.classifier)
        return cls(store, Classifier(catalog, config.classifier), is_countable)

    @property
    def catalog(self) -> FamilyCatalog:
        return self._service.catalog

    @property
    def service(self) -> ClassificationService:
        return self._service

    @property
    def facets(self) -> FacetAggregator:
        return self._facets

    # -- classification -------------------------------------------------------

    def classify_color(self, color: Union[str, ColorValue]) -> ClassificationResult:
        """Classify without touching any variant. Raises InvalidColorFormat."""
        return self._service.classifier.classify(ColorValue.parse(color))

    def family_for_name(self, name: str) -> str:
        """
        Family id for a color name ("Navy" -> "blue"). Raises UnknownFamily.
        """
        return self._service.catalog.family_for_name(name).id

    # -- variant writes -------------------------------------------------------

    def apply_color(self, variant_id: str, color: Union[str, ColorValue]) -> VariantColorState:
        return self._service.set_color(variant_id, color)

    def set_override(self, variant_id: str, family_id: str) -> VariantColorState:
        return self._service.set_override(variant_id, family_id)

    def clear_override(self, variant_id: str) -> VariantColorState:
        return self._service.revert_to_auto(variant_id)

    def remove_variant(self, variant_id: str) -> bool:
        return self._service.remove_variant(variant_id)

    def refresh_variant(self, variant_id: str) -> None:
        """Re-evaluate whether a variant counts, after its product changed state."""
        state = self._service.get_state(variant_id)
        # None falls back to the family the aggregator last saw
        self._facets.recount(variant_id, state.effective_family if state is not None else None)

    # -- reads ----------------------------------------------------------------

    def get_effective_family(self, variant_id: str) -> str:
        return self._service.effective_family(variant_id)

    def get_facet_counts(self) -> dict[str, int]:
        return self._facets.get_counts()

    def find_variants(self, family_ids: Union[str, Iterable[str]]) -> frozenset[str]:
        """
        Variants counted in any of the families.

        Accepts a list or the storefront's comma-separated query value
        (``"red,blue"``).
        """
        if isinstance(family_ids, str):
            family_ids = [f for f in family_ids.split(",") if f.strip()]
        return self._facets.members(family_ids)

    # -- maintenance ----------------------------------------------------------

    def rebuild(self) -> RebuildReport:
        """Reclassify every record, then recount every facet."""
        report = self._service.reclassify_all()
        self._facets.rebuild_all(self._service.snapshot())
        return report

    def replace_catalog(self, catalog: FamilyCatalog) -> RebuildReport:
        """Adopt a new family vocabulary; records and counts follow."""
        report = self._service.replace_catalog(catalog)
        self._facets.rebuild_all(self._service.snapshot(), catalog)
        return report
