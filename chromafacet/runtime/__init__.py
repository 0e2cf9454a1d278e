# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Stateful runtime around the classifier.

1. Store -- record persistence with compare-and-swap
2. Overrides -- manual family pins
3. Service -- per-variant state machine and change events
4. Facets -- per-family counts for storefront filters

The classifier stays pure; everything that reads or writes variant records
lives here.
"""

from chromafacet.runtime.facets import FacetAggregator
from chromafacet.runtime.overrides import OverrideStore
from chromafacet.runtime.service import ClassificationService, RebuildReport, VariantLocks
from chromafacet.runtime.store import InMemoryVariantStore, VariantStore, save_state

__all__ = [
    "VariantStore",
    "InMemoryVariantStore",
    "save_state",
    "OverrideStore",
    "ClassificationService",
    "RebuildReport",
    "VariantLocks",
    "FacetAggregator",
]
