# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Schema definitions for variant colors and color families.

All types in this module are immutable (frozen dataclasses).
A transition produces a new state; nothing is mutated in place.
"""

from chromafacet.schema.variant_color import (
    AUTO,
    UNCATEGORIZED,
    Auto,
    ClassificationResult,
    ColorSource,
    ColorValue,
    FacetCount,
    FamilyChange,
    FamilyDefinition,
    Manual,
    NeutralBand,
    PerceptualColor,
    Shade,
    VariantColorState,
)

__all__ = [
    # Values
    "ColorValue",
    "PerceptualColor",
    # Catalog types
    "FamilyDefinition",
    "NeutralBand",
    "Shade",
    # Classification output
    "ClassificationResult",
    # Variant state (tagged source)
    "Auto",
    "Manual",
    "AUTO",
    "ColorSource",
    "VariantColorState",
    "UNCATEGORIZED",
    # Events and facets
    "FamilyChange",
    "FacetCount",
]
