# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Chromafacet -- Color family classification for catalog variants.

Maps a variant's hex color to one of a fixed set of color families,
lets operators pin a family by hand, and keeps per-family facet counts
in step with every change.

Quick start::

    from chromafacet import ColorEngine

    engine = ColorEngine()
    engine.classify_color("#1A1A2E").family      # "black"
    engine.apply_color("sku-1", "#0000FF")       # Auto, family "blue"
    engine.set_override("sku-1", "purple")       # Manual pin
    engine.get_facet_counts()["purple"]          # 1
"""

from __future__ import annotations

__version__ = "1.0.0"

from loguru import logger

from chromafacet.config import ClassifierConfig, EngineConfig
from chromafacet.engine import ColorEngine
from chromafacet.errors import (
    CatalogError,
    CatalogMismatch,
    ChromafacetError,
    CorruptRecord,
    InvalidColorFormat,
    PersistenceFailed,
    StaleWrite,
    UnknownFamily,
    UnknownVariant,
)
from chromafacet.log import configure_logging
from chromafacet.schema import (
    UNCATEGORIZED,
    Auto,
    ClassificationResult,
    ColorValue,
    FamilyDefinition,
    Manual,
    VariantColorState,
)
from chromafacet.classify import Classifier, FamilyCatalog, default_catalog

# Silent until the host application opts in via configure_logging()
logger.disable("chromafacet")

__all__ = [
    # Core API
    "ColorEngine",
    "Classifier",
    "FamilyCatalog",
    "default_catalog",
    # Types (commonly needed)
    "ColorValue",
    "ClassificationResult",
    "FamilyDefinition",
    "VariantColorState",
    "Auto",
    "Manual",
    "UNCATEGORIZED",
    # Configuration
    "ClassifierConfig",
    "EngineConfig",
    "configure_logging",
    # Errors
    "ChromafacetError",
    "InvalidColorFormat",
    "UnknownFamily",
    "UnknownVariant",
    "CorruptRecord",
    "PersistenceFailed",
    "StaleWrite",
    "CatalogMismatch",
    "CatalogError",
    # Version
    "__version__",
]
