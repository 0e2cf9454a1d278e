# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Classification core.

Pure, deterministic mapping from a hex color to a color family.
Nothing here touches storage.
"""

from chromafacet.classify.catalog import FamilyCatalog, default_catalog
from chromafacet.classify.classifier import Classifier
from chromafacet.classify.colorspace import hue_difference, to_perceptual

__all__ = [
    "Classifier",
    "FamilyCatalog",
    "default_catalog",
    "to_perceptual",
    "hue_difference",
]
