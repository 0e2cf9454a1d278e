# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Nearest-family classification.

Algorithm:
1. Convert the color to OKLCH.
2. Special-case pass: neutral bands in priority order, first match wins.
   Pure hue-nearest search puts a dark bluish charcoal in "blue"; the
   bands claim such near-neutrals for black/white/gray first.
3. Weighted distance to every anchor of every family; a family's distance
   is its nearest anchor.
4. Families within ``tie_epsilon`` of the minimum are tied; the earliest in
   catalog order wins.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from loguru import logger

from chromafacet.config import ClassifierConfig
from chromafacet.errors import InvalidColorFormat
from chromafacet.schema import ClassificationResult, ColorValue, PerceptualColor
from chromafacet.classify.catalog import FamilyCatalog
from chromafacet.classify.colorspace import (
    colors_to_oklch,
    perceptual_from_lch,
    to_perceptual,
    weighted_distance,
)


class Classifier:
    """
    Stateless classifier over one immutable catalog.

    Safe to share between threads: all state is read-only after __init__.
    """

    def __init__(self, catalog: FamilyCatalog, config: Optional[ClassifierConfig] = None) -> None:
        self._catalog = catalog
        self._config = config or ClassifierConfig()

    @property
    def catalog(self) -> FamilyCatalog:
        return self._catalog

    @property
    def config(self) -> ClassifierConfig:
        return self._config

    def classify(self, color: ColorValue) -> ClassificationResult:
        """
        Classify a validated color.

        Raises:
            InvalidColorFormat: if ``color`` did not go through ColorValue.parse
        """
        if not isinstance(color, ColorValue):
            raise InvalidColorFormat(color)
        result = self.classify_perceptual(to_perceptual(color))
        logger.bind(color=color.hex).debug(
            "Classified as {} (distance={:.4f}, special={})",
            result.family, result.distance, result.matched_by_special_case,
        )
        return result

    def classify_perceptual(self, color: PerceptualColor) -> ClassificationResult:
        """Classify raw OKLCH coordinates."""
        lch = np.array(color.as_tuple(), dtype=np.float64)
        family_dist = self._family_distances(lch)

        for family in self._catalog.neutral_families:
            if family.neutral.contains(color):
                index = self._catalog.index_of(family.id)
                return ClassificationResult(
                    family=family.id,
                    distance=float(family_dist[index]),
                    matched_by_special_case=True,
                )

        index = self._nearest(family_dist)
        return ClassificationResult(
            family=self._catalog.families[index].id,
            distance=float(family_dist[index]),
        )

    def classify_many(self, colors: Sequence[ColorValue]) -> list[ClassificationResult]:
        """
        Classify a batch. Identical to calling classify() per color, with
        one vectorized conversion for the whole batch.
        """
        for color in colors:
            if not isinstance(color, ColorValue):
                raise InvalidColorFormat(color)
        return [
            self.classify_perceptual(perceptual_from_lch(row))
            for row in colors_to_oklch(colors)
        ]

    # -------------------------------------------------------------------------

    def _family_distances(self, lch: NDArray[np.float64]) -> NDArray[np.float64]:
        """(K,) distance from ``lch`` to each family's nearest anchor."""
        cfg = self._config
        anchor_dist = weighted_distance(
            lch,
            self._catalog.anchor_lch,
            lightness_weight=cfg.lightness_weight,
            chroma_weight=cfg.chroma_weight,
            hue_weight=cfg.hue_weight,
        )
        family_dist = np.full(len(self._catalog), np.inf)
        np.minimum.at(family_dist, self._catalog.anchor_owner, anchor_dist)
        return family_dist

    def _nearest(self, family_dist: NDArray[np.float64]) -> int:
        best = float(family_dist.min())
        tied = np.flatnonzero(family_dist <= best + self._config.tie_epsilon)
        # flatnonzero is ascending, so the first tied index is earliest in catalog order
        return int(tied[0])
