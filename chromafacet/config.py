# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Engine configuration.

Frozen dataclasses with tuned defaults. ``from_env`` reads overrides from
``CHROMAFACET_*`` environment variables, falling back to the defaults.

Thresholds are on the OKLCH scale:
- L (Lightness): 0.0 = black, 1.0 = white
- C (Chroma): 0.0 = neutral, ~0.32 = most saturated sRGB colors
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

ENV_PREFIX = "CHROMAFACET_"


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(ENV_PREFIX + name)
    return float(raw) if raw not in (None, "") else default


@dataclass(frozen=True)
class ClassifierConfig:
    """Tuning parameters for the classifier."""

    # White: very light and nearly neutral
    white_min_lightness: float = 0.93
    white_max_chroma: float = 0.03

    # Black: dark and low chroma. Chroma shrinks as lightness drops, so
    # the chroma allowance is wider than for white or gray.
    # #2C2C2C (L≈0.29) is black, #333333 (L≈0.33) is dark gray.
    black_max_lightness: float = 0.32
    black_max_chroma: float = 0.05

    # Gray: everything between black and white with almost no chroma
    gray_max_chroma: float = 0.025

    # Weights for the nearest-family distance. With all three at 1.0 the
    # distance is plain Euclidean OKLab ΔE. Hue is emphasized because
    # families are primarily hue buckets.
    lightness_weight: float = 0.75
    chroma_weight: float = 1.0
    hue_weight: float = 2.0

    # Families within this distance of the best are tied
    tie_epsilon: float = 1e-9

    def __post_init__(self) -> None:
        for name in ("lightness_weight", "chroma_weight", "hue_weight"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not 0.0 <= self.black_max_lightness < self.white_min_lightness <= 1.0:
            raise ValueError(
                "Lightness thresholds must satisfy "
                "0 <= black_max_lightness < white_min_lightness <= 1, got "
                f"{self.black_max_lightness} / {self.white_min_lightness}"
            )
        for name in ("white_max_chroma", "black_max_chroma", "gray_max_chroma"):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")
        if self.tie_epsilon < 0.0:
            raise ValueError(f"tie_epsilon must be >= 0, got {self.tie_epsilon}")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> ClassifierConfig:
        """Build a config from CHROMAFACET_* variables (e.g. CHROMAFACET_HUE_WEIGHT)."""
        env = os.environ if env is None else env
        defaults = cls()
        return cls(**{
            name: _env_float(env, name.upper(), getattr(defaults, name))
            for name in cls.__dataclass_fields__
        })


@dataclass(frozen=True)
class EngineConfig:
    """Top-level engine settings."""

    # JSON family catalog. None = built-in default catalog.
    catalog_path: Optional[str] = None
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> EngineConfig:
        env = os.environ if env is None else env
        return cls(
            catalog_path=env.get(ENV_PREFIX + "CATALOG_PATH") or None,
            classifier=ClassifierConfig.from_env(env),
            log_level=env.get(ENV_PREFIX + "LOG_LEVEL", "INFO").upper(),
        )
