# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Variant color schema: values, family definitions, and per-variant state.

Design principles:
- Immutable: all types are frozen dataclasses
- Validated at construction: an instance is always well-formed
- Unrepresentable invalid states: Manual without a family cannot exist
- Record-ready: VariantColorState maps 1:1 to the stored document fields

OKLCH Color Space:
- L (Lightness): 0.0 = black, 1.0 = white
- C (Chroma): 0.0 = gray, ~0.32 = max saturation in sRGB
- H (Hue): 0-360 degrees (≈30=red, ≈70=orange, ≈110=yellow, ≈142=green, ≈264=blue)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

from chromafacet.errors import CorruptRecord, InvalidColorFormat


# =============================================================================
# Record Field Names
# =============================================================================

FIELD_VARIANT_ID = "variantId"
FIELD_COLOR = "color"
FIELD_SOURCE = "colorFamilySource"
FIELD_FAMILY = "colorFamily"
FIELD_VERSION = "version"

SOURCE_AUTO = "auto"
SOURCE_MANUAL = "manual"
# Written by bulk imports in older catalogs; behaves like auto
SOURCE_IMPORT = "import"

UNCATEGORIZED = "uncategorized"


# =============================================================================
# Color Values
# =============================================================================

_CANONICAL_HEX_RE = re.compile(r"#[0-9A-F]{6}")
_INPUT_HEX_RE = re.compile(r"#([0-9a-fA-F]{6}|[0-9a-fA-F]{3})")


@dataclass(frozen=True, slots=True)
class ColorValue:
    """
    A validated sRGB color in canonical ``#RRGGBB`` (uppercase) form.

    Construct from user input with ``ColorValue.parse``; the constructor
    itself only accepts canonical text.
    """
    hex: str

    def __post_init__(self) -> None:
        if not isinstance(self.hex, str) or not _CANONICAL_HEX_RE.fullmatch(self.hex):
            raise InvalidColorFormat(self.hex)

    @classmethod
    def parse(cls, value: Union[str, ColorValue]) -> ColorValue:
        """
        Validate and canonicalize a hex color.

        Accepts ``#RRGGBB`` and the ``#RGB`` shorthand, case-insensitive,
        surrounding whitespace ignored. The ``#`` is required, so words
        such as "bad" or "add" are not colors.

        Raises:
            InvalidColorFormat: for anything else
        """
        if isinstance(value, ColorValue):
            return value
        if not isinstance(value, str):
            raise InvalidColorFormat(value)
        m = _INPUT_HEX_RE.fullmatch(value.strip())
        if not m:
            raise InvalidColorFormat(value)
        digits = m.group(1).upper()
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return cls("#" + digits)

    @property
    def rgb(self) -> tuple[int, int, int]:
        """Channel values in 0-255."""
        return (
            int(self.hex[1:3], 16),
            int(self.hex[3:5], 16),
            int(self.hex[5:7], 16),
        )

    def __str__(self) -> str:
        return self.hex


@dataclass(frozen=True, slots=True)
class PerceptualColor:
    """
    OKLCH coordinates of a color.

    Attributes:
        lightness: 0.0 (black) to 1.0 (white)
        chroma: >= 0.0, ~0.32 max for sRGB
        hue: degrees in [0, 360), None for achromatic colors
    """
    lightness: float
    chroma: float
    hue: Optional[float] = None

    def __post_init__(self) -> None:
        # sRGB white lands a hair above 1.0 through the matrices
        if not -1e-6 <= self.lightness <= 1.0 + 1e-6:
            raise ValueError(f"Lightness must be 0-1, got {self.lightness}")
        if self.chroma < 0.0:
            raise ValueError(f"Chroma must be >= 0, got {self.chroma}")
        if self.hue is not None and not 0.0 <= self.hue < 360.0:
            raise ValueError(f"Hue must be 0-360, got {self.hue}")

    @property
    def is_achromatic(self) -> bool:
        return self.hue is None

    def as_tuple(self) -> tuple[float, float, float]:
        """(L, C, H) with achromatic hue reported as 0.0."""
        return (self.lightness, self.chroma, self.hue if self.hue is not None else 0.0)


# =============================================================================
# Family Definitions
# =============================================================================


@dataclass(frozen=True, slots=True)
class NeutralBand:
    """
    Special-case region that claims near-neutral colors for a family.

    A color falls in the band when
    ``min_lightness <= L <= max_lightness`` and ``C < max_chroma``.
    Bands are tested in ascending ``priority``; the first hit wins.
    """
    priority: int
    max_chroma: float
    min_lightness: float = 0.0
    max_lightness: float = 1.0

    def __post_init__(self) -> None:
        if self.max_chroma <= 0.0:
            raise ValueError(f"max_chroma must be > 0, got {self.max_chroma}")
        if self.min_lightness > self.max_lightness:
            raise ValueError(
                f"min_lightness {self.min_lightness} exceeds "
                f"max_lightness {self.max_lightness}"
            )

    def contains(self, color: PerceptualColor) -> bool:
        return (
            self.min_lightness <= color.lightness <= self.max_lightness
            and color.chroma < self.max_chroma
        )

    def to_dict(self) -> dict:
        return {
            "priority": self.priority,
            "maxChroma": self.max_chroma,
            "minLightness": self.min_lightness,
            "maxLightness": self.max_lightness,
        }

    @classmethod
    def from_dict(cls, data: dict) -> NeutralBand:
        return cls(
            priority=int(data["priority"]),
            max_chroma=float(data["maxChroma"]),
            min_lightness=float(data.get("minLightness", 0.0)),
            max_lightness=float(data.get("maxLightness", 1.0)),
        )


@dataclass(frozen=True, slots=True)
class Shade:
    """A named extra anchor color within a family (e.g. navy in blue)."""
    name: str
    color: ColorValue


@dataclass(frozen=True, slots=True)
class FamilyDefinition:
    """
    One color family of the catalog.

    Attributes:
        id: Stable lowercase identifier stored on variant records ("blue")
        label: Display label
        reference_color: Centroid used for nearest-family distance
        shades: Extra anchors; family distance is the min over all anchors
        neutral: Optional special-case band (black/white/gray)
    """
    id: str
    label: str
    reference_color: ColorValue
    shades: tuple[Shade, ...] = ()
    neutral: Optional[NeutralBand] = None

    def __post_init__(self) -> None:
        if not self.id or self.id != self.id.strip().lower():
            raise ValueError(f"Family id must be non-empty lowercase, got {self.id!r}")
        if self.id == UNCATEGORIZED:
            raise ValueError(f"{UNCATEGORIZED!r} is reserved")

    @property
    def special_case_priority(self) -> Optional[int]:
        return self.neutral.priority if self.neutral is not None else None

    @property
    def anchors(self) -> tuple[ColorValue, ...]:
        return (self.reference_color,) + tuple(s.color for s in self.shades)


# =============================================================================
# Classification Output
# =============================================================================


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """
    Outcome of classifying one color. Pure output, never persisted.

    Attributes:
        family: Winning family id
        distance: Weighted distance to the family's nearest anchor
        matched_by_special_case: True when a neutral band decided the family
    """
    family: str
    distance: float
    matched_by_special_case: bool = False

    def to_dict(self) -> dict:
        return {
            "familyId": self.family,
            "distance": self.distance,
            "matchedBySpecialCase": self.matched_by_special_case,
        }


# =============================================================================
# Variant State
# =============================================================================


@dataclass(frozen=True, slots=True)
class Auto:
    """Effective family follows the classifier."""

    @property
    def name(self) -> str:
        return SOURCE_AUTO


@dataclass(frozen=True, slots=True)
class Manual:
    """Effective family is pinned by an operator."""
    family: str

    def __post_init__(self) -> None:
        if not self.family:
            raise ValueError("Manual source requires a family id")

    @property
    def name(self) -> str:
        return SOURCE_MANUAL


ColorSource = Union[Auto, Manual]

AUTO = Auto()


@dataclass(frozen=True, slots=True)
class VariantColorState:
    """
    Color state of one catalog variant.

    Invariants (checked on construction):
        - Manual(F)  -> effective_family == F
        - Auto       -> effective_family is the classifier result for color,
                        or None for a record whose stored family was lost
                        (reads as uncategorized until reclassified)

    Attributes:
        variant_id: Catalog variant identifier
        color: Current color
        source: Auto() or Manual(family)
        effective_family: Family shown and counted for the variant
        version: Write stamp for compare-and-swap (0 = never stored)
    """
    variant_id: str
    color: ColorValue
    source: ColorSource
    effective_family: Optional[str]
    version: int = 0

    def __post_init__(self) -> None:
        if not self.variant_id:
            raise ValueError("variant_id cannot be empty")
        if not isinstance(self.color, ColorValue):
            raise InvalidColorFormat(self.color)
        if isinstance(self.source, Manual):
            if self.effective_family != self.source.family:
                raise ValueError(
                    f"Manual state must have effective family "
                    f"{self.source.family!r}, got {self.effective_family!r}"
                )
        elif not isinstance(self.source, Auto):
            raise TypeError(f"source must be Auto or Manual, got {self.source!r}")
        if self.version < 0:
            raise ValueError(f"version must be >= 0, got {self.version}")

    @property
    def is_manual(self) -> bool:
        return isinstance(self.source, Manual)

    @property
    def override_family(self) -> Optional[str]:
        return self.source.family if isinstance(self.source, Manual) else None

    @property
    def display_family(self) -> str:
        return self.effective_family or UNCATEGORIZED

    # -- transitions (pure; the service persists them) ------------------------

    def with_auto_family(self, color: ColorValue, family: str) -> VariantColorState:
        return replace(self, color=color, source=AUTO, effective_family=family)

    def with_color(self, color: ColorValue) -> VariantColorState:
        """New color, pin kept (manual) or family left for the caller (auto)."""
        return replace(self, color=color)

    def pinned(self, family: str) -> VariantColorState:
        return replace(self, source=Manual(family), effective_family=family)

    def next_version(self) -> VariantColorState:
        return replace(self, version=self.version + 1)

    # -- records ---------------------------------------------------------------

    def to_record(self) -> dict:
        """Serialize to the stored document layout."""
        record = {
            FIELD_VARIANT_ID: self.variant_id,
            FIELD_COLOR: self.color.hex,
            FIELD_SOURCE: self.source.name,
            FIELD_VERSION: self.version,
        }
        if self.effective_family is not None:
            record[FIELD_FAMILY] = self.effective_family
        return record

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> VariantColorState:
        """
        Deserialize a stored document.

        A missing or unusable ``colorFamily`` degrades to an Auto state with
        no effective family instead of failing; so does an unknown source.

        Raises:
            CorruptRecord: if the id or color cannot be recovered
        """
        variant_id = data.get(FIELD_VARIANT_ID)
        if not isinstance(variant_id, str) or not variant_id:
            raise CorruptRecord(None, f"missing {FIELD_VARIANT_ID}")
        try:
            color = ColorValue.parse(data.get(FIELD_COLOR))
        except InvalidColorFormat as exc:
            raise CorruptRecord(variant_id, str(exc)) from exc

        version = data.get(FIELD_VERSION, 0)
        if not isinstance(version, int) or version < 0:
            raise CorruptRecord(variant_id, f"bad version {version!r}")

        family = data.get(FIELD_FAMILY)
        if not isinstance(family, str) or not family.strip():
            family = None
        else:
            family = family.strip().lower()

        source_name = data.get(FIELD_SOURCE, SOURCE_AUTO)
        if source_name == SOURCE_MANUAL and family is not None:
            source: ColorSource = Manual(family)
        else:
            source = AUTO
        return cls(
            variant_id=variant_id,
            color=color,
            source=source,
            effective_family=family,
            version=version,
        )


# =============================================================================
# Events and Facets
# =============================================================================


@dataclass(frozen=True, slots=True)
class FamilyChange:
    """
    Effective family of a variant changed.

    old_family is None for a newly colored variant; new_family is None
    when the variant was removed. version is the record version the change
    produced (for a removal, one past the deleted record) and does not take
    part in equality.
    """
    variant_id: str
    old_family: Optional[str]
    new_family: Optional[str]
    version: Optional[int] = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class FacetCount:
    """Derived count of countable variants in one family."""
    family_id: str
    count: int

    def to_dict(self) -> dict:
        return {"familyId": self.family_id, "count": self.count}
