# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Family catalog: the fixed, ordered vocabulary of color families.

A catalog is immutable for its lifetime. Changing the vocabulary means
building a new catalog (with a new version label) and running a rebuild,
so live classifications never shift silently.

Catalog order matters only for tie-breaking: among equidistant families
the one listed first wins.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from chromafacet.config import ClassifierConfig
from chromafacet.errors import CatalogError, InvalidColorFormat, UnknownFamily
from chromafacet.schema import ColorValue, FamilyDefinition, NeutralBand, Shade
from chromafacet.classify.colorspace import colors_to_oklch


class FamilyCatalog:
    """
    Ordered, immutable set of FamilyDefinition.

    Every anchor color (reference + shades) is converted to OKLCH once at
    construction and cached in ``anchor_lch`` / ``anchor_owner``.

    Args:
        families: Definitions in tie-break order. Ids must be unique.
        version: Label distinguishing catalog revisions.
    """

    __slots__ = (
        "_families", "_index", "_names", "_version", "_anchor_lch", "_anchor_owner", "_neutral_order",
    )

    def __init__(self, families: Iterable[FamilyDefinition], version: str = "1") -> None:
        families = tuple(families)
        if not families:
            raise CatalogError("Catalog must define at least one family")

        index: dict[str, int] = {}
        for i, family in enumerate(families):
            if family.id in index:
                raise CatalogError(f"Duplicate family id {family.id!r}")
            index[family.id] = i

        anchors: list[ColorValue] = []
        owners: list[int] = []
        for i, family in enumerate(families):
            for anchor in family.anchors:
                anchors.append(anchor)
                owners.append(i)

        lch = colors_to_oklch(anchors)
        lch.setflags(write=False)
        owner = np.array(owners, dtype=np.intp)
        owner.setflags(write=False)

        self._families = families
        self._index = index
        self._names = _name_index(families)
        self._version = str(version)
        self._anchor_lch = lch
        self._anchor_owner = owner
        # sorted() is stable, so equal priorities keep catalog order
        self._neutral_order = tuple(sorted(
            (i for i, f in enumerate(families) if f.neutral is not None),
            key=lambda i: families[i].neutral.priority,
        ))

    # -- lookup ---------------------------------------------------------------

    @property
    def version(self) -> str:
        return self._version

    @property
    def families(self) -> tuple[FamilyDefinition, ...]:
        return self._families

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(f.id for f in self._families)

    @property
    def anchor_lch(self) -> NDArray[np.float64]:
        """(N, 3) OKLCH of every anchor, read-only."""
        return self._anchor_lch

    @property
    def anchor_owner(self) -> NDArray[np.intp]:
        """(N,) catalog index of the family owning each anchor."""
        return self._anchor_owner

    @property
    def neutral_families(self) -> tuple[FamilyDefinition, ...]:
        """Families with a neutral band, in special-case priority order."""
        return tuple(self._families[i] for i in self._neutral_order)

    def __len__(self) -> int:
        return len(self._families)

    def __iter__(self) -> Iterator[FamilyDefinition]:
        return iter(self._families)

    def __contains__(self, family_id: object) -> bool:
        return family_id in self._index

    def __repr__(self) -> str:
        return f"FamilyCatalog(version={self._version!r}, families={list(self.ids)!r})"

    def get(self, family_id: str) -> FamilyDefinition:
        """
        Raises:
            UnknownFamily: if the id is not defined
        """
        try:
            return self._families[self._index[family_id]]
        except KeyError:
            raise UnknownFamily(family_id, self._version) from None

    def index_of(self, family_id: str) -> int:
        return self._index[self.get(family_id).id]

    def require(self, family_id: object) -> str:
        """Validate an override target and return its canonical id."""
        if isinstance(family_id, str) and family_id.strip().lower() in self._index:
            return family_id.strip().lower()
        raise UnknownFamily(family_id, self._version)

    def family_for_name(self, name: object) -> FamilyDefinition:
        """
        Resolve a color name such as "Navy" or "red" to its family.

        Matches family ids, then labels, then shade names, case-insensitively.

        Raises:
            UnknownFamily: if no family, label or shade carries the name
        """
        if isinstance(name, str):
            index = self._names.get(name.strip().casefold())
            if index is not None:
                return self._families[index]
        raise UnknownFamily(name, self._version)

    # -- serialization --------------------------------------------------------

    def to_dicts(self) -> list[dict]:
        """Export in the storefront's colorFamilies.json layout."""
        result = []
        for family in self._families:
            entry: dict = {
                "family": family.id,
                "displayName": family.label,
                "representativeHex": family.reference_color.hex,
                "variants": [{"name": s.name, "hex": s.color.hex} for s in family.shades],
            }
            if family.neutral is not None:
                entry["neutral"] = family.neutral.to_dict()
            result.append(entry)
        return result

    @classmethod
    def from_dicts(cls, data: Sequence[dict], version: str = "1") -> FamilyCatalog:
        """
        Load a catalog from colorFamilies.json-style entries.

        Each entry: ``family`` (or ``id``), ``displayName`` (or ``label``),
        ``representativeHex`` (or ``reference``), optional ``variants``
        ``[{name, hex}]`` and optional ``neutral`` band. Without a
        representative hex, the first variant is the reference.

        Raises:
            CatalogError: on malformed entries
        """
        families = []
        for position, entry in enumerate(data):
            try:
                families.append(_family_from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                raise CatalogError(f"Invalid family entry #{position}: {exc}") from exc
        return cls(families, version=version)

    @classmethod
    def from_json(cls, text: str, version: Optional[str] = None) -> FamilyCatalog:
        """
        Parse either a bare list of families or
        ``{"version": ..., "families": [...]}``.
        """
        payload = json.loads(text)
        if isinstance(payload, dict):
            entries = payload.get("families", [])
            version = version or str(payload.get("version", "1"))
        else:
            entries = payload
        return cls.from_dicts(entries, version=version or "1")

    @classmethod
    def from_file(cls, path: Union[str, Path], version: Optional[str] = None) -> FamilyCatalog:
        return cls.from_json(Path(path).read_text(encoding="utf-8"), version=version)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps({"version": self._version, "families": self.to_dicts()}, indent=indent)


def _name_index(families: Sequence[FamilyDefinition]) -> dict[str, int]:
    names: dict[str, int] = {}
    # ids outrank labels, labels outrank shade names; first family wins within a tier
    for key in (
        lambda f: (f.id,),
        lambda f: (f.label,),
        lambda f: tuple(s.name for s in f.shades),
    ):
        for i, family in enumerate(families):
            for name in key(family):
                if name.strip():
                    names.setdefault(name.strip().casefold(), i)
    return names


def _family_from_dict(entry: dict) -> FamilyDefinition:
    family_id = str(entry.get("family", entry.get("id", ""))).strip().lower()
    label = entry.get("displayName", entry.get("label")) or family_id
    shades = tuple(
        Shade(name=str(v.get("name", "")), color=ColorValue.parse(v["hex"]))
        for v in entry.get("variants", ())
        if v.get("hex")
    )
    reference = entry.get("representativeHex", entry.get("reference"))
    if reference:
        reference_color = ColorValue.parse(reference)
    elif shades:
        reference_color, shades = shades[0].color, shades[1:]
    else:
        raise InvalidColorFormat(reference)
    neutral = entry.get("neutral")
    return FamilyDefinition(
        id=family_id,
        label=str(label),
        reference_color=reference_color,
        shades=shades,
        neutral=NeutralBand.from_dict(neutral) if neutral else None,
    )


# =============================================================================
# Default Catalog
# =============================================================================

# (id, label, reference, shades)
_DEFAULT_FAMILIES: tuple[tuple[str, str, str, tuple[tuple[str, str], ...]], ...] = (
    ("black", "Black", "#000000", ()),
    ("white", "White", "#FFFFFF", ()),
    ("gray", "Gray", "#808080", (
        ("Silver", "#C0C0C0"), ("Dark Gray", "#A9A9A9"), ("Dim Gray", "#696969"),
    )),
    ("red", "Red", "#FF0000", (
        ("Crimson", "#DC143C"), ("Fire Brick", "#B22222"), ("Dark Red", "#8B0000"),
    )),
    ("orange", "Orange", "#FFA500", (
        ("Dark Orange", "#FF8C00"), ("Coral", "#FF7F50"),
    )),
    ("yellow", "Yellow", "#FFFF00", (
        ("Gold", "#FFD700"), ("Khaki", "#F0E68C"),
    )),
    ("green", "Green", "#00FF00", (
        ("Green", "#008000"), ("Forest Green", "#228B22"), ("Olive", "#808000"),
    )),
    ("blue", "Blue", "#0000FF", (
        ("Navy", "#000080"), ("Royal Blue", "#4169E1"), ("Sky Blue", "#87CEEB"),
        ("Turquoise", "#40E0D0"),
    )),
    ("purple", "Purple", "#800080", (
        ("Indigo", "#4B0082"), ("Blue Violet", "#8A2BE2"), ("Medium Purple", "#9370DB"),
    )),
    ("pink", "Pink", "#FFC0CB", (
        ("Hot Pink", "#FF69B4"), ("Deep Pink", "#FF1493"), ("Magenta", "#FF00FF"),
    )),
    ("brown", "Brown", "#8B4513", (
        ("Brown", "#A52A2A"), ("Sienna", "#A0522D"), ("Tan", "#D2B48C"),
    )),
)


def default_neutral_bands(config: Optional[ClassifierConfig] = None) -> dict[str, NeutralBand]:
    """White, black and gray bands in that priority order."""
    cfg = config or ClassifierConfig()
    return {
        "white": NeutralBand(
            priority=0,
            min_lightness=cfg.white_min_lightness,
            max_chroma=cfg.white_max_chroma,
        ),
        "black": NeutralBand(
            priority=1,
            max_lightness=cfg.black_max_lightness,
            max_chroma=cfg.black_max_chroma,
        ),
        "gray": NeutralBand(
            priority=2,
            min_lightness=cfg.black_max_lightness,
            max_lightness=cfg.white_min_lightness,
            max_chroma=cfg.gray_max_chroma,
        ),
    }


def default_catalog(config: Optional[ClassifierConfig] = None, version: str = "1") -> FamilyCatalog:
    """
    The standard eleven families: black, white, gray, red, orange, yellow,
    green, blue, purple, pink, brown.
    """
    bands = default_neutral_bands(config)
    return FamilyCatalog(
        (
            FamilyDefinition(
                id=family_id,
                label=label,
                reference_color=ColorValue(reference),
                shades=tuple(Shade(name, ColorValue(hex_value)) for name, hex_value in shades),
                neutral=bands.get(family_id),
            )
            for family_id, label, reference, shades in _DEFAULT_FAMILIES
        ),
        version=version,
    )
