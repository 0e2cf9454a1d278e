# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""End-to-end tests through the ColorEngine facade."""

import json

import pytest

from chromafacet import (
    ClassifierConfig,
    ColorEngine,
    EngineConfig,
    FamilyCatalog,
    InvalidColorFormat,
    UnknownFamily,
    UnknownVariant,
    configure_logging,
)
from chromafacet.log import reset_logging
from chromafacet.runtime.store import InMemoryVariantStore
from chromafacet.schema import ColorValue, FamilyDefinition


@pytest.fixture
def engine():
    return ColorEngine()


def _counted(engine):
    return sum(engine.get_facet_counts().values())


class TestClassifyColor:

    def test_result_dict(self, engine):
        result = engine.classify_color("#2C2C2C").to_dict()
        assert result["familyId"] == "black"
        assert result["matchedBySpecialCase"] is True
        assert result["distance"] > 0.0

    def test_accepts_loose_hex(self, engine):
        assert engine.classify_color(" #00f ").family == "blue"

    def test_invalid(self, engine):
        with pytest.raises(InvalidColorFormat):
            engine.classify_color("blue")

    @pytest.mark.parametrize("raw", ["bad", "add", "ffffff", "FFF"])
    def test_hex_letters_without_hash_rejected(self, engine, raw):
        with pytest.raises(InvalidColorFormat):
            engine.classify_color(raw)
        with pytest.raises(InvalidColorFormat):
            engine.apply_color("sku-1", raw)
        assert engine.get_effective_family("sku-1") == "uncategorized"

    def test_family_for_name(self, engine):
        assert engine.family_for_name("Navy") == "blue"
        assert engine.family_for_name("red") == "red"
        with pytest.raises(UnknownFamily):
            engine.family_for_name("chartreuse-ish")

    def test_does_not_touch_variants(self, engine):
        engine.classify_color("#FF0000")
        assert _counted(engine) == 0


class TestVariantLifecycle:

    def test_apply_color_updates_counts(self, engine):
        engine.apply_color("sku-1", "#0000FF")
        engine.apply_color("sku-2", "#FF0000")
        engine.apply_color("sku-3", "#000080")
        counts = engine.get_facet_counts()
        assert counts["blue"] == 2
        assert counts["red"] == 1
        assert counts["green"] == 0

    def test_gray_pin_survives_recolor(self, engine):
        engine.apply_color("sku-1", "#00FF00")
        engine.set_override("sku-1", "gray")
        engine.apply_color("sku-1", "#00FF00")
        assert engine.get_effective_family("sku-1") == "gray"
        assert engine.get_facet_counts()["green"] == 0
        state = engine.clear_override("sku-1")
        assert state.effective_family == "green"
        assert engine.get_facet_counts()["green"] == 1
        assert engine.get_facet_counts()["gray"] == 0

    def test_clear_override_idempotent(self, engine):
        engine.apply_color("sku-1", "#0000FF")
        before = engine.get_facet_counts()
        first = engine.clear_override("sku-1")
        second = engine.clear_override("sku-1")
        assert first == second
        assert engine.get_facet_counts() == before

    def test_override_errors(self, engine):
        engine.apply_color("sku-1", "#0000FF")
        with pytest.raises(UnknownFamily):
            engine.set_override("sku-1", "teal")
        with pytest.raises(UnknownVariant):
            engine.set_override("sku-9", "red")
        assert engine.get_effective_family("sku-1") == "blue"

    def test_invalid_color_leaves_state(self, engine):
        engine.apply_color("sku-1", "#0000FF")
        with pytest.raises(InvalidColorFormat):
            engine.apply_color("sku-1", "#00FF0")
        assert engine.get_effective_family("sku-1") == "blue"
        assert engine.get_facet_counts()["blue"] == 1

    def test_remove_variant(self, engine):
        engine.apply_color("sku-1", "#0000FF")
        assert engine.remove_variant("sku-1")
        assert engine.get_effective_family("sku-1") == "uncategorized"
        assert _counted(engine) == 0

    def test_unknown_variant_is_uncategorized(self, engine):
        assert engine.get_effective_family("never-seen") == "uncategorized"


class TestStorefront:

    def test_find_variants(self, engine):
        engine.apply_color("sku-1", "#0000FF")
        engine.apply_color("sku-2", "#FF0000")
        engine.apply_color("sku-3", "#00FF00")
        assert engine.find_variants("red,blue") == {"sku-1", "sku-2"}
        assert engine.find_variants(["green"]) == {"sku-3"}
        assert engine.find_variants("") == frozenset()

    def test_refresh_variant(self):
        active = {"sku-1"}
        engine = ColorEngine(is_countable=lambda vid: vid in active)
        engine.apply_color("sku-1", "#FF0000")
        engine.apply_color("sku-2", "#FF0000")
        assert engine.get_facet_counts()["red"] == 1
        active.add("sku-2")
        engine.refresh_variant("sku-2")
        assert engine.get_facet_counts()["red"] == 2
        active.discard("sku-1")
        engine.refresh_variant("sku-1")
        assert engine.find_variants("red") == {"sku-2"}


class TestRebuild:

    def test_counts_loaded_from_existing_store(self):
        store = InMemoryVariantStore({
            "a": {"variantId": "a", "color": "#FF0000", "colorFamilySource": "auto", "colorFamily": "red", "version": 1},
            "b": {"variantId": "b", "color": "#00FF00", "colorFamilySource": "manual", "colorFamily": "gray", "version": 2},
            "c": {"variantId": "c", "color": "broken"},
        })
        engine = ColorEngine(store)
        counts = engine.get_facet_counts()
        assert counts["red"] == 1
        assert counts["gray"] == 1
        assert sum(counts.values()) == 2

    def test_rebuild_conserves_counts(self, engine):
        for n, color in enumerate(["#FF0000", "#0000FF", "#00FF00", "#FFFFFF", "#2C2C2C"]):
            engine.apply_color(f"sku-{n}", color)
        engine.set_override("sku-0", "pink")
        before = engine.get_facet_counts()
        report = engine.rebuild()
        assert report.updated == []
        assert engine.get_facet_counts() == before
        assert _counted(engine) == 5

    def test_rebuild_repairs_stale_records(self):
        store = InMemoryVariantStore({
            "a": {"variantId": "a", "color": "#0000FF", "colorFamilySource": "auto", "colorFamily": "red", "version": 1},
        })
        engine = ColorEngine(store)
        assert engine.get_facet_counts()["red"] == 1
        engine.rebuild()
        assert engine.get_facet_counts()["red"] == 0
        assert engine.get_facet_counts()["blue"] == 1

    def test_rebuild_from_older_snapshot_keeps_later_writes(self, engine):
        engine.apply_color("sku-1", "#FF0000")
        engine.apply_color("sku-2", "#FF0000")
        snapshot = engine.service.snapshot()
        engine.apply_color("sku-1", "#0000FF")
        engine.remove_variant("sku-2")
        engine.facets.rebuild_all(snapshot)
        counts = engine.get_facet_counts()
        assert counts["blue"] == 1
        assert counts["red"] == 0
        assert engine.find_variants("red,blue") == {"sku-1"}

    def test_replace_catalog(self, engine):
        engine.apply_color("sku-1", "#FF8800")
        engine.apply_color("sku-2", "#0000CC")
        catalog = FamilyCatalog(
            [
                FamilyDefinition("warm", "Warm", ColorValue("#FF0000")),
                FamilyDefinition("cool", "Cool", ColorValue("#0000FF")),
            ],
            version="2",
        )
        engine.replace_catalog(catalog)
        assert engine.catalog.version == "2"
        assert engine.get_facet_counts() == {"warm": 1, "cool": 1}


class TestFromConfig:

    def test_default_catalog_with_thresholds(self):
        engine = ColorEngine.from_config(EngineConfig(classifier=ClassifierConfig(black_max_lightness=0.25)))
        assert engine.classify_color("#2C2C2C").family == "gray"

    def test_catalog_file(self, tmp_path):
        path = tmp_path / "families.json"
        path.write_text(json.dumps({
            "version": "9",
            "families": [
                {"family": "warm", "displayName": "Warm", "representativeHex": "#FF0000"},
                {"family": "cool", "displayName": "Cool", "representativeHex": "#0000FF"},
            ],
        }), encoding="utf-8")
        engine = ColorEngine.from_config(EngineConfig(catalog_path=str(path)))
        assert engine.catalog.version == "9"
        assert engine.classify_color("#0000CC").family == "cool"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CHROMAFACET_BLACK_MAX_LIGHTNESS", "0.25")
        monkeypatch.delenv("CHROMAFACET_CATALOG_PATH", raising=False)
        engine = ColorEngine.from_config()
        assert engine.classify_color("#2C2C2C").family == "gray"


class TestLogging:

    def test_silent_until_configured(self, engine):
        messages = []
        try:
            configure_logging("DEBUG", sink=messages.append)
            engine.apply_color("sku-1", "#000000")
        finally:
            reset_logging()
        engine.apply_color("sku-2", "#000000")
        assert any("Classified as black" in m for m in messages)
        assert any("Color set to #000000" in m for m in messages)
        assert not any("sku-2" in m for m in messages)
