# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""Tests for configuration defaults, validation and environment overrides."""

import dataclasses

import pytest

from chromafacet.config import ClassifierConfig, EngineConfig


class TestClassifierConfig:

    def test_defaults(self):
        cfg = ClassifierConfig()
        assert cfg.white_min_lightness == 0.93
        assert cfg.black_max_lightness == 0.32
        assert cfg.gray_max_chroma == 0.025
        assert cfg.hue_weight == 2.0

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ClassifierConfig().hue_weight = 1.0

    @pytest.mark.parametrize("kwargs", [
        {"hue_weight": -1.0},
        {"black_max_lightness": 0.95},
        {"white_min_lightness": 1.2},
        {"gray_max_chroma": 0.0},
        {"tie_epsilon": -1e-6},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ClassifierConfig(**kwargs)

    def test_from_env(self):
        cfg = ClassifierConfig.from_env({
            "CHROMAFACET_HUE_WEIGHT": "3.5",
            "CHROMAFACET_BLACK_MAX_LIGHTNESS": "0.3",
            "CHROMAFACET_GRAY_MAX_CHROMA": "",
        })
        assert cfg.hue_weight == 3.5
        assert cfg.black_max_lightness == 0.3
        assert cfg.gray_max_chroma == 0.025
        assert cfg.chroma_weight == 1.0

    def test_from_env_invalid_value(self):
        with pytest.raises(ValueError):
            ClassifierConfig.from_env({"CHROMAFACET_HUE_WEIGHT": "heavy"})

    def test_from_process_env(self, monkeypatch):
        monkeypatch.setenv("CHROMAFACET_TIE_EPSILON", "0.001")
        assert ClassifierConfig.from_env().tie_epsilon == 0.001


class TestEngineConfig:

    def test_defaults(self):
        cfg = EngineConfig()
        assert cfg.catalog_path is None
        assert cfg.log_level == "INFO"
        assert cfg.classifier == ClassifierConfig()

    def test_from_env(self):
        cfg = EngineConfig.from_env({
            "CHROMAFACET_CATALOG_PATH": "/etc/chromafacet/families.json",
            "CHROMAFACET_LOG_LEVEL": "debug",
            "CHROMAFACET_WHITE_MAX_CHROMA": "0.02",
        })
        assert cfg.catalog_path == "/etc/chromafacet/families.json"
        assert cfg.log_level == "DEBUG"
        assert cfg.classifier.white_max_chroma == 0.02

    def test_empty_catalog_path_means_default(self):
        assert EngineConfig.from_env({"CHROMAFACET_CATALOG_PATH": ""}).catalog_path is None
