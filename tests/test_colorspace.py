# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""Tests for color space conversions (hex → sRGB → OKLab → OKLCH) and distance."""

import numpy as np
import pytest

from chromafacet.schema import ColorValue
from chromafacet.classify.colorspace import (
    colors_to_oklch,
    hue_difference,
    linear_rgb_to_oklab,
    oklab_to_oklch,
    srgb_to_linear,
    srgb_uint8_to_oklch,
    to_perceptual,
    weighted_distance,
)


def _p(hex_value):
    return to_perceptual(ColorValue.parse(hex_value))


class TestSRGBToLinear:

    def test_gamma_threshold(self):
        """Values below 0.04045 use linear segment."""
        val = 0.03
        linear = srgb_to_linear(np.array([val]))
        assert float(linear[0]) == pytest.approx(val / 12.92, abs=1e-10)

    def test_endpoints(self):
        np.testing.assert_allclose(srgb_to_linear(np.array([0.0, 1.0])), [0.0, 1.0], atol=1e-12)

    def test_monotonic(self):
        values = np.linspace(0.0, 1.0, 256)
        assert np.all(np.diff(srgb_to_linear(values)) > 0)


class TestOKLab:

    def test_white_lightness_is_one(self):
        lab = linear_rgb_to_oklab(np.array([1.0, 1.0, 1.0]))
        assert lab[0] == pytest.approx(1.0, abs=1e-6)
        assert lab[1] == pytest.approx(0.0, abs=1e-6)
        assert lab[2] == pytest.approx(0.0, abs=1e-6)

    def test_black_is_origin(self):
        lab = linear_rgb_to_oklab(np.array([0.0, 0.0, 0.0]))
        np.testing.assert_allclose(lab, [0.0, 0.0, 0.0], atol=1e-12)

    def test_batch_shape(self):
        rgb = np.random.RandomState(7).random((10, 3))
        assert linear_rgb_to_oklab(rgb).shape == (10, 3)

    def test_lch_hue_range(self):
        lab = np.array([[0.5, -0.1, -0.1], [0.5, 0.1, -0.1]])
        lch = oklab_to_oklch(lab)
        assert np.all(lch[:, 2] >= 0.0)
        assert np.all(lch[:, 2] < 360.0)


class TestToPerceptual:

    def test_white(self):
        p = _p("#FFFFFF")
        assert p.lightness == pytest.approx(1.0, abs=1e-6)
        assert p.chroma < 1e-6
        assert p.hue is None

    def test_black(self):
        p = _p("#000000")
        assert p.lightness == pytest.approx(0.0, abs=1e-9)
        assert p.is_achromatic

    def test_mid_gray_is_achromatic(self):
        p = _p("#808080")
        assert p.lightness == pytest.approx(0.6, abs=0.001)
        assert p.hue is None

    def test_pure_red(self):
        p = _p("#FF0000")
        assert p.lightness == pytest.approx(0.628, abs=0.001)
        assert p.chroma == pytest.approx(0.258, abs=0.001)
        assert p.hue == pytest.approx(29.2, abs=0.5)

    def test_pure_blue(self):
        p = _p("#0000FF")
        assert p.lightness == pytest.approx(0.452, abs=0.001)
        assert p.chroma == pytest.approx(0.313, abs=0.001)
        assert p.hue == pytest.approx(264.1, abs=0.5)

    def test_dark_charcoal(self):
        p = _p("#2C2C2C")
        assert p.lightness == pytest.approx(0.293, abs=0.002)
        assert p.hue is None

    def test_deterministic(self):
        assert _p("#1A1A2E") == _p("#1A1A2E")

    def test_matches_batch_conversion(self):
        colors = [ColorValue.parse(h) for h in ("#FF0000", "#336699", "#808080")]
        batch = colors_to_oklch(colors)
        for row, color in zip(batch, colors):
            assert to_perceptual(color).as_tuple() == pytest.approx(tuple(row), abs=1e-12)


class TestBatchConversion:

    def test_empty(self):
        assert colors_to_oklch([]).shape == (0, 3)

    def test_achromatic_hue_zeroed(self):
        lch = colors_to_oklch([ColorValue("#808080"), ColorValue("#FFFFFF")])
        np.testing.assert_array_equal(lch[:, 2], [0.0, 0.0])

    def test_uint8_entry_point(self):
        lch = srgb_uint8_to_oklch(np.array([[0, 0, 255]], dtype=np.uint8))
        assert lch[0, 2] == pytest.approx(264.1, abs=0.5)


class TestHueDifference:

    def test_wraps_around_zero(self):
        assert hue_difference(350.0, 10.0) == pytest.approx(20.0)
        assert hue_difference(10.0, 350.0) == pytest.approx(20.0)

    def test_opposite_hues(self):
        assert hue_difference(0.0, 180.0) == pytest.approx(180.0)

    def test_identical(self):
        assert hue_difference(123.0, 123.0) == 0.0

    def test_scalar_returns_float(self):
        assert isinstance(hue_difference(1.0, 2.0), float)

    def test_vectorized(self):
        d = hue_difference(np.array([350.0, 90.0, 0.0]), 10.0)
        np.testing.assert_allclose(d, [20.0, 80.0, 10.0])


class TestWeightedDistance:

    def test_identical_is_zero(self):
        c = np.array([0.5, 0.1, 200.0])
        assert weighted_distance(c, c[None, :])[0] == pytest.approx(0.0, abs=1e-12)

    def test_unit_weights_match_oklab_euclidean(self):
        rgb = np.array([[255, 0, 0], [51, 102, 153]], dtype=np.uint8)
        lab = linear_rgb_to_oklab(srgb_to_linear(rgb / 255.0))
        lch = oklab_to_oklch(lab)
        expected = np.linalg.norm(lab[0] - lab[1])
        assert weighted_distance(lch[0], lch[1:])[0] == pytest.approx(expected, abs=1e-9)

    def test_hue_term_respects_wrap(self):
        near_zero = weighted_distance(np.array([0.5, 0.1, 355.0]), np.array([[0.5, 0.1, 5.0]]))
        plain = weighted_distance(np.array([0.5, 0.1, 10.0]), np.array([[0.5, 0.1, 20.0]]))
        np.testing.assert_allclose(near_zero, plain, atol=1e-12)

    def test_hue_only_difference(self):
        color = np.array([0.5, 0.1, 10.0])
        anchor = np.array([[0.5, 0.1, 50.0]])
        expected = 2.0 * 0.1 * np.sin(np.radians(20.0))
        assert weighted_distance(color, anchor)[0] == pytest.approx(expected, abs=1e-12)
        assert weighted_distance(color, anchor, hue_weight=0.0)[0] == pytest.approx(0.0, abs=1e-12)
        assert weighted_distance(color, anchor, hue_weight=2.0)[0] == pytest.approx(2 * expected, abs=1e-12)

    def test_lightness_weight(self):
        d = weighted_distance(np.array([0.2, 0.0, 0.0]), np.array([[0.6, 0.0, 0.0]]), lightness_weight=0.5)
        assert d[0] == pytest.approx(0.2, abs=1e-12)

    def test_one_distance_per_anchor(self):
        anchors = np.array([[0.1, 0.0, 0.0], [0.5, 0.1, 90.0], [0.9, 0.2, 270.0]])
        assert weighted_distance(np.array([0.5, 0.1, 90.0]), anchors).shape == (3,)
