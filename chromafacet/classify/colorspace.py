# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Color space conversions and perceptual distance.

Conversion chain: hex → sRGB → Linear RGB → OKLab → OKLCH

References:
- OKLab: https://bottosson.github.io/posts/oklab/
- OKLCH: Cylindrical form of OKLab (Lightness, Chroma, Hue)

Everything here is pure NumPy and assumes validated ColorValue input.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from chromafacet.schema import ColorValue, PerceptualColor

# Below this chroma the hue angle is numerical noise
ACHROMATIC_CHROMA = 0.01


# =============================================================================
# sRGB → Linear RGB → OKLab → OKLCH
# =============================================================================


def srgb_to_linear(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB values [0,1] to linear RGB.

    sRGB uses a piecewise gamma curve:
    - For values <= 0.04045: linear/12.92
    - For values > 0.04045: ((value + 0.055) / 1.055) ^ 2.4
    """
    srgb = np.asarray(srgb, dtype=np.float64)
    return np.where(
        srgb <= 0.04045,
        srgb / 12.92,
        np.power((srgb + 0.055) / 1.055, 2.4),
    )


# Matrices from https://bottosson.github.io/posts/oklab/

# Linear sRGB to LMS (cone responses)
_M1 = np.array([
    [0.4122214708, 0.5363325363, 0.0514459929],
    [0.2119034982, 0.6806995451, 0.1073969566],
    [0.0883024619, 0.2817188376, 0.6299787005],
], dtype=np.float64)

# LMS to OKLab
_M2 = np.array([
    [0.2104542553, 0.7936177850, -0.0040720468],
    [1.9779984951, -2.4285922050, 0.4505937099],
    [0.0259040371, 0.7827717662, -0.8086757660],
], dtype=np.float64)


def linear_rgb_to_oklab(rgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert linear RGB of shape (..., 3) to OKLab (L, a, b).
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    lms = np.einsum('...j,ij->...i', rgb, _M1)
    # sRGB input is never negative, cbrt keeps sign anyway
    lms_cbrt = np.cbrt(lms)
    return np.einsum('...j,ij->...i', lms_cbrt, _M2)


def oklab_to_oklch(lab: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert OKLab (..., 3) to OKLCH (..., 3); H in degrees [0, 360).
    """
    lab = np.asarray(lab, dtype=np.float64)
    a = lab[..., 1]
    b = lab[..., 2]
    C = np.sqrt(a**2 + b**2)
    H = np.degrees(np.arctan2(b, a)) % 360.0
    return np.stack([lab[..., 0], C, H], axis=-1)


def srgb_uint8_to_oklch(pixels: NDArray[np.uint8]) -> NDArray[np.float64]:
    """
    Convert uint8 sRGB values [0,255] of shape (..., 3) to OKLCH.
    """
    srgb = np.asarray(pixels, dtype=np.float64) / 255.0
    return oklab_to_oklch(linear_rgb_to_oklab(srgb_to_linear(srgb)))


# =============================================================================
# ColorValue entry points
# =============================================================================


def colors_to_oklch(colors: Sequence[ColorValue]) -> NDArray[np.float64]:
    """
    Batch conversion for validated colors.

    Returns:
        Array of shape (N, 3) with (L, C, H). Achromatic hue is set to 0.0
        so distances stay finite; chroma zeroes out its contribution.
    """
    if not colors:
        return np.zeros((0, 3), dtype=np.float64)
    rgb = np.array([c.rgb for c in colors], dtype=np.uint8)
    lch = srgb_uint8_to_oklch(rgb)
    lch[lch[:, 1] < ACHROMATIC_CHROMA, 2] = 0.0
    return lch


def to_perceptual(color: ColorValue) -> PerceptualColor:
    """
    Convert a validated color to OKLCH coordinates.

    Deterministic and total over ColorValue. Lightness is clipped to [0, 1]
    (white comes out at 1.0 ± 1e-7).
    """
    return perceptual_from_lch(colors_to_oklch([color])[0])


def perceptual_from_lch(lch: NDArray[np.float64]) -> PerceptualColor:
    """Wrap one (L, C, H) row from colors_to_oklch."""
    L, C, H = lch
    return PerceptualColor(
        lightness=float(np.clip(L, 0.0, 1.0)),
        chroma=float(C),
        hue=float(H) if C >= ACHROMATIC_CHROMA else None,
    )


# =============================================================================
# Perceptual Distance
# =============================================================================


def hue_difference(h1: NDArray[np.float64] | float, h2: NDArray[np.float64] | float):
    """
    Circular hue difference in degrees, always in [0, 180].

    hue_difference(350, 10) == 20, not 340.
    """
    d = np.abs(np.asarray(h1, dtype=np.float64) - np.asarray(h2, dtype=np.float64)) % 360.0
    d = np.minimum(d, 360.0 - d)
    return float(d) if d.ndim == 0 else d


def weighted_distance(
    color: NDArray[np.float64],
    anchors: NDArray[np.float64],
    *,
    lightness_weight: float = 1.0,
    chroma_weight: float = 1.0,
    hue_weight: float = 1.0,
) -> NDArray[np.float64]:
    """
    Weighted OKLCH distance from one color to each anchor.

    d = sqrt((kL·ΔL)² + (kC·ΔC)² + (kH·ΔH)²), where
    ΔH = 2·sqrt(C1·C2)·sin(Δh/2) and Δh is the circular hue difference.

    With unit weights this is exactly the Euclidean OKLab ΔE, since
    ΔL² + ΔC² + ΔH² = ΔL² + Δa² + Δb². The ΔH form makes the hue wrap
    explicit and lets hue be weighted independently.

    Args:
        color: (3,) OKLCH vector
        anchors: (N, 3) OKLCH array

    Returns:
        (N,) distances
    """
    color = np.asarray(color, dtype=np.float64)
    anchors = np.asarray(anchors, dtype=np.float64).reshape(-1, 3)

    dL = anchors[:, 0] - color[0]
    dC = anchors[:, 1] - color[1]
    dh = np.radians(hue_difference(anchors[:, 2], color[2]))
    dH = 2.0 * np.sqrt(anchors[:, 1] * color[1]) * np.sin(dh / 2.0)

    return np.sqrt(
        (lightness_weight * dL) ** 2
        + (chroma_weight * dC) ** 2
        + (hue_weight * dH) ** 2
    )
