"""Gradient (Perlin-style) noise with hashed gradients."""

from __future__ import annotations

import math
from collections.abc import Sequence

_MASK = 0xFFFFFFFF
_HALF_BITS = 16


def _rotate(value: int) -> int:
    return ((value << _HALF_BITS) | (value >> _HALF_BITS)) & _MASK


def cubic_interpolate(a: float, b: float, t: float) -> float:
    """Smoothstep interpolation between a and b."""
    return (b - a) * (3.0 - t * 2.0) * t * t + a


def random_gradient(grid_x: int, grid_y: int) -> tuple[float, float]:
    """Return the unit gradient hashed from a grid cell."""
    a = grid_x & _MASK
    b = grid_y & _MASK
    a = (a * 3284157443) & _MASK

    b ^= _rotate(a)
    b = (b * 1911520717) & _MASK

    a ^= _rotate(b)
    a = (a * 2048419325) & _MASK
    angle = a * (3.14159265 / 0x80000000)
    return math.sin(angle), math.cos(angle)


def perlin_noise_2d(
    p: Sequence[float],
    seed: int,
    scale: float,
    octave: int = 1,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
) -> float:
    """Sum `octave` layers of gradient noise at point p."""
    x = p[0] + seed
    y = p[1] + seed

    result = 0.0
    frequency = 1.0
    amplitude = 1.0
    for _ in range(octave):
        x = x * frequency / scale
        y = y * frequency / scale

        grid_x0 = int(x)
        grid_y0 = int(y)
        grid_x1 = int(x + 1)
        grid_y1 = int(y + 1)

        weight_x = x - grid_x0
        weight_y = y - grid_y0

        gx, gy = random_gradient(grid_x0, grid_y0)

        def dot(cx: int, cy: int) -> float:
            return gx * (x - cx) + gy * (y - cy)

        a = cubic_interpolate(dot(grid_x0, grid_y0), dot(grid_x1, grid_y0), weight_x)
        b = cubic_interpolate(dot(grid_x0, grid_y1), dot(grid_x1, grid_y1), weight_x)
        result += cubic_interpolate(a, b, weight_y) * amplitude

        frequency *= lacunarity
        amplitude *= persistence
    return result