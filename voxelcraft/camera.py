"""First-person camera with view and projection matrices.

Matrices are numpy arrays in row-major mathematical form: a point is
transformed as ``matrix @ (x, y, z, 1)``.
"""

from __future__ import annotations

import math
from collections.abc import Collection, Sequence
from enum import IntEnum

import numpy as np

DEFAULT_SPEED = 15.0
ASPECT_RATIO = 1920.0 / 1080.0
NEAR_PLANE = 0.1
FAR_PLANE = 100.0
INITIAL_FOV = 70.0
UPDATED_FOV = 45.0
WORLD_UP = np.array([0.0, 1.0, 0.0])


class Key(IntEnum):
    """Movement keys, numbered as GLFW numbers them."""

    SPACE = 32
    A = 65
    D = 68
    S = 83
    W = 87
    LEFT_SHIFT = 340


def _normalize(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


def look_at(eye: Sequence[float], center: Sequence[float], up: Sequence[float]) -> np.ndarray:
    """Right-handed view matrix looking from eye towards center."""
    eye = np.asarray(eye, dtype=float)
    f = _normalize(np.asarray(center, dtype=float) - eye)
    s = _normalize(np.cross(f, np.asarray(up, dtype=float)))
    u = np.cross(s, f)
    return np.array(
        [
            [s[0], s[1], s[2], -np.dot(s, eye)],
            [u[0], u[1], u[2], -np.dot(u, eye)],
            [-f[0], -f[1], -f[2], np.dot(f, eye)],
            [0.0, 0.0, 0.0, 1.0],
        ]
    )


def perspective(fovy: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Right-handed perspective projection to the [-1, 1] depth range; fovy in radians."""
    if aspect == 0:
        raise ValueError("aspect ratio must not be zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    tan_half = math.tan(fovy / 2.0)
    matrix = np.zeros((4, 4))
    matrix[0, 0] = 1.0 / (aspect * tan_half)
    matrix[1, 1] = 1.0 / tan_half
    matrix[2, 2] = -(far + near) / (far - near)
    matrix[2, 3] = -(2.0 * far * near) / (far - near)
    matrix[3, 2] = -1.0
    return matrix


class Camera:
    """Position, yaw and pitch, with the derived basis and matrices."""

    def __init__(
        self,
        position: Sequence[float] = (0.0, 0.0, 0.0),
        yaw: float = 90.0,
        pitch: float = 0.0,
    ) -> None:
        self.position = np.array(position, dtype=float)
        self.yaw = float(yaw)
        self.pitch = float(pitch)
        self._orient(INITIAL_FOV)

    def _orient(self, fov_degrees: float) -> None:
        yaw = math.radians(self.yaw)
        pitch = math.radians(self.pitch)
        self.direction = _normalize(
            np.array(
                [
                    math.cos(yaw) * math.cos(pitch),
                    math.sin(pitch),
                    math.sin(yaw) * math.cos(pitch),
                ]
            )
        )
        self.right = _normalize(np.cross(WORLD_UP, self.direction))
        self.up = _normalize(np.cross(self.direction, self.right))
        self.view = look_at(self.position, self.position + self.direction, self.up)
        self.projection = perspective(
            math.radians(fov_degrees), ASPECT_RATIO, NEAR_PLANE, FAR_PLANE
        )

    def update_vector(self) -> None:
        """Recompute direction, basis and matrices from yaw, pitch and position."""
        self._orient(UPDATED_FOV)

    def update_pos(self, new_pos: Sequence[float]) -> None:
        """Move the camera; matrices follow on the next update_vector."""
        self.position = np.array(new_pos, dtype=float)

    def process_input(
        self,
        pressed: Collection[Key],
        delta_time: float,
        speed: float = DEFAULT_SPEED,
    ) -> None:
        """Move the camera for the keys held during delta_time seconds."""
        velocity = speed * delta_time
        dir_xz = _normalize(np.array([self.direction[0], 0.0, self.direction[2]]))
        right_xz = _normalize(np.array([self.right[0], 0.0, self.right[2]]))

        if Key.W in pressed:
            self.position = self.position + dir_xz * velocity
        if Key.S in pressed:
            self.position = self.position - dir_xz * velocity
        if Key.D in pressed:
            self.position = self.position - right_xz * velocity
        if Key.A in pressed:
            self.position = self.position + right_xz * velocity
        if Key.SPACE in pressed:
            self.position = self.position + WORLD_UP * velocity
        if Key.LEFT_SHIFT in pressed:
            self.position = self.position - WORLD_UP * velocity