"""Block types, texture ids and the cube geometry shared by every block."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum

VERTICES_PER_BLOCK = 24
BLOCK_VERTICES = 36
FACE_COUNT = 6


class BlockId(IntEnum):
    """Kinds of block a chunk can hold."""

    AIR = 0
    GRASS_BLOCK = 1


class TextureId(IntEnum):
    """Layers of the block texture array."""

    DIRT = 0
    GRASS_BLOCK_SIDE = 1
    GRASS_BLOCK_TOP = 2


class Face(IntEnum):
    """Cube faces, in the order used for per-face textures."""

    FRONT = 0
    BACK = 1
    RIGHT = 2
    LEFT = 3
    TOP = 4
    BOTTOM = 5


# (position, texture coordinate) for the 4 corners of each face, face by face.
CUBE_VERTICES: tuple[tuple[tuple[float, float, float], tuple[float, float]], ...] = (
    # FRONT
    ((-0.5, -0.5, 0.5), (0.0, 0.0)),
    ((0.5, -0.5, 0.5), (1.0, 0.0)),
    ((-0.5, 0.5, 0.5), (0.0, 1.0)),
    ((0.5, 0.5, 0.5), (1.0, 1.0)),
    # BACK
    ((-0.5, -0.5, -0.5), (0.0, 0.0)),
    ((0.5, -0.5, -0.5), (1.0, 0.0)),
    ((-0.5, 0.5, -0.5), (0.0, 1.0)),
    ((0.5, 0.5, -0.5), (1.0, 1.0)),
    # RIGHT
    ((0.5, -0.5, 0.5), (0.0, 0.0)),
    ((0.5, -0.5, -0.5), (1.0, 0.0)),
    ((0.5, 0.5, 0.5), (0.0, 1.0)),
    ((0.5, 0.5, -0.5), (1.0, 1.0)),
    # LEFT
    ((-0.5, -0.5, 0.5), (0.0, 0.0)),
    ((-0.5, -0.5, -0.5), (1.0, 0.0)),
    ((-0.5, 0.5, 0.5), (0.0, 1.0)),
    ((-0.5, 0.5, -0.5), (1.0, 1.0)),
    # TOP
    ((-0.5, 0.5, 0.5), (0.0, 0.0)),
    ((0.5, 0.5, 0.5), (1.0, 0.0)),
    ((-0.5, 0.5, -0.5), (0.0, 1.0)),
    ((0.5, 0.5, -0.5), (1.0, 1.0)),
    # BOTTOM
    ((-0.5, -0.5, 0.5), (0.0, 0.0)),
    ((0.5, -0.5, 0.5), (1.0, 0.0)),
    ((-0.5, -0.5, -0.5), (0.0, 1.0)),
    ((0.5, -0.5, -0.5), (1.0, 1.0)),
)

# Two triangles per face, six indices each, in face order.
CUBE_INDICES: tuple[int, ...] = (
    0, 3, 2, 0, 1, 3,        # FRONT
    6, 7, 4, 7, 5, 4,        # BACK
    8, 11, 10, 8, 9, 11,     # RIGHT
    14, 15, 12, 15, 13, 12,  # LEFT
    16, 19, 18, 16, 17, 19,  # TOP
    22, 23, 20, 23, 21, 20,  # BOTTOM
)


def face_of_vertex(index: int) -> Face:
    """Return the face a cube vertex (0..23) belongs to."""
    if not 0 <= index < VERTICES_PER_BLOCK:
        raise IndexError(f"cube vertex index out of range: {index}")
    return Face(index * 5 // 20)


@dataclass(frozen=True)
class BlockVertex:
    """One vertex as sent to the GPU."""

    position: tuple[float, float, float]
    tex_coord: tuple[float, float]
    world_pos: tuple[float, float, float]
    texture_id: TextureId


class Block:
    """A single block placed in the world with one texture per face."""

    def __init__(
        self,
        block_id: BlockId,
        world_pos: Sequence[float],
        face_textures: Sequence[TextureId],
    ) -> None:
        if len(face_textures) != FACE_COUNT:
            raise ValueError(
                f"a block needs {FACE_COUNT} face textures, got {len(face_textures)}"
            )
        if len(world_pos) != 3:
            raise ValueError("world position must have three components")
        self.block_id = BlockId(block_id)
        self.world_pos = tuple(float(c) for c in world_pos)
        self.face_textures = tuple(TextureId(t) for t in face_textures)

    def mesh(self) -> list[BlockVertex]:
        """Return the 24 vertices of this block, face by face."""
        return [
            BlockVertex(
                position=position,
                tex_coord=tex_coord,
                world_pos=self.world_pos,
                texture_id=self.face_textures[face_of_vertex(i)],
            )
            for i, (position, tex_coord) in enumerate(CUBE_VERTICES)
        ]