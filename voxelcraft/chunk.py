"""Cubic chunks of blocks and the meshes built from their visible faces."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional, Protocol

import numpy as np

from voxelcraft.block import (
    CUBE_INDICES,
    CUBE_VERTICES,
    VERTICES_PER_BLOCK,
    BlockId,
    BlockVertex,
    Face,
    TextureId,
    face_of_vertex,
)

CHUNK_SIZE = 16

# Texture order: FRONT, BACK, RIGHT, LEFT, TOP, BOTTOM
FACE_TEXTURES: tuple[TextureId, ...] = (
    TextureId.GRASS_BLOCK_SIDE,
    TextureId.GRASS_BLOCK_SIDE,
    TextureId.GRASS_BLOCK_SIDE,
    TextureId.GRASS_BLOCK_SIDE,
    TextureId.GRASS_BLOCK_TOP,
    TextureId.DIRT,
)

_INDICES_PER_FACE = 6
_FACE_INDICES: tuple[tuple[int, ...], ...] = tuple(
    CUBE_INDICES[face * _INDICES_PER_FACE:(face + 1) * _INDICES_PER_FACE] for face in Face
)

VERTEX_DTYPE = np.dtype(
    [
        ("position", "<f4", (3,)),
        ("tex_coord", "<f4", (2,)),
        ("world_pos", "<f4", (3,)),
        ("texture_id", "<u4"),
    ]
)


class ChunkSource(Protocol):
    """Anything that can look up a chunk by its world x and z."""

    def get_chunk(self, x: int, z: int) -> Optional["Chunk"]: ...


@dataclass
class ChunkMesh:
    """Vertices and triangle indices of a chunk's visible faces."""

    vertices: list[BlockVertex] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)

    @property
    def index_count(self) -> int:
        """Number of indices to draw."""
        return len(self.indices)

    def vertex_bytes(self) -> bytes:
        """Interleaved vertex data: position, tex coord, world position, texture id."""
        data = np.zeros(len(self.vertices), dtype=VERTEX_DTYPE)
        for row, vertex in zip(data, self.vertices):
            row["position"] = vertex.position
            row["tex_coord"] = vertex.tex_coord
            row["world_pos"] = vertex.world_pos
            row["texture_id"] = int(vertex.texture_id)
        return data.tobytes()

    def index_bytes(self) -> bytes:
        """Indices as unsigned 32-bit integers."""
        return np.asarray(self.indices, dtype="<u4").tobytes()


def _check_coordinate(value: int) -> int:
    if not 0 <= value < CHUNK_SIZE:
        raise IndexError(f"block coordinate out of range: {value}")
    return value


class Chunk:
    """A CHUNK_SIZE cube of blocks placed at a world position."""

    def __init__(self, world: Optional[ChunkSource], world_pos: Sequence[float]) -> None:
        if len(world_pos) != 3:
            raise ValueError("world position must have three components")
        self.world = world
        self.world_pos: tuple[int, int, int] = tuple(int(c) for c in world_pos)  # type: ignore[assignment]
        self._blocks = np.full(
            (CHUNK_SIZE, CHUNK_SIZE, CHUNK_SIZE), int(BlockId.AIR), dtype=np.uint8
        )
        self._mesh: Optional[ChunkMesh] = None
        self.needs_rebuild = True

    def generate(self) -> None:
        """Fill the whole chunk with grass blocks."""
        self._blocks.fill(int(BlockId.GRASS_BLOCK))
        self.needs_rebuild = True

    def block(self, x: int, y: int, z: int) -> BlockId:
        """Block at local coordinates."""
        return BlockId(
            int(self._blocks[_check_coordinate(z), _check_coordinate(y), _check_coordinate(x)])
        )

    def set_block(self, x: int, y: int, z: int, block_id: BlockId) -> None:
        """Place a block at local coordinates; the mesh is rebuilt on next use."""
        self._blocks[_check_coordinate(z), _check_coordinate(y), _check_coordinate(x)] = int(
            BlockId(block_id)
        )
        self.needs_rebuild = True

    def _neighbours(self) -> tuple[Optional["Chunk"], ...]:
        if self.world is None:
            return (None, None, None, None)
        x0, _, z0 = self.world_pos
        return (
            self.world.get_chunk(x0, z0 + CHUNK_SIZE),
            self.world.get_chunk(x0, z0 - CHUNK_SIZE),
            self.world.get_chunk(x0 + CHUNK_SIZE, z0),
            self.world.get_chunk(x0 - CHUNK_SIZE, z0),
        )

    def build_mesh(self) -> ChunkMesh:
        """Build the mesh of every exposed block, skipping hidden faces."""
        forward, backward, right, left = self._neighbours()
        blocks = self._blocks.tolist()
        air = int(BlockId.AIR)
        last = CHUNK_SIZE - 1
        x0, y0, z0 = self.world_pos

        mesh = ChunkMesh()
        block_count = 0
        for z, plane in enumerate(blocks):
            for y, row in enumerate(plane):
                for x, kind in enumerate(row):
                    if kind == air:
                        continue
                    on_edge = x in (0, last) or y in (0, last) or z in (0, last)
                    if not on_edge and air not in (
                        blocks[z - 1][y][x],
                        blocks[z + 1][y][x],
                        plane[y - 1][x],
                        plane[y + 1][x],
                        row[x - 1],
                        row[x + 1],
                    ):
                        continue

                    hidden = (
                        (forward is not None and z == last and forward.block(x, y, 0) != air)
                        or (z != last and blocks[z + 1][y][x] != air),
                        (backward is not None and z == 0 and backward.block(x, y, last) != air)
                        or (z != 0 and blocks[z - 1][y][x] != air),
                        (right is not None and x == last and right.block(0, y, z) != air)
                        or (x != last and row[x + 1] != air),
                        (left is not None and x == 0 and left.block(last, y, z) != air)
                        or (x != 0 and row[x - 1] != air),
                        y != last and plane[y + 1][x] != air,
                        y != 0 and plane[y - 1][x] != air,
                    )

                    world_pos = (float(x0 + x), float(y0 + y), float(z0 + z))
                    mesh.vertices.extend(
                        BlockVertex(
                            position=position,
                            tex_coord=tex_coord,
                            world_pos=world_pos,
                            texture_id=FACE_TEXTURES[face_of_vertex(i)],
                        )
                        for i, (position, tex_coord) in enumerate(CUBE_VERTICES)
                    )
                    base = VERTICES_PER_BLOCK * block_count
                    for face in Face:
                        if not hidden[face]:
                            mesh.indices.extend(i + base for i in _FACE_INDICES[face])
                    block_count += 1

        self._mesh = mesh
        self.needs_rebuild = False
        return mesh

    def mesh(self) -> ChunkMesh:
        """The chunk's mesh, rebuilt first if the blocks changed."""
        if self.needs_rebuild or self._mesh is None:
            return self.build_mesh()
        return self._mesh