"""The world: chunks generated in rings around the camera."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Optional

from voxelcraft.camera import Camera
from voxelcraft.chunk import CHUNK_SIZE, Chunk

DEFAULT_RENDER_DISTANCE = 12

logger = logging.getLogger(__name__)


def chunk_origin(position: Sequence[float]) -> tuple[int, int, int]:
    """Origin of the chunk column holding a position (truncated toward zero)."""
    return (
        int(position[0] / CHUNK_SIZE) * CHUNK_SIZE,
        0,
        int(position[2] / CHUNK_SIZE) * CHUNK_SIZE,
    )


def ring_positions(
    origin: Sequence[int], render_distance: int
) -> Iterator[tuple[int, int, int]]:
    """Chunk origins ring by ring outwards from origin, each ring row by row.

    For a render distance of 2 the order is::

        6 7 8
        4 0 5
        1 2 3
    """
    ox, oz = int(origin[0]), int(origin[2])
    for circle in range(render_distance):
        side = 2 * circle + 1
        for z in range(side):
            xs = range(side) if z in (0, side - 1) else (0, side - 1)
            for x in xs:
                yield (
                    ox - circle * CHUNK_SIZE + x * CHUNK_SIZE,
                    0,
                    oz - circle * CHUNK_SIZE + z * CHUNK_SIZE,
                )


class World:
    """Chunks keyed by their world x and z, generated around a camera."""

    def __init__(self, camera: Camera, render_distance: int = DEFAULT_RENDER_DISTANCE) -> None:
        self.camera = camera
        self.render_distance = render_distance
        self._chunks: dict[tuple[int, int], Chunk] = {}

    @property
    def chunks(self) -> Mapping[tuple[int, int], Chunk]:
        """Read-only view of the loaded chunks."""
        return MappingProxyType(self._chunks)

    def get_chunk(self, x: int, z: int) -> Optional[Chunk]:
        """Chunk whose origin is at world x, z, if loaded."""
        return self._chunks.get((int(x), int(z)))

    def update(self, delta_time: float) -> int:
        """Refresh the camera and generate missing chunks in range; return how many."""
        self.camera.update_vector()
        origin = chunk_origin(self.camera.position)
        created = 0
        for position in ring_positions(origin, self.render_distance):
            key = (position[0], position[2])
            if key in self._chunks:
                continue
            chunk = Chunk(self, position)
            chunk.generate()
            self._chunks[key] = chunk
            created += 1
        if created:
            logger.info("new to GENERATE: %d", created)
        return created