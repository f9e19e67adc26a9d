import pytest

from voxelcraft.block import BlockId
from voxelcraft.camera import Camera
from voxelcraft.chunk import CHUNK_SIZE, Chunk
from voxelcraft.world import DEFAULT_RENDER_DISTANCE, World, chunk_origin, ring_positions


def test_chunk_origin_truncates_toward_zero():
    assert chunk_origin((0.0, 5.0, 0.0)) == (0, 0, 0)
    assert chunk_origin((17.5, 3.0, -20.0)) == (16, 0, -16)
    assert chunk_origin((-3.0, 0.0, 3.0)) == (0, 0, 0)


def test_ring_order_for_distance_two():
    assert list(ring_positions((0, 0, 0), 2)) == [
        (0, 0, 0),
        (-16, 0, -16), (0, 0, -16), (16, 0, -16),
        (-16, 0, 0), (16, 0, 0),
        (-16, 0, 16), (0, 0, 16), (16, 0, 16),
    ]


@pytest.mark.parametrize("distance", [1, 3, 5])
def test_rings_cover_square_without_repeats(distance):
    origin = (32, 0, -48)
    positions = list(ring_positions(origin, distance))
    assert len(positions) == len(set(positions)) == (2 * distance - 1) ** 2
    span = (distance - 1) * CHUNK_SIZE
    assert all(abs(x - 32) <= span and abs(z + 48) <= span for x, _, z in positions)
    assert positions[0] == origin


def test_zero_distance_yields_nothing():
    assert list(ring_positions((0, 0, 0), 0)) == []


def test_default_render_distance():
    assert World(Camera()).render_distance == DEFAULT_RENDER_DISTANCE


def test_update_generates_each_chunk_once():
    world = World(Camera(), render_distance=3)
    assert world.update(0.016) == 25
    assert world.update(0.016) == 0
    assert len(world.chunks) == 25
    chunk = world.get_chunk(0, 0)
    assert isinstance(chunk, Chunk)
    assert chunk.block(0, 0, 0) == BlockId.GRASS_BLOCK
    assert world.get_chunk(1000, 0) is None


def test_moving_camera_loads_new_chunks():
    camera = Camera()
    world = World(camera, render_distance=2)
    world.update(0.0)
    camera.update_pos((40.0, 0.0, 0.0))
    created = world.update(0.0)
    assert created > 0
    for x, _, z in ring_positions(chunk_origin(camera.position), 2):
        assert world.get_chunk(x, z).world_pos == (x, 0, z)


def test_chunks_view_is_read_only():
    world = World(Camera(), render_distance=1)
    world.update(0.0)
    chunks = world.chunks
    with pytest.raises(TypeError):
        chunks[(99, 99)] = None
    assert (99, 99) not in world.chunks
    assert len(world.chunks) == 1
    assert world.get_chunk(99, 99) is None


def test_surrounded_chunk_shows_only_top_and_bottom():
    world = World(Camera(), render_distance=2)
    world.update(0.0)
    mesh = world.get_chunk(0, 0).mesh()
    standalone = Chunk(None, (0, 0, 0))
    standalone.generate()
    assert mesh.index_count < standalone.mesh().index_count
    assert all(i % 24 >= 16 for i in mesh.indices)


def test_update_refreshes_camera_vectors():
    camera = Camera(yaw=0.0)
    camera.yaw = 90.0
    world = World(camera, render_distance=1)
    world.update(0.0)
    assert camera.direction[2] == pytest.approx(1.0)