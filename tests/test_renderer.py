import numpy as np
import pytest
from PIL import Image

from voxelcraft.block import BlockId
from voxelcraft.camera import Camera
from voxelcraft.chunk import Chunk
from voxelcraft.layout import GLError, GLErrorCode, GLType
from voxelcraft.renderer import (
    BLOCK_TEXTURE_PATHS,
    CLEAR_COLOR,
    COLOR_BUFFER_BIT,
    DEPTH_BUFFER_BIT,
    FRAGMENT_SHADER_PATH,
    TRIANGLES,
    VERTEX_SHADER_PATH,
    ChunkDrawable,
    Renderer,
    chunk_layout,
)
from voxelcraft.shader import Shader
from voxelcraft.textures import TEXTURE0, Texture2DArray, TextureFormat
from voxelcraft.world import World


class FakeGL:
    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)
        self._pending = 0
        self._next = 0
        self._locations = {}

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail_on:
            self._pending = GLErrorCode.INVALID_OPERATION

    def _new_id(self, name, *args):
        self._next += 1
        self._record(name, *args)
        return self._next

    def get_error(self):
        code, self._pending = self._pending, 0
        return int(code)

    def gen_texture(self):
        return self._new_id("gen_texture")

    def gen_buffer(self):
        return self._new_id("gen_buffer")

    def gen_vertex_array(self):
        return self._new_id("gen_vertex_array")

    def compile_shader(self, kind, source):
        return self._new_id("compile_shader", kind, source), True, ""

    def link_program(self, shader_ids):
        return self._new_id("link_program", tuple(shader_ids)), True, ""

    def uniform_location(self, program_id, name):
        return self._locations.setdefault(name, len(self._locations) + 1)

    def named(self, name):
        return [args for called, args in self.calls if called == name]

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return lambda *args: self._record(name, *args)


@pytest.fixture
def shader_files(tmp_path):
    vertex = tmp_path / "vertex.glsl"
    fragment = tmp_path / "fragment.glsl"
    vertex.write_text("void main() {}\n")
    fragment.write_text("void main() {}\n")
    return vertex, fragment


def make_renderer(gl, shader_files):
    shader = Shader(*shader_files, gl=gl)
    texture = Texture2DArray(16, 16, 3, TextureFormat.RGBA, gl=gl)
    return Renderer(shader=shader, texture=texture, gl=gl)


def full_chunk():
    chunk = Chunk(None, (0, 0, 0))
    chunk.generate()
    return chunk


def test_renderer_sets_block_texture_unit(shader_files):
    gl = FakeGL()
    make_renderer(gl, shader_files)
    location = gl.uniform_location(0, "blockTexture")
    assert (location, 0) in gl.named("uniform_1i")


def test_renderer_loads_default_assets(tmp_path):
    for path in (VERTEX_SHADER_PATH, FRAGMENT_SHADER_PATH):
        target = tmp_path / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("void main() {}\n")
    for path in BLOCK_TEXTURE_PATHS:
        target = tmp_path / path
        target.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGBA", (16, 16)).save(target)
    gl = FakeGL()
    renderer = Renderer(gl=gl, asset_root=tmp_path)
    assert renderer.texture.image_count == len(BLOCK_TEXTURE_PATHS)
    assert [args[4] for args in gl.named("tex_sub_image_3d")] == [0, 1, 2]


def test_renderer_missing_assets_raise(tmp_path):
    gl = FakeGL()
    with pytest.raises(RuntimeError):
        Renderer(gl=gl, asset_root=tmp_path)


def test_render_draws_every_chunk_in_range(shader_files):
    gl = FakeGL()
    renderer = make_renderer(gl, shader_files)
    world = World(Camera(), render_distance=2)
    world.update(0.0)
    drawn = renderer.render(world)
    assert drawn == len(world.chunks)
    assert len(gl.named("draw_elements")) == drawn


def test_render_clears_frame_and_binds_texture(shader_files):
    gl = FakeGL()
    renderer = make_renderer(gl, shader_files)
    world = World(Camera(), render_distance=1)
    world.update(0.0)
    renderer.render(world)
    assert gl.named("clear_color") == [CLEAR_COLOR]
    assert gl.named("clear") == [(COLOR_BUFFER_BIT | DEPTH_BUFFER_BIT,)]
    assert gl.named("active_texture") == [(TEXTURE0,)]


def test_render_sends_camera_view(shader_files):
    gl = FakeGL()
    renderer = make_renderer(gl, shader_files)
    world = World(Camera(), render_distance=1)
    world.update(0.0)
    renderer.render(world)
    view_location = gl.uniform_location(0, "view")
    sent = [values for location, values in gl.named("uniform_matrix_4fv")
            if location == view_location]
    matrix = np.array(sent[-1]).reshape((4, 4), order="F")
    assert np.allclose(matrix, world.camera.view, atol=1e-6)


def test_render_without_chunks_raises(shader_files):
    gl = FakeGL()
    renderer = make_renderer(gl, shader_files)
    world = World(Camera(), render_distance=1)
    with pytest.raises(KeyError):
        renderer.render(world)


def test_render_reuses_uploaded_chunks(shader_files):
    gl = FakeGL()
    renderer = make_renderer(gl, shader_files)
    world = World(Camera(), render_distance=1)
    world.update(0.0)
    renderer.render(world)
    buffers = len(gl.named("gen_buffer"))
    renderer.render(world)
    assert len(gl.named("gen_buffer")) == buffers
    assert len(gl.named("draw_elements")) == 2


def test_drawable_draws_mesh_indices(shader_files):
    gl = FakeGL()
    shader = Shader(*shader_files, gl=gl)
    chunk = full_chunk()
    drawable = ChunkDrawable(chunk, gl=gl)
    drawable.draw(shader)
    mesh = chunk.mesh()
    assert gl.named("draw_elements") == [(TRIANGLES, mesh.index_count, GLType.UNSIGNED_INT, 0)]
    vertex_upload = gl.named("buffer_data")[0][1]
    assert len(vertex_upload) == len(mesh.vertices) * chunk_layout().stride()


def test_drawable_rebuilds_after_block_change(shader_files):
    gl = FakeGL()
    shader = Shader(*shader_files, gl=gl)
    chunk = full_chunk()
    drawable = ChunkDrawable(chunk, gl=gl)
    drawable.draw(shader)
    before = drawable.index_count
    chunk.set_block(8, 8, 8, BlockId.AIR)
    drawable.draw(shader)
    assert drawable.index_count > before
    assert len(gl.named("delete_buffer")) == 2
    assert chunk.needs_rebuild is False


def test_drawable_gl_error_raises(shader_files):
    gl = FakeGL(fail_on={"draw_elements"})
    shader = Shader(*shader_files, gl=gl)
    drawable = ChunkDrawable(full_chunk(), gl=gl)
    with pytest.raises(GLError):
        drawable.draw(shader)


def test_renderer_delete_frees_everything(shader_files):
    gl = FakeGL()
    renderer = make_renderer(gl, shader_files)
    world = World(Camera(), render_distance=1)
    world.update(0.0)
    renderer.render(world)
    renderer.delete()
    assert renderer.shader.id == 0
    assert renderer.texture.id == 0
    assert len(gl.named("delete_vertex_array")) == 1