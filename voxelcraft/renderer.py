"""Draws the chunks around the camera."""

from __future__ import annotations

import os
from contextlib import ExitStack
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from voxelcraft.buffers import (
    ElementBuffer,
    VertexArray,
    VertexBuffer,
    current_backend,
    gl_call,
    use_backend,
)
from voxelcraft.camera import Camera
from voxelcraft.chunk import Chunk
from voxelcraft.layout import BufferLayout, GLType, Layout
from voxelcraft.shader import Shader
from voxelcraft.textures import PygletTextureGL, Texture2DArray, TextureFormat
from voxelcraft.world import World, chunk_origin, ring_positions

VERTEX_SHADER_PATH = "src/shader/vertex_shader.glsl"
FRAGMENT_SHADER_PATH = "src/shader/fragment_shader.glsl"
BLOCK_TEXTURE_PATHS = (
    "assets/texture/block/dirt.png",
    "assets/texture/block/grass_side.png",
    "assets/texture/block/grass_top.png",
)
TILE_SIZE = 16
CLEAR_COLOR = (0.45, 0.55, 0.60, 1.00)

TRIANGLES = 0x0004
COLOR_BUFFER_BIT = 0x4000
DEPTH_BUFFER_BIT = 0x0100


def chunk_layout() -> BufferLayout:
    """Attributes of a chunk vertex: position, tex coord, world position, texture id."""
    layout = BufferLayout()
    layout.add_layout(Layout(GLType.FLOAT, 3))
    layout.add_layout(Layout(GLType.FLOAT, 2))
    layout.add_layout(Layout(GLType.FLOAT, 3))
    layout.add_layout(Layout(GLType.UNSIGNED_INT, 1))
    return layout


@runtime_checkable
class RenderBackend(Protocol):
    """Drawing and clearing operations, on top of buffers and textures."""

    def get_error(self) -> int: ...
    def gen_texture(self) -> int: ...
    def draw_elements(self, mode: int, count: int, index_type: int, offset: int) -> None: ...
    def clear_color(self, red: float, green: float, blue: float, alpha: float) -> None: ...
    def clear(self, mask: int) -> None: ...


class PygletRenderGL(PygletTextureGL):
    """Pyglet backend covering buffers, shaders, textures and drawing."""

    def draw_elements(self, mode: int, count: int, index_type: int, offset: int) -> None:
        self._gl.glDrawElements(mode, count, index_type, offset)

    def clear_color(self, red: float, green: float, blue: float, alpha: float) -> None:
        self._gl.glClearColor(red, green, blue, alpha)

    def clear(self, mask: int) -> None:
        self._gl.glClear(mask)


def render_backend() -> RenderBackend:
    """The default backend, switched to one that can draw if needed."""
    backend = current_backend()
    if isinstance(backend, RenderBackend):
        return backend
    replacement = PygletRenderGL()
    use_backend(replacement)
    return replacement


class ChunkDrawable:
    """GPU buffers holding one chunk's mesh, rebuilt when the chunk changes."""

    def __init__(self, chunk: Chunk, gl: Optional[RenderBackend] = None) -> None:
        self.chunk = chunk
        self._gl = gl if gl is not None else render_backend()
        self._vertex_buffer: Optional[VertexBuffer] = None
        self._element_buffer: Optional[ElementBuffer] = None
        self._vertex_array: Optional[VertexArray] = None
        self.index_count = 0

    def _upload(self) -> None:
        mesh = self.chunk.mesh()
        self.delete()
        with ExitStack() as cleanup:
            vertex_buffer = VertexBuffer(mesh.vertex_bytes(), gl=self._gl)
            cleanup.callback(vertex_buffer.delete)
            element_buffer = ElementBuffer(mesh.index_bytes(), gl=self._gl)
            cleanup.callback(element_buffer.delete)
            vertex_array = VertexArray(gl=self._gl)
            cleanup.callback(vertex_array.delete)
            vertex_array.add_vertex_buffer(vertex_buffer, chunk_layout())
            vertex_array.add_element_buffer(element_buffer)
            cleanup.pop_all()
        self._vertex_buffer = vertex_buffer
        self._element_buffer = element_buffer
        self._vertex_array = vertex_array
        self.index_count = mesh.index_count

    def draw(self, shader: Shader) -> None:
        """Draw the chunk's visible faces, uploading the mesh first if needed."""
        if self._vertex_array is None or self.chunk.needs_rebuild:
            self._upload()
        shader.use()
        self._vertex_array.bind()
        gl_call(
            self._gl, "glDrawElements", self._gl.draw_elements,
            TRIANGLES, self.index_count, GLType.UNSIGNED_INT, 0,
        )
        self._vertex_array.unbind()

    def delete(self) -> None:
        """Free the chunk's buffers."""
        for resource in (self._vertex_array, self._element_buffer, self._vertex_buffer):
            if resource is not None:
                resource.delete()
        self._vertex_buffer = self._element_buffer = self._vertex_array = None
        self.index_count = 0


class Renderer:
    """Owns the block shader and texture array and draws a world's chunks."""

    def __init__(
        self,
        shader: Optional[Shader] = None,
        texture: Optional[Texture2DArray] = None,
        gl: Optional[RenderBackend] = None,
        asset_root: Union[str, os.PathLike] = ".",
    ) -> None:
        self._gl = gl if gl is not None else render_backend()
        root = Path(asset_root)
        owned = ExitStack()
        with owned:
            if shader is None:
                shader = Shader(root / VERTEX_SHADER_PATH, root / FRAGMENT_SHADER_PATH, gl=self._gl)
                owned.callback(shader.delete)
            shader.use()
            shader.set_int("blockTexture", 0)
            if texture is None:
                texture = Texture2DArray(
                    TILE_SIZE, TILE_SIZE, len(BLOCK_TEXTURE_PATHS), TextureFormat.RGBA,
                    gl=self._gl,
                )
                owned.callback(texture.delete)
                for path in BLOCK_TEXTURE_PATHS:
                    texture.add_texture(root / path, True)
            owned.pop_all()
        self.shader = shader
        self.texture = texture
        self._drawables: dict[tuple[int, int], ChunkDrawable] = {}

    def _send_camera(self, camera: Camera) -> None:
        self.shader.set_mat4("view", camera.view)
        self.shader.set_mat4("projection", camera.projection)

    def render(self, world: World) -> int:
        """Clear the frame and draw the chunks in range ring by ring; return how many."""
        camera = world.camera
        camera.update_vector()
        self._send_camera(camera)

        self._gl.clear_color(*CLEAR_COLOR)
        self._gl.clear(COLOR_BUFFER_BIT | DEPTH_BUFFER_BIT)

        self.texture.use(0)

        drawn = 0
        origin = chunk_origin(camera.position)
        for x, _, z in ring_positions(origin, world.render_distance):
            chunk = world.get_chunk(x, z)
            if chunk is None:
                raise KeyError(f"no chunk loaded at ({x}, {z})")
            drawable = self._drawables.get((x, z))
            if drawable is None or drawable.chunk is not chunk:
                if drawable is not None:
                    drawable.delete()
                drawable = ChunkDrawable(chunk, gl=self._gl)
                self._drawables[(x, z)] = drawable
            drawable.draw(self.shader)
            drawn += 1
        return drawn

    def delete(self) -> None:
        """Free every chunk buffer, the shader and the texture array."""
        for drawable in self._drawables.values():
            drawable.delete()
        self._drawables.clear()
        self.shader.delete()
        self.texture.delete()

    def __enter__(self) -> "Renderer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.delete()