"""Image loading and 2D / 2D-array textures."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, Protocol, Union, runtime_checkable

from PIL import Image, ImageOps

from voxelcraft.buffers import PygletGL, current_backend, gl_call, use_backend
from voxelcraft.layout import GLType

TEXTURE0 = 0x84C0

_CHANNELS = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}


class TextureError(RuntimeError):
    """An image could not be loaded or placed in a texture."""


class TextureTarget(IntEnum):
    """Texture binding points."""

    TEXTURE_2D = 0x0DE1
    TEXTURE_2D_ARRAY = 0x8C1A


class TextureFormat(IntEnum):
    """Pixel formats of uploaded image data."""

    RGB = 0x1907
    RGBA = 0x1908


_FORMAT_COMPONENTS = {TextureFormat.RGB: 3, TextureFormat.RGBA: 4}


class TextureParameter(IntEnum):
    """Texture parameter names."""

    MAG_FILTER = 0x2800
    MIN_FILTER = 0x2801
    WRAP_S = 0x2802
    WRAP_T = 0x2803


class TextureValue(IntEnum):
    """Values for texture parameters."""

    NEAREST = 0x2600
    LINEAR = 0x2601
    REPEAT = 0x2901


@dataclass(frozen=True)
class LoadedImage:
    """Decoded pixels, rows from the first loaded row to the last."""

    width: int
    height: int
    channels: int
    data: bytes


def load_image(path: Union[str, os.PathLike], flip_on_load: bool = False) -> LoadedImage:
    """Decode an image file, keeping its own channel count where possible."""
    try:
        with Image.open(path) as source:
            source.load()
            image = source
            if image.mode not in _CHANNELS:
                has_alpha = "A" in image.getbands() or "transparency" in image.info
                image = image.convert("RGBA" if has_alpha else "RGB")
            if flip_on_load:
                image = ImageOps.flip(image)
            return LoadedImage(
                width=image.width,
                height=image.height,
                channels=_CHANNELS[image.mode],
                data=image.tobytes(),
            )
    except (OSError, ValueError) as exc:
        raise TextureError(f"Cannot load image : {os.fspath(path)}") from exc


@runtime_checkable
class TextureBackend(Protocol):
    """The OpenGL operations textures issue."""

    def get_error(self) -> int: ...
    def gen_texture(self) -> int: ...
    def delete_texture(self, texture_id: int) -> None: ...
    def bind_texture(self, target: int, texture_id: int) -> None: ...
    def tex_parameter_i(self, target: int, name: int, value: int) -> None: ...
    def tex_image_2d(
        self, target: int, level: int, internal_format: int, width: int, height: int,
        image_format: int, data_type: int, data: Optional[bytes],
    ) -> None: ...
    def generate_mipmap(self, target: int) -> None: ...
    def tex_image_3d(
        self, target: int, level: int, internal_format: int, width: int, height: int,
        depth: int, image_format: int, data_type: int, data: Optional[bytes],
    ) -> None: ...
    def tex_sub_image_3d(
        self, target: int, level: int, x_offset: int, y_offset: int, z_offset: int,
        width: int, height: int, depth: int, image_format: int, data_type: int,
        data: bytes,
    ) -> None: ...
    def active_texture(self, unit: int) -> None: ...


class PygletTextureGL(PygletGL):
    """Pyglet backend that also handles textures."""

    def _pixels(self, data: Optional[bytes]) -> Any:
        if data is None:
            return None
        return (self._gl.GLubyte * len(data)).from_buffer_copy(data)

    def gen_texture(self) -> int:
        ids = self._uints(0)
        self._gl.glGenTextures(1, ids)
        return int(ids[0])

    def delete_texture(self, texture_id: int) -> None:
        self._gl.glDeleteTextures(1, self._uints(texture_id))

    def bind_texture(self, target: int, texture_id: int) -> None:
        self._gl.glBindTexture(target, texture_id)

    def tex_parameter_i(self, target: int, name: int, value: int) -> None:
        self._gl.glTexParameteri(target, name, value)

    def tex_image_2d(self, target, level, internal_format, width, height,
                     image_format, data_type, data) -> None:
        self._gl.glTexImage2D(
            target, level, internal_format, width, height, 0,
            image_format, data_type, self._pixels(data),
        )

    def generate_mipmap(self, target: int) -> None:
        self._gl.glGenerateMipmap(target)

    def tex_image_3d(self, target, level, internal_format, width, height, depth,
                     image_format, data_type, data) -> None:
        self._gl.glTexImage3D(
            target, level, internal_format, width, height, depth, 0,
            image_format, data_type, self._pixels(data),
        )

    def tex_sub_image_3d(self, target, level, x_offset, y_offset, z_offset,
                         width, height, depth, image_format, data_type, data) -> None:
        self._gl.glTexSubImage3D(
            target, level, x_offset, y_offset, z_offset, width, height, depth,
            image_format, data_type, self._pixels(data),
        )

    def active_texture(self, unit: int) -> None:
        self._gl.glActiveTexture(unit)


def texture_backend() -> TextureBackend:
    """The default backend, switched to one that handles textures if needed."""
    backend = current_backend()
    if isinstance(backend, TextureBackend):
        return backend
    replacement = PygletTextureGL()
    use_backend(replacement)
    return replacement


class _Texture:
    target: TextureTarget

    def __init__(self, gl: Optional[TextureBackend]) -> None:
        self._gl = gl if gl is not None else texture_backend()
        self.id = 0

    def _set_parameters(self, texture_filter: TextureValue) -> None:
        for name, value in (
            (TextureParameter.WRAP_S, TextureValue.REPEAT),
            (TextureParameter.WRAP_T, TextureValue.REPEAT),
            (TextureParameter.MIN_FILTER, texture_filter),
            (TextureParameter.MAG_FILTER, texture_filter),
        ):
            gl_call(self._gl, "glTexParameteri", self._gl.tex_parameter_i,
                    self.target, name, value)

    def _bind(self) -> None:
        gl_call(self._gl, "glBindTexture", self._gl.bind_texture, self.target, self.id)

    def _unbind(self) -> None:
        gl_call(self._gl, "glBindTexture", self._gl.bind_texture, self.target, 0)

    def _use(self, index: int) -> None:
        if index < 0:
            raise ValueError(f"texture unit must not be negative: {index}")
        gl_call(self._gl, "glActiveTexture", self._gl.active_texture, TEXTURE0 + index)
        self._bind()

    def _delete(self) -> None:
        if self.id:
            self._gl.delete_texture(self.id)
            self.id = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._delete()


class Texture2D(_Texture):
    """A single image texture with repeat wrapping, linear filtering and mipmaps."""

    target = TextureTarget.TEXTURE_2D

    def __init__(
        self,
        texture_file: Union[str, os.PathLike],
        image_format: TextureFormat,
        flip_on_load: bool,
        gl: Optional[TextureBackend] = None,
    ) -> None:
        super().__init__(gl)
        image = load_image(texture_file, flip_on_load)
        self.width = image.width
        self.height = image.height
        try:
            self.id = gl_call(self._gl, "glGenTextures", self._gl.gen_texture)
            self.bind()
            self._set_parameters(TextureValue.LINEAR)
            gl_call(
                self._gl, "glTexImage2D", self._gl.tex_image_2d,
                self.target, 0, TextureFormat.RGB, image.width, image.height,
                image_format, GLType.UNSIGNED_BYTE, image.data,
            )
            gl_call(self._gl, "glGenerateMipmap", self._gl.generate_mipmap, self.target)
            self.unbind()
        except Exception:
            self.delete()
            raise

    def bind(self) -> None:
        """Bind this texture to its target."""
        self._bind()

    def unbind(self) -> None:
        """Clear the binding of this texture's target."""
        self._unbind()

    def use(self, index: int) -> None:
        """Bind this texture to texture unit `index`."""
        self._use(index)

    def delete(self) -> None:
        """Free the texture; later calls do nothing."""
        self._delete()


class Texture2DArray(_Texture):
    """A stack of same-sized tiles, one layer per added image."""

    target = TextureTarget.TEXTURE_2D_ARRAY

    def __init__(
        self,
        tile_width: int,
        tile_height: int,
        image_count: int,
        image_format: TextureFormat,
        gl: Optional[TextureBackend] = None,
    ) -> None:
        super().__init__(gl)
        self.tile_width = tile_width
        self.tile_height = tile_height
        self.max_image_count = image_count
        self.image_count = 0
        self.image_format = TextureFormat(image_format)
        try:
            self.id = gl_call(self._gl, "glGenTextures", self._gl.gen_texture)
            self.bind()
            self._set_parameters(TextureValue.NEAREST)
            gl_call(
                self._gl, "glTexImage3D", self._gl.tex_image_3d,
                self.target, 0, TextureFormat.RGB, tile_width, tile_height, image_count,
                self.image_format, GLType.UNSIGNED_BYTE, None,
            )
            self.unbind()
        except Exception:
            self.delete()
            raise

    def add_texture(self, filename: Union[str, os.PathLike], flip_on_load: bool) -> int:
        """Load an image into the next free layer and return that layer."""
        if self.image_count >= self.max_image_count:
            raise TextureError(
                "You cannot add the image to the texture array, texture array is full."
            )
        image = load_image(filename, flip_on_load)
        needed = self.tile_width * self.tile_height * _FORMAT_COMPONENTS[self.image_format]
        if len(image.data) < needed:
            raise TextureError(
                f"Image {os.fspath(filename)} is too small for a "
                f"{self.tile_width}x{self.tile_height} tile"
            )
        layer = self.image_count
        self.bind()
        gl_call(
            self._gl, "glTexSubImage3D", self._gl.tex_sub_image_3d,
            self.target, 0, 0, 0, layer, self.tile_width, self.tile_height, 1,
            self.image_format, GLType.UNSIGNED_BYTE, image.data[:needed],
        )
        self.image_count += 1
        self.unbind()
        return layer

    def bind(self) -> None:
        """Bind this texture array to its target."""
        self._bind()

    def unbind(self) -> None:
        """Clear the binding of this texture array's target."""
        self._unbind()

    def use(self, index: int) -> None:
        """Bind this texture array to texture unit `index`."""
        self._use(index)

    def delete(self) -> None:
        """Free the texture array; later calls do nothing."""
        self._delete()