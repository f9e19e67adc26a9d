"""GPU vertex, index and vertex-array buffers over a pluggable GL backend."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from enum import IntEnum
from typing import Any, Optional, Protocol, TypeVar, Union

import numpy as np

from voxelcraft.layout import BufferLayout, GLError, GLErrorCode, error_message

logger = logging.getLogger(__name__)

STATIC_DRAW = 0x88E4
_INDEX_SIZE = 4
_MAX_INDEX = 0xFFFFFFFF

T = TypeVar("T")


class BufferTarget(IntEnum):
    """Buffer binding points."""

    ARRAY_BUFFER = 0x8892
    ELEMENT_ARRAY_BUFFER = 0x8893


class GLBackend(Protocol):
    """The OpenGL operations the package issues."""

    def get_error(self) -> int: ...
    def gen_buffer(self) -> int: ...
    def delete_buffer(self, buffer_id: int) -> None: ...
    def bind_buffer(self, target: int, buffer_id: int) -> None: ...
    def buffer_data(self, target: int, data: bytes, usage: int) -> None: ...
    def gen_vertex_array(self) -> int: ...
    def delete_vertex_array(self, array_id: int) -> None: ...
    def bind_vertex_array(self, array_id: int) -> None: ...
    def enable_vertex_attrib_array(self, index: int) -> None: ...
    def vertex_attrib_pointer(
        self, index: int, count: int, gl_type: int, normalized: bool, stride: int, offset: int
    ) -> None: ...
    def compile_shader(self, kind: int, source: str) -> tuple[int, bool, str]: ...
    def link_program(self, shader_ids: Sequence[int]) -> tuple[int, bool, str]: ...
    def delete_shader(self, shader_id: int) -> None: ...
    def delete_program(self, program_id: int) -> None: ...
    def use_program(self, program_id: int) -> None: ...
    def uniform_location(self, program_id: int, name: str) -> int: ...
    def uniform_1i(self, location: int, value: int) -> None: ...
    def uniform_1f(self, location: int, value: float) -> None: ...
    def uniform_matrix_4fv(self, location: int, values: Sequence[float]) -> None: ...


class PygletGL:
    """Backend issuing calls through pyglet's OpenGL bindings."""

    _SHADER_KINDS = {0x8B31: "vertex", 0x8B30: "fragment"}

    def __init__(self) -> None:
        from pyglet import gl
        from pyglet.graphics import shader as pyglet_shader

        self._gl = gl
        self._shader_module = pyglet_shader
        self._shaders: dict[int, Any] = {}
        self._programs: dict[int, Any] = {}

    def _uints(self, *values: int) -> Any:
        return (self._gl.GLuint * len(values))(*values)

    def get_error(self) -> int:
        return int(self._gl.glGetError())

    def gen_buffer(self) -> int:
        ids = self._uints(0)
        self._gl.glGenBuffers(1, ids)
        return int(ids[0])

    def delete_buffer(self, buffer_id: int) -> None:
        self._gl.glDeleteBuffers(1, self._uints(buffer_id))

    def bind_buffer(self, target: int, buffer_id: int) -> None:
        self._gl.glBindBuffer(target, buffer_id)

    def buffer_data(self, target: int, data: bytes, usage: int) -> None:
        payload = (self._gl.GLubyte * len(data)).from_buffer_copy(data)
        self._gl.glBufferData(target, len(data), payload, usage)

    def gen_vertex_array(self) -> int:
        ids = self._uints(0)
        self._gl.glGenVertexArrays(1, ids)
        return int(ids[0])

    def delete_vertex_array(self, array_id: int) -> None:
        self._gl.glDeleteVertexArrays(1, self._uints(array_id))

    def bind_vertex_array(self, array_id: int) -> None:
        self._gl.glBindVertexArray(array_id)

    def enable_vertex_attrib_array(self, index: int) -> None:
        self._gl.glEnableVertexAttribArray(index)

    def vertex_attrib_pointer(
        self, index: int, count: int, gl_type: int, normalized: bool, stride: int, offset: int
    ) -> None:
        flag = self._gl.GL_TRUE if normalized else self._gl.GL_FALSE
        self._gl.glVertexAttribPointer(index, count, gl_type, flag, stride, offset)

    def compile_shader(self, kind: int, source: str) -> tuple[int, bool, str]:
        try:
            compiled = self._shader_module.Shader(source, self._SHADER_KINDS[kind])
        except self._shader_module.ShaderException as exc:
            return 0, False, str(exc)
        self._shaders[compiled.id] = compiled
        return compiled.id, True, ""

    def link_program(self, shader_ids: Sequence[int]) -> tuple[int, bool, str]:
        shaders = [self._shaders[shader_id] for shader_id in shader_ids]
        try:
            program = self._shader_module.ShaderProgram(*shaders)
        except self._shader_module.ShaderException as exc:
            return 0, False, str(exc)
        self._programs[program.id] = program
        return program.id, True, ""

    def delete_shader(self, shader_id: int) -> None:
        compiled = self._shaders.pop(shader_id, None)
        if compiled is not None:
            compiled.delete()
        else:
            self._gl.glDeleteShader(shader_id)

    def delete_program(self, program_id: int) -> None:
        program = self._programs.pop(program_id, None)
        if program is not None:
            program.delete()
        else:
            self._gl.glDeleteProgram(program_id)

    def use_program(self, program_id: int) -> None:
        self._gl.glUseProgram(program_id)

    def uniform_location(self, program_id: int, name: str) -> int:
        encoded = name.encode() + b"\0"
        buffer = (self._gl.GLchar * len(encoded)).from_buffer_copy(encoded)
        return int(self._gl.glGetUniformLocation(program_id, buffer))

    def uniform_1i(self, location: int, value: int) -> None:
        self._gl.glUniform1i(location, value)

    def uniform_1f(self, location: int, value: float) -> None:
        self._gl.glUniform1f(location, value)

    def uniform_matrix_4fv(self, location: int, values: Sequence[float]) -> None:
        matrix = (self._gl.GLfloat * 16)(*values)
        self._gl.glUniformMatrix4fv(location, 1, self._gl.GL_FALSE, matrix)


_backend: Optional[GLBackend] = None


def use_backend(gl: Optional[GLBackend]) -> Optional[GLBackend]:
    """Make gl the backend used by default; return the previous one."""
    global _backend
    previous = _backend
    _backend = gl
    return previous


def current_backend() -> GLBackend:
    """The default backend, created on first use."""
    global _backend
    if _backend is None:
        _backend = PygletGL()
    return _backend


def _clear_errors(gl: GLBackend) -> None:
    while gl.get_error() != GLErrorCode.NO_ERROR:
        pass


def _raise_for_error(gl: GLBackend, call_name: str) -> None:
    code = gl.get_error()
    if code != GLErrorCode.NO_ERROR:
        logger.error("[OpenGL Error] (%s) %s", call_name, error_message(code))
        raise GLError(code, call_name)


def check_gl(call_name: str) -> None:
    """Raise GLError if the default backend has an error flag set."""
    _raise_for_error(current_backend(), call_name)


def gl_call(gl: GLBackend, call_name: str, func: Callable[..., T], *args: Any) -> T:
    """Run a GL call with stale errors cleared first; raise GLError if it fails."""
    _clear_errors(gl)
    result = func(*args)
    _raise_for_error(gl, call_name)
    return result


BytesLike = Union[bytes, bytearray, memoryview]


def _index_bytes(indices: Union[BytesLike, Iterable[int]]) -> bytes:
    if isinstance(indices, (bytes, bytearray, memoryview)):
        data = bytes(indices)
        if len(data) % _INDEX_SIZE:
            raise ValueError("index data must be a whole number of 32-bit indices")
        return data
    values = np.asarray(list(indices), dtype=np.int64)
    if values.size and (values.min() < 0 or values.max() > _MAX_INDEX):
        raise ValueError("indices must fit in an unsigned 32-bit integer")
    return values.astype("<u4").tobytes()


class _GLObject:
    def __init__(self, gl: Optional[GLBackend]) -> None:
        self._gl = gl if gl is not None else current_backend()
        self.id = 0

    def delete(self) -> None:
        """Free the GPU object; later calls do nothing."""
        self.id = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.delete()


class VertexBuffer(_GLObject):
    """Vertex data uploaded to an array buffer."""

    def __init__(self, data: Any, gl: Optional[GLBackend] = None) -> None:
        super().__init__(gl)
        payload = memoryview(data).tobytes()
        self.size = len(payload)
        self.id = gl_call(self._gl, "glGenBuffers", self._gl.gen_buffer)
        try:
            self.bind()
            gl_call(
                self._gl,
                "glBufferData",
                self._gl.buffer_data,
                BufferTarget.ARRAY_BUFFER,
                payload,
                STATIC_DRAW,
            )
            self.unbind()
        except Exception:
            self.delete()
            raise

    def delete(self) -> None:
        """Free the buffer; later calls do nothing."""
        if self.id:
            self._gl.delete_buffer(self.id)
            self.id = 0

    def bind(self) -> None:
        gl_call(self._gl, "glBindBuffer", self._gl.bind_buffer, BufferTarget.ARRAY_BUFFER, self.id)

    def unbind(self) -> None:
        gl_call(self._gl, "glBindBuffer", self._gl.bind_buffer, BufferTarget.ARRAY_BUFFER, 0)


class ElementBuffer(_GLObject):
    """Triangle indices uploaded as unsigned 32-bit integers."""

    def __init__(
        self, indices: Union[BytesLike, Iterable[int]], gl: Optional[GLBackend] = None
    ) -> None:
        super().__init__(gl)
        payload = _index_bytes(indices)
        self.count = len(payload) // _INDEX_SIZE
        self.id = gl_call(self._gl, "glGenBuffers", self._gl.gen_buffer)
        try:
            self.bind()
            gl_call(
                self._gl,
                "glBufferData",
                self._gl.buffer_data,
                BufferTarget.ELEMENT_ARRAY_BUFFER,
                payload,
                STATIC_DRAW,
            )
        except Exception:
            self.delete()
            raise

    def delete(self) -> None:
        """Free the buffer; later calls do nothing."""
        if self.id:
            self._gl.delete_buffer(self.id)
            self.id = 0

    def bind(self) -> None:
        gl_call(
            self._gl, "glBindBuffer", self._gl.bind_buffer,
            BufferTarget.ELEMENT_ARRAY_BUFFER, self.id,
        )

    def unbind(self) -> None:
        gl_call(
            self._gl, "glBindBuffer", self._gl.bind_buffer,
            BufferTarget.ELEMENT_ARRAY_BUFFER, 0,
        )


class VertexArray(_GLObject):
    """Attribute bindings tying vertex and element buffers together."""

    def __init__(self, gl: Optional[GLBackend] = None) -> None:
        super().__init__(gl)
        self.id = gl_call(self._gl, "glGenVertexArrays", self._gl.gen_vertex_array)

    def delete(self) -> None:
        """Free the vertex array; later calls do nothing."""
        if self.id:
            self._gl.delete_vertex_array(self.id)
            self.id = 0

    def bind(self) -> None:
        gl_call(self._gl, "glBindVertexArray", self._gl.bind_vertex_array, self.id)

    def unbind(self) -> None:
        gl_call(self._gl, "glBindVertexArray", self._gl.bind_vertex_array, 0)

    def add_vertex_buffer(self, vertex_buffer: VertexBuffer, layout: BufferLayout) -> None:
        """Describe the buffer's interleaved attributes, one location per layout entry."""
        self.bind()
        vertex_buffer.bind()
        stride = layout.stride()
        for index, (attribute, offset) in enumerate(zip(layout, layout.offsets())):
            gl_call(
                self._gl, "glEnableVertexAttribArray",
                self._gl.enable_vertex_attrib_array, index,
            )
            gl_call(
                self._gl,
                "glVertexAttribPointer",
                self._gl.vertex_attrib_pointer,
                index,
                attribute.count,
                attribute.gl_type,
                attribute.normalized,
                stride,
                offset,
            )
        self.unbind()
        vertex_buffer.unbind()

    def add_element_buffer(self, element_buffer: ElementBuffer) -> None:
        """Attach an index buffer to this vertex array."""
        self.bind()
        element_buffer.bind()
        self.unbind()
        element_buffer.unbind()