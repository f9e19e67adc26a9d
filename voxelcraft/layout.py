"""Vertex attribute layouts and the OpenGL type and error codes they use."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum


class GLType(IntEnum):
    """OpenGL data type enumerants."""

    UNSIGNED_BYTE = 0x1401
    UNSIGNED_INT = 0x1405
    FLOAT = 0x1406


class GLErrorCode(IntEnum):
    """Values returned by glGetError."""

    NO_ERROR = 0
    INVALID_ENUM = 0x0500
    INVALID_VALUE = 0x0501
    INVALID_OPERATION = 0x0502
    OUT_OF_MEMORY = 0x0505
    INVALID_FRAMEBUFFER_OPERATION = 0x0506


_TYPE_SIZES = {GLType.FLOAT: 4, GLType.UNSIGNED_INT: 4}

_ERROR_MESSAGES = {
    GLErrorCode.INVALID_ENUM: (
        "GL_INVALID_ENUM : An unacceptable value is specified for an enumerated "
        "argument. The offending command is ignored and has no other side effect "
        "than to set the error flag."
    ),
    GLErrorCode.INVALID_VALUE: (
        "GL_INVALID_VALUE : A numeric argument is out of range. The offending "
        "command is ignored and has no other side effect than to set the error flag."
    ),
    GLErrorCode.INVALID_OPERATION: (
        "GL_INVALID_OPERATION : The specified operation is not allowed in the "
        "current state. The offending command is ignored and has no other side "
        "effect than to set the error flag."
    ),
    GLErrorCode.INVALID_FRAMEBUFFER_OPERATION: (
        "GL_INVALID_FRAMEBUFFER_OPERATION : The framebuffer object is not complete. "
        "The offending command is ignored and has no other side effect than to set "
        "the error flag."
    ),
    GLErrorCode.OUT_OF_MEMORY: (
        "GL_OUT_OF_MEMORY : There is not enough memory left to execute the command. "
        "The state of the GL is undefined, except for the state of the error flags, "
        "after this error is recorded."
    ),
}


def type_size(gl_type: int) -> int:
    """Size in bytes of one component of an attribute type."""
    try:
        return _TYPE_SIZES[gl_type]
    except KeyError:
        raise ValueError(f"GetTypeSize invalid Type: {gl_type:#x}") from None


def error_message(code: int) -> str:
    """Human-readable description of an OpenGL error code."""
    return _ERROR_MESSAGES.get(code, "UNKNOWN ERROR")


class GLError(RuntimeError):
    """An OpenGL call left an error flag set."""

    def __init__(self, code: int, call: str | None = None) -> None:
        self.code = code
        self.call = call
        where = f"({call}) " if call else ""
        super().__init__(f"[OpenGL Error] {where}{error_message(code)}")


@dataclass(frozen=True)
class Layout:
    """One vertex attribute: component type, component count, normalization."""

    gl_type: GLType
    count: int
    normalized: bool = False


class BufferLayout:
    """An ordered list of attributes describing interleaved vertex data."""

    def __init__(self) -> None:
        self._layouts: list[Layout] = []
        self._stride = 0

    def add_layout(self, layout: Layout) -> None:
        """Append an attribute after the existing ones."""
        size = type_size(layout.gl_type) * layout.count
        self._layouts.append(layout)
        self._stride += size

    @property
    def layouts(self) -> tuple[Layout, ...]:
        return tuple(self._layouts)

    def stride(self) -> int:
        """Bytes from one vertex to the next."""
        return self._stride

    def offsets(self) -> list[int]:
        """Byte offset of each attribute within a vertex."""
        result = []
        offset = 0
        for layout in self._layouts:
            result.append(offset)
            offset += type_size(layout.gl_type) * layout.count
        return result

    def __iter__(self) -> Iterator[Layout]:
        return iter(self._layouts)

    def __len__(self) -> int:
        return len(self._layouts)