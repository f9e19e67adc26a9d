"""Shader programs built from vertex and fragment source files."""

from __future__ import annotations

import os
from enum import IntEnum
from typing import Optional, Union

import numpy as np

from voxelcraft.buffers import GLBackend, current_backend, gl_call

_INFO_LOG_SIZE = 512


class ShaderError(RuntimeError):
    """A shader could not be read, compiled or linked."""


class ShaderKind(IntEnum):
    """Shader stage enumerants."""

    VERTEX = 0x8B31
    FRAGMENT = 0x8B30


def _truncate_log(log: str) -> str:
    return log[: _INFO_LOG_SIZE - 1]


def read_shader_source(path: Union[str, os.PathLike]) -> str:
    """Read a shader file, ending every line with a newline."""
    try:
        with open(path, encoding="utf-8", newline="") as handle:
            text = handle.read()
    except OSError as exc:
        raise ShaderError(f"Cannot open shader file : {os.fspath(path)}") from exc
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return "".join(line + "\n" for line in lines)


class Shader:
    """A linked program made of one vertex and one fragment shader."""

    def __init__(
        self,
        vertex_path: Union[str, os.PathLike],
        fragment_path: Union[str, os.PathLike],
        gl: Optional[GLBackend] = None,
    ) -> None:
        self._gl = gl if gl is not None else current_backend()
        self.id = 0
        vertex = fragment = 0
        try:
            vertex = self._create_shader(vertex_path, ShaderKind.VERTEX)
            fragment = self._create_shader(fragment_path, ShaderKind.FRAGMENT)
            program, linked, log = gl_call(
                self._gl, "glLinkProgram", self._gl.link_program, (vertex, fragment)
            )
            self.id = program
            if not linked:
                raise ShaderError(
                    "Error: Failed to link shaders to the shader_programm: "
                    + _truncate_log(log)
                )
            if not program:
                raise ShaderError("Error: Failed to create shader program")
        except Exception:
            for shader_id in (vertex, fragment):
                if shader_id:
                    self._gl.delete_shader(shader_id)
            if self.id:
                self._gl.delete_program(self.id)
                self.id = 0
            raise

    def _create_shader(self, path: Union[str, os.PathLike], kind: ShaderKind) -> int:
        source = read_shader_source(path)
        shader_id, compiled, log = gl_call(
            self._gl, "glCompileShader", self._gl.compile_shader, kind, source
        )
        if not compiled:
            if shader_id:
                self._gl.delete_shader(shader_id)
            raise ShaderError("Error: Failed to compile shader: " + _truncate_log(log))
        if not shader_id:
            raise ShaderError("Error: Failed to create shader")
        return shader_id

    def use(self) -> None:
        """Make this program current."""
        gl_call(self._gl, "glUseProgram", self._gl.use_program, self.id)

    def delete(self) -> None:
        """Free the program; later calls do nothing."""
        if self.id:
            self._gl.delete_program(self.id)
            self.id = 0

    def __enter__(self) -> "Shader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.delete()

    def _location(self, name: str) -> int:
        return self._gl.uniform_location(self.id, name)

    def set_bool(self, name: str, value: bool) -> None:
        gl_call(self._gl, "glUniform1i", self._gl.uniform_1i, self._location(name), int(bool(value)))

    def set_int(self, name: str, value: int) -> None:
        gl_call(self._gl, "glUniform1i", self._gl.uniform_1i, self._location(name), int(value))

    def set_float(self, name: str, value: float) -> None:
        gl_call(self._gl, "glUniform1f", self._gl.uniform_1f, self._location(name), float(value))

    def set_mat4(self, name: str, matrix) -> None:
        """Upload a 4x4 matrix given in row-major mathematical form."""
        array = np.asarray(matrix, dtype=np.float32)
        if array.shape != (4, 4):
            raise ValueError(f"expected a 4x4 matrix, got shape {array.shape}")
        values = tuple(float(v) for v in array.flatten(order="F"))
        gl_call(
            self._gl, "glUniformMatrix4fv", self._gl.uniform_matrix_4fv,
            self._location(name), values,
        )