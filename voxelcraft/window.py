"""The application window and its OpenGL 3.3 core context."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Optional

GL_MAJOR_VERSION = 3
GL_MINOR_VERSION = 3

WindowFactory = Callable[[str, int, int], Any]


class WindowError(RuntimeError):
    """The window or its context could not be created."""


def _create_pyglet_window(title: str, width: int, height: int) -> Any:
    import pyglet

    config = pyglet.gl.Config(
        major_version=GL_MAJOR_VERSION,
        minor_version=GL_MINOR_VERSION,
        forward_compatible=True,
        double_buffer=True,
        depth_size=24,
    )
    return pyglet.window.Window(
        width, height, title, resizable=True, vsync=False, config=config
    )


class Window:
    """A native window with a current OpenGL context; closed on exit."""

    def __init__(
        self,
        title: str,
        width: int,
        height: int,
        factory: Optional[WindowFactory] = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise WindowError(
                f"Failed to create GLFW window: invalid size {width}x{height}."
            )
        create = factory if factory is not None else _create_pyglet_window
        try:
            native = create(title, width, height)
        except Exception as exc:
            raise WindowError("Failed to create GLFW window.") from exc
        if native is None:
            raise WindowError("Failed to create GLFW window.")
        self.title = title
        self.width = width
        self.height = height
        self.native = native
        self.closed = False
        self._close_requested = False

    @property
    def should_close(self) -> bool:
        """True once closing was requested by the program or the user."""
        return (
            self.closed
            or self._close_requested
            or bool(getattr(self.native, "has_exit", False))
        )

    def request_close(self) -> None:
        """Ask the main loop to stop at the end of the current frame."""
        self._close_requested = True

    def close(self) -> None:
        """Destroy the native window; later calls do nothing."""
        if not self.closed:
            self.closed = True
            self.native.close()

    def __enter__(self) -> "Window":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()