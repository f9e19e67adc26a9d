"""The game loop: window, input, world updates, rendering and frame stats."""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from voxelcraft.camera import DEFAULT_SPEED, Camera, Key
from voxelcraft.world import DEFAULT_RENDER_DISTANCE, World
from voxelcraft.window import Window

TITLE = "ft_minecraft"
WIDTH = 1920
HEIGHT = 1080
SENSITIVITY = 0.1
MAX_PITCH = 89.0
MAX_SPEED = 100.0
FPS_SUM_LIMIT = 0xF000000000000000


class MouseLook:
    """Turns cursor movement into camera yaw and pitch."""

    def __init__(
        self,
        x: float = WIDTH / 2,
        y: float = HEIGHT / 2,
        sensitivity: float = SENSITIVITY,
    ) -> None:
        self.last_x = float(x)
        self.last_y = float(y)
        self.sensitivity = sensitivity

    def update(self, camera: Camera, x: float, y: float) -> bool:
        """Rotate the camera by the cursor's move since last time; False if it did not move."""
        if x == self.last_x and y == self.last_y:
            return False
        x_offset = (x - self.last_x) * self.sensitivity
        y_offset = (self.last_y - y) * self.sensitivity
        self.last_x = float(x)
        self.last_y = float(y)

        camera.yaw += x_offset
        camera.pitch = min(MAX_PITCH, max(-MAX_PITCH, camera.pitch + y_offset))
        camera.update_vector()
        return True


@dataclass(frozen=True)
class FrameReport:
    """Running average and instant frames per second."""

    average: int
    fps: float


class FrameStats:
    """Running average of whole frames per second, reset when it drifts."""

    def __init__(self) -> None:
        self._fps_sum = 0
        self._calls = 1

    def record(self, delta_time: float) -> FrameReport:
        """Add a frame that took delta_time seconds and report the current rates."""
        if delta_time <= 0:
            raise ValueError(f"frame time must be positive, got {delta_time}")
        fps = 1.0 / delta_time
        self._fps_sum += int(fps)
        if self._fps_sum > FPS_SUM_LIMIT or self._calls > self._fps_sum // self._calls:
            self._fps_sum = 0
            self._calls = 0
        average = self._fps_sum // self._calls if self._calls else 0
        self._calls += 1
        return FrameReport(average=average, fps=fps)


def _speed(text: str) -> float:
    value = float(text)
    if not 0.0 <= value <= MAX_SPEED:
        raise argparse.ArgumentTypeError(f"speed must be between 0 and {MAX_SPEED:g}")
    return value


def _positive(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError("value must be positive")
    return value


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="voxelcraft", description="Walk a voxel world.")
    parser.add_argument("--width", type=_positive, default=WIDTH)
    parser.add_argument("--height", type=_positive, default=HEIGHT)
    parser.add_argument("--speed", type=_speed, default=DEFAULT_SPEED)
    parser.add_argument("--render-distance", type=_positive, default=DEFAULT_RENDER_DISTANCE)
    parser.add_argument("--asset-root", default=".")
    return parser.parse_args(argv)


def _caption(report: FrameReport, render_time: float, camera: Camera) -> str:
    x, y, z = (float(c) for c in camera.position)
    return (
        f"{TITLE} | Avg: {report.average}, FPS: {report.fps:g}"
        f" | Render time: {render_time * 1000:g} ms"
        f" | Position: ({x:g}, {y:g}, {z:g})"
    )


def _run(args: argparse.Namespace) -> int:
    import pyglet
    from pyglet import gl
    from pyglet.window import key

    from voxelcraft.buffers import use_backend
    from voxelcraft.renderer import PygletRenderGL, Renderer

    movement_keys = {
        Key.W: key.W,
        Key.S: key.S,
        Key.A: key.A,
        Key.D: key.D,
        Key.SPACE: key.SPACE,
        Key.LEFT_SHIFT: key.LSHIFT,
    }

    with Window(TITLE, args.width, args.height) as window:
        native = window.native
        use_backend(PygletRenderGL())
        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glEnable(gl.GL_CULL_FACE)
        gl.glCullFace(gl.GL_BACK)

        keys = key.KeyStateHandler()
        native.push_handlers(keys)
        native.set_exclusive_mouse(True)

        pointer = [args.width / 2, args.height / 2]
        cursor_locked = [True]

        def on_mouse_motion(x, y, dx, dy):
            pointer[0] += dx
            pointer[1] -= dy

        def on_mouse_drag(x, y, dx, dy, buttons, modifiers):
            on_mouse_motion(x, y, dx, dy)

        def on_key_press(symbol, modifiers):
            if symbol == key.ESCAPE:
                window.request_close()
                return pyglet.event.EVENT_HANDLED
            if symbol == key.RALT:
                cursor_locked[0] = not cursor_locked[0]
                native.set_exclusive_mouse(cursor_locked[0])
                return pyglet.event.EVENT_HANDLED
            return None

        native.push_handlers(
            on_mouse_motion=on_mouse_motion,
            on_mouse_drag=on_mouse_drag,
            on_key_press=on_key_press,
        )

        camera = Camera((0.0, 0.0, 0.0), 90.0, 0.0)
        world = World(camera, render_distance=args.render_distance)
        look = MouseLook(pointer[0], pointer[1])
        stats = FrameStats()

        with Renderer(asset_root=args.asset_root) as renderer:
            last_frame = time.perf_counter()
            while not window.should_close:
                native.dispatch_events()

                now = time.perf_counter()
                delta_time = now - last_frame
                last_frame = now

                pressed = {name for name, symbol in movement_keys.items() if keys[symbol]}
                camera.process_input(pressed, delta_time, args.speed)
                look.update(camera, pointer[0], pointer[1])

                world.update(delta_time)

                start = time.perf_counter()
                renderer.render(world)
                render_time = time.perf_counter() - start

                if delta_time > 0:
                    native.set_caption(_caption(stats.record(delta_time), render_time, camera))
                native.flip()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Open the window and run the game until it is closed."""
    args = _parse_args(argv)
    try:
        return _run(args)
    except Exception as exc:
        print(exc, file=sys.stderr)
        return 1