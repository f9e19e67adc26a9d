# voxelcraft

A small voxel world you can fly through. The world is made of
16×16×16 chunks, each filled with grass blocks. As the camera moves,
chunks are created in rings around it. Each chunk builds a single mesh.
That mesh leaves out every block face that touches a solid block, and it
checks the blocks in the neighbouring chunks to the front, back, left and
right as well. Blocks with no air next to them are left out entirely.

## Installing

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

The game needs a display that supports OpenGL 3.3. It draws through
`pyglet`, loads textures with `pillow` and does its maths with `numpy`.

## Running

```
voxelcraft
```

Options:

| Option                  | Default | Meaning                                        |
|-------------------------|---------|------------------------------------------------|
| `--width N`             | 1920    | window width                                   |
| `--height N`            | 1080    | window height                                  |
| `--speed S`             | 15      | movement speed, between 0 and 100              |
| `--render-distance N`   | 12      | number of chunk rings kept around the camera   |
| `--asset-root DIR`      | `.`     | directory that holds the shaders and textures  |

The program reads these files, relative to `--asset-root`:

- `src/shader/vertex_shader.glsl`
- `src/shader/fragment_shader.glsl`
- `assets/texture/block/dirt.png`
- `assets/texture/block/grass_side.png`
- `assets/texture/block/grass_top.png`

The textures go into a texture array with one 16×16 RGBA layer per
image. The window caption shows the average and current frames per
second, the render time and the camera position. If something fails, the
program prints the error to standard error and exits with status 1.

Controls:

| Key            | Action                   |
|----------------|--------------------------|
| W / S          | move forward / backward  |
| A / D          | strafe                   |
| Space          | rise                     |
| Left Shift     | descend                  |
| Mouse          | look around              |
| Right Alt      | toggle cursor capture    |
| Escape         | quit                     |

## Using the pieces

The world and meshing code works without a window:

```python
from voxelcraft.camera import Camera
from voxelcraft.world import World

camera = Camera((0.0, 0.0, 0.0), yaw=90.0, pitch=0.0)
world = World(camera, render_distance=2)
created = world.update(0.016)   # number of chunks generated

chunk = world.get_chunk(0, 0)
mesh = chunk.mesh()
print(created, len(mesh.vertices), mesh.index_count)
```

Modules:

- `voxelcraft.block`: `BlockId`, `TextureId`, `BlockVertex`, `Block` and the
  unit cube geometry, along with `face_of_vertex`
- `voxelcraft.noise`: `perlin_noise_2d`, `cubic_interpolate` and
  `random_gradient`
- `voxelcraft.camera`: `Camera` (`update_vector`, `update_pos` and
  `process_input` with a set of `Key` values), along with `look_at` and
  `perspective`
- `voxelcraft.layout`: `Layout` and `BufferLayout` (`add_layout`, `stride`
  and `offsets`), `type_size`, `error_message` and `GLError`
- `voxelcraft.chunk`: `Chunk` (`generate`, `block`, `set_block`,
  `build_mesh` and `mesh`) and `ChunkMesh`, which can return its data as
  interleaved bytes
- `voxelcraft.world`: `World`, `chunk_origin` and `ring_positions`
- `voxelcraft.buffers`: `VertexBuffer`, `ElementBuffer`, `VertexArray` and
  `check_gl`, which work with any backend you install with `use_backend`
- `voxelcraft.shader`: `Shader`, `ShaderError` and `read_shader_source`
- `voxelcraft.textures`: `load_image`, `Texture2D`, `Texture2DArray` and
  `TextureError`
- `voxelcraft.renderer`: `Renderer` and `ChunkDrawable`
- `voxelcraft.window`: `Window` and `WindowError`
- `voxelcraft.app`: `MouseLook`, `FrameStats` and `main`

## What it does not do

- The terrain is flat and solid. `perlin_noise_2d` exists, but chunk
  generation does not use it.
- You cannot place or break blocks in the game. `Chunk.set_block` is
  there only for code that uses the package as a library.
- Chunks are never unloaded, and the world is never saved.
- The shader and texture files are not included. You have to supply them.