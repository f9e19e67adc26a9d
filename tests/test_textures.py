import pytest
from PIL import Image

from voxelcraft.layout import GLError, GLErrorCode, GLType
from voxelcraft.textures import (
    TEXTURE0,
    Texture2D,
    Texture2DArray,
    TextureError,
    TextureFormat,
    TextureParameter,
    TextureTarget,
    TextureValue,
    load_image,
)


class FakeGL:
    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)
        self._pending = 0
        self._next = 0

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail_on:
            self._pending = GLErrorCode.INVALID_OPERATION

    def get_error(self):
        code, self._pending = self._pending, 0
        return int(code)

    def gen_texture(self):
        self._next += 1
        self._record("gen_texture")
        return self._next

    def named(self, name):
        return [args for called, args in self.calls if called == name]

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return lambda *args: self._record(name, *args)


def save(tmp_path, name, image):
    path = tmp_path / name
    image.save(path)
    return path


def two_pixel_column(tmp_path):
    image = Image.new("RGBA", (1, 2))
    image.putpixel((0, 0), (255, 0, 0, 255))
    image.putpixel((0, 1), (0, 0, 255, 255))
    return save(tmp_path, "column.png", image)


def test_load_image_rgba_keeps_size_and_channels(tmp_path):
    path = save(tmp_path, "a.png", Image.new("RGBA", (3, 2), (1, 2, 3, 4)))
    image = load_image(path, False)
    assert (image.width, image.height, image.channels) == (3, 2, 4)
    assert image.data == bytes((1, 2, 3, 4)) * 6


def test_load_image_without_flip_starts_at_top(tmp_path):
    image = load_image(two_pixel_column(tmp_path), False)
    assert image.data[:4] == bytes((255, 0, 0, 255))


def test_load_image_flip_reverses_rows(tmp_path):
    path = two_pixel_column(tmp_path)
    flipped = load_image(path, True)
    plain = load_image(path, False)
    assert flipped.data[:4] == bytes((0, 0, 255, 255))
    assert flipped.data == plain.data[4:] + plain.data[:4]


def test_load_image_grayscale_has_one_channel(tmp_path):
    path = save(tmp_path, "g.png", Image.new("L", (3, 2), 7))
    image = load_image(path)
    assert image.channels == 1
    assert image.data == bytes([7] * 6)


def test_load_image_palette_becomes_rgb(tmp_path):
    path = save(tmp_path, "p.png", Image.new("P", (2, 2)))
    image = load_image(path)
    assert image.channels == 3
    assert len(image.data) == 2 * 2 * 3


def test_load_image_missing_file(tmp_path):
    path = tmp_path / "missing.png"
    with pytest.raises(TextureError, match="Cannot load image : "):
        load_image(path)


def test_load_image_rejects_garbage(tmp_path):
    path = tmp_path / "bad.png"
    path.write_bytes(b"not an image")
    with pytest.raises(TextureError):
        load_image(path)


def test_texture2d_uploads_image(tmp_path):
    path = save(tmp_path, "t.png", Image.new("RGBA", (2, 3), (9, 8, 7, 6)))
    gl = FakeGL()
    texture = Texture2D(path, TextureFormat.RGBA, True, gl=gl)
    assert texture.id == 1
    assert gl.named("tex_image_2d") == [(
        TextureTarget.TEXTURE_2D, 0, TextureFormat.RGB, 2, 3,
        TextureFormat.RGBA, GLType.UNSIGNED_BYTE, load_image(path, True).data,
    )]
    assert gl.named("generate_mipmap") == [(TextureTarget.TEXTURE_2D,)]
    assert gl.named("bind_texture")[-1] == (TextureTarget.TEXTURE_2D, 0)


def test_texture2d_parameters(tmp_path):
    path = save(tmp_path, "t.png", Image.new("RGB", (1, 1)))
    gl = FakeGL()
    Texture2D(path, TextureFormat.RGB, False, gl=gl)
    params = {(name, value) for _, name, value in gl.named("tex_parameter_i")}
    assert params == {
        (TextureParameter.WRAP_S, TextureValue.REPEAT),
        (TextureParameter.WRAP_T, TextureValue.REPEAT),
        (TextureParameter.MIN_FILTER, TextureValue.LINEAR),
        (TextureParameter.MAG_FILTER, TextureValue.LINEAR),
    }


def test_texture2d_missing_file_creates_nothing(tmp_path):
    gl = FakeGL()
    with pytest.raises(TextureError):
        Texture2D(tmp_path / "none.png", TextureFormat.RGBA, True, gl=gl)
    assert gl.named("gen_texture") == []


def test_texture2d_gl_error_deletes_texture(tmp_path):
    path = save(tmp_path, "t.png", Image.new("RGBA", (1, 1)))
    gl = FakeGL(fail_on={"tex_image_2d"})
    with pytest.raises(GLError):
        Texture2D(path, TextureFormat.RGBA, True, gl=gl)
    assert gl.named("delete_texture") == [(1,)]


def test_texture2d_use_activates_unit(tmp_path):
    path = save(tmp_path, "t.png", Image.new("RGBA", (1, 1)))
    gl = FakeGL()
    texture = Texture2D(path, TextureFormat.RGBA, False, gl=gl)
    texture.use(2)
    assert gl.named("active_texture") == [(TEXTURE0 + 2,)]
    assert gl.named("bind_texture")[-1] == (TextureTarget.TEXTURE_2D, texture.id)


def test_texture_delete_is_idempotent(tmp_path):
    path = save(tmp_path, "t.png", Image.new("RGBA", (1, 1)))
    gl = FakeGL()
    with Texture2D(path, TextureFormat.RGBA, False, gl=gl) as texture:
        pass
    texture.delete()
    assert texture.id == 0
    assert gl.named("delete_texture") == [(1,)]


def test_texture_array_allocates_layers():
    gl = FakeGL()
    Texture2DArray(4, 5, 3, TextureFormat.RGBA, gl=gl)
    assert gl.named("tex_image_3d") == [(
        TextureTarget.TEXTURE_2D_ARRAY, 0, TextureFormat.RGB, 4, 5, 3,
        TextureFormat.RGBA, GLType.UNSIGNED_BYTE, None,
    )]
    filters = {
        value for _, name, value in gl.named("tex_parameter_i")
        if name in (TextureParameter.MIN_FILTER, TextureParameter.MAG_FILTER)
    }
    assert filters == {TextureValue.NEAREST}


def test_texture_array_fills_successive_layers(tmp_path):
    gl = FakeGL()
    array = Texture2DArray(2, 2, 2, TextureFormat.RGBA, gl=gl)
    path = save(tmp_path, "tile.png", Image.new("RGBA", (2, 2), (5, 5, 5, 5)))
    assert array.add_texture(path, True) == 0
    assert array.add_texture(path, True) == 1
    assert array.image_count == 2
    layers = [args[4] for args in gl.named("tex_sub_image_3d")]
    assert layers == [0, 1]
    assert gl.named("tex_sub_image_3d")[0][-1] == bytes([5]) * 16


def test_texture_array_full_raises(tmp_path):
    gl = FakeGL()
    array = Texture2DArray(2, 2, 1, TextureFormat.RGBA, gl=gl)
    path = save(tmp_path, "tile.png", Image.new("RGBA", (2, 2)))
    array.add_texture(path, False)
    with pytest.raises(TextureError, match="full"):
        array.add_texture(path, False)
    assert array.image_count == 1


def test_texture_array_rejects_small_image(tmp_path):
    gl = FakeGL()
    array = Texture2DArray(4, 4, 1, TextureFormat.RGBA, gl=gl)
    path = save(tmp_path, "small.png", Image.new("RGBA", (2, 2)))
    with pytest.raises(TextureError):
        array.add_texture(path, False)
    assert array.image_count == 0


def test_texture_array_missing_file_keeps_count(tmp_path):
    gl = FakeGL()
    array = Texture2DArray(2, 2, 1, TextureFormat.RGBA, gl=gl)
    with pytest.raises(TextureError):
        array.add_texture(tmp_path / "none.png", True)
    assert array.image_count == 0