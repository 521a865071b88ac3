# tests/test_imaging.py

"""Tests for decode/resize/encode of uploaded images."""

from pathlib import Path

import pytest
from PIL import Image

from core.errors import ProcessingError
from media.imaging import fit_width, transcode_to_jpeg

from conftest import make_image_bytes


def _source(tmp_path: Path, data: bytes, name: str = "src.bin") -> Path:
    path = tmp_path / name
    path.write_bytes(data)
    return path


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        ((3200, 1000), (1600, 500)),
        ((1600, 900), (1600, 900)),
        ((800, 600), (800, 600)),
        ((5000, 1), (1600, 1)),
    ],
)
def test_fit_width(size, expected) -> None:
    assert fit_width(size, 1600) == expected


def test_wide_image_is_downscaled_to_max_width(tmp_path: Path) -> None:
    src = _source(tmp_path, make_image_bytes(3200, 1000))
    target = tmp_path / "out.jpg"

    result = transcode_to_jpeg(src, target, max_width=1600, quality=85)

    assert (result.width, result.height) == (1600, 500)
    with Image.open(target) as img:
        assert img.format == "JPEG"
        assert img.size == (1600, 500)


def test_small_image_is_never_enlarged(tmp_path: Path) -> None:
    src = _source(tmp_path, make_image_bytes(320, 200, fmt="WEBP"))
    target = tmp_path / "out.jpg"

    result = transcode_to_jpeg(src, target, max_width=1600, quality=85)

    assert result.width == 320
    with Image.open(target) as img:
        assert img.format == "JPEG"
        assert img.width <= result.source_width


def test_transparency_is_flattened_onto_white(tmp_path: Path) -> None:
    src = _source(tmp_path, make_image_bytes(10, 10, mode="RGBA", color=(0, 0, 0, 0)))
    target = tmp_path / "out.jpg"

    transcode_to_jpeg(src, target, max_width=1600, quality=95)

    with Image.open(target) as img:
        assert img.mode == "RGB"
        r, g, b = img.getpixel((5, 5))
        assert min(r, g, b) > 240


def test_corrupt_input_raises_processing_error_and_leaves_nothing(tmp_path: Path) -> None:
    src = _source(tmp_path, b"definitely not an image")
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    with pytest.raises(ProcessingError):
        transcode_to_jpeg(src, out_dir / "out.jpg", max_width=1600, quality=85)

    assert list(out_dir.iterdir()) == []


def test_svg_is_not_decodable(tmp_path: Path) -> None:
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"/>'
    src = _source(tmp_path, svg, "logo.svg")

    with pytest.raises(ProcessingError):
        transcode_to_jpeg(src, tmp_path / "logo.jpg", max_width=1600, quality=85)


def test_commit_leaves_no_temp_files(tmp_path: Path) -> None:
    src = _source(tmp_path, make_image_bytes(40, 40))
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    transcode_to_jpeg(src, out_dir / "final.jpg", max_width=1600, quality=85)

    assert [p.name for p in out_dir.iterdir()] == ["final.jpg"]


def test_heif_source_is_decoded_and_downscaled(tmp_path: Path) -> None:
    import io

    import pillow_heif

    buf = io.BytesIO()
    pillow_heif.from_pillow(Image.new("RGB", (2000, 1000), (10, 120, 200))).save(buf, format="HEIF")
    src = _source(tmp_path, buf.getvalue(), "IMG_0001.HEIC")
    target = tmp_path / "out.jpg"

    result = transcode_to_jpeg(src, target, max_width=1600, quality=85)

    assert (result.source_width, result.source_height) == (2000, 1000)
    with Image.open(target) as img:
        assert img.format == "JPEG"
        assert img.size == (1600, 800)


def test_committed_jpeg_is_world_readable(tmp_path: Path) -> None:
    import stat

    src = _source(tmp_path, make_image_bytes(20, 20))
    target = tmp_path / "out.jpg"

    transcode_to_jpeg(src, target, max_width=1600, quality=85)

    assert stat.S_IMODE(target.stat().st_mode) & 0o044 == 0o044
