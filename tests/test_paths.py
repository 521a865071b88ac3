# tests/test_paths.py

"""Tests for filename sanitizing and root containment."""

from pathlib import Path

import pytest

from core.errors import ValidationError
from core.paths import is_image_name, resolve_contained, sanitize_filename


@pytest.mark.parametrize("name", ["photo.jpg", "My Cake!!.HEIC", "a-b_c.png", ".hidden.jpg"])
def test_plain_basenames_pass(name: str) -> None:
    assert sanitize_filename(name) == name


@pytest.mark.parametrize(
    "name",
    [
        "",
        "   ",
        None,
        ".",
        "..",
        "../evil.jpg",
        "..\\evil.jpg",
        "sub/photo.jpg",
        "sub\\photo.jpg",
        "/etc/passwd",
        "C:\\fakepath\\photo.jpg",
        "photo..jpg",
        "bad\x00name.jpg",
    ],
)
def test_unsafe_names_rejected(name) -> None:
    with pytest.raises(ValidationError):
        sanitize_filename(name)


def test_resolve_contained_stays_inside_root(tmp_path: Path) -> None:
    target = resolve_contained("photo.jpg", tmp_path)
    assert target.parent == tmp_path.resolve()
    assert target.name == "photo.jpg"
    assert not target.exists()


@pytest.mark.parametrize("name", ["../outside.jpg", "nested/../../x.jpg", "/abs.jpg", ".."])
def test_resolve_contained_rejects_escapes(tmp_path: Path, name: str) -> None:
    with pytest.raises(ValidationError):
        resolve_contained(name, tmp_path / "root")


def test_image_extension_check_is_case_insensitive() -> None:
    assert is_image_name("a.JPG")
    assert is_image_name("b.heic")
    assert is_image_name("c.svg")
    assert not is_image_name("notes.txt")
    assert not is_image_name(".photo-abc.part")
