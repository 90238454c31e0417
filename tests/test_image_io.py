from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from crop_batch.config import EXPORT_DIR_ENV, export_dir
from crop_batch.image_io import (
    compute_fingerprint, crop_image, get_image_size, open_image, sample_factor, sample_image, unique_path,
)
from crop_batch.models import CropArea


@pytest.mark.parametrize(
    ("size", "preferred", "factor"),
    [
        ((400, 300), 100, 2),
        ((400, 300), 75, 4),
        ((400, 300), 300, 1),
        ((400, 300), 1080, 1),
        ((4000, 3000), 1080, 2),
        ((8000, 6000), 1000, 4),
        ((400, 300), 0, 1),
    ],
)
def test_sample_factor(size, preferred, factor) -> None:
    assert sample_factor(size[0], size[1], preferred) == factor


def test_sample_image_reduces_and_keeps_format(make_image, tmp_path: Path) -> None:
    src = make_image("photo.jpg", (400, 300))
    out_dir = tmp_path / "exports"

    sampled = sample_image(src, 100, output_dir=out_dir)

    assert sampled.parent == out_dir
    assert sampled.name == "photo-sampled.jpg"
    with Image.open(sampled) as img:
        assert img.size == (200, 150)
        assert img.format == "JPEG"


def test_sample_image_never_upscales(make_image, tmp_path: Path) -> None:
    src = make_image("small.png", (120, 80))

    sampled = sample_image(src, 1080, output_dir=tmp_path / "exports")

    with Image.open(sampled) as img:
        assert img.size == (120, 80)
        assert img.format == "PNG"


def test_crop_image_uses_normalized_area(make_image, tmp_path: Path) -> None:
    src = make_image("photo-sampled.png", (200, 150))

    cropped = crop_image(src, CropArea(0.5, 0.0, 0.5, 0.5), output_dir=tmp_path / "exports")

    assert cropped.name == "photo-cropped.png"
    with Image.open(cropped) as img:
        assert img.size == (100, 75)


def test_outputs_do_not_overwrite(make_image, tmp_path: Path) -> None:
    src = make_image("photo.jpg", (64, 64))
    out_dir = tmp_path / "exports"

    first = sample_image(src, 32, output_dir=out_dir)
    second = sample_image(src, 32, output_dir=out_dir)

    assert first != second
    assert second.name == "photo-sampled-01.jpg"


def test_exif_orientation_is_applied(tmp_path: Path) -> None:
    path = tmp_path / "rotated.jpg"
    img = Image.new("RGB", (40, 20), (0, 0, 255))
    exif = img.getexif()
    exif[0x0112] = 6
    img.save(path, exif=exif)

    assert get_image_size(path) == (20, 40)
    assert open_image(path).size == (20, 40)


def test_get_image_size_plain(make_image) -> None:
    assert get_image_size(make_image("plain.png", (33, 17))) == (33, 17)


def test_fingerprint_follows_content(tmp_path: Path) -> None:
    a = tmp_path / "a.bin"
    b = tmp_path / "b.bin"
    c = tmp_path / "c.bin"
    a.write_bytes(b"same content")
    b.write_bytes(b"same content")
    c.write_bytes(b"other content")

    assert compute_fingerprint(a) == compute_fingerprint(b)
    assert compute_fingerprint(a) != compute_fingerprint(c)
    assert compute_fingerprint(a).startswith(f"{len(b'same content'):x}_")


def test_unique_path(tmp_path: Path) -> None:
    target = tmp_path / "x.png"
    assert unique_path(target) == target
    target.write_bytes(b"")
    (tmp_path / "x-01.png").write_bytes(b"")
    assert unique_path(target) == tmp_path / "x-02.png"


def test_export_dir_override(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv(EXPORT_DIR_ENV, str(tmp_path / "custom"))
    directory = export_dir()
    assert directory == tmp_path / "custom"
    assert directory.is_dir()


def test_default_sampler_writes_to_export_dir(make_image, tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv(EXPORT_DIR_ENV, str(tmp_path / "env-exports"))
    src = make_image("photo.jpg", (64, 64))

    sampled = sample_image(src, 16)

    assert sampled.parent == tmp_path / "env-exports"
