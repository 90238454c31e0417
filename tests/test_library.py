from __future__ import annotations

import asyncio
from pathlib import Path

from PIL import Image

from conftest import collect
from crop_batch.config import CropDelegate
from crop_batch.controller import CropController
from crop_batch.image_io import compute_fingerprint
from crop_batch.library import LocalAssetLibrary, asset_type_for
from crop_batch.models import AssetType, CropArea, CropState


def test_asset_type_for_extension() -> None:
    assert asset_type_for(Path("a.JPG")) is AssetType.IMAGE
    assert asset_type_for(Path("a.psd")) is AssetType.IMAGE
    assert asset_type_for(Path("a.mov")) is AssetType.VIDEO
    assert asset_type_for(Path("a.mp3")) is AssetType.AUDIO
    assert asset_type_for(Path("a.txt")) is AssetType.OTHER


def test_asset_for_image(make_image) -> None:
    path = make_image("photo.jpg", (400, 300))

    asset = LocalAssetLibrary().asset_for(path)

    assert asset.id == compute_fingerprint(path)
    assert asset.is_image
    assert (asset.orientated_width, asset.orientated_height) == (400, 300)
    assert asset.path == path


def test_asset_for_video_skips_decoding(tmp_path: Path) -> None:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"not really a video")

    asset = LocalAssetLibrary().asset_for(path)

    assert asset.type is AssetType.VIDEO
    assert (asset.orientated_width, asset.orientated_height) == (0, 0)


def test_relative_paths_resolve_against_root(make_image, tmp_path: Path) -> None:
    make_image("photo.png", (10, 10))
    library = LocalAssetLibrary(root=tmp_path)

    asset = library.asset_for(Path("photo.png"))

    assert asset.path == tmp_path / "photo.png"


def test_scan_skips_unreadable_files(make_image, tmp_path: Path) -> None:
    good = make_image("good.png", (10, 10))
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"garbage")

    assets = LocalAssetLibrary().scan([good, bad, tmp_path / "missing.png"])

    assert [a.path for a in assets] == [good]


def test_origin_file_reports_missing_file(make_image) -> None:
    path = make_image("photo.png", (10, 10))
    library = LocalAssetLibrary()
    asset = library.asset_for(path)

    assert asyncio.run(library.origin_file(asset)) == path
    path.unlink()
    assert asyncio.run(library.origin_file(asset)) is None


def test_end_to_end_export(make_image, tmp_path: Path) -> None:
    library = LocalAssetLibrary()
    plain = library.asset_for(make_image("plain.jpg", (400, 300)))
    cropped = library.asset_for(make_image("cropped.png", (400, 300), color=(0, 128, 0)))
    out_dir = tmp_path / "exports"

    controller = CropController(
        CropDelegate(crop_ratios=[1.0, 1.7778], preferred_size=100),
        library=library,
        output_dir=out_dir,
    )
    selection = [plain, cropped]
    controller.on_change(plain, None, selection)
    controller.on_change(cropped, CropState(area=CropArea(0, 0, 0.5, 0.5)), selection)

    final = collect(controller.export_crop_files(selection))[-1]

    assert final.progress == 1.0
    assert final.aspect_ratio == 1.0
    first, second = (r.file for r in final.records)
    with Image.open(first) as img:
        assert img.size == (200, 150)
    with Image.open(second) as img:
        assert img.size == (100, 75)
    assert sorted(p.name for p in out_dir.iterdir()) == ["cropped-cropped.png", "plain-sampled.jpg"]
