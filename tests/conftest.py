"""Shared fixtures: fake asset library, recording transforms, image factory."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from PIL import Image

from crop_batch.models import Asset, AssetType


class FakeLibrary:
    """Asset library backed by a dict of asset id -> file."""

    def __init__(self, files: dict[str, Path] | None = None) -> None:
        self.files = dict(files or {})
        self.requests: list[str] = []

    async def origin_file(self, asset: Asset) -> Path | None:
        self.requests.append(asset.id)
        return self.files.get(asset.id)


class RecordingTransforms:
    """Sampler/cropper pair that writes tiny marker files and records calls."""

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = out_dir
        self.samples: list[tuple[Path, int, Path]] = []
        self.crops: list[tuple[Path, object, Path]] = []

    def sample(self, file: Path, size: int) -> Path:
        out = self.out_dir / f"{Path(file).stem}-sampled-{len(self.samples)}.bin"
        out.write_bytes(b"sample")
        self.samples.append((Path(file), size, out))
        return out

    def crop(self, file: Path, area) -> Path:
        out = self.out_dir / f"{Path(file).stem}-cropped-{len(self.crops)}.bin"
        out.write_bytes(b"crop")
        self.crops.append((Path(file), area, out))
        return out


def image_asset(asset_id: str, width: int = 400, height: int = 300) -> Asset:
    return Asset(id=asset_id, type=AssetType.IMAGE, orientated_width=width, orientated_height=height)


def video_asset(asset_id: str) -> Asset:
    return Asset(id=asset_id, type=AssetType.VIDEO, orientated_width=1920, orientated_height=1080)


def collect(stream) -> list:
    """Drain an async iterator of snapshots."""
    async def runner() -> list:
        return [snapshot async for snapshot in stream]

    return asyncio.run(runner())


@pytest.fixture
def transforms(tmp_path: Path) -> RecordingTransforms:
    out = tmp_path / "out"
    out.mkdir()
    return RecordingTransforms(out)


@pytest.fixture
def make_image(tmp_path: Path):
    """Write a solid-colour image and return its path."""

    def _make(name: str, size: tuple[int, int] = (400, 300), color=(200, 30, 30), **save_kwargs) -> Path:
        path = tmp_path / name
        Image.new("RGB", size, color).save(path, **save_kwargs)
        return path

    return _make
