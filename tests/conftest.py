"""Shared fixtures for listing_images tests."""

import pytest
from pathlib import Path

from PIL import Image

from listing_images.models import (
    InputFile,
    MinDimensions,
    SizeSpec,
    UploadContext,
    UploaderConfig,
)


def _make_image(path: Path, size=(1600, 900), color=(200, 30, 30), fmt=None) -> Path:
    """Write a solid-color image to ``path`` and return the path."""
    mode = 'RGBA' if fmt == 'PNG' else 'RGB'
    fill = (*color, 255) if mode == 'RGBA' else color
    Image.new(mode, size, color=fill).save(path, fmt)
    return path


@pytest.fixture
def make_image():
    """Factory writing solid-color test images."""
    return _make_image


@pytest.fixture
def upload_root(tmp_path):
    """Directory derivatives are written under."""
    return tmp_path / "storage"


@pytest.fixture
def config(upload_root):
    """Uploader policy with the three stock sizes."""
    return UploaderConfig(
        upload_root=str(upload_root),
        min_dimensions=MinDimensions(width=800, height=450),
        sizes=(
            SizeSpec(label='thumbnail', width=400, height=300, crop=True),
            SizeSpec(label='medium', width=800, height=600),
            SizeSpec(label='large', width=1600, height=900),
        ),
    )


@pytest.fixture
def context():
    """Listing entity used for naming."""
    return UploadContext(id_property=12, id_building=3, id_room=5)


@pytest.fixture
def uploads_dir(tmp_path):
    """Directory holding the uploaded temp files."""
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def jpeg_upload(uploads_dir):
    """A valid 1600x900 JPEG upload."""
    path = _make_image(uploads_dir / "living-room.jpg")
    return InputFile(name="living-room.jpg", tmp_path=path, mime_type="image/jpeg")


@pytest.fixture
def corrupt_upload(uploads_dir):
    """An upload that is not an image at all."""
    path = uploads_dir / "broken.jpg"
    path.write_bytes(b"this is not an image")
    return InputFile(name="broken.jpg", tmp_path=path, mime_type="image/jpeg")
