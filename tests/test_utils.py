"""Tests for utils.py module."""

import json
from pathlib import Path

from listing_images.models import DerivativeRecord, FileResult, UploadStatus
from listing_images.utils import (
    format_file_size,
    format_output,
    input_file_from_path,
    is_supported_image,
)


def sample_results():
    ok = FileResult(
        original_name="a.jpg",
        success=True,
        generated_files=[
            DerivativeRecord("thumbnail", Path("/srv/p/1.jpg"), 400, 300),
            DerivativeRecord("large", Path("/srv/p/2.jpg"), 1600, 900),
        ],
        metadata={"alt": "Hall"},
    )
    failed = FileResult(original_name="b.jpg", messages=["Unsupported image type."])
    return [ok, failed]


class TestFormatOutput:
    """Tests for format_output function."""

    def test_plain_lists_paths(self):
        """Plain output is one derivative path per line."""
        assert format_output(sample_results(), 'plain') == "/srv/p/1.jpg\n/srv/p/2.jpg"

    def test_json(self):
        """JSON output keeps every result, failed ones included."""
        data = json.loads(format_output(sample_results(), 'json'))

        assert [d["original_name"] for d in data] == ["a.jpg", "b.jpg"]
        assert data[0]["generated_files"][1] == {
            "label": "large", "path": "/srv/p/2.jpg", "width": 1600, "height": 900,
        }
        assert data[1]["messages"] == ["Unsupported image type."]

    def test_unknown_format_falls_back_to_plain(self):
        """Unknown formats use plain output."""
        assert format_output(sample_results(), 'xml') == format_output(sample_results(), 'plain')


class TestInputFileFromPath:
    """Tests for input_file_from_path function."""

    def test_existing_file(self, tmp_path):
        """Existing files are OK uploads with size and MIME type."""
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"1234")

        upload = input_file_from_path(path, {"title": "Porch"})

        assert upload.name == "photo.jpg"
        assert upload.size == 4
        assert upload.mime_type == "image/jpeg"
        assert upload.error == UploadStatus.OK
        assert upload.metadata == {"title": "Porch"}

    def test_missing_file(self, tmp_path):
        """Missing files carry the NO_FILE status."""
        upload = input_file_from_path(tmp_path / "gone.png")

        assert upload.error == UploadStatus.NO_FILE
        assert upload.size == 0


def test_format_file_size():
    """Sizes are scaled to readable units."""
    assert format_file_size(512) == "512.0 B"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(5 * 1024 * 1024) == "5.0 MB"


def test_is_supported_image():
    """Only decodable extensions are picked up from folders."""
    assert is_supported_image(Path("a.JPG"))
    assert is_supported_image(Path("a.webp"))
    assert not is_supported_image(Path("a.bmp"))
    assert not is_supported_image(Path("a.txt"))
