"""Tests for cli.py module.

Tests the process, sizes and init commands end to end.
"""

import json
import pytest

from typer.testing import CliRunner

from listing_images.cli import app, expand_paths
from listing_images.config import write_default_config


runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Starter config whose upload root lives under tmp_path."""
    return write_default_config(tmp_path / "listing-images.json")


@pytest.fixture
def photos(tmp_path, make_image):
    """Folder with two photos and a text file."""
    folder = tmp_path / "photos"
    folder.mkdir()
    make_image(folder / "b-kitchen.jpg", size=(1200, 800))
    make_image(folder / "a-bedroom.png", size=(1000, 1000), fmt="PNG")
    (folder / "notes.txt").write_text("not an image")
    return folder


class TestExpandPaths:
    """Tests for expand_paths function."""

    def test_expands_folders_to_images(self, photos):
        """Folders expand to their supported images, sorted by name."""
        result = expand_paths([photos])

        assert [p.name for p in result] == ["a-bedroom.png", "b-kitchen.jpg"]

    def test_keeps_explicit_files(self, tmp_path):
        """Explicit file paths are passed through untouched."""
        path = tmp_path / "whatever.txt"

        assert expand_paths([path]) == [path]


class TestProcessCommand:
    """Tests for the process command."""

    def test_processes_folder(self, config_file, photos, tmp_path):
        """Writes all derivatives and exits 0."""
        result = runner.invoke(app, [
            "process", str(photos),
            "--property", "12", "--building", "3", "--room", "5",
            "--config", str(config_file),
        ])

        assert result.exit_code == 0, result.output
        output_dir = tmp_path / "storage" / "property" / "property" / "12"
        assert sorted(p.name for p in output_dir.iterdir()) == sorted([
            "P12_B3_R5_width-1600_height-900_1.png",
            "P12_B3_R5_width-1600_height-900_2.jpg",
            "P12_B3_R5_width-400_height-300_1.png",
            "P12_B3_R5_width-400_height-300_2.jpg",
            "P12_B3_R5_width-800_height-600_1.png",
            "P12_B3_R5_width-800_height-600_2.jpg",
        ])

    def test_json_output(self, config_file, photos):
        """--output-format json prints one entry per file."""
        result = runner.invoke(app, [
            "process", str(photos / "b-kitchen.jpg"),
            "--property", "12", "--feature", "7",
            "--description", "Open kitchen",
            "--config", str(config_file),
            "--output-format", "json",
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert len(data) == 1
        assert data[0]["success"] is True
        assert data[0]["metadata"] == {"description": "Open kitchen"}
        assert "_F7_" in data[0]["generated_files"][0]["path"]

    def test_failed_file_exits_1(self, config_file, tmp_path):
        """Any failed file gives exit code 1."""
        broken = tmp_path / "broken.jpg"
        broken.write_bytes(b"nope")

        result = runner.invoke(app, [
            "process", str(broken), "--property", "12", "--config", str(config_file),
        ])

        assert result.exit_code == 1

    def test_missing_file_is_reported_not_fatal(self, config_file, photos, tmp_path):
        """A missing path fails on its own; other files are still processed."""
        result = runner.invoke(app, [
            "process", str(tmp_path / "missing.jpg"), str(photos / "b-kitchen.jpg"),
            "--property", "12", "--config", str(config_file),
            "--output-format", "json",
        ])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert [entry["success"] for entry in data] == [False, True]

    def test_bad_config_exits_1(self, tmp_path, photos):
        """Config errors exit 1 before processing."""
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"upload_root": "out", "sizes": []}))

        result = runner.invoke(app, [
            "process", str(photos), "--property", "12", "--config", str(bad),
        ])

        assert result.exit_code == 1
        assert not (tmp_path / "out").exists()


class TestSizesCommand:
    """Tests for the sizes command."""

    def test_lists_sizes(self, config_file):
        """Prints every configured label."""
        result = runner.invoke(app, ["sizes", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        for label in ("thumbnail", "medium", "large"):
            assert label in result.output


class TestInitCommand:
    """Tests for the init command."""

    def test_writes_config(self, tmp_path):
        """Creates the starter config at the given path."""
        target = tmp_path / "conf" / "config.json"

        result = runner.invoke(app, ["init", str(target)])

        assert result.exit_code == 0, result.output
        assert json.loads(target.read_text())["sizes"][0]["label"] == "thumbnail"

    def test_refuses_existing(self, config_file):
        """Existing configs need --force."""
        result = runner.invoke(app, ["init", str(config_file)])
        assert result.exit_code == 1

        result = runner.invoke(app, ["init", str(config_file), "--force"])
        assert result.exit_code == 0
