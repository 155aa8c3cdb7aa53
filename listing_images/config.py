"""Configuration management for the listing image uploader.

Handles locating and loading the JSON policy file, turning it into an
UploaderConfig, and writing a starter configuration.
"""

import json
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .models import (
    DEFAULT_FEATURE_SEGMENT_PATTERN,
    DEFAULT_FILE_PATTERN,
    DEFAULT_DIRECTORY_PATTERN,
    DEFAULT_MAX_SIZES,
    DEFAULT_QUALITY,
    MinDimensions,
    NamingConfig,
    SizeSpec,
    UploaderConfig,
)

__all__ = [
    "ConfigError",
    "get_config_dir",
    "find_config_file",
    "load_config",
    "config_from_dict",
    "default_config_data",
    "write_default_config",
]

CONFIG_FILENAME = "config.json"
LOCAL_CONFIG_FILENAME = "listing-images.json"


def get_config_dir() -> Path:
    """Get the user config directory (~/.config/listing-images/)."""
    return Path.home() / ".config" / "listing-images"


def find_config_file(config_path: Path | None = None) -> Path:
    """Locate the configuration file.

    Searches in the following order:
    1. Explicit path if provided
    2. ~/.config/listing-images/config.json
    3. ./listing-images.json (current directory)

    Args:
        config_path: Optional explicit path to the config file

    Returns:
        Path of the config file to load

    Raises:
        ConfigError: If no config file exists
    """
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(
                f"Config file not found at {config_path}. "
                "Run 'listing-images init' to create one."
            )
        return config_path

    user_path = get_config_dir() / CONFIG_FILENAME
    local_path = Path(LOCAL_CONFIG_FILENAME)

    if user_path.exists():
        return user_path
    if local_path.exists():
        return local_path

    raise ConfigError(
        f"Config file not found at {user_path} or ./{LOCAL_CONFIG_FILENAME}. "
        "Run 'listing-images init' to create one."
    )


def load_config(config_path: Path | None = None) -> UploaderConfig:
    """Load and validate the uploader configuration.

    A relative upload_root is resolved against the directory containing
    the config file.

    Args:
        config_path: Optional explicit path to the config file

    Returns:
        Validated UploaderConfig

    Raises:
        ConfigError: If the file is missing, not valid JSON, or invalid
    """
    found_path = find_config_file(config_path)

    try:
        with open(found_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {found_path}: {e}")

    return config_from_dict(data, base_dir=found_path.absolute().parent)


def config_from_dict(data: Any, base_dir: Path | None = None) -> UploaderConfig:
    """Build an UploaderConfig from its JSON representation.

    Args:
        data: Mapping with upload_root, max_sizes, min_dimensions, naming, sizes
        base_dir: Directory a relative upload_root is resolved against

    Returns:
        Validated UploaderConfig

    Raises:
        ConfigError: If the mapping has the wrong shape or fails validation
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object.")

    sizes_data = data.get("sizes")
    if sizes_data is not None and not isinstance(sizes_data, list):
        raise ConfigError("Configuration must contain a sizes array.")

    sizes = tuple(_size_from_dict(entry) for entry in sizes_data or [])

    upload_root = data.get("upload_root")
    if upload_root and base_dir is not None:
        root_path = Path(upload_root).expanduser()
        if not root_path.is_absolute():
            root_path = (base_dir / root_path).absolute()
        upload_root = str(root_path)

    try:
        max_sizes = int(data.get("max_sizes", DEFAULT_MAX_SIZES))
    except (TypeError, ValueError):
        raise ConfigError("max_sizes must be an integer.")

    return UploaderConfig(
        upload_root=upload_root or "",
        sizes=sizes,
        max_sizes=max_sizes,
        min_dimensions=_min_dimensions_from_dict(data.get("min_dimensions")),
        naming=_naming_from_dict(data.get("naming")),
    )


def _size_from_dict(entry: Any) -> SizeSpec:
    if not isinstance(entry, dict):
        raise ConfigError(f"Size entries must be objects, got: {entry!r}")

    try:
        return SizeSpec(
            width=int(entry["width"]),
            height=int(entry["height"]),
            crop=bool(entry.get("crop", False)),
            label=entry.get("label"),
            quality=int(entry.get("quality", DEFAULT_QUALITY)),
            format=entry.get("format"),
        )
    except KeyError as e:
        raise ConfigError(f"Size entry is missing {e.args[0]}: {entry!r}")
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid size entry {entry!r}: {e}")


def _min_dimensions_from_dict(entry: Any) -> MinDimensions | None:
    if not entry:
        return None
    if not isinstance(entry, dict):
        raise ConfigError("min_dimensions must be an object with width/height.")

    return MinDimensions(width=entry.get("width"), height=entry.get("height"))


def _naming_from_dict(entry: Any) -> NamingConfig:
    if not entry:
        return NamingConfig()
    if not isinstance(entry, dict):
        raise ConfigError("naming must be an object.")

    return NamingConfig(
        directory_pattern=entry.get("directory_pattern", DEFAULT_DIRECTORY_PATTERN),
        file_pattern=entry.get("file_pattern", DEFAULT_FILE_PATTERN),
        feature_segment_pattern=entry.get(
            "feature_segment_format", DEFAULT_FEATURE_SEGMENT_PATTERN
        ),
    )


def default_config_data() -> dict[str, Any]:
    """Return the stock uploader policy in its JSON representation."""
    return {
        "upload_root": "storage/property",
        "max_sizes": DEFAULT_MAX_SIZES,
        "min_dimensions": {
            "width": 800,
            "height": 450,
        },
        "naming": {
            "directory_pattern": DEFAULT_DIRECTORY_PATTERN,
            "file_pattern": DEFAULT_FILE_PATTERN,
            "feature_segment_format": DEFAULT_FEATURE_SEGMENT_PATTERN,
        },
        "sizes": [
            {"label": "thumbnail", "width": 400, "height": 300, "crop": True},
            {"label": "medium", "width": 800, "height": 600, "crop": False},
            {"label": "large", "width": 1600, "height": 900, "crop": False},
        ],
    }


def write_default_config(path: Path, force: bool = False) -> Path:
    """Write the stock policy to ``path``.

    Args:
        path: Destination file
        force: Overwrite an existing file

    Returns:
        The path written

    Raises:
        ConfigError: If the file exists and force is False
    """
    if path.exists() and not force:
        raise ConfigError(f"{path} already exists. Use --force to overwrite it.")

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(default_config_data(), f, indent=2)
        f.write("\n")

    return path
