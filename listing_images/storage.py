"""Storage path utilities for the listing image uploader.

Handles token substitution in naming templates, output extension
detection, the optional feature segment, target path building and
output directory creation.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

from .errors import DirectoryError
from .models import SizeSpec, UploadContext, UploaderConfig

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{([a-z0-9_]+)\}", re.IGNORECASE)

DEFAULT_EXTENSION = "jpg"
DIRECTORY_MODE = 0o775


def replace_tokens(pattern: str, data: Mapping[str, Any]) -> str:
    """Substitute ``{token}`` placeholders with values from ``data``.

    Token names match keys case-insensitively. Unknown tokens and None
    values become the empty string. Substituted values are not scanned
    again.

    Args:
        pattern: Template such as ``property/{id_property}``
        data: Token values

    Returns:
        Resolved string
    """
    values = {str(key).lower(): value for key, value in data.items()}

    def substitute(match: re.Match) -> str:
        value = values.get(match.group(1).lower())
        return "" if value is None else str(value)

    return TOKEN_PATTERN.sub(substitute, pattern)


def detect_extension(original_name: str | None, size: SizeSpec) -> str:
    """Pick the derivative extension.

    Uses the original file's extension if it has one, else the size's
    format override, else ``jpg``. Always lower-case.
    """
    extension = Path(original_name or "").suffix.lstrip(".")

    if not extension:
        extension = size.format or DEFAULT_EXTENSION

    return extension.lower()


def build_feature_segment(config: UploaderConfig, feature_id: Any) -> str:
    """Filename fragment for uploads tied to a property feature.

    Returns:
        Empty string when ``feature_id`` is falsy, otherwise the resolved
        feature segment pattern (e.g. ``_F7``)
    """
    if not feature_id:
        return ""

    return replace_tokens(
        config.naming.feature_segment_pattern, {"id_feature": feature_id}
    )


def build_target_path(
    config: UploaderConfig,
    size: SizeSpec,
    context: UploadContext,
    sequence_index: int,
    original_name: str | None,
) -> Path:
    """Build the full output path for one derivative.

    Example: storage/property/12/P12_B3_R5_width-400_height-300_1.jpg

    Args:
        config: Uploader policy
        size: Size variant being written
        context: Listing entity the upload belongs to
        sequence_index: Zero-based position of the file in its batch
        original_name: Client-side filename, used for the extension

    Returns:
        upload_root / resolved directory / resolved filename
    """
    tokens = context.tokens()
    directory = replace_tokens(config.naming.directory_pattern, tokens)

    file_tokens = dict(tokens)
    file_tokens.update(
        width=size.width,
        height=size.height,
        index=sequence_index + 1,
        extension=detect_extension(original_name, size),
        feature_segment=build_feature_segment(config, context.id_feature),
    )
    filename = replace_tokens(config.naming.file_pattern, file_tokens)

    root = config.upload_root.rstrip("/")
    return Path(f"{root}/{directory.strip('/')}/{filename}")


def ensure_directory(directory: Path) -> None:
    """Create ``directory`` and its parents if they don't exist.

    Raises:
        DirectoryError: If the directory cannot be created
    """
    if directory.is_dir():
        return

    try:
        os.makedirs(directory, mode=DIRECTORY_MODE, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Unable to create directory {directory}: {e}") from e

    logger.debug("Created directory %s", directory)
