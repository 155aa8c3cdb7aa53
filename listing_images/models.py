"""Data models for the listing image uploader.

Contains the immutable uploader policy, the upload context and input files
handed over by the transport layer, and the per-file result records.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigError


DEFAULT_QUALITY = 85
DEFAULT_MAX_SIZES = 10

DEFAULT_DIRECTORY_PATTERN = "property/{id_property}"
DEFAULT_FILE_PATTERN = (
    "P{id_property}_B{id_building}_R{id_room}{feature_segment}"
    "_width-{width}_height-{height}_{index}.{extension}"
)
DEFAULT_FEATURE_SEGMENT_PATTERN = "_F{id_feature}"


class UploadStatus(IntEnum):
    """Transport status codes reported for each uploaded file."""
    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]


_STATUS_DESCRIPTIONS = {
    UploadStatus.OK: "upload completed",
    UploadStatus.INI_SIZE: "file exceeds the server size limit",
    UploadStatus.FORM_SIZE: "file exceeds the form size limit",
    UploadStatus.PARTIAL: "file was only partially uploaded",
    UploadStatus.NO_FILE: "no file was uploaded",
    UploadStatus.NO_TMP_DIR: "temporary folder is missing",
    UploadStatus.CANT_WRITE: "failed to write file to disk",
    UploadStatus.EXTENSION: "upload stopped by an extension",
}


@dataclass(frozen=True)
class SizeSpec:
    """One derivative size variant.

    Attributes:
        width: Target width in pixels
        height: Target height in pixels
        crop: Crop the source to the target ratio instead of stretching it
        label: Name of the variant (defaults to size_<ordinal>)
        quality: Encoder quality 0-100
        format: Extension used when the original file has none
    """
    width: int
    height: int
    crop: bool = False
    label: Optional[str] = None
    quality: int = DEFAULT_QUALITY
    format: Optional[str] = None

    def resolved_label(self, position: int) -> str:
        """Label for the size at zero-based ``position`` in the config."""
        return self.label or f"size_{position + 1}"


@dataclass(frozen=True)
class MinDimensions:
    """Recommended minimum source size. Either side may be left unset."""
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class NamingConfig:
    """Token templates used to build derivative paths."""
    directory_pattern: str = DEFAULT_DIRECTORY_PATTERN
    file_pattern: str = DEFAULT_FILE_PATTERN
    feature_segment_pattern: str = DEFAULT_FEATURE_SEGMENT_PATTERN


@dataclass(frozen=True)
class UploaderConfig:
    """Static uploader policy, validated on construction.

    Attributes:
        upload_root: Directory all derivatives are written under
        sizes: Ordered size variants to generate for each upload
        max_sizes: Upper bound on the number of size variants
        min_dimensions: Recommended minimum source size (advisory)
        naming: Directory and filename templates
    """
    upload_root: str
    sizes: tuple[SizeSpec, ...]
    max_sizes: int = DEFAULT_MAX_SIZES
    min_dimensions: Optional[MinDimensions] = None
    naming: NamingConfig = field(default_factory=NamingConfig)

    def __post_init__(self):
        if not self.sizes:
            raise ConfigError("Configuration must contain a sizes array.")
        object.__setattr__(self, "sizes", tuple(self.sizes))

        if len(self.sizes) > self.max_sizes:
            raise ConfigError(
                "Configuration defines more than the allowed number of sizes."
            )

        if not self.upload_root:
            raise ConfigError("Configuration must define an upload_root.")


@dataclass
class UploadContext:
    """Listing entity the uploaded images belong to.

    The id fields and ``extra`` feed the naming templates. ``metadata``
    (description, alt, title, ...) is copied into each result untouched.
    """
    id_property: Any = None
    id_building: Any = None
    id_room: Any = None
    id_feature: Any = None
    extra: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def tokens(self) -> dict[str, Any]:
        """Values available to the naming templates."""
        tokens = dict(self.extra)
        tokens.update(
            id_property=self.id_property,
            id_building=self.id_building,
            id_room=self.id_room,
            id_feature=self.id_feature,
        )
        return tokens


@dataclass(frozen=True)
class CropBox:
    """Crop rectangle chosen in the browser, in source pixels."""
    x: int
    y: int
    width: int
    height: int


@dataclass
class InputFile:
    """One uploaded file as handed over by the transport layer.

    Attributes:
        name: Original client-side filename
        tmp_path: Location of the uploaded bytes on disk
        mime_type: MIME type announced by the client
        size: Declared size in bytes
        error: Transport status code
        crop: Optional client-side crop rectangle
        metadata: Per-file description/alt/title
    """
    name: str
    tmp_path: Path
    mime_type: Optional[str] = None
    size: int = 0
    error: int = UploadStatus.OK
    crop: Optional[CropBox] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DerivativeRecord:
    """A derivative written to disk for one size variant."""
    label: str
    path: Path
    width: int
    height: int


@dataclass
class FileResult:
    """Outcome of processing one uploaded file.

    Attributes:
        original_name: Client-side filename
        success: True if every size variant was written
        messages: Notices followed by the terminal error, if any
        generated_files: Derivatives written, in size order
        metadata: Context metadata merged with the file's own metadata
        source_dimensions: Decoded (width, height), if decoding got that far
    """
    original_name: Optional[str]
    success: bool = False
    messages: list[str] = field(default_factory=list)
    generated_files: list[DerivativeRecord] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_dimensions: Optional[tuple[int, int]] = None
