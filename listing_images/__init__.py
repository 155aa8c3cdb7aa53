"""Listing Images - resize uploaded real-estate photos into derivative sizes.

Validates uploaded images for a property, building, room or feature and
writes a fixed set of resized/cropped derivatives under template-driven
paths, reporting per-file results and progress.
"""

__version__ = "0.1.0"

from .errors import (
    ConfigError,
    DirectoryError,
    InvalidGeometryError,
    InvalidImageError,
    ListingImageError,
    UnsupportedFormatError,
    UploadError,
)
from .models import (
    CropBox,
    DerivativeRecord,
    FileResult,
    InputFile,
    MinDimensions,
    NamingConfig,
    SizeSpec,
    UploadContext,
    UploaderConfig,
    UploadStatus,
)
from .upload import process_batch

__all__ = [
    "__version__",
    "process_batch",
    "UploaderConfig",
    "SizeSpec",
    "MinDimensions",
    "NamingConfig",
    "UploadContext",
    "InputFile",
    "CropBox",
    "UploadStatus",
    "DerivativeRecord",
    "FileResult",
    "ListingImageError",
    "ConfigError",
    "UploadError",
    "InvalidImageError",
    "UnsupportedFormatError",
    "InvalidGeometryError",
    "DirectoryError",
]
