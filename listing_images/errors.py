"""Error types for the listing image uploader.

ConfigError is raised while building the configuration and is the only
error that leaves the batch processor. Everything else is raised per file
(or per size) and turned into a failed FileResult at the file boundary.
"""


class ListingImageError(Exception):
    """Base class for uploader errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(ListingImageError):
    """Raised when configuration is invalid or missing."""
    pass


class UploadError(ListingImageError):
    """The transport layer reported a failed or suspicious upload."""
    pass


class InvalidImageError(ListingImageError):
    """The uploaded file could not be decoded as an image."""
    pass


class UnsupportedFormatError(ListingImageError):
    """The image format cannot be decoded or encoded on this runtime."""
    pass


class InvalidGeometryError(ListingImageError):
    """Source or target dimensions are not usable for resizing."""
    pass


class DirectoryError(ListingImageError):
    """An output directory could not be created."""
    pass
