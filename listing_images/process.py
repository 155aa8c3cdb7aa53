"""Image processing for the listing image uploader.

Handles decoding uploads, crop-aware resize geometry, rendering a
derivative onto its canvas, and encoding derivatives by output extension.
"""

import logging
import math
from enum import Enum
from pathlib import Path

from PIL import Image, UnidentifiedImageError, features

from .errors import InvalidGeometryError, InvalidImageError, UnsupportedFormatError
from .models import CropBox, SizeSpec

logger = logging.getLogger(__name__)

# Pillow format names accepted as upload sources
DECODABLE_FORMATS = {"JPEG", "PNG", "GIF", "WEBP"}

# Canvas background: white, fully transparent
TRANSPARENT = (255, 255, 255, 0)

Region = tuple[int, int, int, int]


class OutputFormat(Enum):
    """Encoders selectable through the derivative's file extension."""
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"


def webp_supported() -> bool:
    """Check whether this Pillow build can read and write WebP."""
    return features.check("webp")


def decode_image(path: Path) -> Image.Image:
    """Open an uploaded file and decode its pixel data.

    The caller owns the returned image and must close it.

    Args:
        path: Location of the uploaded file

    Returns:
        Decoded PIL Image

    Raises:
        InvalidImageError: If the file is not a readable image
        UnsupportedFormatError: If the format is not JPEG, PNG, GIF or WebP,
            or WebP is not available on this runtime
    """
    try:
        image = Image.open(path)
    except UnidentifiedImageError as e:
        raise InvalidImageError("Uploaded file is not a valid image.") from e
    except (OSError, Image.DecompressionBombError) as e:
        raise InvalidImageError(f"Unable to read uploaded file: {e}") from e

    if image.format not in DECODABLE_FORMATS:
        image.close()
        raise UnsupportedFormatError("Unsupported image type.")

    if image.format == "WEBP" and not webp_supported():
        image.close()
        raise UnsupportedFormatError("WebP is not supported by this Pillow installation.")

    try:
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        image.close()
        raise InvalidImageError(f"Uploaded file is not a valid image: {e}") from e

    return image


def compute_region(
    source_width: int,
    source_height: int,
    target_width: int,
    target_height: int,
    crop: bool,
) -> Region:
    """Calculate the source rectangle that gets scaled onto the target canvas.

    Without crop the whole source is used and stretched to the target box,
    so the aspect ratio changes when the two ratios differ. With crop the
    largest centered rectangle with the target's aspect ratio is used.

    Args:
        source_width: Source image width
        source_height: Source image height
        target_width: Derivative width
        target_height: Derivative height
        crop: Crop the source to the target aspect ratio

    Returns:
        Source region as (x, y, width, height)

    Raises:
        InvalidGeometryError: If any dimension is not positive
    """
    if min(source_width, source_height, target_width, target_height) <= 0:
        raise InvalidGeometryError(
            f"Cannot resize {source_width}x{source_height} "
            f"to {target_width}x{target_height}."
        )

    if not crop:
        return (0, 0, source_width, source_height)

    source_ratio = source_width / source_height
    target_ratio = target_width / target_height

    if source_ratio > target_ratio:
        # Source is wider - keep full height, trim the sides
        region_width = int(source_height * target_ratio)
        x = int((source_width - region_width) / 2)
        return (x, 0, region_width, source_height)

    # Source is taller (or equal) - keep full width, trim top and bottom
    region_height = int(source_width / target_ratio)
    y = int((source_height - region_height) / 2)
    return (0, y, source_width, region_height)


def apply_client_crop(image: Image.Image, crop: CropBox) -> Image.Image:
    """Crop to the rectangle selected in the browser crop tool.

    Raises:
        InvalidGeometryError: If the box is empty or outside the image
    """
    width, height = image.size
    right = crop.x + crop.width
    bottom = crop.y + crop.height

    if (
        crop.width <= 0 or crop.height <= 0
        or crop.x < 0 or crop.y < 0
        or right > width or bottom > height
    ):
        raise InvalidGeometryError(
            f"Crop area {crop.width}x{crop.height}+{crop.x}+{crop.y} "
            f"does not fit the {width}x{height} image."
        )

    return image.crop((crop.x, crop.y, right, bottom))


def render_derivative(image: Image.Image, size: SizeSpec) -> Image.Image:
    """Scale the region chosen by compute_region onto a new canvas.

    The canvas is exactly size.width x size.height and starts fully
    transparent.

    Args:
        image: Decoded source image
        size: Size variant to render

    Returns:
        RGBA image of the target size
    """
    x, y, region_width, region_height = compute_region(
        image.width, image.height, size.width, size.height, size.crop
    )

    canvas = Image.new("RGBA", (size.width, size.height), TRANSPARENT)

    if region_width <= 0 or region_height <= 0:
        return canvas

    source = image if image.mode == "RGBA" else image.convert("RGBA")
    resized = source.resize(
        (size.width, size.height),
        Image.Resampling.LANCZOS,
        box=(x, y, x + region_width, y + region_height),
    )
    canvas.paste(resized, (0, 0))

    return canvas


def output_format_for(path: Path) -> OutputFormat:
    """Select the encoder from the output file's extension."""
    extension = path.suffix.lower().lstrip(".")

    if extension == "png":
        return OutputFormat.PNG
    elif extension == "gif":
        return OutputFormat.GIF
    elif extension == "webp":
        return OutputFormat.WEBP
    else:
        return OutputFormat.JPEG


def png_compression_level(quality: int) -> int:
    """Map quality 0-100 to a zlib compression level 0-9 (halves round up)."""
    level = math.floor((100 - quality) / 10 + 0.5)
    return max(0, min(9, level))


def flatten(image: Image.Image) -> Image.Image:
    """Composite transparent areas onto a white background."""
    if image.mode not in ("RGBA", "LA"):
        return image.convert("RGB")

    background = Image.new("RGB", image.size, (255, 255, 255))
    background.paste(image, mask=image.split()[-1])
    return background


def encode_image(image: Image.Image, path: Path, quality: int) -> OutputFormat:
    """Write a derivative, choosing the encoder from the path's extension.

    The source format of the upload plays no part: naming a size
    ``.png`` or ``.webp`` converts it.

    Args:
        image: Rendered derivative
        path: Destination file (overwritten if it exists)
        quality: Quality 0-100, ignored for GIF

    Returns:
        The output format used

    Raises:
        UnsupportedFormatError: If WebP output is requested but unavailable
    """
    output_format = output_format_for(path)

    if output_format is OutputFormat.PNG:
        image.save(path, format="PNG", compress_level=png_compression_level(quality))
    elif output_format is OutputFormat.GIF:
        indexed = flatten(image).convert("P", palette=Image.Palette.ADAPTIVE)
        indexed.save(path, format="GIF")
    elif output_format is OutputFormat.WEBP:
        if not webp_supported():
            raise UnsupportedFormatError(
                "WebP output is not supported by this Pillow installation."
            )
        image.save(path, format="WEBP", quality=quality)
    else:
        flatten(image).save(path, format="JPEG", quality=quality)

    logger.debug("Wrote %s (%s, quality %d)", path, output_format.value, quality)
    return output_format
