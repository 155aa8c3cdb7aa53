"""Batch processing of uploaded listing images.

Validates each uploaded file, decodes it, writes one derivative per
configured size and reports a FileResult per file. A failure only ever
affects the file it happened in.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from .errors import ListingImageError, UploadError
from .models import (
    DerivativeRecord,
    FileResult,
    InputFile,
    UploadContext,
    UploadStatus,
    UploaderConfig,
)
from .process import apply_client_crop, decode_image, encode_image, render_derivative
from .storage import build_target_path, ensure_directory

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, FileResult], None]

CANCELLED_MESSAGE = "Processing cancelled before this file was started."


def guard_uploaded_file(file: InputFile) -> None:
    """Check the transport status and that the upload exists on disk.

    Raises:
        UploadError: If the upload failed or its temp file is not a regular file
    """
    code = UploadStatus.NO_FILE if file.error is None else int(file.error)

    if code != UploadStatus.OK:
        try:
            reason = UploadStatus(code).description
        except ValueError:
            reason = "unknown error"
        raise UploadError(f"Upload failed for {file.name} (error code {code}: {reason}).")

    if not file.tmp_path or not Path(file.tmp_path).is_file():
        raise UploadError("Potential file upload attack detected.")


def check_minimum_dimensions(
    config: UploaderConfig,
    width: int,
    height: int,
    messages: list[str],
) -> None:
    """Append a notice if the source is below the recommended minimum size."""
    if config.min_dimensions is None:
        return

    min_width = config.min_dimensions.width
    min_height = config.min_dimensions.height

    if (min_width and width < min_width) or (min_height and height < min_height):
        messages.append(
            "Notice: source image is smaller than the recommended minimum "
            f"({min_width or width}x{min_height or height})."
        )


def generate_derivatives(
    config: UploaderConfig,
    image: Image.Image,
    file: InputFile,
    context: UploadContext,
    sequence_index: int,
    generated: list[DerivativeRecord],
) -> None:
    """Write one derivative per configured size, in config order.

    Records are appended to ``generated`` as each file is written, so a
    failure part way through leaves the earlier records in place.

    Args:
        config: Uploader policy
        image: Decoded (and possibly client-cropped) source
        file: The upload being processed
        context: Listing entity for path tokens
        sequence_index: Position of the file in its batch
        generated: List that receives the DerivativeRecords
    """
    source = image if image.mode == "RGBA" else image.convert("RGBA")

    try:
        for position, size in enumerate(config.sizes):
            target_path = build_target_path(config, size, context, sequence_index, file.name)

            derivative = render_derivative(source, size)
            try:
                ensure_directory(target_path.parent)
                encode_image(derivative, target_path, size.quality)
            finally:
                derivative.close()

            generated.append(DerivativeRecord(
                label=size.resolved_label(position),
                path=target_path,
                width=size.width,
                height=size.height,
            ))
    finally:
        if source is not image:
            source.close()


def process_file(
    config: UploaderConfig,
    file: InputFile,
    context: UploadContext,
    sequence_index: int,
) -> FileResult:
    """Validate, decode and resize a single uploaded file.

    Never raises: every error ends up as a message on a failed result.

    Args:
        config: Uploader policy
        file: The upload to process
        context: Listing entity for path tokens and metadata
        sequence_index: Position of the file in its batch (``{index}`` - 1)

    Returns:
        FileResult for this file
    """
    result = FileResult(
        original_name=file.name,
        metadata={**context.metadata, **file.metadata},
    )

    try:
        guard_uploaded_file(file)

        with decode_image(Path(file.tmp_path)) as image:
            result.source_dimensions = image.size
            check_minimum_dimensions(config, image.width, image.height, result.messages)

            source = apply_client_crop(image, file.crop) if file.crop else image
            try:
                generate_derivatives(
                    config, source, file, context, sequence_index, result.generated_files
                )
            finally:
                if source is not image:
                    source.close()

        result.success = True
        logger.info(
            "Processed %s: %d derivatives written", file.name, len(result.generated_files)
        )

    except ListingImageError as e:
        result.messages.append(e.message)
        logger.warning("Failed to process %s: %s", file.name, e.message)
    except (OSError, ValueError) as e:
        result.messages.append(f"Failed to process {file.name}: {e}")
        logger.warning("Failed to process %s: %s", file.name, e)
    except Exception as e:
        result.messages.append(f"Failed to process {file.name}: {e}")
        logger.exception("Unexpected error while processing %s", file.name)

    return result


def process_batch(
    config: UploaderConfig,
    files: list[InputFile],
    context: UploadContext,
    progress_callback: Optional[ProgressCallback] = None,
    *,
    sequence_start: int = 0,
    should_cancel: Optional[Callable[[], bool]] = None,
    max_workers: int = 1,
) -> list[FileResult]:
    """Process a batch of uploaded images.

    Returns one FileResult per input file, in input order. The progress
    callback is called as ``progress_callback(processed, total, result)``
    exactly once per file, in input order, after that file is finalized.
    Exceptions raised by the callback are logged and do not stop the batch.

    Args:
        config: Uploader policy
        files: Uploaded files, already normalized to a flat list
        context: Listing entity shared by every file in the batch
        progress_callback: Optional observer
        sequence_start: Offset added to each file's position for ``{index}``
        should_cancel: Checked before each file starts; once it returns
            True the remaining files are reported as cancelled
        max_workers: Files processed concurrently (1 = sequential)

    Returns:
        List of FileResult, same length and order as ``files``
    """
    total = len(files)
    results: list[FileResult] = []
    cancelled = threading.Event()

    def run(position: int, file: InputFile) -> FileResult:
        if cancelled.is_set() or (should_cancel is not None and should_cancel()):
            cancelled.set()
            return FileResult(
                original_name=file.name,
                messages=[CANCELLED_MESSAGE],
                metadata={**context.metadata, **file.metadata},
            )
        return process_file(config, file, context, sequence_start + position)

    def finish(result: FileResult) -> None:
        results.append(result)
        if progress_callback is not None:
            try:
                progress_callback(len(results), total, result)
            except Exception:
                logger.exception("Progress callback failed for %s", result.original_name)

    if max_workers <= 1:
        for position, file in enumerate(files):
            finish(run(position, file))
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(run, position, file)
                for position, file in enumerate(files)
            ]
            for future in futures:
                finish(future.result())

    logger.info(
        "Batch finished: %d of %d files succeeded",
        sum(1 for r in results if r.success), total,
    )
    return results
