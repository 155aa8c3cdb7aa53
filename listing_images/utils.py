"""Utility functions for the listing image uploader.

Provides console output helpers, result formatting and local-file
helpers used by the CLI.
"""

import json
import mimetypes
from pathlib import Path
from typing import Any

from rich.console import Console

from .models import FileResult, InputFile, UploadStatus


console = Console()

SUPPORTED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}


def result_to_dict(result: FileResult) -> dict[str, Any]:
    """Convert a FileResult into JSON-serializable data."""
    return {
        "original_name": result.original_name,
        "success": result.success,
        "messages": list(result.messages),
        "generated_files": [
            {
                "label": record.label,
                "path": str(record.path),
                "width": record.width,
                "height": record.height,
            }
            for record in result.generated_files
        ],
        "metadata": dict(result.metadata),
    }


def format_plain(results: list[FileResult]) -> str:
    """Format results as one derivative path per line.

    Args:
        results: Batch results

    Returns:
        Newline-separated paths of every written derivative
    """
    return '\n'.join(
        str(record.path) for r in results for record in r.generated_files
    )


def format_json(results: list[FileResult]) -> str:
    """Format results as a JSON array.

    Args:
        results: Batch results

    Returns:
        Indented JSON document
    """
    return json.dumps([result_to_dict(r) for r in results], indent=2, default=str)


def format_output(results: list[FileResult], format_type: str) -> str:
    """Format batch results based on output format setting.

    Args:
        results: Batch results
        format_type: Output format (plain, json)

    Returns:
        Formatted output string
    """
    formatters = {
        'plain': format_plain,
        'json': format_json,
    }

    formatter = formatters.get(format_type, format_plain)
    return formatter(results)


def format_file_size(size_bytes: float) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB")
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def print_success(message: str) -> None:
    """Print a success message with checkmark."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message with X mark."""
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message with exclamation mark."""
    console.print(f"[yellow]![/yellow] {message}")


def is_supported_image(path: Path) -> bool:
    """Check if file has an extension the uploader can decode.

    Args:
        path: Path to file

    Returns:
        True if supported image format
    """
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def input_file_from_path(path: Path, metadata: dict[str, Any] | None = None) -> InputFile:
    """Describe a local file the way the transport layer describes uploads.

    Missing files are reported with the NO_FILE status so they fail like a
    broken upload instead of aborting the batch.
    """
    exists = path.is_file()
    mime_type, _ = mimetypes.guess_type(path.name)

    return InputFile(
        name=path.name,
        tmp_path=path,
        mime_type=mime_type,
        size=path.stat().st_size if exists else 0,
        error=UploadStatus.OK if exists else UploadStatus.NO_FILE,
        metadata=dict(metadata or {}),
    )
