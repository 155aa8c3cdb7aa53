"""CLI interface for the listing image uploader using Typer.

Runs the batch resize pipeline on local files, shows progress with Rich
and prints per-file results.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from .config import ConfigError, get_config_dir, load_config, write_default_config
from .models import FileResult, UploadContext
from .upload import process_batch
from .utils import (
    console,
    format_file_size,
    format_output,
    input_file_from_path,
    is_supported_image,
    print_error,
    print_success,
    print_warning,
)


def expand_paths(paths: list[Path]) -> list[Path]:
    """Expand paths, finding supported images inside directories.

    Args:
        paths: List of file or directory paths

    Returns:
        List of file paths (directories expanded to their images, sorted by name)
    """
    expanded = []

    for path in paths:
        if path.is_dir():
            found = [p for p in path.rglob("*") if p.is_file() and is_supported_image(p)]
            expanded.extend(sorted(found, key=lambda p: p.name.lower()))
        else:
            expanded.append(path)

    return expanded


def setup_logging(verbose: bool) -> None:
    """Route library logging through Rich when --verbose is given."""
    if not verbose:
        return

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


app = typer.Typer(
    name="listing-images",
    help="Resize uploaded listing photos into the configured derivative sizes",
    add_completion=False,
)


@app.command()
def process(
    files: list[Path] = typer.Argument(
        ...,
        help="Image files or folders to process",
    ),
    id_property: str = typer.Option(
        ...,
        "--property",
        "-p",
        help="Property id",
    ),
    id_building: Optional[str] = typer.Option(
        None,
        "--building",
        "-b",
        help="Building id",
    ),
    id_room: Optional[str] = typer.Option(
        None,
        "--room",
        "-r",
        help="Room id",
    ),
    id_feature: Optional[str] = typer.Option(
        None,
        "--feature",
        "-f",
        help="Feature id (adds the feature segment to filenames)",
    ),
    description: Optional[str] = typer.Option(None, "--description", help="Image description"),
    alt: Optional[str] = typer.Option(None, "--alt", help="Alt text"),
    title: Optional[str] = typer.Option(None, "--title", help="Image title"),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    start_index: int = typer.Option(
        0,
        "--start-index",
        help="Offset added to the {index} token",
        min=0,
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        help="Number of files processed in parallel",
        min=1,
    ),
    output_format: str = typer.Option(
        "table",
        "--output-format",
        "-o",
        help="Output format: table|plain|json",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Generate all configured derivative sizes for each image."""
    setup_logging(verbose)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)

    expanded_files = expand_paths(files)
    if not expanded_files:
        console.print("[yellow]No supported files found[/yellow]")
        raise typer.Exit(0)

    metadata = {
        key: value
        for key, value in (("description", description), ("alt", alt), ("title", title))
        if value is not None
    }
    context = UploadContext(
        id_property=id_property,
        id_building=id_building,
        id_room=id_room,
        id_feature=id_feature,
        metadata=metadata,
    )
    inputs = [input_file_from_path(path) for path in expanded_files]

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        disable=output_format != "table",
    ) as progress:

        task = progress.add_task("[cyan]Processing images...", total=len(inputs))

        def on_progress(processed: int, total: int, result: FileResult) -> None:
            progress.update(
                task,
                completed=processed,
                description=f"[cyan]Processed {result.original_name} ({processed}/{total})",
            )

        results = process_batch(
            config,
            inputs,
            context,
            on_progress,
            sequence_start=start_index,
            max_workers=workers,
        )

    if output_format == "table":
        print_results(results)
    else:
        console.print(
            format_output(results, output_format), markup=False, highlight=False, soft_wrap=True
        )

    failed = [r for r in results if not r.success]
    if failed:
        raise typer.Exit(1)


def print_results(results: list[FileResult]) -> None:
    """Print a summary table and per-file messages."""
    table = Table(title="Generated Derivatives")
    table.add_column("File", style="cyan")
    table.add_column("Size", style="dim")
    table.add_column("Dimensions", justify="right")
    table.add_column("Bytes", justify="right")
    table.add_column("Path")

    for result in results:
        for record in result.generated_files:
            file_size = (
                format_file_size(record.path.stat().st_size)
                if record.path.exists() else "-"
            )
            table.add_row(
                result.original_name or "",
                record.label,
                f"{record.width}x{record.height}",
                file_size,
                str(record.path),
            )

    if table.row_count:
        console.print(table)

    for result in results:
        notices = result.messages if result.success else result.messages[:-1]
        for message in notices:
            print_warning(f"{result.original_name}: {message}")
        if result.success:
            print_success(f"{result.original_name}: {len(result.generated_files)} files written")
        else:
            error = result.messages[-1] if result.messages else "unknown error"
            print_error(f"{result.original_name}: {error}")


@app.command()
def sizes(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
) -> None:
    """Show the configured derivative sizes."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)

    table = Table(title=f"Derivative Sizes ({config.upload_root})")
    table.add_column("#", style="dim")
    table.add_column("Label", style="cyan")
    table.add_column("Width", justify="right")
    table.add_column("Height", justify="right")
    table.add_column("Crop")
    table.add_column("Quality", justify="right")
    table.add_column("Format")

    for position, size in enumerate(config.sizes):
        table.add_row(
            str(position + 1),
            size.resolved_label(position),
            str(size.width),
            str(size.height),
            "yes" if size.crop else "no",
            str(size.quality),
            size.format or "-",
        )

    console.print(table)

    if config.min_dimensions is not None:
        console.print(
            f"\n[dim]Recommended minimum source size: "
            f"{config.min_dimensions.width or '-'}x{config.min_dimensions.height or '-'}[/dim]"
        )


@app.command()
def init(
    path: Optional[Path] = typer.Argument(
        None,
        help="Where to write the config (default: ~/.config/listing-images/config.json)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing config file",
    ),
) -> None:
    """Write a starter configuration file."""
    target = path or get_config_dir() / "config.json"

    try:
        written = write_default_config(target, force=force)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Config written to {written}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
