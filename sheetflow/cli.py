"""Typer based command line entry points for SheetFlow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from sheetflow.config import TransformOptions, load_render_job
from sheetflow.core.errors import ConfigurationError, SheetFlowError
from sheetflow.core.logger import get_logger
from sheetflow.services.render import RenderResult, render_template, run_job
from sheetflow_io.data_reader import DOCUMENT_SUFFIXES, load_data_source

app = typer.Typer(help="Render marked-up Excel templates into reports.")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    logger = get_logger()

    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")

    logging.getLogger().setLevel(level_value)
    logger.setLevel(level_value)


def _merge_data_files(paths: List[Path]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for path in paths:
        payload = load_data_source(path)
        if path.suffix.lower() in DOCUMENT_SUFFIXES:
            if not isinstance(payload, dict):
                raise typer.BadParameter(f"Data document must be a mapping: {path}")
            merged.update(payload)
        else:
            merged[path.stem] = payload
    return merged


def _report(result: RenderResult) -> None:
    for area in result.areas:
        typer.echo(f"{area.sheet}!R{area.row}C{area.col}: {area.width}x{area.height}")
    typer.secho(f"Written {result.output_path}", fg=typer.colors.GREEN)


@app.command("render")
def render(
    job_file: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="Render job YAML"),
) -> None:
    """Run a render job described by a YAML file."""

    logger = get_logger()
    try:
        job = load_render_job(job_file)
        result = run_job(job)
    except ConfigurationError as exc:
        logger.error("render config_error file=%s: %s", job_file, exc, exc_info=True)
        typer.secho(f"Invalid render job: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    except (SheetFlowError, FileNotFoundError, ValueError) as exc:
        logger.error("render failed file=%s", job_file, exc_info=True)
        typer.secho(f"Render failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    _report(result)


@app.command("render-template")
def render_template_command(
    template: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="Template workbook"),
    output: Path = typer.Argument(..., dir_okay=False, resolve_path=True, help="Output workbook path"),
    data: Optional[List[Path]] = typer.Option(
        None,
        "--data",
        "-d",
        exists=True,
        dir_okay=False,
        help="YAML/JSON mapping merged into the context, or a table bound under its file stem.",
    ),
    ignore_row_props: bool = typer.Option(False, "--ignore-row-props", help="Do not copy row heights."),
    ignore_column_props: bool = typer.Option(False, "--ignore-column-props", help="Do not copy column widths."),
) -> None:
    """Render TEMPLATE into OUTPUT using the given data files."""

    logger = get_logger()
    options = TransformOptions(ignore_row_props=ignore_row_props, ignore_column_props=ignore_column_props)
    try:
        context_data = _merge_data_files(list(data or []))
        result = render_template(template, output, context_data, options)
    except (SheetFlowError, FileNotFoundError, ValueError) as exc:
        logger.error("render-template failed template=%s", template, exc_info=True)
        typer.secho(f"Render failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    _report(result)


if __name__ == "__main__":
    app()
