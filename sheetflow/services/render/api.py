"""Public API for rendering a marked-up template workbook."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict

from sheetflow.config import DataSource, RenderJob, TransformOptions
from sheetflow.core.common import Pos, Size
from sheetflow.core.context import Context
from sheetflow.services.transform.area_builder import build_areas
from sheetflow.services.transform.expression import ExpressionEvaluator
from sheetflow_io.data_reader import frame_to_records, load_data_source
from sheetflow_io.ingest import create_transformer, load_template

LOGGER = logging.getLogger(__name__)


class AreaResult(BaseModel):
    """Emitted size of one root area."""

    model_config = ConfigDict(frozen=True)

    sheet: str
    row: int
    col: int
    width: int
    height: int


class RenderResult(BaseModel):
    """Aggregated outcome returned to callers."""

    output_path: str
    areas: List[AreaResult]
    formula_cells: int


def _normalize(value: Any) -> Any:
    if isinstance(value, pd.DataFrame):
        return frame_to_records(value)
    return value


def build_context(data: Mapping[str, Any]) -> Context:
    """Create a rendering context, resolving file sources and DataFrames."""

    context = Context()
    for name, value in data.items():
        if isinstance(value, dict) and set(value) == {"source"}:
            source = value["source"]
            if not isinstance(source, DataSource):
                source = DataSource.model_validate(source)
            value = load_data_source(source.path, source.sheet, source.kind)
        context.put_var(name, _normalize(value))
    return context


def render_template(
    template_path: Path,
    output_path: Path,
    data: Mapping[str, Any] | Context,
    options: Optional[TransformOptions] = None,
    *,
    evaluator: Optional[ExpressionEvaluator] = None,
) -> RenderResult:
    """Expand every ``jx:area`` of the template in place and save the result.

    Args:
        template_path: Marked-up template workbook.
        output_path: Destination workbook path.
        data: Context variables, or a ready :class:`Context`.
        options: Transformer switches.
        evaluator: Optional evaluator with extra functions registered.

    Returns:
        RenderResult with the emitted size of each root area.
    """

    options = options or TransformOptions()
    context = data if isinstance(data, Context) else build_context(data)
    workbook = load_template(Path(template_path))
    transformer = create_transformer(
        workbook,
        evaluator=evaluator,
        ignore_row_props=options.ignore_row_props,
        ignore_column_props=options.ignore_column_props,
    )
    areas = build_areas(transformer)
    if not areas:
        LOGGER.warning("Template %s declares no jx:area; output equals the template", template_path)

    grid = transformer.workbook
    for cell in transformer.source_cells():
        if cell.comment and "jx:" in cell.comment:
            grid.remove_comment(cell.pos)

    if options.clear_template_cells:
        for area in areas:
            area.clear_cells()

    results: List[AreaResult] = []
    for area in areas:
        size: Size = area.apply_at(area.start, context)
        start: Pos = area.start
        LOGGER.info("Rendered area %s -> %dx%d", area.cell_range, size.width, size.height)
        results.append(
            AreaResult(sheet=start.sheet_name, row=start.row, col=start.col, width=size.width, height=size.height)
        )

    saved = grid.save(Path(output_path))
    return RenderResult(
        output_path=str(saved),
        areas=results,
        formula_cells=len(transformer.get_formula_cells()),
    )


def run_job(job: RenderJob, *, evaluator: Optional[ExpressionEvaluator] = None) -> RenderResult:
    """Render a validated job file."""

    data: Dict[str, Any] = dict(job.data)
    return render_template(job.template, job.output, data, job.options, evaluator=evaluator)
