"""Configuration helpers for SheetFlow render jobs.

A render job names a template workbook, an output path, the data bound
into the rendering context and a few transformer switches. Jobs are YAML
files validated with pydantic; relative paths resolve against the job
file's directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sheetflow.core.errors import ConfigurationError


class DataSource(BaseModel):
    """A context variable loaded from a file."""

    model_config = ConfigDict(extra="forbid")

    path: Path
    sheet: Optional[Union[str, int]] = None
    kind: Optional[str] = Field(default=None, pattern="^(table|document)$")


class TransformOptions(BaseModel):
    """Switches forwarded to the transformer and render facade."""

    model_config = ConfigDict(extra="forbid")

    ignore_row_props: bool = False
    ignore_column_props: bool = False
    clear_template_cells: bool = True


class RenderJob(BaseModel):
    """Complete render job file model."""

    model_config = ConfigDict(extra="forbid")

    template: Path
    output: Path
    data: Dict[str, Any] = Field(default_factory=dict)
    options: TransformOptions = Field(default_factory=TransformOptions)

    def data_sources(self) -> Dict[str, DataSource]:
        """Return the data entries declared as ``{source: {...}}`` file sources."""

        sources: Dict[str, DataSource] = {}
        for name, value in self.data.items():
            if isinstance(value, dict) and set(value) == {"source"}:
                sources[name] = DataSource.model_validate(value["source"])
        return sources


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Render job file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Render job file is not valid YAML: {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Render job must be a mapping")
    return data


def _resolve(base: Path, path: Path) -> Path:
    path = path.expanduser()
    return path if path.is_absolute() else (base / path).resolve()


def load_render_job(path: str | Path) -> RenderJob:
    """Load and validate a render job, resolving relative paths."""

    job_path = Path(path)
    raw = _load_yaml(job_path)
    try:
        job = RenderJob.model_validate(raw)
        sources = job.data_sources()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid render job {job_path}: {exc}") from exc

    base = job_path.resolve().parent
    data = dict(job.data)
    for name, source in sources.items():
        data[name] = {"source": source.model_copy(update={"path": _resolve(base, source.path)})}
    return job.model_copy(
        update={
            "template": _resolve(base, job.template),
            "output": _resolve(base, job.output),
            "data": data,
        }
    )


__all__ = [
    "DataSource",
    "RenderJob",
    "TransformOptions",
    "load_render_job",
]
