"""Render service package."""

from .api import (
    AreaResult,
    RenderResult,
    build_context,
    render_template,
    run_job,
)

__all__ = [
    "AreaResult",
    "RenderResult",
    "build_context",
    "render_template",
    "run_job",
]
