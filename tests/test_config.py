from __future__ import annotations

from pathlib import Path

import pytest

from sheetflow.config import DataSource, RenderJob, load_render_job
from sheetflow.core.errors import ConfigurationError


def test_load_render_job_resolves_relative_paths(tmp_path: Path):
    job_path = tmp_path / "jobs" / "monthly.yaml"
    job_path.parent.mkdir()
    job_path.write_text(
        "\n".join(
            [
                "template: ../templates/report.xlsx",
                "output: out/report.xlsx",
                "data:",
                "  title: Monthly",
                "  rows:",
                "    source:",
                "      path: rows.xlsx",
                "      sheet: Data",
                "options:",
                "  ignore_column_props: true",
            ]
        ),
        encoding="utf-8",
    )

    job = load_render_job(job_path)

    assert job.template == (tmp_path / "templates" / "report.xlsx").resolve()
    assert job.output == (tmp_path / "jobs" / "out" / "report.xlsx").resolve()
    assert job.data["title"] == "Monthly"
    source = job.data["rows"]["source"]
    assert isinstance(source, DataSource)
    assert source.path == (tmp_path / "jobs" / "rows.xlsx").resolve()
    assert source.sheet == "Data"
    assert job.options.ignore_column_props is True
    assert job.options.clear_template_cells is True


@pytest.mark.parametrize(
    "content",
    [
        "template: a.xlsx\n",
        "template: a.xlsx\noutput: b.xlsx\nextra: 1\n",
        "template: a.xlsx\noutput: b.xlsx\ndata:\n  rows:\n    source:\n      path: r.csv\n      kind: blob\n",
        "- not\n- a mapping\n",
        "template: [unclosed\n",
    ],
)
def test_invalid_jobs_raise_configuration_error(tmp_path: Path, content: str):
    job_path = tmp_path / "job.yaml"
    job_path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_render_job(job_path)


def test_missing_job_file(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        load_render_job(tmp_path / "absent.yaml")


def test_data_sources_lists_file_backed_entries():
    job = RenderJob(
        template="t.xlsx",
        output="o.xlsx",
        data={"rows": {"source": {"path": "rows.csv"}}, "title": "x"},
    )

    assert list(job.data_sources()) == ["rows"]
