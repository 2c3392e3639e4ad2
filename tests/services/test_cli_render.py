"""CLI integration tests for template rendering."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
import yaml
from openpyxl import Workbook, load_workbook
from openpyxl.comments import Comment
from typer.testing import CliRunner

from sheetflow import cli


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import sheetflow.core.logger as core_logger

    monkeypatch.setattr(core_logger, "_work_dir", lambda: tmp_path / "work")
    monkeypatch.setattr(core_logger, "_LOGGER", None, raising=False)


def _write_template(path: Path, body: str = "${row.city}") -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "Cities"
    ws["A1"] = "${title}"
    ws["A1"].comment = Comment('jx:area(lastCell="A2")', "author")
    ws["A2"] = body
    ws["A2"].comment = Comment('jx:each(items="cities" var="row" lastCell="A2")', "author")
    wb.save(path)
    return path


def test_render_template_with_yaml_and_csv_data(cli_runner: CliRunner, tmp_path: Path) -> None:
    template = _write_template(tmp_path / "template.xlsx")
    (tmp_path / "meta.yaml").write_text(yaml.safe_dump({"title": "Cities"}), encoding="utf-8")
    (tmp_path / "cities.csv").write_text("city\nOslo\nRome\n", encoding="utf-8")
    output = tmp_path / "report.xlsx"

    result = cli_runner.invoke(
        cli.app,
        [
            "render-template",
            str(template),
            str(output),
            "--data",
            str(tmp_path / "meta.yaml"),
            "-d",
            str(tmp_path / "cities.csv"),
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert "Cities!R0C0: 1x3" in result.stdout

    ws = load_workbook(output)["Cities"]
    assert [ws[f"A{row}"].value for row in (1, 2, 3)] == ["Cities", "Oslo", "Rome"]


def test_render_template_reports_evaluation_errors(cli_runner: CliRunner, tmp_path: Path) -> None:
    template = _write_template(tmp_path / "template.xlsx", body="${row.missing}")
    (tmp_path / "data.yaml").write_text(yaml.safe_dump({"title": "T", "cities": [{"city": "Oslo"}]}), encoding="utf-8")

    result = cli_runner.invoke(
        cli.app,
        ["render-template", str(template), str(tmp_path / "out.xlsx"), "--data", str(tmp_path / "data.yaml")],
    )

    assert result.exit_code == 1
    assert "Render failed" in result.stdout
    assert not (tmp_path / "out.xlsx").exists()


def test_render_job(cli_runner: CliRunner, tmp_path: Path) -> None:
    _write_template(tmp_path / "template.xlsx")
    job = tmp_path / "job.yaml"
    job.write_text(
        yaml.safe_dump(
            {
                "template": "template.xlsx",
                "output": "out/report.xlsx",
                "data": {"title": "Report", "cities": [{"city": "Lima"}]},
            }
        ),
        encoding="utf-8",
    )

    result = cli_runner.invoke(cli.app, ["--log-level", "DEBUG", "render", str(job)])

    assert result.exit_code == 0, result.stdout
    ws = load_workbook(tmp_path / "out" / "report.xlsx")["Cities"]
    assert ws["A2"].value == "Lima"


def test_render_job_with_invalid_config(cli_runner: CliRunner, tmp_path: Path) -> None:
    job = tmp_path / "job.yaml"
    job.write_text(yaml.safe_dump({"template": "t.xlsx", "output": "o.xlsx", "unknown": 1}), encoding="utf-8")

    result = cli_runner.invoke(cli.app, ["render", str(job)])

    assert result.exit_code == 2
    assert "Invalid render job" in result.stdout


def test_unknown_log_level_is_rejected(cli_runner: CliRunner, tmp_path: Path) -> None:
    job = tmp_path / "job.yaml"
    job.write_text("template: t.xlsx\noutput: o.xlsx\n", encoding="utf-8")

    result = cli_runner.invoke(cli.app, ["--log-level", "LOUD", "render", str(job)])

    assert result.exit_code != 0


def test_render_job_with_unknown_data_sheet(cli_runner: CliRunner, tmp_path: Path) -> None:
    _write_template(tmp_path / "template.xlsx")
    pd.DataFrame({"city": ["Oslo"]}).to_excel(tmp_path / "cities.xlsx", sheet_name="Cities", index=False)
    job = tmp_path / "job.yaml"
    job.write_text(
        yaml.safe_dump(
            {
                "template": "template.xlsx",
                "output": "report.xlsx",
                "data": {"title": "T", "cities": {"source": {"path": "cities.xlsx", "sheet": "Nope"}}},
            }
        ),
        encoding="utf-8",
    )

    result = cli_runner.invoke(cli.app, ["render", str(job)])

    assert result.exit_code == 1
    assert "Render failed" in result.stdout
    assert not (tmp_path / "report.xlsx").exists()
