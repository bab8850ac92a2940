"""Tests for the momentguard command line."""

import json
import tempfile

import yaml
from click.testing import CliRunner

from momentguard.cli import main


def _moderate(runner, data_dir, content_id, text, *extra):
    return runner.invoke(main, ["moderate", text, "-c", content_id, "-d", data_dir, *extra])


def test_moderate_show_and_stats():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _moderate(runner, tmpdir, "c1", "buy cheap followers now!!!")
        assert result.exit_code == 0, result.output
        assert "BLOCKED" in result.output

        result = _moderate(runner, tmpdir, "c2", "great video!")
        assert result.exit_code == 0, result.output
        assert "ALLOWED" in result.output

        result = runner.invoke(main, ["show", "c1", "-d", tmpdir, "--json"])
        assert result.exit_code == 0, result.output
        record = json.loads(result.output)
        assert record["content_id"] == "c1"
        assert record["decision"]["verdict"] == "blocked"

        result = runner.invoke(main, ["show", "c1", "-d", tmpdir])
        assert result.exit_code == 0, result.output
        assert "blocked" in result.output

        result = runner.invoke(main, ["stats", "-d", tmpdir])
        assert result.exit_code == 0, result.output
        assert "Total" in result.output
        assert "2" in result.output


def test_moderating_twice_fails():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmpdir:
        assert _moderate(runner, tmpdir, "c1", "great video!").exit_code == 0
        result = _moderate(runner, tmpdir, "c1", "buy cheap followers now!!!")
        assert result.exit_code == 1
        assert "DuplicateContentError" in result.output


def test_invalid_text_fails():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _moderate(runner, tmpdir, "c1", "   ")
        assert result.exit_code == 1
        assert "InvalidRequestError" in result.output


def test_review_flagged_content():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _moderate(runner, tmpdir, "c3", "email me at jane.doe@example.com")
        assert "FLAGGED_FOR_REVIEW" in result.output

        result = runner.invoke(main, ["review", "c3", "--overturn", "-d", tmpdir])
        assert result.exit_code == 0, result.output
        assert "overturned" in result.output

        result = runner.invoke(main, ["review", "c3", "--uphold", "-d", tmpdir])
        assert result.exit_code == 1
        assert "ReviewTransitionError" in result.output


def test_dry_run_records_nothing():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _moderate(runner, tmpdir, "c1", "buy cheap followers now!!!", "--dry-run")
        assert result.exit_code == 0, result.output
        assert "dry run" in result.output

        result = runner.invoke(main, ["show", "c1", "-d", tmpdir])
        assert result.exit_code == 1


def test_config_dump_round_trips_through_config_option():
    runner = CliRunner()
    result = runner.invoke(main, ["config", "--preset", "permissive"])
    assert result.exit_code == 0, result.output
    data = yaml.safe_load(result.output)
    assert data["auto_block"] is False
    assert {c["name"] for c in data["categories"]} == {"pii", "spam"}

    with tempfile.TemporaryDirectory() as tmpdir:
        path = f"{tmpdir}/engine.yaml"
        with open(path, "w") as f:
            f.write(result.output)
        result = _moderate(
            runner, tmpdir, "c1", "buy cheap followers now!!!", "--config", path
        )
        assert result.exit_code == 0, result.output
        # auto-block off: would-be blocks are sent to review
        assert "FLAGGED_FOR_REVIEW" in result.output


def test_bad_config_file_exits_2():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmpdir:
        path = f"{tmpdir}/engine.yaml"
        with open(path, "w") as f:
            f.write("default_thresholds: {review: 0.9, block: 0.1}\n")
        result = _moderate(runner, tmpdir, "c1", "hello there", "--config", path)
        assert result.exit_code == 2
        assert "Invalid configuration" in result.output
