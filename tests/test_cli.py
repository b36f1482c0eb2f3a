"""
Tests for reel/cli.py

Tests the CLI interface including:
- Argument parser structure
- views list / show / resolve
- filter
- Error handling and exit codes
"""
import json

import pytest

from reel import cli


def run(capsys, *argv):
    cli.main(list(argv))
    return capsys.readouterr().out


class TestArgumentParser:
    """Test argument parser structure."""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_views_show_requires_name(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["views", "show"])

    def test_filter_defaults(self):
        args = cli.build_parser().parse_args(["filter", "item.a == 1"])
        assert args.var == "item"
        assert args.func is cli.cmd_filter

    def test_invalid_output_format(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["-o", "xml", "views", "list"])


class TestViewsCommands:
    """Test the views command group."""

    def test_list_plain(self, capsys):
        out = run(capsys, "-o", "plain", "views", "list")
        assert out.split() == ["allShows", "featuredShows", "movies", "anime", "series", "topRated", "airing"]

    def test_list_json_with_views_file(self, capsys, views_file):
        out = run(capsys, "--views", str(views_file), "--no-builtins", "-o", "json", "views", "list")
        info = json.loads(out)
        assert info["total_views"] == 2
        assert [v["name"] for v in info["views"]] == ["recentAnime", "byTitle"]

    def test_list_table(self, capsys):
        out = run(capsys, "views", "list")
        assert "movies" in out

    def test_show_plain(self, capsys, records_file):
        out = run(capsys, "-o", "plain", "views", "show", "movies", "--records", str(records_file))
        assert out.splitlines() == ["Cats", "Spirited Away"]

    def test_show_limit_json(self, capsys, records_file):
        out = run(capsys, "-o", "json", "views", "show", "topRated", "--records", str(records_file), "--limit", "1")
        data = json.loads(out)
        assert len(data) == 1
        assert data[0]["slug"] == "frieren"

    def test_show_unknown_view_exits(self, capsys, records_file):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["views", "show", "nonexistent", "--records", str(records_file)])
        assert exc_info.value.code == 1
        assert "View not found" in capsys.readouterr().out

    def test_resolve_plain(self, capsys, records_file):
        out = run(capsys, "-o", "plain", "views", "resolve", "--records", str(records_file))
        counts = dict(line.split("\t") for line in out.splitlines())
        assert counts["movies"] == "2"
        assert counts["allShows"] == "5"
        assert counts["airing"] == "2"

    def test_resolve_parallel_json(self, capsys, records_file):
        out = run(capsys, "-o", "json", "views", "resolve", "--records", str(records_file), "--workers", "4")
        data = json.loads(out)
        assert [r["slug"] for r in data["anime"]] == ["frieren", "bebop"]

    def test_missing_records_file_exits(self, capsys, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["views", "resolve", "--records", str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1


class TestFilterCommand:
    """Test the filter command."""

    def test_filter_plain(self, capsys, records_file):
        out = run(capsys, "-o", "plain", "filter", "item.rating >= 8.0", "--records", str(records_file))
        assert out.splitlines() == ["Spirited Away", "Severance", "Cowboy Bebop"]

    def test_filter_unsupported_expression_is_empty(self, capsys, records_file):
        out = run(capsys, "-o", "json", "filter", "not a valid expr", "--records", str(records_file))
        assert json.loads(out) == []

    def test_records_file_from_config(self, capsys, records_file, monkeypatch):
        monkeypatch.setenv("REEL_RECORDS_FILE", str(records_file))
        out = run(capsys, "-o", "plain", "filter", "item.type == 'series'")
        assert out.splitlines() == ["Severance"]


class TestConfigOptions:
    """Test configuration options that shape CLI output."""

    def test_page_size_limits_table_rows(self, capsys, records_file, monkeypatch):
        monkeypatch.setenv("REEL_PAGE_SIZE", "2")
        out = run(capsys, "filter", "item.airedYear > 0", "--records", str(records_file))
        assert "3 more" in out

    def test_page_size_does_not_limit_json(self, capsys, records_file, monkeypatch):
        monkeypatch.setenv("REEL_PAGE_SIZE", "2")
        out = run(capsys, "-o", "json", "filter", "item.airedYear > 0", "--records", str(records_file))
        assert len(json.loads(out)) == 5

    def test_color_output_setting(self, capsys, monkeypatch):
        monkeypatch.setenv("REEL_COLOR_OUTPUT", "false")
        run(capsys, "-o", "plain", "views", "list")
        assert cli.console.no_color is True

        monkeypatch.delenv("REEL_COLOR_OUTPUT")
        monkeypatch.setattr("reel.config._config", None)
        run(capsys, "-o", "plain", "views", "list")
        assert cli.console.no_color is False

    def test_flags_do_not_leak_between_runs(self, capsys, views_file):
        """--no-builtins and --views apply to one invocation only."""
        out = run(capsys, "--views", str(views_file), "--no-builtins", "-o", "plain", "views", "list")
        assert out.split() == ["recentAnime", "byTitle"]

        out = run(capsys, "-o", "plain", "views", "list")
        assert "recentAnime" not in out.split()
        assert "movies" in out.split()
