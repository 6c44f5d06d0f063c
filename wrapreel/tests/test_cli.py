"""Tests for the command-line interface.

Tests cover:
- Parser wiring (logging flags before/after the subcommand)
- plan: simulated timeline output (text and JSON)
- classify: descriptor output and InvalidIndex reporting
- run: headless playback on a real Qt event loop
- Error handling (missing files, empty item lists)
"""

import json
import os
import subprocess
import sys

import pytest

from wrapreel import cli


@pytest.fixture
def items_file(tmp_path):
    path = tmp_path / "items.json"
    path.write_text(json.dumps({
        "items": [
            {"id": "p0", "title": "Wool Sweater", "price": "49.00"},
            {"id": "p1", "title": "Rain Jacket"},
        ]
    }))
    return path


@pytest.fixture
def log_args(tmp_path):
    return ["--log-file", str(tmp_path / "cli.log"), "--log-mode", "quiet"]


def _json_lines(out):
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


def test_help_exits_zero():
    result = subprocess.run([sys.executable, "-m", "wrapreel", "--help"], capture_output=True, text=True)
    assert result.returncode == 0
    assert "WrapReel CLI" in result.stdout


def test_logging_flags_after_subcommand():
    parser = cli.build_parser()
    args = parser.parse_args(["plan", "items.json", "--log-level", "DEBUG", "--log-format", "json", "--log-mode", "trace"])
    assert args.command == "plan"
    assert args.log_level == "DEBUG"
    assert args.log_format == "json"
    assert args.log_mode == "trace"


def test_logging_flags_before_subcommand():
    parser = cli.build_parser()
    args = parser.parse_args(["--log-level", "DEBUG", "--log-format", "json", "classify", "0", "--items", "1"])
    assert args.command == "classify"
    assert args.log_level == "DEBUG"
    assert args.log_format == "json"
    assert args.log_mode == "normal"


def test_logging_flag_after_subcommand_wins():
    parser = cli.build_parser()
    args = parser.parse_args(["--log-level", "DEBUG", "selftest", "--log-level", "ERROR"])
    assert args.log_level == "ERROR"


def test_run_flags():
    parser = cli.build_parser()
    args = parser.parse_args(["run", "items.json", "--time-scale", "0.1", "--timeout", "3", "--loop", "1"])
    assert args.time_scale == 0.1
    assert args.timeout == 3.0
    assert args.loop == 1


def test_time_scale_must_be_positive():
    parser = cli.build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["plan", "items.json", "--time-scale", "0"])


def test_no_command_prints_help(capsys, log_args):
    assert cli.main(log_args) == 1
    assert "usage" in capsys.readouterr().out


def test_selftest(capsys, log_args):
    assert cli.main(["selftest", *log_args]) == 0
    assert "Selftest OK" in capsys.readouterr().out


class TestPlan:

    def test_plan_json_timeline(self, capsys, items_file, log_args):
        assert cli.main(["plan", str(items_file), "--json", *log_args]) == 0
        rows = _json_lines(capsys.readouterr().out)

        assert [r["event"] for r in rows] == [
            "sequence_start",
            "slide_change",
            "phase_change",
            "slide_change",
            "phase_change",
            "slide_change",
            "alternate_enter",
        ]
        assert [r["at_ms"] for r in rows] == [0, 4000, 7000, 12500, 15500, 21000, 29500]
        assert rows[1]["headline"] == "Spring"
        assert rows[2]["item"]["title"] == "Wool Sweater"
        assert rows[-1]["mode"] == "alternate"
        assert rows[-1]["index"] == 3

    def test_plan_text_with_time_scale(self, capsys, items_file, log_args):
        assert cli.main(["plan", str(items_file), "--time-scale", "0.5", *log_args]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 7
        assert "ALTERNATE_ENTER" in lines[-1]
        assert "14750ms" in lines[-1]

    def test_plan_limit(self, capsys, items_file, log_args):
        assert cli.main(["plan", str(items_file), "--limit", "1", "--json", *log_args]) == 0
        rows = _json_lines(capsys.readouterr().out)
        assert rows[-1]["index"] == 2

    def test_plan_missing_file(self, capsys, tmp_path, log_args):
        assert cli.main(["plan", str(tmp_path / "nope.json"), *log_args]) == 1
        assert "Error" in capsys.readouterr().out

    def test_plan_empty_items(self, capsys, tmp_path, log_args):
        path = tmp_path / "empty.json"
        path.write_text("[]")
        assert cli.main(["plan", str(path), *log_args]) == 1
        assert "no items" in capsys.readouterr().out


class TestClassify:

    def test_final_slide(self, capsys, log_args):
        assert cli.main(["classify", "5", "--items", "4", *log_args]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["slide"] == "final"
        assert info["total"] == 6
        assert info["delays_ms"] == [8500]

    def test_product_slide(self, capsys, log_args):
        assert cli.main(["classify", "4", "--items", "4", *log_args]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["slide"] == "product"
        assert info["ordinal"] == 3
        assert info["delays_ms"] == [3000, 5500]

    def test_invalid_index(self, capsys, log_args):
        assert cli.main(["classify", "6", "--items", "4", *log_args]) == 1
        assert "out of range" in capsys.readouterr().out


@pytest.mark.qt
@pytest.mark.slow
class TestRun:

    def test_run_reaches_alternate(self, qapp, capsys, items_file, log_args):
        code = cli.main(["run", str(items_file), "--time-scale", "0.01", "--json", "--timeout", "10", *log_args])
        assert code == 0
        rows = _json_lines(capsys.readouterr().out)
        assert rows[0]["event"] == "sequence_start"
        assert rows[-1]["event"] == "alternate_enter"
        assert rows[-1]["index"] == 3

    def test_run_loops(self, qapp, capsys, items_file, log_args):
        code = cli.main(["run", str(items_file), "--time-scale", "0.01", "--loop", "1", "--json", "--timeout", "10", *log_args])
        assert code == 0
        events = [r["event"] for r in _json_lines(capsys.readouterr().out)]
        assert events.count("alternate_enter") == 2
        assert "sequence_reset" in events

    def test_run_timeout(self, qapp, capsys, items_file, log_args):
        code = cli.main(["run", str(items_file), "--timeout", "0.2", *log_args])
        assert code == 2
        assert "timed out" in capsys.readouterr().out


class TestLegacyLauncher:

    def test_bare_items_file_plans(self, capsys, items_file, monkeypatch):
        import run

        monkeypatch.setattr(sys, "argv", ["run.py", str(items_file)])
        assert run.main() == 0
        assert "ALTERNATE_ENTER" in capsys.readouterr().out

    def test_debug_flag_enables_trace(self, capsys, monkeypatch):
        import run

        calls = []
        real_setup = cli.setup_logging

        def spy(**kwargs):
            calls.append(kwargs)
            return real_setup(**kwargs)

        monkeypatch.setattr(cli, "setup_logging", spy)
        monkeypatch.setenv("WRAPREEL_TRACE", "0")
        assert run.main(["--debug", "classify", "0", "--items", "1"]) == 0
        assert '"slide": "intro"' in capsys.readouterr().out
        assert os.environ["WRAPREEL_TRACE"] == "1"
        assert calls[0]["level"] == "DEBUG"
