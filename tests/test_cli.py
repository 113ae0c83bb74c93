import io
import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from carrion import carrion_cli

SRC_DIR = Path(__file__).resolve().parents[1] / "src"

ADD_PROGRAM = """spell add(a, b) -> int:
    return a + b

x = add(2, 3)
munin.print(x)
"""


def test_run_carrion_string_input_prints(capsys: pytest.CaptureFixture[str]) -> None:
    status = carrion_cli.run_carrion(ADD_PROGRAM, is_string=True)
    assert status == 0
    assert capsys.readouterr().out == "5\n"


def test_run_carrion_file_input(tmp_path: Path) -> None:
    file_path = tmp_path / "add.crl"
    file_path.write_text(ADD_PROGRAM, encoding="utf-8")
    out = io.StringIO()
    assert carrion_cli.run_carrion(str(file_path), stdout=out) == 0
    assert out.getvalue() == "5\n"


def test_run_carrion_rejects_other_suffixes() -> None:
    with pytest.raises(ValueError, match=r"Only \.crl files are supported\."):
        carrion_cli.run_carrion("program.txt")


def test_run_carrion_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        carrion_cli.run_carrion(str(tmp_path / "missing.crl"))


def test_parse_errors_are_printed_and_fail() -> None:
    out = io.StringIO()
    status = carrion_cli.run_carrion("(1 + 2) * 3", is_string=True, stdout=out)
    assert status == 1
    assert out.getvalue().splitlines()[0] == (
        "line 1, col 1: no prefix parse function for ( found"
    )


def test_runtime_error_goes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    status = carrion_cli.run_carrion("munin.print(1)\nnope", is_string=True)
    captured = capsys.readouterr()
    assert status == 1
    assert captured.out == "1\n"
    assert captured.err == "ERROR: identifier not found: nope\n"


def test_deeply_nested_program_fails_with_parse_error() -> None:
    out = io.StringIO()
    status = carrion_cli.run_carrion("-" * 3000 + "1", is_string=True, stdout=out)
    assert status == 1
    assert out.getvalue() == "line 1, col 1: expression nested too deeply\n"


def test_dump_tokens() -> None:
    out = io.StringIO()
    status = carrion_cli.run_carrion("x = 1", is_string=True, dump_tokens=True, stdout=out)
    assert status == 0
    assert out.getvalue().splitlines() == [
        "1:1\tIDENT\t'x'",
        "1:3\tASSIGN\t'='",
        "1:5\tINT\t'1'",
        "1:6\tEOF\t''",
    ]


def test_dump_ast_skips_evaluation() -> None:
    out = io.StringIO()
    status = carrion_cli.run_carrion("munin.print(1)", is_string=True, dump_ast=True, stdout=out)
    assert status == 0
    tree = json.loads(out.getvalue())
    assert tree["kind"] == "program"
    call = tree["statements"][0]["expression"]
    assert call["kind"] == "call_expression"
    assert call["function"]["property"]["value"] == "print"


def test_max_steps_stops_runaway_program(capsys: pytest.CaptureFixture[str]) -> None:
    source = "spell spin():\n    return spin()\nspin()"
    assert carrion_cli.run_carrion(source, is_string=True, max_steps=50) == 1
    assert "step limit of 50 exceeded" in capsys.readouterr().err


def test_configure_logging_rejects_unknown_level() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        carrion_cli.configure_logging("chatty")


def test_configure_logging_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}
    monkeypatch.setenv(carrion_cli.LOG_LEVEL_ENV, "debug")
    monkeypatch.setattr(
        carrion_cli.logging, "basicConfig", lambda **kwargs: seen.update(kwargs)
    )
    carrion_cli.configure_logging()
    assert seen["level"] == carrion_cli.logging.DEBUG


def test_main_runs_string_and_exits(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "argv", ["carrion", "-s", "munin.print(1 + 2 * 3)"])
    with pytest.raises(SystemExit) as e:
        carrion_cli.main()
    assert e.value.code == 0
    assert capsys.readouterr().out == "7\n"


def test_main_exit_status_on_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["carrion", "-s", "1 / 0"])
    with pytest.raises(SystemExit) as e:
        carrion_cli.main()
    assert e.value.code == 1


def test_main_bad_max_steps(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["carrion", "--max-steps", "lots", "-s", "1"])
    with pytest.raises(SystemExit) as e:
        carrion_cli.main()
    assert e.value.code == 2


def test_main_rejects_unknown_log_level(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "argv", ["carrion", "--log-level", "chatty", "-s", "1"])
    with pytest.raises(SystemExit) as e:
        carrion_cli.main()
    assert e.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_main_rejects_unknown_log_level_from_environment(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv(carrion_cli.LOG_LEVEL_ENV, "bogus")
    monkeypatch.setattr(sys, "argv", ["carrion", "-s", "1"])
    with pytest.raises(SystemExit) as e:
        carrion_cli.main()
    assert e.value.code == 2
    assert "Unknown log level: 'BOGUS'" in capsys.readouterr().err


def test_main_accepts_lowercase_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str | None] = []
    monkeypatch.setattr(carrion_cli, "configure_logging", seen.append)
    monkeypatch.setattr(sys, "argv", ["carrion", "--log-level", "debug", "-s", "1"])
    with pytest.raises(SystemExit) as e:
        carrion_cli.main()
    assert e.value.code == 0
    assert seen == ["DEBUG"]


def test_main_calls_repl_on_no_args(monkeypatch: pytest.MonkeyPatch) -> None:
    called = {}

    def fake_repl(*args: Any, **kwargs: Any) -> None:
        called["ran"] = True

    monkeypatch.setattr(sys, "argv", ["carrion"])
    monkeypatch.setattr("carrion.carrion_repl.start_repl", fake_repl)

    carrion_cli.main()

    assert called.get("ran") is True


def test_main_repl_flag_calls_repl(monkeypatch: pytest.MonkeyPatch) -> None:
    called_args = {}

    def fake_repl(*, verbose: Any, max_steps: Any) -> None:
        called_args["verbose"] = verbose
        called_args["max_steps"] = max_steps

    monkeypatch.setattr("carrion.carrion_repl.start_repl", fake_repl)
    monkeypatch.setattr(sys, "argv", ["carrion", "--repl", "--verbose", "--max-steps", "10"])

    carrion_cli.main()

    assert called_args == {"verbose": True, "max_steps": 10}


@given(st.text(max_size=100))  # type: ignore[misc]
def test_run_carrion_random_input_does_not_crash(source: str) -> None:
    out = io.StringIO()
    assert carrion_cli.run_carrion(source, is_string=True, dump_ast=True, stdout=out) in (0, 1)


def test_carrion_cli_module_entrypoint_runs() -> None:
    env = dict(os.environ, PYTHONPATH=str(SRC_DIR))
    result = subprocess.run(
        [sys.executable, "-m", "carrion.carrion_cli", "-s", 'munin.print("caw")'],
        capture_output=True,
        timeout=30,
        env=env,
    )
    assert result.returncode == 0
    assert result.stdout.decode().strip() == "caw"
