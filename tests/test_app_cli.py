from __future__ import annotations

import json
from pathlib import Path

import pytest

from protocol_executors.app import build_parser, main
from protocol_executors.config.settings import Settings
from protocol_executors.steps.loader import load_step_from_json


@pytest.fixture(autouse=True)
def _log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PEX_LOG_DIR", str(tmp_path / "logs"))


def test_parser_supports_run() -> None:
    args = build_parser().parse_args(["run", "--step-file", "step.json", "--timeout", "2.5"])
    assert args.command == "run"
    assert args.step_file == "step.json"
    assert args.timeout == 2.5


def test_load_step_requires_type(tmp_path: Path) -> None:
    step_file = tmp_path / "step.json"
    step_file.write_text(json.dumps({"server": "8.8.8.8:53"}), encoding="utf-8")

    with pytest.raises(ValueError, match="'type'"):
        load_step_from_json(step_file)


def test_load_step_rejects_non_object(tmp_path: Path) -> None:
    step_file = tmp_path / "step.json"
    step_file.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError, match="JSON object"):
        load_step_from_json(step_file)


def test_executors_command_lists_contract(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["executors"]) == 0

    described = json.loads(capsys.readouterr().out)
    assert [item["name"] for item in described] == ["dns", "radius"]
    assert all(item["default_assertions"] == ["result.err ShouldBeEmpty"] for item in described)
    assert "rcode" in described[0]["result_fields"]


def test_run_command_reports_decode_error(tmp_path: Path) -> None:
    step_file = tmp_path / "step.json"
    step_file.write_text(json.dumps({"type": "radius", "code": "Invalid-Code"}), encoding="utf-8")

    assert main(["run", "--step-file", str(step_file)]) == 2


def test_run_command_prints_soft_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    step_file = tmp_path / "step.json"
    step_file.write_text(
        json.dumps({"type": "dns", "server": "127.0.0.1:53", "query": "example.com", "qtype": "INVALID"}),
        encoding="utf-8",
    )

    assert main(["run", "--step-file", str(step_file)]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["err"] == "unsupported DNS record type: INVALID"
    assert output["qtype"] == "INVALID"


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PEX_LOG_LEVEL", "debug")
    monkeypatch.setenv("PEX_DEFAULT_TIMEOUT", "not-a-number")

    settings = Settings.from_env()

    assert settings.log_level == 10
    assert settings.default_timeout_seconds is None
