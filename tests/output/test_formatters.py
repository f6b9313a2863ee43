"""Tests for the format_result dispatcher and OutputSettings."""

import json

from allocctl.output.formatters import OutputSettings, format_result
from allocctl.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(ok=False, op=op, error=ServiceError(code="ERR", message=msg))


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False


class TestFormatResultJSON:
    def test_json_mode_returns_valid_json(self) -> None:
        output = format_result(
            _ok("archive_rule", id="r1"), settings=OutputSettings(json_output=True)
        )
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "archive_rule"
        assert data["data"]["id"] == "r1"

    def test_json_mode_error(self) -> None:
        data = json.loads(format_result(_err("compute", "Bad"), json_output=True))
        assert data["ok"] is False
        assert data["error"]["message"] == "Bad"

    def test_settings_overrides_kwarg(self) -> None:
        output = format_result(_ok(key="val"), settings=OutputSettings(), json_output=True)
        assert not output.startswith("{")


class TestFormatResultModes:
    def test_quiet(self) -> None:
        result = _ok("post", journal_entry_id="je-3")
        output = format_result(result, settings=OutputSettings(quiet=True))
        assert output == "je-3"

    def test_human(self) -> None:
        output = format_result(_ok("discard_draft", draft_id="drf_1"))
        assert "OK" in output
        assert "drf_1" in output
