"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb colour disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_response and print_table in JSON and plain modes
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from mageapi import output as output_module
from mageapi.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    search_result_items,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("mageapi.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("mageapi.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


# ------------------------------------------------------------------ #
# Format resolution
# ------------------------------------------------------------------ #


class TestFormatResolution:
    def test_auto_on_tty_is_rich(self, tty) -> None:
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_piped_is_plain(self, non_tty) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_no_color_is_plain(self, tty) -> None:
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_format_kept(self, tty) -> None:
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch) -> None:
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_default_enabled(self, monkeypatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# Stream discipline
# ------------------------------------------------------------------ #


class TestDiagnostics:
    def test_messages_go_to_stderr(self, capsys) -> None:
        out = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        out.info("hello")
        out.success("done")
        out.warning("careful")
        out.error("broken")
        out.suggest("mageapi profile list")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.splitlines() == [
            "hello",
            "done",
            "Warning: careful",
            "Error: broken",
            "→ mageapi profile list",
        ]

    def test_quiet_keeps_warnings_and_errors(self, capsys) -> None:
        out = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        out.info("hello")
        out.success("done")
        out.suggest("next")
        out.warning("careful")
        out.error("broken")
        assert capsys.readouterr().err.splitlines() == ["Warning: careful", "Error: broken"]

    def test_debug_requires_verbose(self, capsys) -> None:
        OutputManager(no_color=True).debug("hidden")
        OutputManager(no_color=True, verbose=True).debug("shown")
        assert capsys.readouterr().err.splitlines() == ["[debug] shown"]


class TestFormatResponse:
    def test_json_dict(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).format_response({"id": 1, "name": "é"})
        out = capsys.readouterr().out
        assert json.loads(out) == {"id": 1, "name": "é"}
        assert "é" in out

    def test_json_string_passthrough(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).format_response("not json")
        assert capsys.readouterr().out == "not json\n"

    def test_plain_dict(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({"a": 1, "b": "x"})
        assert capsys.readouterr().out == "a\t1\nb\tx\n"

    def test_plain_list_of_dicts(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response(
            [{"sku": "MH01", "qty": 3}, {"sku": "MH02", "qty": 0}]
        )
        assert capsys.readouterr().out == "MH01\t3\nMH02\t0\n"

    def test_plain_scalar(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response(True)
        assert capsys.readouterr().out == "True\n"

    def test_plain_search_result_is_a_table(self, capsys) -> None:
        payload = {
            "items": [
                {"sku": "MH01", "price": 34},
                {"sku": "MH02", "extension_attributes": {"stock": 5}},
            ],
            "search_criteria": {"page_size": 2},
            "total_count": 40,
        }
        OutputManager(format=OutputFormat.PLAIN).format_response(payload)
        assert capsys.readouterr().out.splitlines() == [
            "sku\tprice\textension_attributes",
            "MH01\t34\t",
            'MH02\t\t{"stock": 5}',
        ]

    def test_json_search_result_untouched(self, capsys) -> None:
        payload = {"items": [{"sku": "MH01"}], "total_count": 1}
        OutputManager(format=OutputFormat.JSON).format_response(payload)
        assert json.loads(capsys.readouterr().out) == payload


class TestSearchResultItems:
    def test_detects_search_result(self) -> None:
        assert search_result_items({"items": [{"id": 1}], "total_count": 1}) == [{"id": 1}]

    @pytest.mark.parametrize(
        "payload",
        [
            {"items": [{"id": 1}]},
            {"items": [1, 2], "total_count": 2},
            {"items": None, "total_count": 0},
            [{"id": 1}],
            "text",
        ],
    )
    def test_other_payloads(self, payload) -> None:
        assert search_result_items(payload) is None


class TestPrintTable:
    def test_json(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).print_table(["k", "v"], [["a", "1"]])
        assert json.loads(capsys.readouterr().out) == [{"k": "a", "v": "1"}]

    def test_plain_tsv(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).print_table(["k", "v"], [["a", "1"], ["b", "2"]])
        assert capsys.readouterr().out == "k\tv\na\t1\nb\t2\n"


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_creates_lazily(self) -> None:
        reset_output()
        first = get_output()
        assert get_output() is first

    def test_set_and_reset(self) -> None:
        custom = OutputManager(format=OutputFormat.JSON)
        set_output(custom)
        assert get_output() is custom
        reset_output()
        assert get_output() is not custom

    def test_module_functions_delegate(self, capsys) -> None:
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.format_response({"a": 1})
        output_module.error("boom")
        captured = capsys.readouterr()
        assert captured.out == "a\t1\n"
        assert captured.err == "Error: boom\n"
