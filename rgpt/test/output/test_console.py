"""Tests for rgpt.output.console module."""

from __future__ import annotations

from rgpt.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DOCUMENT) == "document"

    def test_all_styles_exist(self) -> None:
        expected = {
            "DEFAULT",
            "SUCCESS",
            "ERROR",
            "WARNING",
            "INFO",
            "DIM",
            "BOLD",
            "HEADER",
            "DOCUMENT",
        }
        assert {s.name for s in Style} == expected


class TestMockConsole:
    def test_shorthands_prefix_messages(self) -> None:
        console = MockConsole()
        console.success("saved")
        console.error("boom")
        console.warning("careful")
        console.info("fyi")

        assert console.messages == ["OK saved", "error: boom", "warning: careful", "info: fyi"]
        assert console.has_success()
        assert console.has_error()
        assert console.has_warning()

    def test_document_is_captured_verbatim(self) -> None:
        console = MockConsole()
        console.print("status")
        console.document("# [draft] Notes\n- None")

        assert console.documents == ["# [draft] Notes\n- None"]
        assert console.count(Style.DOCUMENT) == 1

    def test_table_rows(self) -> None:
        console = MockConsole()
        console.table(("Id", "Name"), [("classic", "Classic"), ("concise", "Concise")])

        assert console.messages == ["Id\tName", "classic\tClassic", "concise\tConcise"]
        assert console.find("concise")[0].style == Style.DEFAULT

    def test_clear(self) -> None:
        console = MockConsole()
        console.newline()
        console.clear()
        assert console.outputs == []


def test_implementations_satisfy_protocol() -> None:
    consoles: list[ConsoleProtocol] = [MockConsole(), RichConsole()]
    for console in consoles:
        assert callable(console.document)
        assert callable(console.table)
