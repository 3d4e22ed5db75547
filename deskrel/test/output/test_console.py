"""Tests for deskrel.output.console module."""

from __future__ import annotations

from io import StringIO

from rich.console import Console

from deskrel.output.console import ConsoleProtocol, MockConsole, OutputRecord, RichConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.HEADER) == "header"
        assert str(Style.DEFAULT) == "default"

    def test_all_styles_exist(self) -> None:
        expected = {"DEFAULT", "SUCCESS", "ERROR", "WARNING", "INFO", "DIM", "HEADER"}
        assert {s.name for s in Style} == expected


class TestMockConsole:
    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs == [OutputRecord("hello", Style.DEFAULT)]

    def test_prefixed_helpers(self) -> None:
        console = MockConsole()
        console.success("done")
        console.error("broken")
        console.warning("careful")
        console.info("fyi")
        console.hint("try again")
        assert console.messages == [
            "OK done",
            "error: broken",
            "warning: careful",
            "info: fyi",
            "hint: try again",
        ]

    def test_command_echo(self) -> None:
        console = MockConsole()
        console.command(["npm", "run", "bundle:intel"])
        assert console.outputs[-1] == OutputRecord("$ npm run bundle:intel", Style.DIM)

    def test_headers_in_order(self) -> None:
        console = MockConsole()
        console.header("Build")
        console.print("x")
        console.header("Bundle")
        assert console.headers == ["Build", "Bundle"]

    def test_query_helpers(self) -> None:
        console = MockConsole()
        console.warning("Attempt 1 failed")
        assert console.has_warning()
        assert not console.has_error()
        assert len(console.find("Attempt")) == 1
        assert console.count(Style.WARNING) == 1

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.print("ok")


class TestRichConsole:
    def _console(self) -> tuple[RichConsole, StringIO]:
        buf = StringIO()
        return RichConsole(Console(file=buf, width=120, color_system=None)), buf

    def test_markup_in_messages_is_not_interpreted(self) -> None:
        console, buf = self._console()
        console.error("missing [bold]file[/bold]")
        assert "[bold]file[/bold]" in buf.getvalue()

    def test_print_plain_text(self) -> None:
        console, buf = self._console()
        console.print("path/with[brackets]", Style.DIM)
        assert "path/with[brackets]" in buf.getvalue()

    def test_success_prefix(self) -> None:
        console, buf = self._console()
        console.success("signed")
        assert "OK signed" in buf.getvalue()
