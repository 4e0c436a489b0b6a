"""
Lifecycle tests

Tests assembling a lifecycle from a Markdown document or README file and
running it one command at a time.
"""

import io
import sys
from pathlib import Path

import pytest

from sample_tester.errors import (
    CodeBlockEndAfterLineContError,
    CodeBlockNotClosedError,
    CommandFailedError,
    CommandSpawnError,
    ConfigurationError,
    LifecycleExecutionError,
    ReadmeReadError,
)
from sample_tester.lifecycle import Lifecycle, extract_lifecycle, parse_readme
from sample_tester.parsing.commands import Command
from sample_tester.sandbox import CommandExecutor, ExecutionStatus, ExecutorConfig

FIXTURES = Path(__file__).parent / "fixtures"

TAG = "[//]: # ({sst-run-unix})"


def python(code: str) -> Command:
    """A command running a Python snippet with the current interpreter"""
    return Command(sys.executable, ("-c", code))


class TestExtractLifecycle:
    """Assembling commands from every tagged block"""

    def test_single_code_block(self):
        src = io.StringIO(f"{TAG}\n```\necho hello world\n```\n")
        assert extract_lifecycle(src, "", "") == Lifecycle([
            Command("echo", ("hello", "world")),
        ])

    def test_two_code_blocks_with_prose_between(self):
        src = io.StringIO(
            f"{TAG}\n```\necho build command\n```\n"
            "markdown instructions\n"
            f"{TAG}\n```\necho deploy command\n```\n"
        )
        assert extract_lifecycle(src, "", "") == Lifecycle([
            Command("echo", ("build", "command")),
            Command("echo", ("deploy", "command")),
        ])

    def test_no_tags_yields_empty_lifecycle(self):
        src = io.StringIO("# Title\n```\necho hello\n```\n")
        lifecycle = extract_lifecycle(src, "", "")
        assert len(lifecycle) == 0
        assert lifecycle == Lifecycle()

    def test_substitution_applied_to_every_block(self):
        src = io.StringIO(
            f"{TAG}\n```\ngcloud builds submit --tag=gcr.io/hello/world\n```\n"
            f"{TAG}\n```\ngcloud run services deploy hello --image=gcr.io/hello/world\n```\n"
        )
        lifecycle = extract_lifecycle(src, "svc", "gcr.io/p/svc", env={})
        assert list(lifecycle) == [
            Command("gcloud", ("--quiet", "builds", "submit", "--tag=gcr.io/p/svc")),
            Command("gcloud", (
                "--quiet", "run", "services", "deploy", "svc", "--image=gcr.io/p/svc",
            )),
        ]

    def test_scan_error_propagates(self):
        src = io.StringIO(f"{TAG}\n```\necho never closed\n")
        with pytest.raises(CodeBlockNotClosedError):
            extract_lifecycle(src, "", "")

    def test_compile_error_propagates(self):
        """A bad second block fails the whole extraction"""
        src = io.StringIO(
            f"{TAG}\n```\necho fine\n```\n"
            f"{TAG}\n```\necho dangling \\\n```\n"
        )
        with pytest.raises(CodeBlockEndAfterLineContError):
            extract_lifecycle(src, "", "")


class TestParseReadme:
    """Reading a README file"""

    def test_fixture_readme(self):
        """Three code blocks, two of them tagged"""
        lifecycle = parse_readme(FIXTURES / "readme_test.md", "", "")
        assert lifecycle == Lifecycle([
            Command("echo", ("hello", "world")),
            Command("echo", ("line", "one")),
            Command("echo", ("line", "two")),
        ])

    def test_missing_file(self, tmp_path):
        with pytest.raises(ReadmeReadError) as excinfo:
            parse_readme(tmp_path / "README.md", "", "")
        assert isinstance(excinfo.value.cause, FileNotFoundError)

    def test_not_utf8(self, tmp_path):
        """Undecodable bytes become a configuration error"""
        path = tmp_path / "README.md"
        path.write_bytes(b"# T\n\xff\xfe bad\n")
        with pytest.raises(ReadmeReadError) as excinfo:
            parse_readme(path, "", "")
        assert isinstance(excinfo.value, ConfigurationError)
        assert isinstance(excinfo.value.cause, UnicodeDecodeError)

    def test_accepts_str_path(self):
        lifecycle = parse_readme(str(FIXTURES / "readme_test.md"), "", "")
        assert len(lifecycle) == 3


class TestLifecycleValue:
    """Lifecycle behaves as an immutable sequence"""

    def test_sequence_protocol(self):
        commands = [Command("a"), Command("b"), Command("c")]
        lifecycle = Lifecycle(commands)
        assert len(lifecycle) == 3
        assert lifecycle[0] == Command("a")
        assert lifecycle[1:] == Lifecycle(commands[1:])
        assert Command("b") in lifecycle
        assert list(lifecycle) == commands

    def test_input_list_not_shared(self):
        commands = [Command("a")]
        lifecycle = Lifecycle(commands)
        commands.append(Command("b"))
        assert len(lifecycle) == 1

    def test_not_equal_to_list(self):
        assert Lifecycle([Command("a")]) != [Command("a")]


class TestExecute:
    """Running a lifecycle"""

    def test_runs_in_order_in_working_dir(self, tmp_path):
        lifecycle = Lifecycle([
            python("open('log.txt', 'a').write('one\\n')"),
            python("open('log.txt', 'a').write('two\\n')"),
        ])
        results = lifecycle.execute(tmp_path)

        assert (tmp_path / "log.txt").read_text() == "one\ntwo\n"
        assert [r.status for r in results] == [ExecutionStatus.SUCCESS] * 2

    def test_stops_at_first_failure(self, tmp_path):
        lifecycle = Lifecycle([
            python("import sys; sys.exit(3)"),
            python("open('never.txt', 'w')"),
        ])
        with pytest.raises(CommandFailedError) as excinfo:
            lifecycle.execute(tmp_path)

        assert excinfo.value.exit_code == 3
        assert excinfo.value.command == lifecycle[0]
        assert not (tmp_path / "never.txt").exists()

    def test_spawn_failure(self, tmp_path):
        lifecycle = Lifecycle([Command("sst-no-such-executable-42", ("x",))])
        with pytest.raises(CommandSpawnError) as excinfo:
            lifecycle.execute(tmp_path)
        assert isinstance(excinfo.value.cause, OSError)
        assert isinstance(excinfo.value, LifecycleExecutionError)

    def test_empty_lifecycle(self, tmp_path):
        assert Lifecycle().execute(tmp_path) == []

    def test_dry_run_spawns_nothing(self, tmp_path):
        lifecycle = Lifecycle([
            Command("sst-no-such-executable-42"),
            python("open('never.txt', 'w')"),
        ])
        executor = CommandExecutor(ExecutorConfig(dry_run=True))
        results = lifecycle.execute(tmp_path, executor)

        assert [r.status for r in results] == [ExecutionStatus.SKIPPED] * 2
        assert not (tmp_path / "never.txt").exists()
