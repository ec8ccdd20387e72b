import os
from pathlib import Path

import pytest

from conftest import FakeProcessRunner, RecordingConsole
from nscript.nscript_ast import NoneNode, NumNode, Position, StringNode
from nscript.nscript_errors import NScriptError
from nscript.nscript_evaluator import Evaluator
from nscript.nscript_platform import LocalFilesystem


def run(evaluator: Evaluator, source: str) -> NumNode | StringNode | NoneNode:
    result = evaluator.evaluate_line(source)
    assert not isinstance(result, NScriptError), result
    return result  # type: ignore[return-value]


def fail(evaluator: Evaluator, source: str) -> NScriptError:
    result = evaluator.evaluate_line(source)
    assert isinstance(result, NScriptError), result
    return result


# floor


@pytest.mark.parametrize(
    "source,expected", [("floor(3.7)", 3.0), ("floor(-3.7)", -3.0), ("floor(5)", 5.0)]
)
def test_floor_truncates(evaluator: Evaluator, source: str, expected: float) -> None:
    assert run(evaluator, source).value == expected  # type: ignore[union-attr]


def test_floor_arity(evaluator: Evaluator) -> None:
    err = fail(evaluator, "floor()")
    assert err.text == "builtin `floor` expects 1 args (found 0)"
    assert err.position == Position(0, 5)


def test_floor_type(evaluator: Evaluator) -> None:
    err = fail(evaluator, "floor('a')")
    assert err.text == "expected `num` (found `str`)"
    assert err.position == Position(6, 9)


def test_arity_is_checked_before_arguments_run(evaluator: Evaluator) -> None:
    fail(evaluator, "floor(a = 1, 2)")
    assert fail(evaluator, "a").text == "unknown variable `a`"


def test_unknown_builtin(evaluator: Evaluator) -> None:
    err = fail(evaluator, "foo(1)")
    assert err.text == "unknown builtin function `foo`"
    assert err.position == Position(0, 3)


# print / clear / shutdown


def test_print_concatenates_without_separators(
    evaluator: Evaluator, console: RecordingConsole
) -> None:
    result = run(evaluator, "print('a', 1, 2.5, none)")
    assert isinstance(result, NoneNode)
    assert console.output == ["a12.5\n"]


def test_print_without_arguments(evaluator: Evaluator, console: RecordingConsole) -> None:
    run(evaluator, "print()")
    assert console.output == ["\n"]


def test_clear_and_shutdown(evaluator: Evaluator, console: RecordingConsole) -> None:
    run(evaluator, "clear()")
    assert console.cleared == 1
    assert not console.powered_off
    run(evaluator, "shutdown()")
    assert console.powered_off


def test_clear_takes_no_arguments(evaluator: Evaluator) -> None:
    assert fail(evaluator, "clear(1)").text == "builtin `clear` expects 0 args (found 1)"


# cd / ls


def test_cd_relative_and_parent(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "games" / "old").mkdir(parents=True)
    run(evaluator, "cd('games')")
    assert evaluator.cwd == "/games/"
    run(evaluator, "cd('old/')")
    assert evaluator.cwd == "/games/old/"
    run(evaluator, "cd('..')")
    assert evaluator.cwd == "/games/"
    run(evaluator, "cd('/')")
    assert evaluator.cwd == "/"


def test_cd_normalizes_segments(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "games").mkdir()
    run(evaluator, "cd('.//games/./')")
    assert evaluator.cwd == "/games/"


def test_cd_unknown_dir_keeps_cwd(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "games").mkdir()
    run(evaluator, "cd('games')")
    err = fail(evaluator, "cd('/nonexistent/')")
    assert err.text == "unknown dir `/nonexistent/`"
    assert evaluator.cwd == "/games/"


def test_cd_into_file_fails(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "notes.txt").write_text("x")
    assert fail(evaluator, "cd('notes.txt')").text == "unknown dir `notes.txt`"


def test_cd_validates_argument(evaluator: Evaluator) -> None:
    assert fail(evaluator, "cd('')").text == "expected a non-empty path"
    assert fail(evaluator, "cd(1)").text == "expected `str` (found `num`)"


def test_ls_lists_entries_with_kinds(
    evaluator: Evaluator, console: RecordingConsole, tmp_path: Path
) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "a.txt").write_text("x")
    run(evaluator, "ls()")
    assert console.output == ["  file a.txt\n", "folder sub\n"]


def test_ls_follows_cwd(
    evaluator: Evaluator, console: RecordingConsole, tmp_path: Path
) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "inner.txt").write_text("x")
    run(evaluator, "cd('sub')")
    run(evaluator, "ls()")
    assert console.output == ["  file inner.txt\n"]


def test_ls_unreadable_cwd(console: RecordingConsole, tmp_path: Path) -> None:
    evaluator = Evaluator(
        filesystem=LocalFilesystem(str(tmp_path)), console=console, cwd="/gone"
    )
    assert fail(evaluator, "ls()").text == "unable to list dir `/gone/`"


# mkdir / rmdir / rmfile


def test_mkdir_creates_directory(evaluator: Evaluator, tmp_path: Path) -> None:
    run(evaluator, "mkdir('saves')")
    assert (tmp_path / "saves").is_dir()


def test_mkdir_existing_fails(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "saves").mkdir()
    err = fail(evaluator, "mkdir('saves')")
    assert err.text == "unable to create dir `/saves`"
    assert err.position == Position(6, 13)


def test_mkdir_resolves_against_cwd(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "games").mkdir()
    run(evaluator, "cd('games')")
    run(evaluator, "mkdir('zelda')")
    assert (tmp_path / "games" / "zelda").is_dir()


def test_rmdir_removes_recursively(evaluator: Evaluator, tmp_path: Path) -> None:
    nested = tmp_path / "old" / "deeper"
    nested.mkdir(parents=True)
    (nested / "file.bin").write_bytes(b"\x00")
    (tmp_path / "old" / "top.txt").write_text("x")
    run(evaluator, "rmdir('old')")
    assert not (tmp_path / "old").exists()


def test_rmdir_missing_fails(evaluator: Evaluator) -> None:
    assert fail(evaluator, "rmdir('missing')").text == "unable to remove dir `/missing`"


def test_rmdir_refuses_root(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "keep.txt").write_text("x")
    assert fail(evaluator, "rmdir('/')").text == "unable to remove dir `/`"
    assert (tmp_path / "keep.txt").exists()


def test_rmfile(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "junk.txt").write_text("x")
    run(evaluator, "rmfile('junk.txt')")
    assert not (tmp_path / "junk.txt").exists()
    assert fail(evaluator, "rmfile('junk.txt')").text == "unable to remove file `/junk.txt`"


@pytest.mark.parametrize(
    "source",
    [
        r"mkdir('a\0b')",
        r"rmdir('a\0b')",
        r"rmfile('a\0b')",
        r"read('a\0b')",
        r"write('a\0b', 'x')",
        r"cd('a\0b')",
    ],
)
def test_path_with_null_char_is_rejected(evaluator: Evaluator, source: str) -> None:
    assert fail(evaluator, source).text == "path cannot contain a null char"


def test_null_char_path_error_points_at_argument(evaluator: Evaluator, tmp_path: Path) -> None:
    assert fail(evaluator, r"mkdir('a\0b')").position == Position(6, 12)
    assert list(tmp_path.iterdir()) == []


# write / read


def test_write_then_read(evaluator: Evaluator, tmp_path: Path) -> None:
    run(evaluator, r"write('notes.txt', 'line one\nline two')")
    assert (tmp_path / "notes.txt").read_text() == "line one\nline two"
    result = run(evaluator, "read('notes.txt')")
    assert result == StringNode("line one\nline two", Position(0, 17))


def test_write_overwrites(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "f.txt").write_text("old content")
    run(evaluator, "write('f.txt', 'new')")
    assert (tmp_path / "f.txt").read_text() == "new"


def test_write_failure(evaluator: Evaluator) -> None:
    err = fail(evaluator, "write('nodir/f.txt', 'x')")
    assert err.text == "unable to open file `/nodir/f.txt` for writing"


def test_write_requires_string_content(evaluator: Evaluator) -> None:
    assert fail(evaluator, "write('f.txt', 1)").text == "expected `str` (found `num`)"


def test_write_arity(evaluator: Evaluator) -> None:
    assert fail(evaluator, "write('f.txt')").text == "builtin `write` expects 2 args (found 1)"


def test_read_missing_file(evaluator: Evaluator) -> None:
    assert fail(evaluator, "read('missing')").text == "unable to open file `/missing`"


def test_read_result_can_be_assigned(evaluator: Evaluator, tmp_path: Path) -> None:
    (tmp_path / "name.txt").write_text("nds")
    run(evaluator, "name = read('name.txt')")
    assert run(evaluator, "name + '!'").value == "nds!"  # type: ignore[union-attr]


# external programs


def test_string_callee_runs_a_program(
    evaluator: Evaluator, processes: FakeProcessRunner
) -> None:
    processes.exit_code = 3
    result = run(evaluator, "'bin/tool'('a', 1, 2.5)")
    assert result == NumNode(3, Position(0, 23))
    assert processes.calls == [("/bin/tool", ["a", "1", "2.5"])]


def test_program_path_resolves_against_cwd(
    evaluator: Evaluator, processes: FakeProcessRunner, tmp_path: Path
) -> None:
    (tmp_path / "games").mkdir()
    run(evaluator, "cd('games')")
    run(evaluator, "'run'()")
    assert processes.calls == [("/games/run", [])]


def test_quoted_builtin_name_is_a_program(
    evaluator: Evaluator, processes: FakeProcessRunner, console: RecordingConsole
) -> None:
    run(evaluator, "'print'('x')")
    assert processes.calls == [("/print", ["x"])]
    assert console.output == []


def test_program_spawn_failure(console: RecordingConsole, filesystem: LocalFilesystem) -> None:
    runner = FakeProcessRunner(error=FileNotFoundError(2, "No such file or directory"))
    evaluator = Evaluator(filesystem=filesystem, processes=runner, console=console)
    err = fail(evaluator, "'tool'()")
    assert err.text == "unable to run `tool` (No such file or directory)"
    assert err.position == Position(0, 6)


def test_empty_program_name(evaluator: Evaluator) -> None:
    assert fail(evaluator, "''()").text == "expected a non-empty program name"



def test_program_name_with_null_char(console: RecordingConsole, tmp_path: Path) -> None:
    evaluator = Evaluator(filesystem=LocalFilesystem(str(tmp_path)), console=console)
    err = fail(evaluator, r"'a\0b'()")
    assert err.text == "program name cannot contain a null char"
    assert err.position == Position(0, 6)


def test_program_argument_with_null_char(
    evaluator: Evaluator, processes: FakeProcessRunner
) -> None:
    err = fail(evaluator, r"'tool'('x\0')")
    assert err.text == "program argument cannot contain a null char"
    assert err.position == Position(7, 12)
    assert processes.calls == []


@pytest.mark.skipif(os.name != "posix", reason="uses a shell script")
def test_local_process_runner_end_to_end(console: RecordingConsole, tmp_path: Path) -> None:
    script = tmp_path / "tool.sh"
    script.write_text("#!/bin/sh\nexit 4\n")
    script.chmod(0o755)
    evaluator = Evaluator(filesystem=LocalFilesystem(str(tmp_path)), console=console)
    assert run(evaluator, "'tool.sh'()").value == 4.0  # type: ignore[union-attr]
