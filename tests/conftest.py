from pathlib import Path

import pytest

from nscript.nscript_evaluator import Evaluator
from nscript.nscript_platform import LocalFilesystem


class RecordingConsole:
    """Console double collecting everything the builtins emit."""

    def __init__(self) -> None:
        self.output: list[str] = []
        self.cleared = 0
        self.powered_off = False

    def write(self, text: str) -> None:
        self.output.append(text)

    def clear_screen(self) -> None:
        self.cleared += 1

    def shutdown(self) -> None:
        self.powered_off = True


class FakeProcessRunner:
    def __init__(self, exit_code: int = 0, error: OSError | None = None) -> None:
        self.exit_code = exit_code
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    def spawn_and_wait(self, path: str, argv: list[str]) -> int:
        self.calls.append((path, argv))
        if self.error is not None:
            raise self.error
        return self.exit_code


@pytest.fixture  # type: ignore[misc]
def console() -> RecordingConsole:
    return RecordingConsole()


@pytest.fixture  # type: ignore[misc]
def processes() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture  # type: ignore[misc]
def filesystem(tmp_path: Path) -> LocalFilesystem:
    return LocalFilesystem(str(tmp_path))


@pytest.fixture  # type: ignore[misc]
def evaluator(
    filesystem: LocalFilesystem,
    processes: FakeProcessRunner,
    console: RecordingConsole,
) -> Evaluator:
    return Evaluator(filesystem=filesystem, processes=processes, console=console)
