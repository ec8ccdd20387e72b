"""
Host collaborators used by the NScript evaluator.

Protocols:
    Filesystem: File and directory primitives addressed by NScript absolute paths.
    ProcessRunner: Synchronous external program execution.
    Console: Output sink plus the screen/power controls of the device.

Implementations:
    LocalFilesystem: Maps NScript paths under a host root directory.
    LocalProcessRunner: Runs mapped programs with `subprocess`.
    StdConsole: Writes to a text stream (stdout by default).

Path helpers:
    split_path(path): Normalized segments of an absolute path (`.`, `..`, `//` resolved).
    resolve_path(cwd, path): Absolute, normalized form of `path` relative to `cwd`.
    as_dir_path(path): Same path with a trailing slash, as stored for the working directory.

NScript paths always use `/` and are absolute once resolved. `..` at the root
stays at the root, so a `LocalFilesystem` never reaches outside its host root.
Failures of the primitives are reported by raising `OSError`.
"""

import os
import shutil
import subprocess
import sys
from typing import Protocol, TextIO

ENTRY_KINDS = ("file", "folder", "other", "?")


def split_path(path: str) -> list[str]:
    parts: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    return parts


def resolve_path(cwd: str, path: str) -> str:
    """Resolves `path` against `cwd` and normalizes it, e.g. ("/a/", "../b//c") → "/b/c"."""
    if not path.startswith("/"):
        path = cwd.rstrip("/") + "/" + path
    return "/" + "/".join(split_path(path))


def as_dir_path(path: str) -> str:
    return path if path.endswith("/") else path + "/"


class Filesystem(Protocol):  # pragma: no cover
    """Filesystem primitives used by the builtins. Paths are NScript absolute paths."""

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def list_entries(self, path: str) -> list[tuple[str, str]]: ...

    def read_all(self, path: str) -> str: ...

    def write_all(self, path: str, content: str) -> None: ...

    def remove_file(self, path: str) -> None: ...

    def make_dir(self, path: str) -> None: ...

    def remove_dir_recursive(self, path: str) -> None: ...


class ProcessRunner(Protocol):  # pragma: no cover
    def spawn_and_wait(self, path: str, argv: list[str]) -> int: ...


class Console(Protocol):  # pragma: no cover
    def write(self, text: str) -> None: ...

    def clear_screen(self) -> None: ...

    def shutdown(self) -> None: ...


class LocalFilesystem:
    """Filesystem backed by a host directory.

    Attributes:
        root (str): Host directory that the NScript path `/` maps to.
    """

    def __init__(self, root: str = "/") -> None:
        self.root = os.path.abspath(root)

    def host_path(self, path: str) -> str:
        return os.path.join(self.root, *split_path(path))

    def exists(self, path: str) -> bool:
        return os.path.exists(self.host_path(path))

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(self.host_path(path))

    def list_entries(self, path: str) -> list[tuple[str, str]]:
        """Lists a directory as sorted `(name, kind)` pairs, kind being one of `ENTRY_KINDS`.

        Symlinks are tagged by their target, so a dangling link is "other".
        """
        entries: list[tuple[str, str]] = []
        with os.scandir(self.host_path(path)) as it:
            for entry in it:
                try:
                    if entry.is_dir():
                        kind = "folder"
                    elif entry.is_file():
                        kind = "file"
                    else:
                        kind = "other"
                except OSError:
                    kind = "?"
                entries.append((entry.name, kind))
        return sorted(entries)

    def read_all(self, path: str) -> str:
        with open(self.host_path(path), encoding="utf-8", errors="surrogateescape") as f:
            return f.read()

    def write_all(self, path: str, content: str) -> None:
        with open(
            self.host_path(path), "w", encoding="utf-8", errors="surrogateescape"
        ) as f:
            f.write(content)

    def remove_file(self, path: str) -> None:
        os.remove(self.host_path(path))

    def make_dir(self, path: str) -> None:
        os.mkdir(self.host_path(path))

    def remove_dir_recursive(self, path: str) -> None:
        if not split_path(path):
            raise PermissionError(f"Refusing to remove the filesystem root: {path}")
        shutil.rmtree(self.host_path(path))


class LocalProcessRunner:
    """Runs programs and waits for them to exit.

    With a `LocalFilesystem`, program paths are mapped under its root;
    otherwise they are used as host paths unchanged.
    """

    def __init__(self, filesystem: LocalFilesystem | None = None) -> None:
        self.filesystem = filesystem

    def spawn_and_wait(self, path: str, argv: list[str]) -> int:
        host = self.filesystem.host_path(path) if self.filesystem is not None else path
        completed = subprocess.run([host, *argv], check=False)  # nosec B603
        return completed.returncode


class StdConsole:
    """Console writing to a text stream.

    `shutdown()` only records the request; the REPL checks `powered_off`
    after each line and leaves the session.
    """

    CLEAR_SEQUENCE = "\033[2J\033[H"

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream
        self.powered_off = False

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def write(self, text: str) -> None:
        out = self._out()
        out.write(text)
        out.flush()

    def clear_screen(self) -> None:
        self.write(self.CLEAR_SEQUENCE)

    def shutdown(self) -> None:
        self.powered_off = True


__all__ = [
    "Console",
    "ENTRY_KINDS",
    "Filesystem",
    "LocalFilesystem",
    "LocalProcessRunner",
    "ProcessRunner",
    "StdConsole",
    "as_dir_path",
    "resolve_path",
    "split_path",
]
