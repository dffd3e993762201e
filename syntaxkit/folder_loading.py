"""Finding syntax definition files in a directory tree."""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Iterator, Union

SYNTAX_SUFFIX = ".sublime-syntax"

PathLike = Union[str, "os.PathLike[str]"]


def walk_dir(folder: PathLike) -> Iterator[Path]:
    """Yield ``folder`` and everything below it, depth first, following symbolic links.

    Entries of each directory come in order of their file names. Raises
    ``FileNotFoundError`` if ``folder`` does not exist and ``OSError`` on a
    symbolic link loop.
    """
    root = Path(folder)
    if not root.exists():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(root))
    yield from _walk(root, ())


def _walk(path: Path, ancestors: tuple[str, ...]) -> Iterator[Path]:
    if not path.is_dir():
        yield path
        return
    real = os.path.realpath(path)
    if real in ancestors:
        raise OSError(errno.ELOOP, f"filesystem loop found at {path}", str(path))
    yield path
    inner = ancestors + (real,)
    for child in sorted(path.iterdir(), key=lambda p: p.name):
        yield from _walk(child, inner)


def find_syntax_files(folder: PathLike) -> Iterator[Path]:
    """Yield every ``.sublime-syntax`` file below ``folder``, in walking order."""
    for path in walk_dir(folder):
        if path.suffix == SYNTAX_SUFFIX and path.is_file():
            yield path


def normalized_path(path: PathLike) -> str:
    """Join the components of ``path`` with ``/`` so paths look the same on every platform."""
    return "/".join(Path(path).parts)