"""Filesystem operations for generated output and the shadow tree.

An output set maps root-relative POSIX paths to file bytes. It is the only
interface between generation and anything that touches the disk.
"""

from __future__ import annotations

import shutil
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

OutputSet = dict[str, bytes]


def is_relative_path(rel_path: str) -> bool:
    """True when every ``/``-separated segment is a real name (not empty, ``.`` or ``..``)."""
    return bool(rel_path) and all(part not in ("", ".", "..") for part in rel_path.split("/"))


def safe_join(root: Path, rel_path: str) -> Path:
    """Join *rel_path* under *root*, rejecting paths that escape it."""
    if not is_relative_path(rel_path):
        msg = f"Invalid output path: {rel_path!r}"
        raise ValueError(msg)
    result = root.joinpath(*PurePosixPath(rel_path).parts)
    if not result.resolve().is_relative_to(root.resolve()):
        msg = f"Path escapes output root: {rel_path!r}"
        raise ValueError(msg)
    return result


def clear_directory(root: Path, *, keep: frozenset[str] = frozenset()) -> None:
    """Delete everything inside *root* except top-level names in *keep*."""
    if not root.is_dir():
        return
    for child in root.iterdir():
        if child.name in keep:
            continue
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def write_output_set(
    root: Path,
    files: Mapping[str, bytes],
    *,
    keep: frozenset[str] = frozenset(),
) -> list[Path]:
    """Replace the contents of *root* with *files*.

    Every path is validated before anything is deleted or written.
    """
    targets = {rel: safe_join(root, rel) for rel in files}
    root.mkdir(parents=True, exist_ok=True)
    clear_directory(root, keep=keep)
    written: list[Path] = []
    for rel, path in sorted(targets.items()):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(files[rel])
        written.append(path)
    return written


def read_output_set(root: Path, *, skip: frozenset[str] = frozenset({".git"})) -> OutputSet:
    """Load every file under *root* as an output set."""
    files: OutputSet = {}
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(root)
        if rel.parts[0] in skip:
            continue
        files[rel.as_posix()] = path.read_bytes()
    return files
