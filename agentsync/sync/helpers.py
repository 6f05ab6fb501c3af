"""Small filesystem and list helpers shared by the sync modules."""

from __future__ import annotations

import hashlib
import os
import shutil
from pathlib import Path


def union_merge(stored: list[str], detected: list[str]) -> list[str]:
    """Ordered union: everything in ``stored`` then new items from ``detected``.

    Never drops or reorders a stored item, so repeated merges only grow.
    """
    result = list(stored)
    for item in detected:
        if item not in result:
            result.append(item)
    return result


def text_digest(text: str) -> str:
    return "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()


def tree_digest(path: str | Path) -> str:
    """Digest of a file or a directory tree (relative paths plus file bytes)."""
    path = Path(path)
    h = hashlib.sha256()
    if path.is_file():
        h.update(path.read_bytes())
        return "sha256:" + h.hexdigest()

    for root, dirs, files in os.walk(path):
        dirs.sort()
        for name in sorted(files):
            file_path = Path(root) / name
            rel = file_path.relative_to(path).as_posix()
            h.update(rel.encode("utf-8") + b"\0")
            h.update(file_path.read_bytes())
            h.update(b"\0")
    return "sha256:" + h.hexdigest()


def remove_path(path: str | Path) -> None:
    """Remove a file, symlink or directory tree. Missing paths are ignored."""
    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)


def copy_tree(source: str | Path, dest: str | Path) -> None:
    """Replace ``dest`` with a copy of ``source``."""
    dest = Path(dest)
    remove_path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, dest, symlinks=False)


def link_or_copy(source: str | Path, dest: str | Path) -> bool:
    """Point ``dest`` at ``source`` with a symlink, copying if links are refused.

    Returns True when a link was created.
    """
    dest = Path(dest)
    target = str(source)
    if dest.is_symlink() and os.readlink(dest) == target:
        return True
    remove_path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        os.symlink(target, dest, target_is_directory=True)
        return True
    except (OSError, NotImplementedError):
        copy_tree(source, dest)
        return False


def is_within(path: str | Path, root: str | Path) -> bool:
    """True if ``path`` resolves inside ``root``."""
    try:
        Path(path).resolve().relative_to(Path(root).resolve())
        return True
    except ValueError:
        return False
