# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Filesystem manipulations: content memos and modification time rollback.
This is an implementation detail - do not import it unless you know what you are doing."""

import os
import stat
import shutil
import hashlib
import dataclasses
from typing import Dict, Iterable, Optional, Tuple

from . import FileSet, PathLike, normalize_path


@dataclasses.dataclass(frozen=True)
class FileMemo:
    digest: bytes  # SHA-1 of the content
    mtime_ns: int


def read_mtime_ns(path: PathLike) -> Optional[int]:
    # Return the mtime of the regular file *path* or None if it does not exist or is not a regular file.
    try:
        sr = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return None
    if not stat.S_ISREG(sr.st_mode):
        return None
    return sr.st_mtime_ns


def read_content_digest(path: PathLike) -> bytes:
    content_hash = hashlib.sha1()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(2 ** 16), b''):
            content_hash.update(chunk)
    return content_hash.digest()


def read_file_memo(path: PathLike) -> Optional[FileMemo]:
    mtime_ns = read_mtime_ns(path)
    if mtime_ns is None:
        return None
    return FileMemo(digest=read_content_digest(path), mtime_ns=mtime_ns)


def read_file_memos(paths: Iterable[PathLike]) -> Dict[str, FileMemo]:
    # Return the memos of all existing regular files in *paths* by normalized path.
    memo_by_path = {}
    for p in paths:
        memo = read_file_memo(p)
        if memo is not None:
            memo_by_path[normalize_path(p)] = memo
    return memo_by_path


def set_mtime_ns(path: PathLike, mtime_ns: int):
    # Set the mtime of *path* to *mtime_ns* and keep its atime.
    sr = os.stat(path)
    os.utime(path, ns=(sr.st_atime_ns, int(mtime_ns)))


def roll_back_unchanged(memo_by_path: Dict[str, FileMemo]) -> Tuple[FileSet, FileSet]:
    # Compare each file in *memo_by_path* with its memo taken before. If its content is unchanged, reset its mtime to
    # the one in the memo.
    #
    # Return the paths of the changed (including removed) files and the paths of the files whose mtime was reset.

    changed = FileSet()
    rolled_back = FileSet()
    for p, memo in memo_by_path.items():
        new_memo = read_file_memo(p)
        if new_memo is None or new_memo.digest != memo.digest:
            changed.add(p)
        elif new_memo.mtime_ns != memo.mtime_ns:
            set_mtime_ns(p, memo.mtime_ns)
            rolled_back.add(p)
    return changed, rolled_back


def remove_filesystem_object(path: PathLike, *, ignore_non_existent: bool = False):
    # Remove the filesystem object *path*.
    #
    # If *path* refers to an existing symbolic link, the symbolic link is removed, not its target.
    # If *path* refers to an existing directory, it is removed with its content.
    #
    # Raises FileNotFoundError if *path* does not exist and *ignore_non_existent* is False.

    if isinstance(path, bytes):
        # prevent special treatment by byte paths
        raise TypeError("'path' must be a str or os.PathLike object, not bytes")
    path = os.fspath(path)

    is_directory = False
    try:
        try:
            os.remove(path)  # does remove symlink, not target
        except IsADirectoryError:
            is_directory = True
        except PermissionError:
            # on MS Windows for directories
            is_directory = os.path.isdir(path)
            if not is_directory:
                raise
    except FileNotFoundError:
        if not ignore_non_existent:
            raise

    if not is_directory:
        return

    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        if not ignore_non_existent:
            raise
