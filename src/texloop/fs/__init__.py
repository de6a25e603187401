# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Sets of paths of filesystem objects and dependencies on them."""

__all__ = ['PathLike', 'normalize_path', 'FileSet', 'Requirement', 'Dependency']

import os
import enum
import dataclasses
from typing import Iterable, Iterator, List, Union

PathLike = Union[str, os.PathLike]


def normalize_path(path: PathLike) -> str:
    # Return *path* as a str without redundant separators and '.' components.
    # Does not access the filesystem; 'a/../b' is normalized to 'b'.

    if isinstance(path, bytes):
        # prevent special treatment by byte paths
        raise TypeError("path must be a str or os.PathLike object, not bytes")

    path = os.fspath(path)
    if not isinstance(path, str):
        raise TypeError("path must be a str or os.PathLike object")
    if not path:
        raise ValueError("invalid path: ''")
    if '\0' in path:
        raise ValueError(f"invalid path: {path!r} (must not contain NUL)")

    return os.path.normpath(path)


class FileSet:
    # Set of paths of files.
    #
    # The paths are normalized on insertion; equivalent spellings of the same relative or absolute path are
    # considered the same member. Iteration is in sorted order.

    def __init__(self, paths: Iterable[PathLike] = ()):
        if isinstance(paths, (str, bytes, os.PathLike)):
            raise TypeError("'paths' must be an iterable of paths, not a single path")
        self._paths = {normalize_path(p) for p in paths}

    def add(self, path: PathLike):
        self._paths.add(normalize_path(path))

    def discard(self, path: PathLike):
        self._paths.discard(normalize_path(path))

    def update(self, paths: Iterable[PathLike]):
        self._paths.update(FileSet(paths)._paths)

    def difference_update(self, paths: Iterable[PathLike]):
        self._paths.difference_update(FileSet(paths)._paths)

    def copy(self) -> 'FileSet':
        s = FileSet()
        s._paths = set(self._paths)
        return s

    def as_list(self) -> List[str]:
        return sorted(self._paths)

    def existing(self) -> 'FileSet':
        # Return the subset of paths of existing regular files (or symbolic links to them).
        s = FileSet()
        s._paths = {p for p in self._paths if os.path.isfile(p)}
        return s

    def __contains__(self, path) -> bool:
        try:
            return normalize_path(path) in self._paths
        except (TypeError, ValueError):
            return False

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._paths))

    def __len__(self) -> int:
        return len(self._paths)

    def __bool__(self) -> bool:
        return bool(self._paths)

    def __or__(self, other: Iterable[PathLike]) -> 'FileSet':
        s = self.copy()
        s.update(other)
        return s

    def __sub__(self, other: Iterable[PathLike]) -> 'FileSet':
        s = self.copy()
        s.difference_update(other)
        return s

    def __and__(self, other: Iterable[PathLike]) -> 'FileSet':
        s = FileSet()
        s._paths = self._paths & FileSet(other)._paths
        return s

    def __eq__(self, other) -> bool:
        if not isinstance(other, FileSet):
            return NotImplemented
        return self._paths == other._paths

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({self.as_list()!r})'


@enum.unique
class Requirement(enum.Enum):
    REQUIRED = 'required'
    OPTIONAL = 'optional'  # consulted if present, not required to exist


@dataclasses.dataclass(frozen=True)
class Dependency:
    path: str
    requirement: Requirement = Requirement.REQUIRED

    def __post_init__(self):
        object.__setattr__(self, 'path', normalize_path(self.path))
        if not isinstance(self.requirement, Requirement):
            raise TypeError("'requirement' must be a Requirement")

    @property
    def is_required(self) -> bool:
        return self.requirement is Requirement.REQUIRED

    @classmethod
    def required(cls, path: PathLike) -> 'Dependency':
        return cls(path, Requirement.REQUIRED)

    @classmethod
    def optional(cls, path: PathLike) -> 'Dependency':
        return cls(path, Requirement.OPTIONAL)
