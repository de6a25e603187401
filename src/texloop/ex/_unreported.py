# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Find input files a tool has read that were not declared as dependencies.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = ['read_ignore_patterns', 'unreported_dependencies', 'warn_about_unreported_dependencies']

import os.path
import fnmatch
from typing import Iterable, List

from .. import di
from .. import fs
from .. import cf
from . import _document


def read_ignore_patterns(ignore_file: fs.PathLike) -> List[str]:
    # Return the fnmatch patterns in *ignore_file*, one per line.
    # Empty lines and lines whose first non-space character is '#' are ignored.

    with open(fs.normalize_path(ignore_file), 'r', encoding='utf-8') as f:
        lines = f.read().splitlines()

    patterns = []
    for line in lines:
        line = line.strip()
        if line and not line.startswith('#'):
            patterns.append(line)
    return patterns


def _is_outside_working_directory(path: str) -> bool:
    rel_path = os.path.relpath(os.path.abspath(path))
    return rel_path == os.pardir or rel_path.startswith(os.pardir + os.sep)


def _is_ignored(path: str, patterns: Iterable[str]) -> bool:
    name = os.path.basename(path)
    return any(fnmatch.fnmatch(path, p) or fnmatch.fnmatch(name, p) for p in patterns)


def unreported_dependencies(document: _document.DocumentInfo, ignore_patterns: Iterable[str] = ()) -> fs.FileSet:
    # Return the files seen by the last run of each tool that were neither claimed nor generated by the build,
    # without the ones matched by *ignore_patterns*.

    ignore_patterns = list(ignore_patterns)
    generated_files = document.generated_files()

    # declared dependencies of one tool may be seen by another (e.g. a .bib file read via the .aux file)
    claimed_files = fs.FileSet([document.source_file]) | document.dependencies | document.bibliography_inputs

    unreported = fs.FileSet()
    for tool_name in sorted(document.last_result_by_tool):
        result = document.last_result_by_tool[tool_name]
        if result is None:
            continue
        claimed_files |= result.claimed_dependencies
        unreported |= result.seen_dependencies

    unreported = unreported - claimed_files - generated_files
    return fs.FileSet(
        p for p in unreported
        if not _is_ignored(p, ignore_patterns) and
        not (cf.ignore_dependencies_outside_working_directory and _is_outside_working_directory(p)))


def warn_about_unreported_dependencies(document: _document.DocumentInfo,
                                       ignore_patterns: Iterable[str] = ()) -> fs.FileSet:
    unreported = unreported_dependencies(document, ignore_patterns)
    if unreported:
        msg = (
            f'{len(unreported)} unreported dependencies (declare them or add them to the ignore list):'
            + ''.join(f'\n    {p!r}' for p in unreported)
        )
        di.inform(msg, level=cf.level.unreported_dependency)
    return unreported
