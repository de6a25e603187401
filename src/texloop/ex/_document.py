# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Static and dynamic information on the build of one document.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = ['DocumentInfo', 'check_source_path']

import os.path
from typing import Dict, Iterable, Optional

from .. import ut
from .. import fs
from . import _error
from . import _result
from . import _logparse

_RESERVED_CHARACTERS = frozenset('\n\r')

TOC_SUFFIXES = ('.toc', '.lof', '.lot')


def check_source_path(path: fs.PathLike) -> str:
    # Return the normalized *path* of a main source file or raise ConfigurationError if it is unsuitable
    # for the typesetter.

    try:
        path = fs.normalize_path(path)
    except (TypeError, ValueError) as e:
        raise _error.ConfigurationError(f'invalid source path: {ut.exception_to_line(e)}') from None

    invalid_characters = set(path) & _RESERVED_CHARACTERS
    if invalid_characters:
        raise _error.ConfigurationError("source path must not contain reserved characters: {0}".format(
            ','.join(repr(c) for c in sorted(invalid_characters))))

    name = os.path.basename(path)
    if '.' not in name[1:] or name.endswith('.'):
        raise _error.ConfigurationError(f"source path must have a suffix: {path!r}")
    if '  ' in path:
        raise _error.ConfigurationError(f"source path must not contain consecutive spaces: {path!r}")

    if not os.path.isfile(path):
        raise _error.ConfigurationError(f"source file does not exist: {path!r}")

    return path


def _checked_existing_files(paths: Iterable[fs.PathLike], role: str) -> fs.FileSet:
    try:
        files = fs.FileSet(paths)
    except (TypeError, ValueError) as e:
        raise _error.ConfigurationError(f'invalid {role}: {ut.exception_to_line(e)}') from None

    missing = files - files.existing()
    if missing:
        raise _error.ConfigurationError(
            f"declared {role} does not exist: {', '.join(repr(p) for p in missing)}")
    return files


class DocumentInfo:
    # Information on the build of one document.
    #
    # All paths are relative to the current working directory (or absolute) and normalized.
    # The typesetter runs in *directory*; all files it generates are in *directory*.

    def __init__(self, source_file: fs.PathLike, *,
                 bibliography_inputs: Iterable[fs.PathLike] = (),
                 dependencies: Iterable[fs.PathLike] = (),
                 uses_bibliography: Optional[bool] = None,
                 uses_pdf_mode: bool = False):

        self._source_file = check_source_path(source_file)
        self._directory = os.path.dirname(self._source_file) or os.curdir
        self._basename = os.path.splitext(os.path.basename(self._source_file))[0]

        self._bibliography_inputs = _checked_existing_files(bibliography_inputs, 'bibliography input')
        self._dependencies = _checked_existing_files(dependencies, 'dependency')

        self._uses_bibliography = bool(self._bibliography_inputs) if uses_bibliography is None \
            else bool(uses_bibliography)
        self._uses_pdf_mode = bool(uses_pdf_mode)

        self.log_file = self._generated('.log')
        self.recorder_file = self._generated('.fls')
        self.aux_file = self._generated('.aux')
        self.bibliography_file = self._generated('.bbl')
        self.bibliography_log_file = self._generated('.blg')
        self.output_file = self._generated('.pdf' if self._uses_pdf_mode else '.dvi')
        self.index_input_file = self._generated('.idx')
        self.index_file = self._generated('.ind')
        self.index_log_file = self._generated('.ilg')
        self.outline_file = self._generated('.out')

        self.possible_toc_files = fs.FileSet(self._generated(s) for s in TOC_SUFFIXES)

        # auto-detected, augmented after each typesetter run
        self.aux_files = fs.FileSet([self.aux_file])
        self.toc_files = fs.FileSet()
        self.uses_makeindex = False
        self.uses_outline = False
        self.discover_side_outputs()  # from a previous build

        # dynamic
        self.stale = fs.FileSet()
        self.last_result_by_tool: Dict[str, Optional[_result.RunResult]] = {}

    def _generated(self, suffix: str) -> str:
        return fs.normalize_path(os.path.join(self._directory, self._basename + suffix))

    @property
    def source_file(self) -> str:
        return self._source_file

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def basename(self) -> str:
        return self._basename

    @property
    def bibliography_inputs(self) -> fs.FileSet:
        return self._bibliography_inputs.copy()

    @property
    def dependencies(self) -> fs.FileSet:
        return self._dependencies.copy()

    @property
    def uses_bibliography(self) -> bool:
        return self._uses_bibliography

    @property
    def uses_pdf_mode(self) -> bool:
        return self._uses_pdf_mode

    def side_output_candidates(self) -> fs.FileSet:
        # Return the paths of all (existing or potential) files the typesetter may write besides its output and
        # its log, and may read in a later run.
        candidates = self.aux_files | _logparse.files_from_aux_chain(self.aux_file, self._directory)
        candidates |= self.possible_toc_files
        candidates.update([self.index_input_file, self.outline_file])
        return candidates

    def confirmed_side_outputs(self) -> fs.FileSet:
        # Side outputs that are only read by the typesetter itself.
        files = self.toc_files.copy()
        if self.uses_outline:
            files.add(self.outline_file)
        return files

    def discover_side_outputs(self) -> fs.FileSet:
        # Update the auto-detected information from the existing files.
        # Return the files that were not known before.

        discovered = fs.FileSet()

        for p in _logparse.files_from_aux_chain(self.aux_file, self._directory):
            if p not in self.aux_files:
                self.aux_files.add(p)
                discovered.add(p)

        for p in self.possible_toc_files.existing() - self.toc_files:
            self.toc_files.add(p)
            discovered.add(p)

        if not self.uses_makeindex and os.path.isfile(self.index_input_file):
            self.uses_makeindex = True
            discovered.add(self.index_input_file)

        if not self.uses_outline and os.path.isfile(self.outline_file):
            self.uses_outline = True
            discovered.add(self.outline_file)

        return discovered

    def generated_files(self) -> fs.FileSet:
        files = fs.FileSet([
            self.log_file, self.recorder_file, self.output_file,
            self.bibliography_file, self.bibliography_log_file,
            self.index_input_file, self.index_file, self.index_log_file,
            self.outline_file
        ])
        files |= self.aux_files | self.possible_toc_files
        return files

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({self._source_file!r})'


ut.set_module_name_to_parent_by_name(vars(), ['DocumentInfo'])
