# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Run TeX/LaTeX implementations based on web2c and kpathsea, BibTeX and MakeIndex once.
This is an implementation detail - do not import it unless you know what you are doing."""

# LaTeX: <https://www.latex-project.org/>
# pdflatex: <https://www.tug.org/applications/pdftex/>
# BibTeX: <https://www.ctan.org/pkg/bibtex>
# MakeIndex: <https://www.ctan.org/pkg/makeindex>
# Tested with: pdfTeX 3.14159265-2.6-1.40.19 with kpathsea version 6.3.1/dev
# Executable: 'latex'
# Executable: 'pdflatex'
# Executable: 'bibtex'
# Executable: 'makeindex'
#
# Usage example:
#
#   import texloop.ex
#
#   document = texloop.ex.DocumentInfo('src/report.tex', uses_pdf_mode=True)
#   raw_result = texloop.ex.PdfLatex().run(document)

__all__ = ['Tool', 'Latex', 'PdfLatex', 'Bibtex', 'Makeindex']

import os
import sys
import shutil
import subprocess
from typing import Iterable, List, Optional, Tuple

from .. import ut
from .. import di
from .. import fs
from .. import cf
from ..fs import manip
from . import _error
from . import _result
from . import _document


def _check_option(option: str) -> str:
    option = str(option)
    if option[:1] != '-':
        raise ValueError(f"not an option: {option!r}")  # would change meaning of following arguments
    return option


def _read_text_file(path: str) -> Optional[str]:
    try:
        with open(path, 'rb') as f:
            content = f.read()
    except (FileNotFoundError, NotADirectoryError):
        return None
    # logs of TeX are in the encoding of the input files
    return content.decode('utf-8', errors='replace')


class Tool:
    # Dynamic helper, looked-up in $PATH unless it is an absolute path.
    EXECUTABLE = ''

    # Name of the tool for diagnostic messages and as key of DocumentInfo.last_result_by_tool.
    NAME = ''

    # If True, the executable's output to stderr is discarded. Otherwise it is merged into its output to stdout.
    DISCARDS_STDERR = True

    def get_options(self) -> Iterable[str]:
        return []

    def get_helper_path(self) -> str:
        executable = self.EXECUTABLE
        if os.path.isabs(executable):
            if os.path.isfile(executable):
                return executable
            path = None
        else:
            path = shutil.which(executable)
        if path is None:
            raise _error.HelperExecutionError(f"executable not found: {executable!r}")
        return path

    def execute(self, arguments: List[str], *, cwd: str) -> Tuple[int, str]:
        # Execute the helper with *arguments* in working directory *cwd* with stdin redirected to the null device.
        # Return its exit status and its output.

        helper_path = self.get_helper_path()
        commandline_tokens = [helper_path] + [str(a) for a in arguments]

        if di.is_unsuppressed_level(cf.level.helper_execution):
            argument_list_str = ', '.join([repr(t) for t in commandline_tokens[1:]])
            msg = (
                f'execute helper {self.EXECUTABLE!r}\n'
                f'    path: {helper_path!r}\n'
                f'    arguments: {argument_list_str}\n'
                f'    directory: {cwd!r}'
            )
            di.inform(msg, level=cf.level.helper_execution)

        try:
            proc = subprocess.run(
                commandline_tokens, cwd=cwd, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL if self.DISCARDS_STDERR else subprocess.STDOUT)
        except OSError as e:
            msg = f"execution of {self.EXECUTABLE!r} failed: {ut.exception_to_line(e)}"
            raise _error.HelperExecutionError(msg, oserror=e) from None

        output = proc.stdout.decode('utf-8', errors='replace')
        if cf.execute_helper_inherits_files_by_default:
            sys.stdout.write(output)
            sys.stdout.flush()

        return proc.returncode, output

    def run(self, document: _document.DocumentInfo) -> _result.RawResult:
        raise NotImplementedError


class Latex(Tool):
    EXECUTABLE = 'latex'
    NAME = 'typesetter'
    DISCARDS_STDERR = False

    # Command line parameters for *EXECUTABLE* to output version information on standard output
    VERSION_PARAMETERS = ('-version',)

    def run(self, document: _document.DocumentInfo) -> _result.RawResult:
        arguments = [
            '-interaction=nonstopmode', '-halt-on-error', '-file-line-error', '-no-shell-escape',
            '-recorder'  # create .fls file
        ]
        arguments += [_check_option(c) for c in self.get_options()]
        arguments += [os.path.basename(document.source_file)]  # must be last

        cwd = document.directory
        for c in '\n\r':
            if c in os.path.abspath(cwd):
                raise _error.ConfigurationError(f'working directory must not contain {c!r}')  # for -recorder

        # memo of each side output file before the run, to undo mtime changes without content change
        memo_by_path = manip.read_file_memos(document.side_output_candidates())

        for p in (document.log_file, document.recorder_file):
            manip.remove_filesystem_object(p, ignore_non_existent=True)

        returncode, output = self.execute(arguments, cwd=cwd)

        changed_files, rolled_back_files = manip.roll_back_unchanged(memo_by_path)
        if rolled_back_files:
            msg = 'reset mtime of unchanged files:' + ''.join(f'\n    {p!r}' for p in rolled_back_files)
            di.inform(msg, level=cf.level.mtime_rollback)

        appeared_files = document.side_output_candidates().existing() - memo_by_path.keys()

        return _result.RawResult(returncode=returncode, output=output, log=_read_text_file(document.log_file),
                                 changed_files=changed_files, appeared_files=appeared_files)


class PdfLatex(Latex):
    EXECUTABLE = 'pdflatex'


class Bibtex(Tool):
    EXECUTABLE = 'bibtex'
    NAME = 'bibliography'

    VERSION_PARAMETERS = ('-version',)

    def run(self, document: _document.DocumentInfo) -> _result.RawResult:
        arguments = [_check_option(c) for c in self.get_options()]
        arguments += [document.basename]  # must be last
        return _run_with_output_file(self, arguments, document, document.bibliography_file,
                                     document.bibliography_log_file)


class Makeindex(Tool):
    EXECUTABLE = 'makeindex'
    NAME = 'index'

    VERSION_PARAMETERS = ('-q', '-h')

    def run(self, document: _document.DocumentInfo) -> _result.RawResult:
        arguments = [_check_option(c) for c in self.get_options()]
        arguments += [os.path.basename(document.index_input_file)]  # must be last
        return _run_with_output_file(self, arguments, document, document.index_file, document.index_log_file)


def _run_with_output_file(tool: Tool, arguments: List[str], document: _document.DocumentInfo,
                          output_file: str, log_file: str) -> _result.RawResult:
    memo_by_path = manip.read_file_memos([output_file])
    manip.remove_filesystem_object(log_file, ignore_non_existent=True)

    returncode, output = tool.execute(arguments, cwd=document.directory)

    changed_files = fs.FileSet()
    appeared_files = fs.FileSet()
    new_memo = manip.read_file_memo(output_file)
    old_memo = memo_by_path.get(output_file)
    if old_memo is None:
        if new_memo is not None:
            appeared_files.add(output_file)
    elif new_memo is None or new_memo.digest != old_memo.digest:
        changed_files.add(output_file)

    return _result.RawResult(returncode=returncode, output=output, log=_read_text_file(log_file),
                             changed_files=changed_files, appeared_files=appeared_files)


ut.set_module_name_to_parent_by_name(vars(), ['Tool', 'Latex', 'PdfLatex', 'Bibtex', 'Makeindex'])
