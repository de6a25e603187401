# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Parse log files and other files written by TeX, BibTeX and MakeIndex.
This is an implementation detail - do not import it unless you know what you are doing."""

# TeX: <https://ctan.org/tex-archive/systems/knuth/dist/tex/tex.web>
# BibTeX: <https://ctan.org/tex-archive/biblio/bibtex/base/bibtex.web>
# MakeIndex: <https://ctan.org/tex-archive/indexing/makeindex>
# Tested with: pdfTeX 3.14159265-2.6-1.40.19, BibTeX 0.99d, makeindex 2.15

__all__ = [
    'MAX_PRINT_LINE',
    'accessed_files_from_recorded',
    'files_from_aux_chain',
    'parse_latex_log',
    'parse_bibtex_log',
    'parse_makeindex_log'
]

import re
import sys
import os.path
from typing import List, Tuple

from .. import di
from .. import fs
from . import _result

# TeX breaks lines in its log file after this many characters (web2c's default of 'max_print_line')
MAX_PRINT_LINE = 79

_LATEX_ERROR_REGEX = re.compile(r'^! (?P<message>.+)$')
_LATEX_FILE_LINE_ERROR_REGEX = re.compile(r'^(?P<file>[^\s:][^:]*\.\w+):(?P<line>[0-9]+): (?P<message>.+)$')
_LATEX_ERROR_CONTEXT_REGEX = re.compile(r'^l\.(?P<line>[0-9]+) ')
_LATEX_WARNING_REGEX = re.compile(
    r'^(?:LaTeX(?: Font)?|Package (?P<package>\S+)|Class (?P<class>\S+)) Warning: (?P<message>.*)$')
_LATEX_BADBOX_REGEX = re.compile(r'^(?:Overfull|Underfull) \\[hv]box .*$')
_LATEX_MISSING_FILE_REGEX = re.compile(r'^No file (?P<file>.+)\.$')

_REFERENCE_WARNING_REGEX = re.compile(
    r"(?:Reference|Citation|Label) `|undefined (?:references|citations)|multiply[- ]defined|"
    r"Label\(s\) may have changed")
_RERUN_REGEX = re.compile(r'\b[Rr]erun\b|Label\(s\) may have changed|Please \(re\)run')
_OTHER_TOOL_REGEX = re.compile(r'\b(?:BibTeX|Biber|makeindex|xindy)\b', re.IGNORECASE)

_BIBTEX_INPUT_REGEX = re.compile(
    r'^(?:The top-level auxiliary file|A level-[0-9]+ auxiliary file|The style file|Database file #[0-9]+): '
    r'(?P<file>.+)$')
_BIBTEX_ERROR_LOCATION_REGEX = re.compile(r'^(?P<message>.*)---(?P<location>line [0-9]+ of file .+|while reading file .+)$')
_BIBTEX_OPEN_ERROR_REGEX = re.compile(r"^I couldn't open .+$")
_BIBTEX_WARNING_REGEX = re.compile(r'^Warning--(?P<message>.+)$')
_BIBTEX_ERROR_SUMMARY_REGEX = re.compile(r'^\(There (?:was|were) (?P<count>[0-9]+) error messages?\)$')

_MAKEINDEX_INPUT_REGEX = re.compile(r'^Scanning (?:input|style) file (?P<file>.+?)\.{3,}')
_MAKEINDEX_BLOCK_REGEX = re.compile(r'^(?P<kind>!!|##) (?P<title>.+?):?$')
_MAKEINDEX_DETAIL_REGEX = re.compile(r'^\s+-- (?P<message>.+)$')
_MAKEINDEX_NOT_FOUND_REGEX = re.compile(r'^(?:Input index|Index style) file .+ not found\.$')
_MAKEINDEX_REJECTED_REGEX = re.compile(r'\((?:[0-9]+) entr(?:y|ies) accepted, (?P<count>[0-9]+) rejected\)')

_AUX_INPUT_REGEX = re.compile(br'\\@input\{(?P<file>[^{}]+)\}')


def _decoded_lines(text: str) -> List[str]:
    return [di.printable(li).rstrip() for li in text.splitlines()]


def _unwrapped_lines(text: str) -> List[str]:
    # Join the lines TeX has broken at MAX_PRINT_LINE characters.
    lines = []
    continued = False
    for line in text.splitlines():
        if continued:
            lines[-1] += line
        else:
            lines.append(line)
        continued = len(line) == MAX_PRINT_LINE
    return [di.printable(li).rstrip() for li in lines]


def _working_directory_path(path: str) -> str:
    # Return *path* relative to the current working directory if it is inside, else absolute.
    abs_path = os.path.abspath(path)
    rel_path = os.path.relpath(abs_path)
    if rel_path == os.pardir or rel_path.startswith(os.pardir + os.sep):
        return abs_path
    return rel_path


def accessed_files_from_recorded(recorder_file: fs.PathLike) -> Tuple[List[str], List[str]]:
    # Return the paths of the files read and the paths of the files written, as recorded by TeX with '-recorder'.
    #
    # Create <base-file>.fls with texk/web2c/lib/openclose.c.
    # https://www.tug.org/svn/pdftex/tags/pdftex-1.40.19/source/src/texk/web2c/lib/openclose.c?view=markup#l76
    # Paths can contain arbitrary characters except '\n' and '\r'.
    #
    # Each path is relative to the current working directory if inside, absolute otherwise.
    # Each path is contained only once (in order of the first access).

    read_files = []
    written_files = []

    recorder_file = os.fspath(recorder_file)
    with open(recorder_file, 'rb') as f:
        pwd = None
        for line in f:
            path = None
            is_output = None
            line = line.rstrip(b'\r\n')
            if line.startswith(b'PWD '):
                pwd = line[4:].decode(sys.getfilesystemencoding())
                if not os.path.isabs(pwd):
                    raise ValueError(f"invalid line in {recorder_file!r}: {line!r}")
            elif line.startswith(b'INPUT '):
                path = line[6:].decode(sys.getfilesystemencoding())
                is_output = False
            elif line.startswith(b'OUTPUT '):
                path = line[7:].decode(sys.getfilesystemencoding())
                is_output = True
            elif line:
                raise ValueError(f"invalid line in {recorder_file!r}: {line!r}")

            if path:
                if not os.path.isabs(path):
                    if pwd is None:
                        raise ValueError(f"relative path before 'PWD' line in {recorder_file!r}: {line!r}")
                    path = os.path.join(pwd, path)
                path = _working_directory_path(path)
                seq = written_files if is_output else read_files
                if path not in seq:
                    seq.append(path)

    return read_files, written_files


def files_from_aux_chain(aux_file: fs.PathLike, directory: fs.PathLike) -> List[str]:
    # Return the paths of *aux_file* and all aux files it includes by '\@input{...}' (e.g. by '\include{...}'),
    # recursively. Included files are relative to *directory* (the working directory of the typesetter).
    # Files that do not exist are omitted (except *aux_file* itself).

    aux_file = fs.normalize_path(aux_file)
    aux_files = [aux_file]
    pending = [aux_file]
    while pending:
        p = pending.pop(0)
        try:
            with open(p, 'rb') as f:
                content = f.read()
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            continue
        for m in _AUX_INPUT_REGEX.finditer(content):
            name = m.group('file').decode(sys.getfilesystemencoding(), errors='replace')
            included_file = fs.normalize_path(os.path.join(directory, name))
            if included_file not in aux_files and os.path.isfile(included_file):
                aux_files.append(included_file)
                pending.append(included_file)

    return aux_files


def parse_latex_log(text: str) -> _result.Diagnostics:
    diagnostics = _result.Diagnostics()
    lines = _unwrapped_lines(text)

    i = 0
    while i < len(lines):
        line = lines[i]
        i += 1

        m = _LATEX_FILE_LINE_ERROR_REGEX.match(line) or _LATEX_ERROR_REGEX.match(line)
        if m:
            message = m.group('message')
            if 'line' in m.groupdict():
                message = f"{m.group('file')}:{m.group('line')}: {message}"
            else:
                # error context follows within a few lines: 'l.12 \foo'
                for context_line in lines[i:i + 8]:
                    mc = _LATEX_ERROR_CONTEXT_REGEX.match(context_line)
                    if mc:
                        message = f"{message} (line {mc.group('line')})"
                        break
            diagnostics.add_error(message)
            continue

        m = _LATEX_WARNING_REGEX.match(line)
        if m:
            message = m.group('message').strip()
            origin = m.group('package') or m.group('class')
            if origin:
                # continuation lines: '(hyperref)                Rerun to get outlines right'
                continuation_prefix = f'({origin})'
                while i < len(lines) and lines[i].startswith(continuation_prefix):
                    message = f'{message} {lines[i][len(continuation_prefix):].strip()}'.strip()
                    i += 1
                message = f'{origin}: {message}'
            about_references = _REFERENCE_WARNING_REGEX.search(message) is not None
            diagnostics.add_warning(message, about_references=about_references)
            if _RERUN_REGEX.search(message) and not _OTHER_TOOL_REGEX.search(message):
                diagnostics.rerun_requested = True
            continue

        m = _LATEX_BADBOX_REGEX.match(line)
        if m:
            diagnostics.add_info(line)
            continue

        m = _LATEX_MISSING_FILE_REGEX.match(line)
        if m:
            diagnostics.missing_files.append(m.group('file'))

    return diagnostics


def parse_bibtex_log(text: str) -> _result.Diagnostics:
    diagnostics = _result.Diagnostics()
    lines = _decoded_lines(text)
    summarized_error_count = 0

    for i, line in enumerate(lines):
        m = _BIBTEX_INPUT_REGEX.match(line)
        if m:
            diagnostics.input_files.add(m.group('file').strip())
            continue

        m = _BIBTEX_ERROR_LOCATION_REGEX.match(line)
        if m:
            message = m.group('message').strip()
            if not message and i > 0:
                message = lines[i - 1].strip()  # e.g. "I couldn't open database file x.bib"
            diagnostics.add_error(f"{message} ({m.group('location')})" if message else m.group('location'))
            continue

        m = _BIBTEX_OPEN_ERROR_REGEX.match(line)
        if m:
            next_line = lines[i + 1] if i + 1 < len(lines) else ''
            if not _BIBTEX_ERROR_LOCATION_REGEX.match(next_line):
                diagnostics.add_error(line)
            continue

        m = _BIBTEX_WARNING_REGEX.match(line)
        if m:
            diagnostics.add_warning(m.group('message').strip())
            continue

        m = _BIBTEX_ERROR_SUMMARY_REGEX.match(line)
        if m:
            summarized_error_count = int(m.group('count'))

    diagnostics.error_count = max(diagnostics.error_count, summarized_error_count)
    return diagnostics


def parse_makeindex_log(text: str) -> _result.Diagnostics:
    diagnostics = _result.Diagnostics()
    lines = _decoded_lines(text)
    rejected_count = 0

    i = 0
    while i < len(lines):
        line = lines[i]
        i += 1

        m = _MAKEINDEX_INPUT_REGEX.match(line)
        if m:
            diagnostics.input_files.add(m.group('file').strip())
            mr = _MAKEINDEX_REJECTED_REGEX.search(line)
            if mr:
                rejected_count += int(mr.group('count'))
            continue

        m = _MAKEINDEX_BLOCK_REGEX.match(line)
        if m:
            message = m.group('title').strip()
            while i < len(lines):
                md = _MAKEINDEX_DETAIL_REGEX.match(lines[i])
                if not md:
                    break
                message = f"{message}: {md.group('message').strip()}"
                i += 1
            if m.group('kind') == '!!':
                diagnostics.add_error(message)
            else:
                diagnostics.add_warning(message)
            continue

        if _MAKEINDEX_NOT_FOUND_REGEX.match(line):
            diagnostics.add_error(line)

    diagnostics.error_count = max(diagnostics.error_count, rejected_count)
    return diagnostics
