# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Interpret the result of a tool run and update the staleness information of the document.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = [
    'MISSING_INPUT_POLICIES',
    'process_typesetter_result',
    'process_bibliography_result',
    'process_index_result'
]

import os.path
from typing import List

from .. import di
from .. import fs
from .. import cf
from ..fs import manip
from . import _error
from . import _result
from . import _document
from . import _logparse
from . import _oracle

MISSING_INPUT_POLICIES = ('ignore', 'warn', 'error')


def _outcome(raw: _result.RawResult, diagnostics: _result.Diagnostics, needs_more: bool = False) \
        -> _result.Outcome:
    if raw.returncode != 0 or diagnostics.error_count > 0:
        return _result.Outcome.ERROR
    if needs_more:
        return _result.Outcome.NEEDS_MORE
    return _result.Outcome.FINAL


def _existing_claimed(dependencies: _oracle.Dependencies) -> fs.FileSet:
    return fs.FileSet(d.path for d in dependencies.sources).existing()


def _in_directory(document: _document.DocumentInfo, names) -> fs.FileSet:
    # names as reported by a tool running in the directory of the document
    return fs.FileSet(n if os.path.isabs(n) else os.path.join(document.directory, n) for n in names)


def _apply_missing_input_policy(document: _document.DocumentInfo, diagnostics: _result.Diagnostics):
    policy = cf.missing_typesetter_input
    if policy not in MISSING_INPUT_POLICIES:
        raise ValueError(f"'texloop.cf.missing_typesetter_input' must be one of {MISSING_INPUT_POLICIES!r}, "
                         f"not {policy!r}")

    generated_files = document.generated_files()
    for name in diagnostics.missing_files:
        if _in_directory(document, [name]) & generated_files:
            continue  # e.g. 'doc.toc' before the first run
        if policy == 'warn':
            diagnostics.add_warning(f'input file not found: {name!r}')
        elif policy == 'error':
            diagnostics.add_error(f'input file not found: {name!r}')


def _typesetter_report(diagnostics: _result.Diagnostics, outcome: _result.Outcome) -> List[_result.DiagnosticLine]:
    if outcome is _result.Outcome.ERROR:
        return [li for li in diagnostics.lines if not li.about_references]
    if outcome is _result.Outcome.NEEDS_MORE:
        return [li for li in diagnostics.lines if li.level > di.WARNING]
    return list(diagnostics.lines)


def process_typesetter_result(document: _document.DocumentInfo, raw: _result.RawResult,
                              tool_name: str = 'typesetter') -> _result.RunResult:
    diagnostics = _logparse.parse_latex_log(raw.text)
    dependencies = _oracle.typesetter_dependencies(document)  # before discovery: what this run consulted

    if os.path.isfile(document.recorder_file):
        try:
            read_files, _ = _logparse.accessed_files_from_recorded(document.recorder_file)
        except ValueError as e:
            raise _error.ProtocolViolationError(str(e)) from None
        diagnostics.input_files.update(read_files)
    nonexistent_files = diagnostics.input_files - diagnostics.input_files.existing()
    if nonexistent_files:
        msg = (
            f"{tool_name} reported {len(nonexistent_files)} input file(s) that do not exist:"
            + ''.join(f'\n    {p!r}' for p in nonexistent_files)
        )
        raise _error.ProtocolViolationError(msg)

    _apply_missing_input_policy(document, diagnostics)

    discovered_files = document.discover_side_outputs()

    # content of a file read by the typesetter in the next run has changed
    modified_files = raw.changed_files | raw.appeared_files | discovered_files
    modified_self_read = modified_files - [document.index_input_file]

    outcome = _outcome(raw, diagnostics, diagnostics.rerun_requested or bool(modified_self_read))

    side_outputs = document.confirmed_side_outputs() | [document.output_file]
    if outcome is _result.Outcome.FINAL:
        document.stale.difference_update(side_outputs)
    else:
        document.stale.update(side_outputs)

    # independent of mtimes
    if document.uses_bibliography and modified_files & document.aux_files:
        document.stale.add(document.bibliography_file)
    if document.uses_makeindex and document.index_input_file in modified_files:
        document.stale.add(document.index_file)

    result = _result.RunResult(
        tool_name=tool_name, returncode=raw.returncode, diagnostics=diagnostics, outcome=outcome,
        target=document.output_file,
        claimed_dependencies=_existing_claimed(dependencies),
        seen_dependencies=diagnostics.input_files.copy(),
        report_lines=_typesetter_report(diagnostics, outcome))
    document.last_result_by_tool[tool_name] = result
    return result


def process_bibliography_result(document: _document.DocumentInfo, raw: _result.RawResult,
                                tool_name: str = 'bibliography') -> _result.RunResult:
    diagnostics = _logparse.parse_bibtex_log(raw.text)

    # BibTeX does not report the full path of files found by kpathsea (e.g. 'plain.bst')
    seen_files = _in_directory(document, diagnostics.input_files).existing()

    dependencies = _oracle.bibliography_dependencies(document)
    output_file = document.bibliography_file
    outcome = _outcome(raw, diagnostics)

    if outcome is _result.Outcome.FINAL:
        document.stale.discard(output_file)
        if output_file in raw.changed_files | raw.appeared_files:
            document.stale.add(document.output_file)
        elif os.path.isfile(output_file):
            mtimes = [manip.read_mtime_ns(p) for p in _existing_claimed(dependencies)]
            mtimes = [t for t in mtimes if t is not None]
            if mtimes:
                manip.set_mtime_ns(output_file, max(mtimes))
                di.inform(f'reset mtime of unchanged file: {output_file!r}', level=cf.level.mtime_rollback)
    else:
        document.stale.add(output_file)

    result = _result.RunResult(
        tool_name=tool_name, returncode=raw.returncode, diagnostics=diagnostics, outcome=outcome,
        target=output_file,
        claimed_dependencies=_existing_claimed(dependencies),
        seen_dependencies=seen_files,
        report_lines=list(diagnostics.lines))
    document.last_result_by_tool[tool_name] = result
    return result


def process_index_result(document: _document.DocumentInfo, raw: _result.RawResult,
                         tool_name: str = 'index') -> _result.RunResult:
    diagnostics = _logparse.parse_makeindex_log(raw.text)
    seen_files = _in_directory(document, diagnostics.input_files).existing()

    dependencies = _oracle.index_dependencies(document)
    output_file = document.index_file
    outcome = _outcome(raw, diagnostics)

    if outcome is _result.Outcome.FINAL:
        document.stale.discard(output_file)
        if output_file in raw.changed_files | raw.appeared_files:
            document.stale.add(document.output_file)
    else:
        document.stale.add(output_file)

    result = _result.RunResult(
        tool_name=tool_name, returncode=raw.returncode, diagnostics=diagnostics, outcome=outcome,
        target=output_file,
        claimed_dependencies=_existing_claimed(dependencies),
        seen_dependencies=seen_files,
        report_lines=list(diagnostics.lines))
    document.last_result_by_tool[tool_name] = result
    return result
