# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Run the typesetter, the bibliography resolver and the index builder until the output of the typesetter
no longer changes.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = ['BuildSummary', 'build', 'remove_generated_files']

import dataclasses
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .. import ut
from .. import di
from .. import fs
from .. import cf
from ..fs import manip
from . import _error
from . import _result
from . import _document
from . import _oracle
from . import _runner
from . import _postprocess
from . import _unreported


@dataclasses.dataclass
class BuildSummary:
    iteration_count: int = 0
    run_count_by_tool: Dict[str, int] = dataclasses.field(default_factory=dict)
    unreported_dependencies: fs.FileSet = dataclasses.field(default_factory=fs.FileSet)

    @property
    def run_count(self) -> int:
        return sum(self.run_count_by_tool.values())

    def __str__(self) -> str:
        runs = ', '.join(f'{n} {ut.plural(c, "run")}' for n, c in sorted(self.run_count_by_tool.items()))
        msg = f"converged after {ut.plural(self.iteration_count, 'iteration')}"
        return f'{msg} ({runs})' if runs else msg


# (tool, dependencies of its run, post-processor of its run, is the tool used by the document?)
_Step = Tuple[
    _runner.Tool,
    Callable[[_document.DocumentInfo], _oracle.Dependencies],
    Callable[[_document.DocumentInfo, _result.RawResult, str], _result.RunResult],
    Callable[[_document.DocumentInfo], bool]
]


def _report(result: _result.RunResult):
    # lines of a tool's log may start with any character; they are output as continuation lines only
    level = max([cf.level.run_report] + [li.level for li in result.report_lines])
    msg = result.summary() + ''.join(
        f'\n    {di.get_level_indicator(li.level)}: {li.message}' for li in result.report_lines)
    di.inform(msg, level=level)


def _run_step(document: _document.DocumentInfo, step: _Step, summary: BuildSummary) -> _result.RunResult:
    tool, dependencies_of, process, _ = step

    # not valid until the result is processed (e.g. on KeyboardInterrupt or ProtocolViolationError)
    dependencies = dependencies_of(document)
    document.stale.update(dependencies.targets - dependencies.ignore_mtime_for)

    with di.Cluster(f'run {tool.NAME} {tool.EXECUTABLE!r}', level=cf.level.run_start, is_progress=True):
        raw = tool.run(document)
        result = process(document, raw, tool.NAME)
    summary.run_count_by_tool[tool.NAME] = summary.run_count_by_tool.get(tool.NAME, 0) + 1

    _report(result)
    if result.outcome is _result.Outcome.ERROR:
        raise _error.ToolExecutionError(result.summary(), result=result)
    return result


def _remove_stale_files(document: _document.DocumentInfo) -> fs.FileSet:
    removed_files = fs.FileSet()
    for p in document.stale.existing():
        manip.remove_filesystem_object(p, ignore_non_existent=True)
        removed_files.add(p)
    if removed_files:
        msg = 'removed stale files:' + ''.join(f'\n    {p!r}' for p in removed_files)
        di.inform(msg, level=cf.level.stale_cleanup)
    return removed_files


def _check_max_iteration_count() -> int:
    n = cf.max_iteration_count
    if not isinstance(n, int) or isinstance(n, bool) or n <= 0:
        raise ValueError(f"'texloop.cf.max_iteration_count' must be a positive integer, not {n!r}")
    return n


def build(document: _document.DocumentInfo, *,
          typesetter: Optional[_runner.Tool] = None,
          bibliography_resolver: Optional[_runner.Tool] = None,
          index_builder: Optional[_runner.Tool] = None,
          ignore_patterns: Iterable[str] = ()) -> BuildSummary:
    # Run the tools on *document* until no tool needs to run, at most 'cf.max_iteration_count' times each.
    #
    # Raises ToolExecutionError if a tool run fails, ConvergenceError if the document does not converge,
    # StalenessInvariantError if there are stale files after convergence.
    # Stale files are removed on every exit (also on KeyboardInterrupt and SystemExit).

    if typesetter is None:
        typesetter = _runner.PdfLatex() if document.uses_pdf_mode else _runner.Latex()
    if bibliography_resolver is None:
        bibliography_resolver = _runner.Bibtex()
    if index_builder is None:
        index_builder = _runner.Makeindex()
    ignore_patterns = list(ignore_patterns)
    max_iteration_count = _check_max_iteration_count()

    # order matters: the typesetter consults the output of the bibliography resolver of the same iteration
    steps: List[_Step] = [
        (bibliography_resolver, _oracle.bibliography_dependencies, _postprocess.process_bibliography_result,
         lambda d: d.uses_bibliography),
        (typesetter, _oracle.typesetter_dependencies, _postprocess.process_typesetter_result,
         lambda d: True),
        (index_builder, _oracle.index_dependencies, _postprocess.process_index_result,
         lambda d: d.uses_makeindex)
    ]

    summary = BuildSummary()

    try:
        with di.Cluster(f'build {document.source_file!r}', level=cf.level.run_start,
                        is_progress=True, with_time=True):
            converged = False
            while not converged:
                if summary.iteration_count >= max_iteration_count:
                    msg = (
                        f'not converged after {ut.plural(max_iteration_count, "iteration")}\n'
                        f'    stale: {", ".join(repr(p) for p in document.stale) or "-"}'
                    )
                    raise _error.ConvergenceError(msg)
                summary.iteration_count += 1

                did_run = False
                did_defer = False
                with di.Cluster(f'iteration {summary.iteration_count}', level=cf.level.run_start):
                    for step in steps:
                        tool, dependencies_of, _, is_used = step
                        if not is_used(document):
                            continue
                        decision = _oracle.should_run_explained(dependencies_of(document), document.stale,
                                                                tool.NAME)
                        if decision is _oracle.Decision.DEFER:
                            did_defer = True
                        elif decision is _oracle.Decision.YES:
                            _run_step(document, step, summary)
                            did_run = True

                if not did_run:
                    if did_defer:
                        raise _error.ConvergenceError('no progress possible: each tool that needs to run '
                                                      'waits for a source no tool produces')
                    converged = True

            if document.stale:
                msg = (
                    'stale files after convergence:'
                    + ''.join(f'\n    {p!r}' for p in document.stale)
                )
                raise _error.StalenessInvariantError(msg)

            summary.unreported_dependencies = \
                _unreported.warn_about_unreported_dependencies(document, ignore_patterns)
    finally:
        _remove_stale_files(document)

    di.inform(str(summary), level=cf.level.build_summary)
    return summary


def remove_generated_files(document: _document.DocumentInfo) -> fs.FileSet:
    # Remove all files the build of *document* may have generated. Return the removed files.
    removed_files = fs.FileSet()
    for p in document.generated_files().existing():
        manip.remove_filesystem_object(p, ignore_non_existent=True)
        removed_files.add(p)
    document.stale = fs.FileSet()
    return removed_files


ut.set_module_name_to_parent_by_name(vars(), ['BuildSummary'])
