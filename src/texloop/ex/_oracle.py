# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Decide whether a tool has to run, based on its sources, its targets and the files known to be stale.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = [
    'Decision', 'Dependencies',
    'should_run', 'should_run_explained',
    'typesetter_dependencies', 'bibliography_dependencies', 'index_dependencies'
]

import enum
import dataclasses
from typing import Iterable, List, Optional, Tuple, Union

from .. import ut
from .. import di
from .. import fs
from .. import cf
from ..fs import manip
from . import _document


@enum.unique
class Decision(enum.Enum):
    NO = 'no'  # up to date
    DEFER = 'defer'  # a source is not ready yet; another tool has to produce it first
    YES = 'yes'


@dataclasses.dataclass
class Dependencies:
    sources: List[fs.Dependency]
    targets: fs.FileSet
    ignore_mtime_for: fs.FileSet = dataclasses.field(default_factory=fs.FileSet)


def _as_dependency(source: Union[fs.PathLike, fs.Dependency]) -> fs.Dependency:
    if isinstance(source, fs.Dependency):
        return source
    return fs.Dependency.required(source)


def _decide(sources: Iterable[Union[fs.PathLike, fs.Dependency]], targets: Iterable[fs.PathLike],
            stale: fs.FileSet, ignore_mtime_for: fs.FileSet) -> Tuple[Decision, Optional[str]]:

    missing_source = None
    stale_source = None
    max_source_mtime_ns = None
    newest_source = None

    for source in sources:
        dependency = _as_dependency(source)
        mtime_ns = manip.read_mtime_ns(dependency.path)
        if mtime_ns is None:
            if dependency.is_required and missing_source is None:
                missing_source = dependency.path
        elif dependency.path in stale:
            if stale_source is None:
                stale_source = dependency.path
        elif max_source_mtime_ns is None or mtime_ns > max_source_mtime_ns:
            max_source_mtime_ns = mtime_ns
            newest_source = dependency.path

    missing_target = None
    stale_target = None
    min_target_mtime_ns = None
    oldest_target = None

    for target in fs.FileSet(targets):
        mtime_ns = manip.read_mtime_ns(target)
        if mtime_ns is None:
            if missing_target is None:
                missing_target = target
        elif target in stale:
            if stale_target is None:
                stale_target = target
        elif target in ignore_mtime_for:
            pass
        elif min_target_mtime_ns is None or mtime_ns < min_target_mtime_ns:
            min_target_mtime_ns = mtime_ns
            oldest_target = target

    if missing_source is not None:
        return Decision.DEFER, f'source is missing: {missing_source!r}'
    if stale_source is not None:
        return Decision.DEFER, f'source is stale: {stale_source!r}'
    if missing_target is not None:
        return Decision.YES, f'target is missing: {missing_target!r}'
    if stale_target is not None:
        return Decision.YES, f'target is stale: {stale_target!r}'
    if max_source_mtime_ns is not None and min_target_mtime_ns is not None and \
            max_source_mtime_ns > min_target_mtime_ns:
        return Decision.YES, f'source {newest_source!r} is newer than target {oldest_target!r}'

    return Decision.NO, None


def should_run(sources: Iterable[Union[fs.PathLike, fs.Dependency]], targets: Iterable[fs.PathLike],
               stale: fs.FileSet, ignore_mtime_for: Iterable[fs.PathLike] = ()) -> Decision:
    # Return Decision.DEFER if a required source is missing or a source is stale,
    # Decision.YES if a target is missing or stale or older than the newest source (unless in *ignore_mtime_for*),
    # Decision.NO otherwise.
    #
    # A source that is not an fs.Dependency is required. A missing optional source is ignored.

    decision, _ = _decide(sources, targets, stale, fs.FileSet(ignore_mtime_for))
    return decision


def should_run_explained(dependencies: Dependencies, stale: fs.FileSet, tool_name: str) -> Decision:
    decision, reason = _decide(dependencies.sources, dependencies.targets, stale, dependencies.ignore_mtime_for)
    msg = f'{tool_name}: {decision.value}'
    if reason:
        msg = f'{msg}\n    reason: {reason}'
    di.inform(msg, level=cf.level.run_decision)
    return decision


def typesetter_dependencies(document: _document.DocumentInfo) -> Dependencies:
    sources = [fs.Dependency.required(document.source_file)]
    sources += [fs.Dependency.required(p) for p in document.dependencies]

    # produced by other tools, consulted by the typesetter if present
    if document.uses_bibliography:
        sources.append(fs.Dependency.optional(document.bibliography_file))
    if document.uses_makeindex:
        sources.append(fs.Dependency.optional(document.index_file))

    # written and read by the typesetter only
    self_read = document.aux_files | document.toc_files
    if document.uses_makeindex:
        self_read.add(document.index_input_file)
    if document.uses_outline:
        self_read.add(document.outline_file)

    return Dependencies(sources=sources, targets=self_read | [document.output_file], ignore_mtime_for=self_read)


def bibliography_dependencies(document: _document.DocumentInfo) -> Dependencies:
    sources = [fs.Dependency.required(document.aux_file)]
    sources += [fs.Dependency.required(p) for p in document.bibliography_inputs]
    return Dependencies(sources=sources, targets=fs.FileSet([document.bibliography_file]))


def index_dependencies(document: _document.DocumentInfo) -> Dependencies:
    return Dependencies(sources=[fs.Dependency.required(document.index_input_file)],
                        targets=fs.FileSet([document.index_file]))


ut.set_module_name_to_parent_by_name(vars(), ['Decision', 'Dependencies'])
