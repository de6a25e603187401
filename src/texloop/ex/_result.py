# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Results of tool runs.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = ['Outcome', 'DiagnosticLine', 'Diagnostics', 'RawResult', 'RunResult']

import enum
import dataclasses
from typing import List, NamedTuple, Optional

from .. import ut
from .. import di
from .. import fs


@enum.unique
class Outcome(enum.Enum):
    ERROR = 'error'
    NEEDS_MORE = 'needs more'  # another run of the typesetter is necessary
    FINAL = 'final'


class DiagnosticLine(NamedTuple):
    level: int  # texloop.di.*
    message: str
    about_references: bool = False  # undefined or changed reference, citation or label


@dataclasses.dataclass
class Diagnostics:
    error_count: int = 0
    warning_count: int = 0
    rerun_requested: bool = False
    lines: List[DiagnosticLine] = dataclasses.field(default_factory=list)

    # input files as reported by the tool; not necessarily existing
    input_files: fs.FileSet = dataclasses.field(default_factory=fs.FileSet)

    # input files the tool reported as not found
    missing_files: List[str] = dataclasses.field(default_factory=list)

    def add_error(self, message: str):
        self.lines.append(DiagnosticLine(di.ERROR, message))
        self.error_count += 1

    def add_warning(self, message: str, *, about_references: bool = False):
        self.lines.append(DiagnosticLine(di.WARNING, message, about_references))
        self.warning_count += 1

    def add_info(self, message: str):
        self.lines.append(DiagnosticLine(di.INFO, message))


@dataclasses.dataclass
class RawResult:
    # What a single execution of a tool produced before interpretation.

    returncode: int
    output: str  # output of the tool to stdout (and stderr for the typesetter)
    log: Optional[str] = None  # content of the log file after the execution, if it exists

    # tracked side output files whose content changed (including removed) or that appeared
    changed_files: fs.FileSet = dataclasses.field(default_factory=fs.FileSet)
    appeared_files: fs.FileSet = dataclasses.field(default_factory=fs.FileSet)

    @property
    def text(self) -> str:
        return self.output if self.log is None else self.log


@dataclasses.dataclass
class RunResult:
    tool_name: str
    returncode: int
    diagnostics: Diagnostics
    outcome: Outcome
    target: str
    claimed_dependencies: fs.FileSet
    seen_dependencies: fs.FileSet
    report_lines: List[DiagnosticLine] = dataclasses.field(default_factory=list)

    def __bool__(self) -> bool:
        return self.outcome is not Outcome.ERROR

    def summary(self) -> str:
        d = self.diagnostics
        parts = [
            ut.plural(d.error_count, 'error'),
            ut.plural(d.warning_count, 'warning')
        ]
        if self.returncode:
            parts.append(f'exit status {self.returncode}')
        return f"{self.tool_name} {self.outcome.value}: {', '.join(parts)}"


ut.set_module_name_to_parent_by_name(vars(), __all__)
