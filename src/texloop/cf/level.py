# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Log levels for texloop.di by category."""

from .. import di

run_decision: int = di.DEBUG + 3
run_start: int = di.INFO
run_report: int = di.INFO

mtime_rollback: int = di.DEBUG + 5
helper_execution: int = di.DEBUG + 7

stale_cleanup: int = di.WARNING
unreported_dependency: int = di.WARNING

build_summary: int = di.INFO

del di
