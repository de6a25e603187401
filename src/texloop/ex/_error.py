# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Exception classes for texloop.ex.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = [
    'BuildError',
    'ConfigurationError',
    'ToolExecutionError',
    'HelperExecutionError',
    'ProtocolViolationError',
    'ConvergenceError',
    'StalenessInvariantError'
]

from typing import Optional
from .. import ut


class BuildError(Exception):
    pass


# declared dependency missing or malformed path; raised before any tool runs
class ConfigurationError(BuildError, ValueError):
    pass


# tool exited with unexpected exit status or reported errors
class ToolExecutionError(BuildError):
    def __init__(self, *args, result: Optional['RunResult'] = None):
        super().__init__(*args)
        self.result = result


# executable could not be started
class HelperExecutionError(ToolExecutionError):
    def __init__(self, *args, oserror: Optional[OSError] = None):
        super().__init__(*args)
        self.oserror = oserror


# the output of a tool contradicts the state of the filesystem
class ProtocolViolationError(BuildError):
    pass


# iteration limit reached or no progress possible
class ConvergenceError(BuildError):
    pass


# files still stale after successful convergence
class StalenessInvariantError(BuildError):
    pass


ut.set_module_name_to_parent_by_name(vars(), __all__)
