# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Configuration parameters."""

from . import level

# Maximum number of iterations of the convergence loop. If the document has not converged after this many
# iterations, the build fails.
# 'max_iteration_count > 0' must be True.
max_iteration_count: int = 10

# What to do when the typesetter reports an input file it did not find ("No file ...") that is not generated by
# the build itself: one of 'ignore', 'warn', 'error'.
# 'error' makes the typesetter run fail.
missing_typesetter_input: str = 'ignore'

# When True, files outside the current working directory (e.g. the class and package files of a TeX distribution)
# are never reported as unreported dependencies.
ignore_dependencies_outside_working_directory: bool = True

# Default value for the output of the executed tools.
# False means: Output is captured for parsing only.
# True means: Output is also written to the standard output of the Python process.
execute_helper_inherits_files_by_default: bool = False
