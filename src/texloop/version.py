# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Version of texloop.
This is an implementation detail - do not import it unless you know what you are doing."""

__version__ = '0.3.0'

version_info = (0, 3, 0)
