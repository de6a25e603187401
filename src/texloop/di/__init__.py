# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Write formatted and indented lines to represent hierarchic diagnostic information to a file.
This module uses levels compatible with the ones of the 'logging' module."""

__all__ = [
    'DEBUG',
    'INFO',
    'WARNING',
    'ERROR',
    'CRITICAL',
    'format_time_ns',
    'set_threshold_level',
    'is_unsuppressed_level',
    'get_level_indicator',
    'set_output_file',
    'format_message',
    'printable',
    'Cluster',
    'inform'
]

import sys
import time
from typing import List, Optional

from .. import ut


# these correspond to logging.* but are fixed (see https://docs.python.org/3/library/logging.html#logging-levels)
DEBUG = 10
INFO = 20
WARNING = 30
ERROR = 40
CRITICAL = 50

_RESERVED_TITLESTART_CHARACTERS = "|' "

_CONTINUATION_LINE_PREFIX = '  | '

_output_file = sys.stderr

_clusters = []

_lowest_unsuppressed_level: int = 1 if sys.flags.verbose else INFO

# time.monotonic_ns() of the first output message with timing information
_first_monotonic_ns: Optional[int] = None

_DECIMAL_PLACES_FOR_TIME = 3

# these correspond to the first characters of the standard logging.getLevelName[...]
_level_indicator_by_level = {
    DEBUG: 'D',
    INFO: 'I',
    WARNING: 'W',
    ERROR: 'E',
    CRITICAL: 'C'
}


def format_time_ns(time_ns: int) -> str:
    return ut.format_time_ns(time_ns, _DECIMAL_PLACES_FOR_TIME)


def printable(text: str) -> str:
    # Replace each ASCII control character in *text* by a space; e.g. for lines of a log file of a tool.
    return ''.join(c if c >= ' ' and c != '\x7F' else ' ' for c in text)


def _normalized_lines(message, *, name: str) -> List[str]:
    # Return the lines of *message* without leading and trailing empty lines and with the common indentation of
    # the first non-empty line removed.
    #
    # Every line but the first one must be indented at least 4 spaces more than the first non-empty line.

    if not isinstance(message, str):
        raise TypeError(f"{name!r} must be a str")

    lines = []
    first_indentation = None

    for lineno0, line in enumerate(message.splitlines()):
        line = line.rstrip()
        for c in line:
            if c < ' ':
                msg = f"{name!r} must not contain ASCII control characters, unlike {c!r} in line {lineno0 + 1}"
                raise ValueError(msg)

        if not line:
            continue

        if first_indentation is None:
            stripped_line = line.lstrip()
            first_indentation = line[:len(line) - len(stripped_line)]
            if stripped_line[0] in _RESERVED_TITLESTART_CHARACTERS:
                msg = (
                    f"first non-empty line in {name!r} must not start with "
                    f"reserved character {stripped_line[0]!r}"
                )
                raise ValueError(msg)
            lines.append(stripped_line)
        else:
            minimum_indentation = first_indentation + ' ' * len(_CONTINUATION_LINE_PREFIX)
            if not line.startswith(minimum_indentation):
                msg = (
                    f"each continuation line in {name!r} must be indented at "
                    f"least {len(_CONTINUATION_LINE_PREFIX)} spaces more than the first non-empty line, "
                    f"unlike line {lineno0 + 1}"
                )
                raise ValueError(msg)
            lines.append(line[len(minimum_indentation):])

    if not lines:
        raise ValueError(f"{name!r} must contain at least one non-empty line")

    return lines


def _format_message(message, *, name: str, prefix: str) -> str:
    lines = _normalized_lines(message, name=name)
    if len(lines) == 1:
        return prefix + lines[0]

    # each line except the last one ends with ' ' (marks continuation)
    formatted_lines = [prefix + lines[0]] + [_CONTINUATION_LINE_PREFIX + li for li in lines[1:]]
    return '\n'.join(li + ' ' for li in formatted_lines[:-1]) + '\n' + formatted_lines[-1]


def _checked_level(level) -> int:
    try:
        level = int(level)
    except (TypeError, ValueError):
        raise TypeError("'level' must be something convertible to an int")

    if not level > 0:
        raise ValueError("'level' must be positive")

    return level


def set_threshold_level(level) -> int:
    # Return the previous threshold level.
    global _lowest_unsuppressed_level
    _lowest_unsuppressed_level, previous_level = _checked_level(level), _lowest_unsuppressed_level
    return previous_level


def is_unsuppressed_level(level) -> bool:
    return _checked_level(level) >= _lowest_unsuppressed_level


def get_level_indicator(level: int) -> str:
    level = _checked_level(level)
    standard_level = max([DEBUG] + [s for s in _level_indicator_by_level if s <= level])
    return _level_indicator_by_level[standard_level]


def set_output_file(file):
    # Return the previous output file.
    if not hasattr(file, 'write'):
        raise TypeError(f"'file' does not have a 'write' method: {file!r}")

    global _output_file
    _output_file, f = file, _output_file
    return f


def format_message(message: str, level: int) -> str:
    return _format_message(message, name='message', prefix=get_level_indicator(level) + ' ')


def _indent(formatted_message: str, nesting: int) -> str:
    indentation = '  ' * max(nesting, 0)
    return '\n'.join(indentation + line for line in formatted_message.split('\n'))


def _append_to_title(formatted_message: str, suffix: str) -> str:
    title, lf, rest = formatted_message.partition('\n')
    if not lf:
        return title + suffix
    return title[:-1] + suffix + ' ' + lf + rest  # keep continuation mark


def _relative_time_suffix(monotonic_ns: Optional[int]) -> str:
    global _first_monotonic_ns
    if monotonic_ns is None:
        return ''
    if _first_monotonic_ns is None:
        _first_monotonic_ns = monotonic_ns
    return ' [+{}s]'.format(format_time_ns(max(0, monotonic_ns - _first_monotonic_ns)))


class Cluster:
    # Group the messages output while the context is entered; they are indented relative to the title.
    # The title is only output when its level is unsuppressed or when a nested message is output.

    def __init__(self, message: str, *, level: int = INFO, is_progress: bool = False, with_time: bool = False):
        self._level = _checked_level(level)
        self._message = message
        _format_message(message, name='message', prefix='')  # check early
        self._is_progress = bool(is_progress)
        self._with_time = bool(with_time)
        self._monotonic_ns: Optional[int] = None
        self._did_inform = False
        self._nesting: Optional[int] = None  # set in __enter__()

    def inform_title(self):
        if self._did_inform:
            return

        for c in _clusters:
            if c is self:
                break
            c.inform_title()  # is parent of self

        title = format_message(self._message, self._level)
        suffix = ('...' if self._is_progress else '') + _relative_time_suffix(self._monotonic_ns)
        if suffix:
            title = _append_to_title(title, suffix)

        _output_file.write(_indent(title, self._nesting) + '\n')
        self._did_inform = True

    def __enter__(self):
        self._nesting = len(_clusters)
        if self._with_time:
            self._monotonic_ns = time.monotonic_ns()
        if is_unsuppressed_level(self._level):
            self.inform_title()
        _clusters.append(self)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        nesting = self._nesting
        self._nesting = None
        if _clusters and _clusters[-1] is self:
            del _clusters[-1]

        if not (self._did_inform and self._is_progress):
            return

        if exc_val is None:
            result = f'{get_level_indicator(min(self._level, INFO))} done.'
        else:
            result = f'{get_level_indicator(max(self._level, ERROR))} failed with {exc_val.__class__.__qualname__}.'
        if self._monotonic_ns is not None:
            result += _relative_time_suffix(time.monotonic_ns())

        _output_file.write(_indent(result, nesting + 1) + '\n')


def inform(message, *, level: int = INFO, with_time: bool = False) -> bool:
    # Output *message* with *level* (if unsuppressed), indented according to the entered clusters.
    # Return True if the message was output.

    level = _checked_level(level)
    formatted_message = format_message(message, level)

    if not is_unsuppressed_level(level):
        return False

    if with_time:
        formatted_message = _append_to_title(formatted_message, _relative_time_suffix(time.monotonic_ns()))

    if _clusters:
        _clusters[-1].inform_title()

    _output_file.write(_indent(formatted_message, len(_clusters)) + '\n')
    return True
