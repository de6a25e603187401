# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""(Technical) utilities.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = []

from typing import Any, Dict, Iterable


def set_module_name_to_parent_by_name(obj_by_name: Dict[str, Any], names: Iterable):
    # e.g. texloop.ex._error.ConvergenceError -> texloop.ex.ConvergenceError
    for name in names:
        obj = obj_by_name[name]
        obj.__module__ = '.'.join(obj.__module__.split('.')[:-1])


def exception_to_line(exc: BaseException, force_classname: bool = False) -> str:
    first_line = str(exc)
    if first_line:
        first_line = first_line.splitlines()[0].replace('\t', ' ').strip()  # only first line

    parts = []
    if force_classname or not first_line:
        cls = exc.__class__
        parts.append(f'{cls.__module__}.{cls.__qualname__}')
    if first_line:
        parts.append(first_line)

    return ': '.join(parts)


def format_time_ns(time_ns: int, number_of_decimal_places: int = 9) -> str:
    # Return a string representation for a time in seconds. The time *time_ns* is given in nanoseconds.
    # Rounded towards 0 for *number_of_decimal_places* < 9.

    time_ns = int(time_ns)
    if time_ns < 0:
        return '-' + format_time_ns(-time_ns, number_of_decimal_places)

    seconds, fraction = divmod(time_ns, 1_000_000_000)
    fraction_str = str(fraction).rjust(9, '0')

    number_of_decimal_places = max(1, int(number_of_decimal_places))
    if number_of_decimal_places >= 9:
        fraction_str += '0' * (number_of_decimal_places - 9)
    else:
        fraction_str = fraction_str[:number_of_decimal_places]

    return f'{seconds}.{fraction_str}'


def plural(count: int, singular: str, plural_form: str = None) -> str:
    if plural_form is None:
        plural_form = singular + 's'
    return f'{count} {singular if count == 1 else plural_form}'
