# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

import testenv  # also sets up module search paths
import texloop.ut
import unittest


class ExceptionToLineTest(unittest.TestCase):

    def test_returns_first_line_of_message(self):
        self.assertEqual('a b', texloop.ut.exception_to_line(ValueError('a b\nc')))
        self.assertEqual('a b', texloop.ut.exception_to_line(ValueError(' a\tb ')))

    def test_returns_classname_without_message(self):
        self.assertEqual('builtins.ValueError', texloop.ut.exception_to_line(ValueError()))

    def test_returns_classname_if_forced(self):
        line = texloop.ut.exception_to_line(ValueError('x'), force_classname=True)
        self.assertEqual('builtins.ValueError: x', line)


class FormatTimeNsTest(unittest.TestCase):

    def test_is_correct(self):
        self.assertEqual('0.000000000', texloop.ut.format_time_ns(0))
        self.assertEqual('1.500000000', texloop.ut.format_time_ns(1_500_000_000))
        self.assertEqual('12.345', texloop.ut.format_time_ns(12_345_678_999, 3))
        self.assertEqual('-0.0', texloop.ut.format_time_ns(-12, 1))

    def test_pads_more_than_nine_decimal_places(self):
        self.assertEqual('1.00000000200', texloop.ut.format_time_ns(1_000_000_002, 11))


class PluralTest(unittest.TestCase):

    def test_is_correct(self):
        self.assertEqual('0 runs', texloop.ut.plural(0, 'run'))
        self.assertEqual('1 run', texloop.ut.plural(1, 'run'))
        self.assertEqual('2 entries', texloop.ut.plural(2, 'entry', 'entries'))
