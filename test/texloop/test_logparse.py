# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

import testenv  # also sets up module search paths
import texloop.di
import texloop.ex._logparse
import os
import unittest


class ThisIsAUnitTest(unittest.TestCase):
    pass


class RecordedTest(testenv.TemporaryDirectoryTestCase):

    def test_scenario1(self):
        os.mkdir('src')
        open(os.path.join('src', 'report.tex'), 'xb').close()
        os.mkdir('out')
        with open(os.path.join('out', 'recorded.fls'), 'xb') as f:
            f.write(
                b'PWD ' + os.path.abspath('out').encode() + b'\n'
                b'INPUT /etc/texmf/web2c/texmf.cnf\n'
                b'INPUT /usr/share/texlive/texmf-dist/web2c/texmf.cnf\n'
                b'INPUT ../src/report.tex\n'
                b'OUTPUT report.log\n'
                b'INPUT /usr/share/texlive/texmf-dist/tex/latex/base/article.cls\n'
                b'INPUT /usr/share/texlive/texmf-dist/tex/latex/base/article.cls\n'
                b'INPUT report.aux\n'
            )
        read_files, written_files = texloop.ex._logparse.accessed_files_from_recorded('out/recorded.fls')

        self.assertEqual([
            '/etc/texmf/web2c/texmf.cnf',
            '/usr/share/texlive/texmf-dist/web2c/texmf.cnf',
            os.path.join('src', 'report.tex'),
            '/usr/share/texlive/texmf-dist/tex/latex/base/article.cls',
            os.path.join('out', 'report.aux')
        ], read_files)
        self.assertEqual([os.path.join('out', 'report.log')], written_files)

    def test_empty_is_ok(self):
        open('recorded.fls', 'xb').close()
        read_files, written_files = texloop.ex._logparse.accessed_files_from_recorded('recorded.fls')
        self.assertEqual([], read_files)
        self.assertEqual([], written_files)

    def test_fails_for_invalid_line(self):
        with open('recorded.fls', 'xb') as f:
            f.write(
                b'PWD ' + os.getcwd().encode() + b'\n'
                b'GUGUSELI dada\n'
            )
        with self.assertRaises(ValueError) as cm:
            texloop.ex._logparse.accessed_files_from_recorded('recorded.fls')
        self.assertEqual("invalid line in 'recorded.fls': b'GUGUSELI dada'", str(cm.exception))

    def test_fails_for_relative_cwd(self):
        with open('recorded.fls', 'xb') as f:
            f.write(b'PWD he/he\n')
        with self.assertRaises(ValueError) as cm:
            texloop.ex._logparse.accessed_files_from_recorded('recorded.fls')
        self.assertEqual("invalid line in 'recorded.fls': b'PWD he/he'", str(cm.exception))

    def test_fails_for_relative_path_before_cwd(self):
        with open('recorded.fls', 'xb') as f:
            f.write(b'INPUT report.aux\n')
        with self.assertRaises(ValueError) as cm:
            texloop.ex._logparse.accessed_files_from_recorded('recorded.fls')
        self.assertEqual("relative path before 'PWD' line in 'recorded.fls': b'INPUT report.aux'", str(cm.exception))


class AuxChainTest(testenv.TemporaryDirectoryTestCase):

    def test_follows_existing_includes(self):
        os.mkdir('d')
        with open(os.path.join('d', 'doc.aux'), 'xb') as f:
            f.write(b'\\relax\n\\@input{chap1.aux}\n\\@input{chap2.aux}\n\\@input{missing.aux}\n')
        with open(os.path.join('d', 'chap1.aux'), 'xb') as f:
            f.write(b'\\@input{sub.aux}\n\\@input{doc.aux}\n')
        open(os.path.join('d', 'chap2.aux'), 'xb').close()
        open(os.path.join('d', 'sub.aux'), 'xb').close()

        aux_files = texloop.ex._logparse.files_from_aux_chain('d/doc.aux', 'd')
        self.assertEqual([os.path.join('d', n) for n in ('doc.aux', 'chap1.aux', 'chap2.aux', 'sub.aux')], aux_files)

    def test_contains_missing_main_aux(self):
        self.assertEqual(['doc.aux'], texloop.ex._logparse.files_from_aux_chain('doc.aux', '.'))


class LatexLogTest(unittest.TestCase):

    def test_finds_errors_with_line(self):
        log = (
            'This is pdfTeX, Version 3.14159265-2.6-1.40.19 (TeX Live 2019) (preloaded format=pdflatex)\n'
            '(./doc.tex\n'
            '! Undefined control sequence.\n'
            'l.7 \\foo\n'
            '         bar\n'
            './chap.tex:12: LaTeX Error: Environment itemise undefined.\n'
        )
        diagnostics = texloop.ex._logparse.parse_latex_log(log)
        self.assertEqual(2, diagnostics.error_count)
        self.assertEqual([
            'Undefined control sequence. (line 7)',
            './chap.tex:12: LaTeX Error: Environment itemise undefined.'
        ], [li.message for li in diagnostics.lines])
        self.assertEqual({texloop.di.ERROR}, {li.level for li in diagnostics.lines})

    def test_finds_warnings(self):
        log = (
            'LaTeX Warning: Reference `sec:x\' on page 1 undefined on input line 5.\n'
            'LaTeX Font Warning: Font shape `OT1/cmr/bx/sc\' undefined\n'
            'Package natbib Warning: Citation `knuth1984\' on page 1 undefined on input line 8.\n'
            'Class scrartcl Warning: Usage of package `fancyhdr\'\n'
            '(scrartcl)              together with a KOMA-Script class is not recommended.\n'
            'LaTeX Warning: There were undefined references.\n'
        )
        diagnostics = texloop.ex._logparse.parse_latex_log(log)
        self.assertEqual(0, diagnostics.error_count)
        self.assertEqual(5, diagnostics.warning_count)
        self.assertFalse(diagnostics.rerun_requested)

        messages = [li.message for li in diagnostics.lines]
        self.assertEqual("scrartcl: Usage of package `fancyhdr' together with a KOMA-Script class is not recommended.",
                         messages[3])
        self.assertEqual([True, False, True, False, True], [li.about_references for li in diagnostics.lines])

    def test_unwraps_long_lines(self):
        line = 'LaTeX Warning: ' + 'x' * (texloop.ex._logparse.MAX_PRINT_LINE - len('LaTeX Warning: '))
        diagnostics = texloop.ex._logparse.parse_latex_log(line + '\nyz.\n')
        self.assertEqual(['x' * (texloop.ex._logparse.MAX_PRINT_LINE - 15) + 'yz.'],
                         [li.message for li in diagnostics.lines])

    def test_detects_rerun_request(self):
        for line in (
                'LaTeX Warning: Label(s) may have changed. Rerun to get cross-references right.',
                'Package hyperref Warning: Rerun to get /PageLabels entry.',
                'Package rerunfilecheck Warning: File `doc.out\' has changed.\n'
                '(rerunfilecheck)                Rerun to get outlines right\n'
                '(rerunfilecheck)                or use package `bookmark\'.'):
            diagnostics = texloop.ex._logparse.parse_latex_log(line + '\n')
            self.assertTrue(diagnostics.rerun_requested, line)
            self.assertEqual(1, diagnostics.warning_count)

    def test_rerun_of_other_tool_is_not_rerun_request(self):
        log = 'Package biblatex Warning: Please (re)run Biber on the file:\n(biblatex)                doc\n'
        diagnostics = texloop.ex._logparse.parse_latex_log(log)
        self.assertFalse(diagnostics.rerun_requested)
        self.assertEqual(1, diagnostics.warning_count)

    def test_finds_missing_files_and_badboxes(self):
        log = (
            'No file doc.toc.\n'
            'No file doc.bbl.\n'
            'Overfull \\hbox (12.0pt too wide) in paragraph at lines 3--4\n'
        )
        diagnostics = texloop.ex._logparse.parse_latex_log(log)
        self.assertEqual(['doc.toc', 'doc.bbl'], diagnostics.missing_files)
        self.assertEqual(0, diagnostics.warning_count)
        self.assertEqual([texloop.di.INFO], [li.level for li in diagnostics.lines])

    def test_replaces_control_characters(self):
        diagnostics = texloop.ex._logparse.parse_latex_log('! Missing $ inserted\x07.\n')
        self.assertEqual(['Missing $ inserted .'], [li.message for li in diagnostics.lines])


class BibtexLogTest(unittest.TestCase):

    def test_finds_inputs_and_warnings(self):
        log = (
            'This is BibTeX, Version 0.99d (TeX Live 2019)\n'
            'Capacity: max_strings=100000, hash_size=100000, hash_prime=85009\n'
            'The top-level auxiliary file: doc.aux\n'
            'A level-1 auxiliary file: chap1.aux\n'
            'The style file: plain.bst\n'
            'Database file #1: refs.bib\n'
            'Warning--I didn\'t find a database entry for "lamport94"\n'
            'Warning--empty journal in knuth84\n'
            '(There were 2 warnings)\n'
        )
        diagnostics = texloop.ex._logparse.parse_bibtex_log(log)
        self.assertEqual(['chap1.aux', 'doc.aux', 'plain.bst', 'refs.bib'], list(diagnostics.input_files))
        self.assertEqual(0, diagnostics.error_count)
        self.assertEqual(2, diagnostics.warning_count)
        self.assertEqual('empty journal in knuth84', diagnostics.lines[1].message)

    def test_finds_errors(self):
        log = (
            'The top-level auxiliary file: doc.aux\n'
            'I found no \\bibdata command---while reading file doc.aux\n'
            'I couldn\'t open database file missing.bib\n'
            '---line 3 of file doc.aux\n'
            ' : \\bibdata{missing\n'
            'I couldn\'t open style file nostyle.bst\n'
            '(There were 3 error messages)\n'
        )
        diagnostics = texloop.ex._logparse.parse_bibtex_log(log)
        self.assertEqual(3, diagnostics.error_count)
        self.assertEqual([
            'I found no \\bibdata command (while reading file doc.aux)',
            "I couldn't open database file missing.bib (line 3 of file doc.aux)",
            "I couldn't open style file nostyle.bst"
        ], [li.message for li in diagnostics.lines])

    def test_error_count_is_at_least_summary(self):
        diagnostics = texloop.ex._logparse.parse_bibtex_log('(There was 1 error message)\n')
        self.assertEqual(1, diagnostics.error_count)


class MakeindexLogTest(unittest.TestCase):

    def test_finds_inputs_and_rejected(self):
        log = (
            'This is makeindex, version 2.15 [TeX Live 2019] (kpathsea + Thai support).\n'
            'Scanning style file ./doc.ist.....done (1 attribute redefined, 0 ignored).\n'
            'Scanning input file doc.idx....done (12 entries accepted, 1 rejected).\n'
            '!! Input index error (file = doc.idx, line = 3):\n'
            '   -- Extra `@\' at position 8 of first argument.\n'
            'Sorting entries....done (40 comparisons).\n'
            '## Warning (input = doc.idx, line = 5; output = doc.ind, line = 9):\n'
            '   -- Conflicting entries: multiple encaps for the same page under same key.\n'
        )
        diagnostics = texloop.ex._logparse.parse_makeindex_log(log)
        self.assertEqual(['doc.idx', 'doc.ist'], list(diagnostics.input_files))
        self.assertEqual(1, diagnostics.error_count)
        self.assertEqual(1, diagnostics.warning_count)
        self.assertEqual(
            "Input index error (file = doc.idx, line = 3): Extra `@' at position 8 of first argument.",
            diagnostics.lines[0].message)

    def test_missing_input_is_error(self):
        log = 'Input index file doc.idx not found.\n'
        diagnostics = texloop.ex._logparse.parse_makeindex_log(log)
        self.assertEqual(1, diagnostics.error_count)
        self.assertEqual([log.strip()], [li.message for li in diagnostics.lines])
