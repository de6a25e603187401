# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

import testenv  # also sets up module search paths
import texloop.fs
import texloop.ex
import os
import pathlib
import unittest


class ThisIsAUnitTest(unittest.TestCase):
    pass


class CheckSourcePathTest(testenv.TemporaryDirectoryTestCase):

    def test_returns_normalized(self):
        os.mkdir('src')
        open(os.path.join('src', 'doc.tex'), 'xb').close()
        self.assertEqual(os.path.join('src', 'doc.tex'), texloop.ex.check_source_path('./src//doc.tex'))

    def test_fails_for_reserved_character(self):
        with self.assertRaises(texloop.ex.ConfigurationError) as cm:
            texloop.ex.check_source_path('a\nb.tex')
        self.assertEqual("source path must not contain reserved characters: '\\n'", str(cm.exception))

    def test_fails_without_suffix(self):
        for p in ('document', '.document', 'document.'):
            with self.assertRaises(texloop.ex.ConfigurationError) as cm:
                texloop.ex.check_source_path(p)
            self.assertEqual(f"source path must have a suffix: {p!r}", str(cm.exception))

    def test_fails_for_consecutive_spaces(self):
        with self.assertRaises(texloop.ex.ConfigurationError):
            texloop.ex.check_source_path('a  b.tex')

    def test_fails_for_nonexistent(self):
        with self.assertRaises(texloop.ex.ConfigurationError) as cm:
            texloop.ex.check_source_path('doc.tex')
        self.assertEqual("source file does not exist: 'doc.tex'", str(cm.exception))

    def test_fails_for_invalid(self):
        with self.assertRaises(texloop.ex.ConfigurationError) as cm:
            texloop.ex.check_source_path('')
        self.assertEqual("invalid source path: invalid path: ''", str(cm.exception))

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            texloop.ex.check_source_path('doc.tex')


class DocumentInfoTest(testenv.TemporaryDirectoryTestCase):

    def test_generated_files_are_beside_source(self):
        os.mkdir('src')
        open(os.path.join('src', 'doc.tex'), 'xb').close()
        document = texloop.ex.DocumentInfo('src/doc.tex')

        self.assertEqual('src', document.directory)
        self.assertEqual('doc', document.basename)
        self.assertEqual(os.path.join('src', 'doc.aux'), document.aux_file)
        self.assertEqual(os.path.join('src', 'doc.dvi'), document.output_file)
        self.assertEqual(os.path.join('src', 'doc.fls'), document.recorder_file)
        self.assertEqual(os.path.join('src', 'doc.bbl'), document.bibliography_file)
        self.assertFalse(document.uses_bibliography)
        self.assertFalse(document.uses_pdf_mode)
        self.assertFalse(document.stale)
        self.assertEqual({}, document.last_result_by_tool)
        self.assertEqual("DocumentInfo('src/doc.tex')", repr(document))

    def test_directory_of_relative_source_is_curdir(self):
        open('doc.tex', 'xb').close()
        document = texloop.ex.DocumentInfo('doc.tex', uses_pdf_mode=True)
        self.assertEqual(os.curdir, document.directory)
        self.assertEqual('doc.aux', document.aux_file)
        self.assertEqual('doc.pdf', document.output_file)

    def test_bibliography_inputs_imply_bibliography(self):
        open('doc.tex', 'xb').close()
        open('refs.bib', 'xb').close()
        document = texloop.ex.DocumentInfo('doc.tex', bibliography_inputs=['refs.bib'])
        self.assertTrue(document.uses_bibliography)
        self.assertEqual(['refs.bib'], list(document.bibliography_inputs))

        document = texloop.ex.DocumentInfo('doc.tex', bibliography_inputs=['refs.bib'], uses_bibliography=False)
        self.assertFalse(document.uses_bibliography)

        document = texloop.ex.DocumentInfo('doc.tex', uses_bibliography=True)
        self.assertTrue(document.uses_bibliography)

    def test_fails_for_missing_declared_dependency(self):
        open('doc.tex', 'xb').close()
        with self.assertRaises(texloop.ex.ConfigurationError) as cm:
            texloop.ex.DocumentInfo('doc.tex', dependencies=['fig.eps'])
        self.assertEqual("declared dependency does not exist: 'fig.eps'", str(cm.exception))

        with self.assertRaises(texloop.ex.ConfigurationError) as cm:
            texloop.ex.DocumentInfo('doc.tex', bibliography_inputs=['refs.bib'])
        self.assertEqual("declared bibliography input does not exist: 'refs.bib'", str(cm.exception))

    def test_fails_for_single_path_as_dependencies(self):
        open('doc.tex', 'xb').close()
        open('fig.eps', 'xb').close()
        with self.assertRaises(texloop.ex.ConfigurationError):
            texloop.ex.DocumentInfo('doc.tex', dependencies='fig.eps')

    def test_declared_are_copies(self):
        open('doc.tex', 'xb').close()
        open('fig.eps', 'xb').close()
        document = texloop.ex.DocumentInfo('doc.tex', dependencies=['fig.eps'])
        document.dependencies.add('x')
        self.assertEqual(['fig.eps'], list(document.dependencies))


class DiscoverSideOutputsTest(testenv.TemporaryDirectoryTestCase):

    def test_discovers_from_previous_build(self):
        open('doc.tex', 'xb').close()
        pathlib.Path('doc.aux').write_bytes(b'\\@input{chap.aux}\n')
        open('chap.aux', 'xb').close()
        open('doc.lof', 'xb').close()
        open('doc.idx', 'xb').close()

        document = texloop.ex.DocumentInfo('doc.tex')
        self.assertEqual(texloop.fs.FileSet(['doc.aux', 'chap.aux']), document.aux_files)
        self.assertEqual(texloop.fs.FileSet(['doc.lof']), document.toc_files)
        self.assertTrue(document.uses_makeindex)
        self.assertFalse(document.uses_outline)
        self.assertEqual(texloop.fs.FileSet(['doc.lof']), document.confirmed_side_outputs())

    def test_returns_only_new(self):
        open('doc.tex', 'xb').close()
        document = texloop.ex.DocumentInfo('doc.tex')
        self.assertEqual(texloop.fs.FileSet(), document.discover_side_outputs())

        open('doc.toc', 'xb').close()
        open('doc.out', 'xb').close()
        self.assertEqual(texloop.fs.FileSet(['doc.toc', 'doc.out']), document.discover_side_outputs())
        self.assertEqual(texloop.fs.FileSet(), document.discover_side_outputs())
        self.assertTrue(document.uses_outline)
        self.assertEqual(texloop.fs.FileSet(['doc.toc', 'doc.out']), document.confirmed_side_outputs())

    def test_generated_files_contain_all_candidates(self):
        open('doc.tex', 'xb').close()
        document = texloop.ex.DocumentInfo('doc.tex', uses_pdf_mode=True)
        self.assertEqual(texloop.fs.FileSet([
            'doc.log', 'doc.fls', 'doc.pdf', 'doc.aux', 'doc.toc', 'doc.lof', 'doc.lot',
            'doc.bbl', 'doc.blg', 'doc.idx', 'doc.ind', 'doc.ilg', 'doc.out'
        ]), document.generated_files())
        self.assertNotIn('doc.tex', document.generated_files())
