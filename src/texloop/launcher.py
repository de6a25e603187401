# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""Command-line interface of texloop.
This is an implementation detail - do not import it unless you know what you are doing."""

__all__ = ['LevelSplitter', 'main']

import re
import sys
import signal
import argparse
import textwrap
from typing import List, Optional

from . import __version__
from . import ut
from . import di
from . import cf
from . import ex

EXIT_STATUS_SUCCESS = 0
EXIT_STATUS_TOOL_FAILED = 1
EXIT_STATUS_USAGE = 2
EXIT_STATUS_INTERNAL = 3


class LevelSplitter:
    # File-like object suitable as output file in texloop.di.set_output_file() that writes messages
    # with a level below WARNING to one file-like object and all others to another one.
    #
    # The level of a message is determined by its first level indicator.

    LEVEL_REGEX = re.compile('^ *([A-Z]) ')

    LEVEL_INDICATORS_TO_ERROR_FILE = frozenset([
        di.get_level_indicator(di.WARNING), di.get_level_indicator(di.ERROR), di.get_level_indicator(di.CRITICAL)
    ])

    def __init__(self, progress_file, error_file):  # must have a file-like write() method
        self._progress_file = progress_file
        self._error_file = error_file

    @property
    def progress_file(self):
        return self._progress_file

    @property
    def error_file(self):
        return self._error_file

    def write(self, message: str):
        m = self.LEVEL_REGEX.match(message)
        level_indicator = m.group(1) if m else None
        f = self._error_file if level_indicator in self.LEVEL_INDICATORS_TO_ERROR_FILE else self._progress_file
        f.write(message)
        f.flush()


def _path_list(value: str) -> List[str]:
    return value.split()


def get_help_epilog() -> str:
    # 80 characters xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    msg = \
        """
        PATHS is a whitespace-separated list of paths; the option may be repeated.

        Progress is written to stdout, warnings and errors to stderr.

        Exit status:

           0  if the document converged (or with '--clean', '--help', '--version')
           1  if a tool failed or could not be executed
           2  if the command line or the declared dependencies are invalid
           3  if the document did not converge or a tool misbehaved
        128+N if interrupted or terminated by signal N (e.g. 130 for SIGINT)

        Examples:

           texloop doc.tex
           texloop --pdf --bib-deps 'refs.bib more.bib' --deps 'fig.eps' doc.tex
           texloop --clean doc.tex
        """
    return textwrap.dedent(msg).strip() + f"\n\ntexloop version: {__version__}."


def get_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='texloop',
        description='Build a LaTeX document by running LaTeX, BibTeX and MakeIndex until it converges.',
        epilog=get_help_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter)

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--pdf', action='store_true', help="run 'pdflatex' instead of 'latex'")
    parser.add_argument('--bibtex', action='store_true', help="run 'bibtex' when necessary")
    parser.add_argument('--bib-deps', metavar='PATHS', action='append', type=_path_list, default=[],
                        help="bibliography database files (implies '--bibtex')")
    parser.add_argument('--deps', metavar='PATHS', action='append', type=_path_list, default=[],
                        help='other input files of the document (e.g. figures)')
    parser.add_argument('--ignore-file', metavar='FILE',
                        help='file with patterns of input files not to warn about, one per line')
    parser.add_argument('--max-iterations', metavar='N', type=int, default=cf.max_iteration_count,
                        help='maximum number of iterations (default: %(default)s)')
    parser.add_argument('--missing-input', choices=ex.MISSING_INPUT_POLICIES, default=cf.missing_typesetter_input,
                        help='handling of missing input files of the typesetter (default: %(default)s)')
    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument('-q', '--quiet', action='store_true', help='output warnings and errors only')
    verbosity_group.add_argument('-v', '--verbose', action='store_true', help='output debug information')
    parser.add_argument('--clean', action='store_true', help='remove the generated files and exit')
    parser.add_argument('source', help='main source file of the document (e.g. doc.tex)')

    return parser


def _exit_status_for(exc: ex.BuildError) -> int:
    if isinstance(exc, ex.ConfigurationError):
        return EXIT_STATUS_USAGE
    if isinstance(exc, ex.ToolExecutionError):
        return EXIT_STATUS_TOOL_FAILED
    return EXIT_STATUS_INTERNAL


# signals turned into SystemExit
_TERMINATING_SIGNALS = tuple(getattr(signal, n) for n in ('SIGTERM', 'SIGHUP') if hasattr(signal, n))


def _raise_system_exit(signum, frame):
    raise SystemExit(128 + signum)


def _run(args) -> int:
    if args.max_iterations <= 0:
        raise ex.ConfigurationError(f'number of iterations must be positive, not {args.max_iterations}')

    bibliography_inputs = [p for paths in args.bib_deps for p in paths]
    dependencies = [p for paths in args.deps for p in paths]

    ignore_patterns = []
    if args.ignore_file:
        try:
            ignore_patterns = ex.read_ignore_patterns(args.ignore_file)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise ex.ConfigurationError(f'invalid ignore file: {ut.exception_to_line(e)}') from None

    document = ex.DocumentInfo(
        args.source, bibliography_inputs=bibliography_inputs, dependencies=dependencies,
        uses_bibliography=args.bibtex or bool(bibliography_inputs), uses_pdf_mode=args.pdf)

    if args.clean:
        removed_files = ex.remove_generated_files(document)
        di.inform(f'removed {ut.plural(len(removed_files), "generated file")}')
        return EXIT_STATUS_SUCCESS

    cf.max_iteration_count = args.max_iterations
    cf.missing_typesetter_input = args.missing_input
    ex.build(document, ignore_patterns=ignore_patterns)
    return EXIT_STATUS_SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    parser = get_argument_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:  # '--help', '--version' or invalid command line
        return e.code

    previous_output_file = di.set_output_file(LevelSplitter(sys.stdout, sys.stderr))
    previous_level = di.set_threshold_level(di.WARNING if args.quiet else di.DEBUG if args.verbose else di.INFO)
    previous_configuration = (cf.max_iteration_count, cf.missing_typesetter_input)
    # stale files are removed on termination
    previous_handler_by_signal = {s: signal.signal(s, _raise_system_exit) for s in _TERMINATING_SIGNALS}

    try:
        return _run(args)
    except ex.BuildError as e:
        di.inform(f'build failed: {di.printable(ut.exception_to_line(e))}', level=di.ERROR)
        return _exit_status_for(e)
    except KeyboardInterrupt:
        di.inform('build interrupted', level=di.ERROR)
        return 128 + signal.SIGINT
    finally:
        for s, previous_handler in previous_handler_by_signal.items():
            if previous_handler is not None:
                signal.signal(s, previous_handler)
        cf.max_iteration_count, cf.missing_typesetter_input = previous_configuration
        di.set_threshold_level(previous_level)
        di.set_output_file(previous_output_file)
