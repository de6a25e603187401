# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

"""A setuptools based setup module.

See:
https://packaging.python.org/en/latest/distributing.html
https://github.com/pypa/sampleproject
"""

import re
import os.path
import setuptools


def read_version(*, src_path):
    # Return the value of '__version__' in texloop/version.py without importing the package.
    version_path = os.path.join(src_path, 'texloop', 'version.py')

    with open(version_path, 'rb') as f:
        content = f.read().decode()

    m = re.search(r"\n__version__ = '(?P<version>[^'\r\n]+)'", content)
    assert m, '__version__ line not found'
    return m.group('version')


src_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src')

setuptools.setup(
    name='texloop',

    # Versions should comply with PEP440.  For a discussion on single-sourcing
    # the version across setup.py and the project code, see
    # https://packaging.python.org/en/latest/single_source_version.html
    version=read_version(src_path=src_path),

    description='Build LaTeX documents until they converge',
    long_description=(
        "texloop runs LaTeX, BibTeX and MakeIndex on a document as often as necessary and not more often. "
        "It decides from content digests and modification times which tool has to run, and stops when the "
        "output of the typesetter no longer changes."
    ),

    # Author details
    author='dlu-ch',
    author_email='dlu-ch@users.noreply.github.com',

    # Choose your license
    license='LGPLv3+',

    # See https://pypi.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        # How mature is this project? Common values are
        #   3 - Alpha
        #   4 - Beta
        #   5 - Production/Stable
        'Development Status :: 3 - Alpha',

        # Indicate who your project is intended for
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'Topic :: Software Development :: Build Tools',
        'Topic :: Text Processing :: Markup :: LaTeX',
        'Operating System :: OS Independent',
        'Environment :: Console',

        # Pick your license as you wish (should match "license" above)
        'License :: OSI Approved :: GNU Lesser General Public License v3 or later (LGPLv3+)',

        # Specify the Python versions you support here. In particular, ensure
        # that you indicate whether you support Python 2, Python 3 or both.
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.7',
        'Programming Language :: Python :: 3.8'
    ],

    zip_safe=True,

    # What does your project relate to?
    keywords='latex bibtex makeindex build',

    # https://docs.python.org/3/distutils/setupscript.html#listing-whole-packages
    package_dir={'': 'src'},

    # You can just specify the packages manually here if your project is
    # simple. Or you can use find_packages().
    packages=setuptools.find_packages(where='src'),

    python_requires='>=3.7',

    # List run-time dependencies here.  These will be installed by pip when
    # your project is installed. For an analysis of "install_requires" vs pip's
    # requirements files see:
    # https://packaging.python.org/en/latest/requirements.html
    install_requires=[],

    # List additional groups of dependencies here (e.g. development
    # dependencies). You can install these using the following syntax,
    # for example:
    # $ pip install -e .[dev,test]
    extras_require={},

    # To provide executable scripts, use entry points in preference to the
    # "scripts" keyword. Entry points provide cross-platform support and allow
    # pip to create the appropriate form of executable for the target platform.
    # https://packaging.python.org/specifications/entry-points/
    entry_points={
        'console_scripts': ['texloop=texloop.launcher:main'],
    },
)
