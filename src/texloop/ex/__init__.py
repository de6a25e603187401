# SPDX-License-Identifier: LGPL-3.0-or-later
# texloop - build LaTeX documents until they converge
# Copyright (C) 2020 Daniel Lutz <dlu-ch@users.noreply.github.com>

from ._error import *
from ._result import *
from ._document import *
from ._oracle import *
from ._runner import *
from ._postprocess import *
from ._unreported import *
from ._loop import *

# inter-dependencies and import order of modules of this package
# (later line may depend on earlier lines, import import in the following order):
#
#                 depends on
#
#     _error         ->
#     _result        ->
#     _logparse      ->             _result
#     _document      ->   _error    _result   _logparse
#     _oracle        ->                                   _document
#     _runner        ->   _error    _result               _document
#     _postprocess   ->   _error    _result   _logparse   _document   _oracle
#     _unreported    ->                                   _document
#     _loop          ->   _error    _result               _document   _oracle   _runner   _postprocess   _unreported
