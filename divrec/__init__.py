# divrec
# Copyright 2008-2012 Brigham Young University
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""divrec: Divide & Recombine on a simple MapReduce engine

An analysis might look something like this:

import divrec

iris = divrec.ddf(frame, chunk_rows=30)
by_species = divrec.divide(iris, by='Species', update=True)
means = divrec.recombine(by_species, apply=lambda v: v.mean(),
        combine=divrec.RowBind())

The same calls work on collections kept on local disk
(`divrec.LocalDiskStore`) or on a distributed filesystem
(`divrec.HDFSStore`); `divrec.Control` tunes batching and parallelism.
"""

import logging, sys
logger = logging.getLogger('divrec')
logger.setLevel(logging.WARNING)
handler = logging.StreamHandler(sys.stderr)
format = '%(asctime)s: %(levelname)s: %(message)s'
formatter = logging.Formatter(format)
handler.setFormatter(formatter)
logger.addHandler(handler)


def set_log_level(verbose=False, debug=False):
    """Show INFO messages if `verbose`, and DEBUG messages if `debug`."""
    if debug:
        logger.setLevel(logging.DEBUG)
    elif verbose:
        logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.WARNING)


from . import version
from .control import Control
from .convert import convert
from .ddo import DistributedCollection, ddf, ddo
from .divide import CondDiv, RRDiv, divide
from .errors import (DivRecError, NotFound, NotRandomAccessible,
        SchemaMismatch, TaskError, TransformError, SpillConfigError,
        DivisionSpecError, JoinKeyMismatch, ConnectionStateError,
        DuplicateKeyError)
from .job import Counters, Reducer
from .ops import filter_collection, join, lapply, mapreduce, sample
from .recombine import (Collect, RowBind, PersistAsCollection, ElementMean,
        MeanCoef, recombine)
from .stores import HDFSStore, LocalDiskStore, MemoryStore, reconnect

__version__ = version.__version__

__all__ = ['logger', 'set_log_level', 'Control', 'DistributedCollection',
    'ddo', 'ddf', 'divide', 'CondDiv', 'RRDiv', 'recombine', 'Collect',
    'RowBind', 'PersistAsCollection', 'ElementMean', 'MeanCoef', 'convert',
    'lapply', 'filter_collection', 'sample', 'join', 'mapreduce',
    'Counters', 'Reducer', 'MemoryStore', 'LocalDiskStore', 'HDFSStore',
    'reconnect', 'DivRecError', 'NotFound', 'NotRandomAccessible',
    'SchemaMismatch', 'TaskError', 'TransformError', 'SpillConfigError',
    'DivisionSpecError', 'JoinKeyMismatch', 'ConnectionStateError',
    'DuplicateKeyError']

# vim: et sw=4 sts=4
