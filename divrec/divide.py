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

"""Division: partition a collection into a new persisted collection.

A division is compiled into one MapReduce job.  The map step applies the
transform chain to each input value and cuts it into pieces, one per
division key (a conditioning-variable assignment or a random bin).  The
reduce step concatenates all pieces that share a key and writes them out,
cutting partitions that are larger than the spill limit into chunks:

    Species=setosa          (50 rows, spill >= 50)
    Species=setosa_1 .. _5  (50 rows, spill = 12: 12, 12, 12, 12, 2)

Each chunk then passes the filter (a chunk for which it returns False is
dropped, and its suffix is not reused) and the post-transform.
"""

import numpy
import pandas

from .attributes import rows_of
from .control import make_control
from .ddo import DistributedCollection, as_collection, prepare_output
from .errors import DivisionSpecError, SpillConfigError
from .job import COUNTER_GROUP, Reducer
from .keys import CondKey, spilled_key
from .mapreduce import run_job
from .routines import Routine
from .serializers import key_digest
from .stores import MemoryStore

from logging import getLogger
logger = getLogger('divrec')

DEFAULT_SPILL = 1000000
RR_KEY_FORMAT = 'rr_%d'


class CondDiv(object):
    """Conditioning-variable division by the named columns.

    >>> CondDiv('Species').vars
    ['Species']
    """
    kind = 'condDiv'

    def __init__(self, vars):
        if isinstance(vars, str):
            vars = [vars]
        vars = list(vars)
        if not vars or not all(isinstance(v, str) for v in vars):
            raise DivisionSpecError('A conditioning-variable division needs '
                    'one or more column names, not %r' % (vars,))
        if len(set(vars)) != len(vars):
            raise DivisionSpecError('Repeated conditioning variable in %r'
                    % (vars,))
        self.vars = vars

    def describe(self):
        return {'type': self.kind, 'vars': list(self.vars)}

    def __repr__(self):
        return 'CondDiv(%r)' % (self.vars,)


class RRDiv(object):
    """Random-replicate division into bins of about `nrows` rows.

    With a seed, each input pair's rows are assigned by a generator seeded
    from the seed and the pair's key, so dividing again gives the same bins
    however the input is batched.
    """
    kind = 'rrDiv'

    def __init__(self, nrows, seed=None):
        if (isinstance(nrows, bool) or not isinstance(nrows, int) or
                nrows <= 0):
            raise DivisionSpecError('Random replicate division needs a '
                    'positive integer number of rows, not %r' % (nrows,))
        if seed is not None and (isinstance(seed, bool) or
                not isinstance(seed, int) or seed < 0):
            raise DivisionSpecError('The seed must be a non-negative '
                    'integer, not %r' % (seed,))
        self.nrows = nrows
        self.seed = seed

    def n_bins(self, n_rows):
        """The number of bins for a collection of `n_rows` rows.

        >>> RRDiv(12).n_bins(150)
        12
        >>> RRDiv(500).n_bins(150)
        1
        """
        return max(1, int(round(n_rows / self.nrows)))

    def describe(self):
        return {'type': self.kind, 'nrows': self.nrows, 'seed': self.seed}

    def __repr__(self):
        return 'RRDiv(%r, seed=%r)' % (self.nrows, self.seed)


def as_division(by):
    """Accept a CondDiv, an RRDiv, a column name or a list of names."""
    if isinstance(by, (CondDiv, RRDiv)):
        return by
    if isinstance(by, (str, list, tuple)):
        return CondDiv(by)
    raise DivisionSpecError('Cannot divide by %r' % (by,))


def check_spill(spill):
    if isinstance(spill, bool) or not isinstance(spill, int):
        raise SpillConfigError('The spill limit must be an integer, not %r'
                % (spill,))
    if spill <= 0:
        raise SpillConfigError('The spill limit must be positive, not %s'
                % spill)


def check_tabular(key, value):
    if not isinstance(value, pandas.DataFrame):
        raise DivisionSpecError('Cannot divide a %s value; division needs '
                'DataFrame values' % type(value).__name__, key)


def plain_level(level):
    """Convert a numpy scalar to the corresponding Python value."""
    if isinstance(level, numpy.generic):
        return level.item()
    return level


def cond_split(key, value, vars):
    """Cut a DataFrame into (CondKey, rows) pieces, one per assignment.

    The conditioning columns are dropped from the pieces.
    """
    check_tabular(key, value)
    missing = [var for var in vars if var not in value.columns]
    if missing:
        raise DivisionSpecError('Conditioning variables %s are not columns '
                'of the value' % ', '.join(missing), key)
    if not len(value):
        return
    rest = value.drop(columns=vars)
    groups = value.groupby(list(vars), sort=False, dropna=False).indices
    for levels, positions in groups.items():
        if not isinstance(levels, tuple):
            levels = (levels,)
        assignment = tuple(zip(vars, (plain_level(l) for l in levels)))
        rows = rest.iloc[positions].reset_index(drop=True)
        yield CondKey.from_split(assignment), rows


def bin_generator(seed, key):
    if seed is None:
        return numpy.random.default_rng()
    return numpy.random.default_rng([seed, int(key_digest(key)[:8], 16)])


def rr_split(key, value, n_bins, seed):
    """Assign each row to one of `n_bins` bins and yield (label, rows)."""
    check_tabular(key, value)
    if not len(value):
        return
    bins = bin_generator(seed, key).integers(n_bins, size=len(value))
    for b in numpy.unique(bins):
        rows = value.iloc[numpy.flatnonzero(bins == b)]
        yield RR_KEY_FORMAT % (int(b) + 1), rows.reset_index(drop=True)


def division_mapper(pairs, ctx):
    params = ctx.params
    chain = params['transforms']
    division = params['division']
    for key, value in pairs:
        value = chain(key, value)
        if division.kind == CondDiv.kind:
            pieces = cond_split(key, value, division.vars)
        else:
            pieces = rr_split(key, value, params['n_bins'], division.seed)
        for piece_key, rows in pieces:
            ctx.emit(piece_key, rows)


class DivisionReducer(Reducer):
    """Concatenate the pieces of a partition and write it in chunks.

    Rows are held until more than `spill` are pending, so memory use is
    bounded by the spill limit and the reduce batch size.  A partition of at
    most `spill` rows keeps its key; a larger one is written as chunks with
    suffixes _1, _2, ...
    """

    def pre(self, key):
        params = self.ctx.params
        self.spill = params['spill']
        self.filter = params['filter']
        self.post_transform = params['post_transform']
        self.pending = []
        self.pending_rows = 0
        self.chunks = 0

    def reduce(self, key, values):
        for rows in values:
            self.pending.append(rows)
            self.pending_rows += len(rows)
            while self.pending_rows > self.spill:
                frame = pandas.concat(self.pending, ignore_index=True,
                        sort=False)
                self.write_chunk(key, frame.iloc[:self.spill])
                rest = frame.iloc[self.spill:]
                self.pending = [rest]
                self.pending_rows = len(rest)

    def post(self, key):
        if not self.pending_rows and self.chunks:
            return
        frame = pandas.concat(self.pending, ignore_index=True, sort=False)
        if self.chunks:
            self.write_chunk(key, frame)
        else:
            self.write(key, frame)

    def write_chunk(self, key, frame):
        self.chunks += 1
        self.write(spilled_key(key, self.chunks), frame)

    def write(self, key, frame):
        frame = frame.reset_index(drop=True)
        if self.filter is not None and not self.filter(key, frame):
            self.increment(COUNTER_GROUP, 'filtered')
            return
        if self.post_transform is not None:
            frame = self.post_transform(key, frame)
        self.emit(key, frame)


def count_rows_mapper(pairs, ctx):
    chain = ctx.params['transforms']
    for key, value in pairs:
        ctx.increment(COUNTER_GROUP, 'rows', rows_of(chain(key, value)))


def count_rows(collection, transforms, control):
    """Return the number of rows after the transforms, by a full scan
    unless the collection's attributes already know it."""
    if not transforms and collection.has_attributes:
        return collection.n_rows
    result = run_job(collection.store, count_rows_mapper, None,
            MemoryStore(), control, name='count_rows',
            params={'transforms': transforms})
    return result.counters.get(COUNTER_GROUP, 'rows')


def divide(data, by, spill=DEFAULT_SPILL, filter=None, pre_transform=None,
        post_transform=None, output=None, control=None, update=False,
        overwrite=False):
    """Divide a collection and return the new DistributedCollection.

    Arguments:
        data: a DistributedCollection (its transforms are applied first),
            a store, a dict or an iterable of pairs.
        by: a CondDiv, an RRDiv, or column name(s) to condition on.
        spill: the most rows in one output subset.
        filter: a predicate ``f(value)`` or ``f(key, value)``; chunks for
            which it is false are dropped.
        pre_transform: applied to each input value after the collection's
            own transforms.
        post_transform: applied to each output chunk that passes the filter.
        output: the store to write to (None for a new MemoryStore).  It must
            be empty unless `overwrite` is set.
        control: a Control or a dict of Control settings.
        update: compute the new collection's attributes afterwards.

    All arguments are checked before anything runs.
    """
    collection = as_collection(data)
    division = as_division(by)
    check_spill(spill)
    control = make_control(control)
    transforms = collection.transforms.then(pre_transform)
    filter = Routine(filter) if filter is not None else None
    post = Routine(post_transform) if post_transform is not None else None
    output = prepare_output(collection.store, output, overwrite)

    params = {
        'transforms': transforms,
        'division': division,
        'spill': spill,
        'filter': filter,
        'post_transform': post,
        }
    if division.kind == RRDiv.kind:
        n_rows = count_rows(collection, transforms, control)
        params['n_bins'] = division.n_bins(n_rows)
        logger.info('Random replicate division of %s rows into %s bins',
                n_rows, params['n_bins'])

    result = run_job(collection.store, division_mapper, DivisionReducer,
            output, control, name='divide', params=params)
    logger.info('Divided %s into %s pairs', collection.store.describe(),
            result.counters.get(COUNTER_GROUP, 'reduce_output'))

    split_vars = division.vars if division.kind == CondDiv.kind else []
    output.update_meta(division=division.describe(), split_vars=split_vars,
            spill=spill, ddf=post is None)
    divided = DistributedCollection(output)
    if update:
        divided.update_attributes(control)
    return divided

# vim: et sw=4 sts=4
