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

"""Recombination: apply a routine to every subset and combine the results.

The transform chain (and then `apply`, if given) runs on each subset in the
map step exactly as it would before a division.  What happens to the
results depends on the combiner:

    Collect              a list of (key, result) pairs
    RowBind              one DataFrame, with the key's fields as columns
    PersistAsCollection  a new DistributedCollection of the results
    ElementMean          element-wise mean of numeric arrays
    MeanCoef             mean of named coefficients (a Series)

The folds weight every subset equally.
"""

import numbers

import numpy
import pandas

from .control import make_control
from .ddo import DistributedCollection, as_collection, prepare_output
from .errors import DivisionSpecError, SchemaMismatch
from .job import Reducer
from .keys import split_of
from .mapreduce import run_job
from .stores import MemoryStore

from logging import getLogger
logger = getLogger('divrec')

FOLD_ALL = 'all'


def pair_order(pair):
    """Sort key that puts numeric keys in numeric order, then strings."""
    key = pair[0]
    if isinstance(key, numbers.Number) and not isinstance(key, bool):
        return (0, key, '')
    return (1, 0, str(key))


class Combiner(object):
    """Base class for combiners.

    A combiner decides what the map step emits for a batch of (key, result)
    pairs (`emit_results`), which reducer (if any) combines them, which
    store the job writes to (`output_store`), and how the final answer is
    read from that store (`finish`).
    """
    reducer = None
    persists = False

    def emit_results(self, results, ctx):
        for key, value in results:
            ctx.emit(key, value)

    def output_store(self, source, output, overwrite):
        if output is not None:
            raise ValueError('%s returns a local result and does not write '
                    'to an output store' % type(self).__name__)
        return MemoryStore()

    def finish(self, store):
        raise NotImplementedError

    def __repr__(self):
        return '%s()' % type(self).__name__


class Collect(Combiner):
    """Gather every (key, result) pair into a list."""

    def finish(self, store):
        return sorted(store.iterate(), key=pair_order)


def as_frame(value):
    if isinstance(value, pandas.DataFrame):
        return value
    elif isinstance(value, pandas.Series):
        return value.to_frame().T.reset_index(drop=True)
    elif isinstance(value, dict):
        return pandas.DataFrame([value])
    else:
        return pandas.DataFrame({'value': [value]})


class RowBind(Combiner):
    """Concatenate the results into one DataFrame.

    Series and dicts become one row each, and other values a one-row
    'value' column.  With `include_key`, the key's split variables (or the
    key itself, in a 'key' column) are added to the front of each block.
    """

    def __init__(self, include_key=True):
        self.include_key = include_key

    def finish(self, store):
        frames = []
        for key, value in sorted(store.iterate(), key=pair_order):
            frame = as_frame(value)
            if self.include_key:
                frame = frame.copy()
                fields = split_of(key) or {'key': key}
                for i, (name, level) in enumerate(fields.items()):
                    if name in frame.columns:
                        continue
                    frame.insert(i, name, [level] * len(frame))
            frames.append(frame)
        if not frames:
            return pandas.DataFrame()
        return pandas.concat(frames, ignore_index=True, sort=False)


class PersistAsCollection(Combiner):
    """Write the results to a store and return them as a collection."""
    persists = True

    def __init__(self, output=None):
        self.output = output

    def output_store(self, source, output, overwrite):
        if output is None:
            output = self.output
        return prepare_output(source, output, overwrite)

    def finish(self, store):
        return DistributedCollection(store)


class FoldReducer(Reducer):
    """Add up the partial (total, count) folds of one group."""

    def pre(self, key):
        self.combiner = self.ctx.params['combiner']
        self.total = None
        self.count = 0

    def reduce(self, key, values):
        for total, count in values:
            if self.total is None:
                self.total = total
            else:
                self.total = self.combiner.add(self.total, total, key)
            self.count += count

    def post(self, key):
        self.emit(key, self.combiner.mean(self.total, self.count))


class Fold(Combiner):
    """Base class for statistical folds.

    Each map task adds up its results per group and emits one partial
    (total, count) per group, so only the partial sums are shuffled.

    Arguments:
        by: None to fold all subsets together, a split variable name to
            fold each of its levels separately, or a function of the key
            returning the group.
    """
    reducer = FoldReducer

    def __init__(self, by=None):
        self.by = by

    def group(self, key):
        if self.by is None:
            return FOLD_ALL
        elif callable(self.by):
            return self.by(key)
        split = split_of(key)
        if self.by not in split:
            raise DivisionSpecError('Key has no split variable %r'
                    % (self.by,), key)
        return split[self.by]

    def emit_results(self, results, ctx):
        partial = {}
        for key, value in results:
            group = self.group(key)
            value = self.convert(key, value)
            if group in partial:
                total, count = partial[group]
                partial[group] = (self.add(total, value, key), count + 1)
            else:
                partial[group] = (value, 1)
        for group, total_count in partial.items():
            ctx.emit(group, total_count)

    def finish(self, store):
        results = dict(store.iterate())
        if self.by is None:
            return results.get(FOLD_ALL)
        return results

    def convert(self, key, value):
        raise NotImplementedError

    def add(self, a, b, key):
        raise NotImplementedError

    def mean(self, total, count):
        return total / count


class ElementMean(Fold):
    """Element-wise mean of numeric arrays of one fixed shape.

    >>> ElementMean().mean(numpy.array([2.0, 4.0]), 2)
    array([1., 2.])
    """

    def convert(self, key, value):
        try:
            return numpy.asarray(value, dtype=float)
        except (TypeError, ValueError):
            raise SchemaMismatch('ElementMean needs numeric vectors, not %s'
                    % type(value).__name__, key)

    def add(self, a, b, key):
        if a.shape != b.shape:
            raise SchemaMismatch('Cannot average vectors of shape %s and %s'
                    % (a.shape, b.shape), key)
        return a + b


class MeanCoef(Fold):
    """Mean of named coefficients, such as the parameters of a model fit
    to each subset.  Results are Series or dicts with the same names."""

    def convert(self, key, value):
        if isinstance(value, dict):
            value = pandas.Series(value)
        if not isinstance(value, pandas.Series):
            raise SchemaMismatch('MeanCoef needs a Series or dict of '
                    'coefficients, not %s' % type(value).__name__, key)
        try:
            return value.astype(float)
        except (TypeError, ValueError):
            raise SchemaMismatch('Coefficients must be numeric', key)

    def add(self, a, b, key):
        if set(a.index) != set(b.index):
            raise SchemaMismatch('Coefficient names differ: %s and %s'
                    % (sorted(a.index), sorted(b.index)), key)
        return a.add(b)


COMBINERS = {
        'collect': Collect,
        'rbind': RowBind,
        'persist': PersistAsCollection,
        'mean': ElementMean,
        'meancoef': MeanCoef,
        }


def as_combiner(combine, output=None):
    """Accept a Combiner, a Combiner subclass, a name, or None."""
    if combine is None:
        if output is not None:
            return PersistAsCollection()
        return Collect()
    if isinstance(combine, str):
        try:
            combine = COMBINERS[combine]
        except KeyError:
            raise ValueError('Unknown combiner %r (choose from %s)'
                    % (combine, ', '.join(sorted(COMBINERS))))
    if isinstance(combine, type) and issubclass(combine, Combiner):
        combine = combine()
    if not isinstance(combine, Combiner):
        raise TypeError('%r is not a combiner' % (combine,))
    return combine


def recombine_mapper(pairs, ctx):
    transforms = ctx.params['transforms']
    combiner = ctx.params['combiner']
    results = ((key, transforms(key, value)) for key, value in pairs)
    combiner.emit_results(results, ctx)


def recombine(data, combine=None, apply=None, output=None, control=None,
        overwrite=False):
    """Apply the transforms (and `apply`) to each subset and combine.

    Arguments:
        data: a DistributedCollection, a store, a dict or pairs.
        combine: a Combiner, a Combiner subclass or one of the names
            'collect', 'rbind', 'persist', 'mean', 'meancoef'.  The default
            collects, or persists when `output` is given.
        apply: ``f(value)`` or ``f(key, value)``, run after the transforms.
        output: the store a persisting combiner writes to.
        control: a Control or a dict of Control settings.
    """
    collection = as_collection(data)
    combiner = as_combiner(combine, output)
    control = make_control(control)
    transforms = collection.transforms.then(apply)
    store = combiner.output_store(collection.store, output, overwrite)

    params = {'transforms': transforms, 'combiner': combiner}
    result = run_job(collection.store, recombine_mapper, combiner.reducer,
            store, control, name='recombine', params=params)
    logger.info('Recombined %s with %r', collection.store.describe(),
            combiner)
    if combiner.persists and collection.is_ddf and not transforms:
        store.update_meta(ddf=True)
    return combiner.finish(result.output)

# vim: et sw=4 sts=4
