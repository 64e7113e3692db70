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

"""Whole-collection operations built on the executor.

Each operation applies the input collection's transforms before its own
work, and writes a new collection (the inputs are never modified).
"""

from .control import make_control
from .ddo import DistributedCollection, as_collection, prepare_output
from .divide import bin_generator
from .errors import JoinKeyMismatch
from .job import COUNTER_GROUP, Reducer
from .mapreduce import run_job
from .recombine import PersistAsCollection, recombine
from .routines import Routine

from logging import getLogger
logger = getLogger('divrec')


def lapply(data, fn, output=None, control=None, overwrite=False):
    """Apply `fn` to every subset and persist the results.

    >>> lapply({'a': 1, 'b': 2}, lambda v: v * 10).get('b')
    20
    """
    return recombine(data, PersistAsCollection(), apply=fn, output=output,
            control=control, overwrite=overwrite)


def filter_mapper(pairs, ctx):
    transforms = ctx.params['transforms']
    predicate = ctx.params['predicate']
    for key, value in pairs:
        value = transforms(key, value)
        if predicate(key, value):
            ctx.emit(key, value)
        else:
            ctx.increment(COUNTER_GROUP, 'filtered')


def filter_collection(data, predicate, output=None, control=None,
        overwrite=False):
    """Keep the pairs for which ``predicate(value)`` (or
    ``predicate(key, value)``) is true."""
    collection = as_collection(data)
    store = prepare_output(collection.store, output, overwrite)
    params = {'transforms': collection.transforms,
            'predicate': Routine(predicate)}
    result = run_job(collection.store, filter_mapper, None, store, control,
            name='filter', params=params)
    logger.info('Filter kept %s pairs and dropped %s',
            result.counters.get(COUNTER_GROUP, 'map_output'),
            result.counters.get(COUNTER_GROUP, 'filtered'))
    return DistributedCollection(result.output)


def sample_mapper(pairs, ctx):
    transforms = ctx.params['transforms']
    fraction = ctx.params['fraction']
    seed = ctx.params['seed']
    for key, value in pairs:
        if bin_generator(seed, key).random() < fraction:
            ctx.emit(key, transforms(key, value))


def sample(data, fraction, seed=None, output=None, control=None,
        overwrite=False):
    """Keep each subset independently with probability `fraction`.

    With a seed, the decision for a key depends only on the seed and the
    key.
    """
    if not 0 < fraction <= 1:
        raise ValueError('The sampling fraction must be in (0, 1], not %r'
                % (fraction,))
    collection = as_collection(data)
    store = prepare_output(collection.store, output, overwrite)
    params = {'transforms': collection.transforms, 'fraction': fraction,
            'seed': seed}
    result = run_job(collection.store, sample_mapper, None, store, control,
            name='sample', params=params)
    return DistributedCollection(result.output)


def join_mapper(pairs, ctx):
    name = ctx.params['names'][ctx.input_index]
    transforms = ctx.params['chains'][ctx.input_index]
    for key, value in pairs:
        ctx.emit(key, (name, transforms(key, value)))


class JoinReducer(Reducer):
    def pre(self, key):
        self.joined = {}

    def reduce(self, key, values):
        for name, value in values:
            self.joined[name] = value

    def post(self, key):
        if self.ctx.params['require_all']:
            missing = [name for name in self.ctx.params['names']
                    if name not in self.joined]
            if missing:
                raise JoinKeyMismatch('Key is missing from %s'
                        % ', '.join(missing), key)
        self.emit(key, self.joined)


def join(output=None, require_all=False, control=None, overwrite=False,
        **collections):
    """Group the values that share a key across named collections.

    Each output value is a dict from collection name to value, holding the
    collections in which the key appears.

    >>> joined = join(x={'a': 1, 'b': 2}, y={'a': 3})
    >>> joined.get('a') == {'x': 1, 'y': 3}
    True
    """
    if not collections:
        raise ValueError('join needs at least one named collection')
    names = list(collections)
    inputs = [as_collection(collections[name]) for name in names]
    stores = [collection.store for collection in inputs]
    store = prepare_output(stores, output, overwrite)
    params = {
        'names': names,
        'chains': [collection.transforms for collection in inputs],
        'require_all': require_all,
        }
    result = run_job(stores, join_mapper, JoinReducer, store,
            make_control(control), name='join', params=params)
    return DistributedCollection(result.output)


def chained_mapper(pairs, ctx):
    transforms = ctx.params['chains'][ctx.input_index]
    user_map = ctx.params['map']
    pairs = ((key, transforms(key, value)) for key, value in pairs)
    if user_map is None:
        for key, value in pairs:
            ctx.emit(key, value)
    else:
        user_map(pairs, ctx)


def mapreduce(data, map=None, reduce=None, output=None, control=None,
        overwrite=False):
    """Run a user MapReduce job over one or more collections.

    Arguments:
        data: a collection (or a list of collections), whose transforms are
            applied to the pairs before `map` sees them.
        map: ``map(pairs, ctx)``, emitting with ``ctx.emit(key, value)``;
            None passes the pairs through.
        reduce: a Reducer subclass, a generator function
            ``reduce(key, values)``, or None for a map-only job.

    Returns:
        (DistributedCollection, Counters)
    """
    if not isinstance(data, (list, tuple)):
        data = [data]
    inputs = [as_collection(d) for d in data]
    stores = [collection.store for collection in inputs]
    store = prepare_output(stores, output, overwrite)
    params = {
        'chains': [collection.transforms for collection in inputs],
        'map': map,
        }
    result = run_job(stores, chained_mapper, reduce, store, control,
            name='mapreduce', params=params)
    return DistributedCollection(result.output), result.counters

# vim: et sw=4 sts=4
