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

"""Job descriptions and the objects user routines see while they run.

A map routine is called as ``mapper(pairs, ctx)`` where `pairs` iterates over
one batch of input pairs and `ctx` is a `Context`; it emits intermediate
pairs with ``ctx.emit(key, value)``.  The batch boundaries depend only on
`Control` settings, so a mapper must not care where one batch ends.

A reduce step is either a `Reducer` subclass (one instance per intermediate
key, with `pre`, `reduce` and `post` phases) or a generator function
``reducer(key, values)`` yielding output values for that key.
"""

from collections import namedtuple
import contextlib
import copy
import traceback

from .control import make_control
from .errors import DivRecError, TransformError
from .stores import MemoryStore, as_store

from logging import getLogger
logger = getLogger('divrec')

COUNTER_GROUP = 'divrec'


class Counters(object):
    """Named counters, scoped by group and name.

    Counters from different tasks are combined with `merge`, which adds
    them, so the order in which tasks finish does not matter.

    >>> c = Counters()
    >>> c.increment('rows', 'kept', 3)
    >>> other = Counters()
    >>> other.increment('rows', 'kept')
    >>> c.merge(other)
    >>> c.get('rows', 'kept')
    4
    """

    def __init__(self, counts=None):
        self._counts = {}
        if counts:
            for group, names in counts.items():
                self._counts[group] = dict(names)

    def increment(self, group, name, n=1):
        names = self._counts.setdefault(group, {})
        names[name] = names.get(name, 0) + n

    def get(self, group, name, default=0):
        return self._counts.get(group, {}).get(name, default)

    def __getitem__(self, group_name):
        group, name = group_name
        return self.get(group, name)

    def merge(self, other):
        for group, names in other._counts.items():
            for name, n in names.items():
                self.increment(group, name, n)

    def groups(self):
        return sorted(self._counts)

    def as_dict(self):
        return dict((group, dict(names))
                for group, names in self._counts.items())

    def __eq__(self, other):
        return isinstance(other, Counters) and self._counts == other._counts

    def __repr__(self):
        return 'Counters(%r)' % (self.as_dict(),)


class Context(object):
    """Passed to map routines and reducers.

    Attributes:
        params: the job's params dict (settings for generic routines).
        input_index: the position (in the job's list of inputs) of the store
            the current batch came from, or None in a reduce task.
        key: the key currently being processed (used to report errors).
        counters: the task's Counters.
    """

    def __init__(self, emit, counters, input_index=None, params=None):
        self._emit = emit
        self.params = params or {}
        self.counters = counters
        self.input_index = input_index
        self.key = None
        self.emitted = 0

    def emit(self, key, value):
        self._emit(key, value)
        self.emitted += 1

    def increment(self, group, name, n=1):
        self.counters.increment(group, name, n)

    def track(self, pairs):
        """Iterate over pairs, remembering which key is in progress."""
        for key, value in pairs:
            self.key = key
            self.counters.increment(COUNTER_GROUP, 'map_input')
            yield key, value


@contextlib.contextmanager
def user_routine(ctx, phase):
    """Turn an exception from a user routine into a TransformError.

    Errors that are already DivRecErrors (for example a SchemaMismatch
    raised by a combiner) pass through unchanged.
    """
    try:
        yield
    except DivRecError:
        raise
    except Exception as e:
        raise TransformError('%s routine failed: %s' % (phase, e), ctx.key,
                type(e).__name__, traceback.format_exc()) from e


class Reducer(object):
    """Base class for three-phase reducers.

    A new instance is created for each intermediate key.  `pre` is called
    once, `reduce` once for each batch of values (batches hold at most
    `reduce_batch_bytes` of serialized values), and `post` once at the end.
    Output is emitted with `emit`, usually from `post`.  Batches arrive in
    no particular order, so `reduce` must accumulate in a way that does not
    depend on it.
    """

    def __init__(self):
        self.ctx = None

    def emit(self, key, value):
        self.ctx.emit(key, value)

    def increment(self, group, name, n=1):
        self.ctx.increment(group, name, n)

    def pre(self, key):
        pass

    def reduce(self, key, values):
        raise NotImplementedError

    def post(self, key):
        pass


def is_reducer_class(reducer):
    return isinstance(reducer, type) and issubclass(reducer, Reducer)


def identity_mapper(pairs, ctx):
    for key, value in pairs:
        ctx.emit(key, value)


JobResult = namedtuple('JobResult', ('output', 'counters'))


class Job(object):
    """Everything needed to run one map/shuffle/reduce pass.

    Arguments:
        inputs: a store, or a list of stores (the map context reports which
            one a batch came from).
        mapper: ``mapper(pairs, ctx)``; None copies the input pairs.
        reducer: a Reducer subclass, a generator function, or None to write
            map output directly to the output store.
        output: the store to write to; None creates a MemoryStore.
        control: a Control (or a dict of Control settings).
        name: used in log messages.
        params: a dict handed to routines as `ctx.params`, so that one
            module-level routine can serve many jobs.
    """

    def __init__(self, inputs, mapper=None, reducer=None, output=None,
            control=None, name='job', params=None):
        if not isinstance(inputs, (list, tuple)):
            inputs = [inputs]
        self.inputs = [as_store(data) for data in inputs]
        self.mapper = mapper
        self.reducer = reducer
        if output is None:
            output = MemoryStore()
        self.output = output
        self.control = make_control(control)
        self.name = name
        self.params = params or {}

        if reducer is not None and not (is_reducer_class(reducer) or
                callable(reducer)):
            raise TypeError('reducer must be a Reducer subclass or a '
                    'function')

    def map(self, pairs, ctx):
        mapper = self.mapper or identity_mapper
        mapper(pairs, ctx)

    def remote_copy(self):
        """Return a copy suitable for sending to another machine.

        The cluster scheduler stays behind, and an output store that other
        processes cannot write to is dropped (task output comes back through
        files instead).
        """
        job = copy.copy(self)
        job.control = self.control.replace(scheduler=None)
        if not self.output.shared:
            job.output = None
        return job

    def __repr__(self):
        return '<Job %s: %s inputs -> %s>' % (self.name, len(self.inputs),
                self.output.describe())

# vim: et sw=4 sts=4
