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

"""Distributed collections: a store, its metadata, and deferred transforms.

A `DistributedCollection` is a thin handle.  Its data and metadata live in
the store, so dropping the handle loses nothing; wrapping the same store
again (for example with `stores.reconnect`) gives back an equivalent
collection.
"""

import pandas

from . import attributes
from .errors import ConnectionStateError, DivisionSpecError, NotFound
from .job import Job
from .mapreduce import execute
from .routines import as_chain
from .stores import BaseStore, MemoryStore, as_store

from logging import getLogger
logger = getLogger('divrec')


class DistributedCollection(object):
    """A collection of key-value pairs in a store.

    Values read through the collection (`get`, `items`, `first`) have the
    collection's transforms applied.  `add_transform` does not touch the
    data; the transforms run when the values are read or when the collection
    is divided or recombined.

    Attributes:
        store: the backing store.
        transforms: a TransformChain.
    """

    def __init__(self, store, transforms=None):
        self.store = as_store(store)
        self.transforms = as_chain(transforms)

    def __repr__(self):
        return '<DistributedCollection on %s%s>' % (self.store.describe(),
                ' with %s transforms' % len(self.transforms)
                if self.transforms else '')

    ##########################################################################
    # Reading

    def keys(self):
        return list(self.store.list_keys())

    def items(self):
        for key, value in self.store.iterate():
            yield key, self.transforms(key, value)

    def __iter__(self):
        return self.items()

    def get(self, key):
        return self.transforms(key, self.store.get(key))

    def __getitem__(self, key):
        return self.get(key)

    def __contains__(self, key):
        return key in self.store

    def __len__(self):
        if self.has_attributes:
            return self.attributes['n_pairs']
        return len(self.store)

    def first(self):
        """Return the first (key, value) pair."""
        for pair in self.items():
            return pair
        raise NotFound(None, 'The collection is empty')

    ##########################################################################
    # Metadata

    @property
    def meta(self):
        return self.store.meta

    @property
    def attributes(self):
        return self.meta.get('attributes', {})

    @property
    def has_attributes(self):
        return bool(self.attributes)

    def _attribute(self, name):
        attrs = self.attributes
        if not attrs:
            logger.warning('Attributes of %s have not been computed; call '
                    'update_attributes() first', self.store.describe())
            return None
        return attrs[name]

    @property
    def n_pairs(self):
        return self._attribute('n_pairs')

    @property
    def n_rows(self):
        return self._attribute('n_rows')

    @property
    def sizes(self):
        return self._attribute('sizes')

    @property
    def summary(self):
        return self._attribute('summary')

    @property
    def split_rows(self):
        counts = self._attribute('row_counts')
        if counts is None:
            return None
        return attributes.quantiles(counts)

    @property
    def split_vars(self):
        """Names of the conditioning variables that produced the keys."""
        meta = self.meta
        if 'split_vars' in meta:
            return list(meta['split_vars'])
        return self._attribute('split_vars')

    @property
    def division(self):
        return self.meta.get('division')

    @property
    def is_ddf(self):
        if self.has_attributes:
            return self.attributes['ddf']
        return self.meta.get('ddf', False)

    def update_attributes(self, control=None):
        """Scan the whole collection and save its attributes in the store.

        The attributes describe the stored values (transforms are not
        applied).
        """
        job = Job(self.store, attributes.attributes_mapper,
                attributes.AttributesReducer, MemoryStore(), control,
                name='update_attributes')
        result = execute(job)
        try:
            partial = result.output.get(attributes.ATTRIBUTES_KEY)
        except NotFound:
            partial = attributes.PartialAttributes()
        self.store.update_meta(attributes=partial.as_dict())
        logger.info('Updated attributes of %s: %s pairs, %s rows',
                self.store.describe(), partial.n_pairs, partial.n_rows)
        return self

    ##########################################################################
    # Changing

    def add_transform(self, fn):
        """Return a collection on the same store with `fn` appended to the
        transforms."""
        return DistributedCollection(self.store, self.transforms.then(fn))

    def delete(self):
        """Remove the backing storage."""
        self.store.destroy()


def ddo(data, output=None):
    """Make a DistributedCollection from a collection, store, dict or
    iterable of pairs.

    If `output` is given, the pairs are written to that store.
    """
    if isinstance(data, DistributedCollection):
        if output is None:
            return data
        data = data.items()
    elif isinstance(data, BaseStore):
        if output is None:
            return DistributedCollection(data)
        data = data.iterate()
    if output is None:
        return DistributedCollection(MemoryStore(data))
    if isinstance(data, dict):
        data = data.items()
    output.add_batch(data)
    output.finalize()
    return DistributedCollection(output)


def ddf(data, output=None, chunk_rows=None):
    """Make a DistributedCollection whose values are all DataFrames.

    A single DataFrame becomes one pair with key 1, or, with `chunk_rows`,
    consecutive chunks of that many rows with keys 1, 2, ...
    """
    if isinstance(data, pandas.DataFrame):
        if chunk_rows is None:
            chunk_rows = max(len(data), 1)
        data = [(i // chunk_rows + 1,
            data.iloc[i:i + chunk_rows].reset_index(drop=True))
            for i in range(0, max(len(data), 1), chunk_rows)]
    collection = ddo(data, output)
    for key, value in collection.store.iterate():
        if not isinstance(value, pandas.DataFrame):
            raise DivisionSpecError('ddf values must be DataFrames, not %s'
                    % type(value).__name__, key)
    if not collection.store.read_only:
        collection.store.update_meta(ddf=True)
    return collection


def as_collection(data):
    """Accept a DistributedCollection, a store, a dict or pairs."""
    if isinstance(data, DistributedCollection):
        return data
    return DistributedCollection(as_store(data))


def same_location(a, b):
    if a is b:
        return True
    if a.kind == MemoryStore.kind or b.kind == MemoryStore.kind:
        return False
    return a.settings == b.settings


def prepare_output(sources, output, overwrite=False):
    """Check an output store before a job reading `sources` (a store or a
    list of stores) writes to it.

    Returns the store to write to (a new MemoryStore if `output` is None).
    Nothing is written if a check fails.
    """
    if output is None:
        return MemoryStore()
    output = as_store(output)
    if not isinstance(sources, (list, tuple)):
        sources = [sources]
    if any(same_location(source, output) for source in sources):
        raise ConnectionStateError('The output %s is the input of the job'
                % output.describe())
    if output.read_only:
        raise ConnectionStateError('Cannot write to a read-only %s'
                % output.describe())
    if not output.is_empty():
        if not overwrite:
            raise ConnectionStateError('%s is not empty (use overwrite=True '
                    'to replace its contents)' % output.describe())
        logger.info('Clearing %s', output.describe())
        output.clear()
    return output

# vim: et sw=4 sts=4
