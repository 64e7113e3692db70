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

"""Copy a collection from one substrate to another."""

from .ddo import DistributedCollection, as_collection, prepare_output
from .job import COUNTER_GROUP
from .mapreduce import run_job

from logging import getLogger
logger = getLogger('divrec')


def convert(data, to=None, control=None, overwrite=False):
    """Copy every pair of a collection into the store `to`.

    The stored values are copied as they are: the collection's transforms
    are not applied, but the returned collection carries them, and the
    metadata (division, attributes) is copied along.  With `to` None the
    pairs are copied into a new MemoryStore.
    """
    collection = as_collection(data)
    source = collection.store
    output = prepare_output(source, to, overwrite)
    result = run_job(source, None, None, output, control, name='convert')
    meta = source.meta
    if meta:
        output.update_meta(**meta)
    logger.info('Converted %s pairs from %s to %s',
            result.counters.get(COUNTER_GROUP, 'map_output'),
            source.describe(), output.describe())
    return DistributedCollection(output, collection.transforms)

# vim: et sw=4 sts=4
