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

import os

import pandas
import pytest

from divrec.errors import (ConnectionStateError, DuplicateKeyError,
        NotFound)
from divrec.keys import CondKey
from divrec.stores import LocalDiskStore, reconnect


def test_put_get(tmpdir):
    store = LocalDiskStore(str(tmpdir.join('kv')))
    frame = pandas.DataFrame({'x': [1, 2, 3]})
    store.put('a', frame)
    store.put(('b', 2), 'tuple key')

    pandas.testing.assert_frame_equal(store.get('a'), frame)
    assert store.get(('b', 2)) == 'tuple key'
    assert len(store) == 2
    assert ('b', 2) in store
    with pytest.raises(NotFound):
        store.get('zzz')


def test_one_file_per_key(tmpdir):
    path = str(tmpdir.join('kv'))
    store = LocalDiskStore(path)
    store.add_batch(('k%d' % i, i) for i in range(5))
    store.put('k0', 'replaced')

    files = [name for name in os.listdir(path) if name.endswith('.drb')]
    assert len(files) == 5
    assert store.get('k0') == 'replaced'


def test_sharded(tmpdir):
    path = str(tmpdir.join('kv'))
    store = LocalDiskStore(path, n_bins=3)
    store.add_batch(('k%d' % i, i) for i in range(30))

    shards = [name for name in os.listdir(path) if name != '_meta']
    assert set(shards) <= set(['0', '1', '2'])
    assert len(shards) > 1
    assert sorted(store.iterate()) == sorted(('k%d' % i, i)
            for i in range(30))


def test_reconnect_recovers_data_and_meta(tmpdir):
    path = str(tmpdir.join('kv'))
    store = LocalDiskStore(path, n_bins=2)
    key = CondKey.from_split((('Species', 'setosa'),))
    store.put(key, 'rows')
    store.update_meta(split_vars=['Species'], n=1)
    del store

    again = reconnect(path)
    assert isinstance(again, LocalDiskStore)
    assert again.n_bins == 2
    assert again.meta == {'split_vars': ['Species'], 'n': 1}
    stored_key, = again.list_keys()
    assert stored_key.split_dict() == {'Species': 'setosa'}


def test_conflicting_settings(tmpdir):
    path = str(tmpdir.join('kv'))
    LocalDiskStore(path, n_bins=2)
    with pytest.raises(ConnectionStateError):
        LocalDiskStore(path, n_bins=4)
    # With reset the old store is replaced.
    store = LocalDiskStore(path, n_bins=4, reset=True)
    assert store.n_bins == 4


def test_reset_clears_contents_and_meta(tmpdir):
    path = str(tmpdir.join('kv'))
    store = LocalDiskStore(path)
    store.put('a', 1)
    store.update_meta(n=1)

    store = LocalDiskStore(path, reset=True)
    assert store.is_empty()
    assert store.meta == {}


def test_read_only(tmpdir):
    path = str(tmpdir.join('kv'))
    with pytest.raises(ConnectionStateError):
        LocalDiskStore(path, read_only=True)

    LocalDiskStore(path).put('a', 1)
    store = LocalDiskStore(path, read_only=True)
    assert store.get('a') == 1
    with pytest.raises(ConnectionStateError):
        store.put('b', 2)


def test_strict(tmpdir):
    store = LocalDiskStore(str(tmpdir.join('kv')), strict=True)
    store.put('a', 1)
    with pytest.raises(DuplicateKeyError):
        store.put('a', 2)


def test_batches(tmpdir):
    store = LocalDiskStore(str(tmpdir.join('kv')), n_bins=2)
    store.add_batch(('k%d' % i, 'x' * 200) for i in range(10))
    refs = store.batch_refs(1000)
    assert len(refs) > 1
    pairs = [pair for ref in refs for pair in store.read_batch(ref)]
    assert sorted(pairs) == sorted(store.iterate())


def test_delete_clear_destroy(tmpdir):
    path = str(tmpdir.join('kv'))
    store = LocalDiskStore(path)
    store.add_batch([('a', 1), ('b', 2)])
    store.delete('a')
    assert list(store.list_keys()) == ['b']

    store.clear()
    assert store.is_empty()

    store.destroy()
    assert not os.path.exists(path)


def test_always_random_access(tmpdir):
    store = LocalDiskStore(str(tmpdir.join('kv')))
    store.put('a', 1)
    assert store.make_random_access() is store
    assert store.get('a') == 1

# vim: et sw=4 sts=4
