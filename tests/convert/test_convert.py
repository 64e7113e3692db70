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

import pandas
import pytest

from divrec import convert, ddf, divide
from divrec.errors import ConnectionStateError
from divrec.stores import HDFSStore, LocalDiskStore, MemoryStore


def assert_same_pairs(a, b):
    a = dict(a.items())
    b = dict(b.items())
    assert sorted(a) == sorted(b)
    for key in a:
        pandas.testing.assert_frame_equal(a[key], b[key])


def test_round_trip_through_every_substrate(iris_pairs, tmpdir):
    original = divide(iris_pairs, by='Species', spill=20)

    on_disk = convert(original, LocalDiskStore(str(tmpdir.join('disk')),
        n_bins=2))
    on_dfs = convert(on_disk, HDFSStore(str(tmpdir.join('dfs')),
        file_kind='map'))
    back = convert(on_dfs)

    assert isinstance(back.store, MemoryStore)
    assert_same_pairs(original, back)
    for key in back.keys():
        assert key.split_dict()['Species'] in key


def test_metadata_travels(iris_pairs, tmpdir):
    original = divide(iris_pairs, by='Species', update=True)
    copied = convert(original, LocalDiskStore(str(tmpdir.join('disk'))))
    assert copied.split_vars == ['Species']
    assert copied.n_pairs == 3
    assert copied.division == original.division


def test_transforms_stay_deferred(iris_pairs):
    collection = ddf(iris_pairs).add_transform(len)
    copied = convert(collection)
    assert isinstance(copied.store.get(1), pandas.DataFrame)
    assert copied.get(1) == 30


@pytest.mark.parametrize('executor', ['serial', 'multicore', 'cluster'])
def test_executors(iris_pairs, tmpdir, executor):
    source = ddf(iris_pairs, output=LocalDiskStore(str(tmpdir.join('in'))))
    copied = convert(source, HDFSStore(str(tmpdir.join('out'))),
            control={'executor': executor, 'worker_count': 2})
    copied.store.make_random_access()
    assert_same_pairs(source, copied)


def test_same_location(tmpdir):
    path = str(tmpdir.join('disk'))
    source = ddf([(1, pandas.DataFrame({'x': [1]}))],
            output=LocalDiskStore(path))
    with pytest.raises(ConnectionStateError):
        convert(source, LocalDiskStore(path))

# vim: et sw=4 sts=4
