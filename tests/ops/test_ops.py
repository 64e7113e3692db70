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

import pytest

from divrec import (filter_collection, join, lapply, mapreduce, sample,
        Reducer)
from divrec.ddo import ddo
from divrec.errors import ConnectionStateError, JoinKeyMismatch
from divrec.stores import LocalDiskStore

NUMBERS = dict(('n%02d' % i, i) for i in range(40))


def test_lapply(tmpdir):
    output = LocalDiskStore(str(tmpdir.join('squares')))
    squares = lapply(NUMBERS, lambda v: v * v, output=output)
    assert squares.store is output
    assert squares.get('n07') == 49
    assert len(squares) == 40


def test_lapply_after_transform():
    collection = ddo(NUMBERS).add_transform(lambda v: v + 1)
    result = lapply(collection, lambda key, v: '%s:%s' % (key, v))
    assert result.get('n03') == 'n03:4'


def test_filter_collection():
    evens = filter_collection(NUMBERS, lambda v: v % 2 == 0)
    assert sorted(evens.keys()) == sorted(k for k, v in NUMBERS.items()
            if v % 2 == 0)


def test_sample_is_deterministic_with_seed():
    first = sample(NUMBERS, 0.5, seed=3)
    second = sample(NUMBERS, 0.5, seed=3,
            control={'map_batch_bytes': 1})
    assert sorted(first.keys()) == sorted(second.keys())
    assert 0 < len(first.keys()) < 40
    assert len(sample(NUMBERS, 1.0).keys()) == 40
    with pytest.raises(ValueError):
        sample(NUMBERS, 0)


def test_join():
    left = {'a': 1, 'b': 2}
    right = ddo({'a': 10, 'c': 30}).add_transform(lambda v: v * 2)
    joined = join(left=left, right=right)
    assert dict(joined.items()) == {
            'a': {'left': 1, 'right': 20},
            'b': {'left': 2},
            'c': {'right': 60},
            }


def test_join_require_all():
    with pytest.raises(JoinKeyMismatch) as excinfo:
        join(require_all=True, left={'a': 1, 'b': 2}, right={'a': 3})
    assert excinfo.value.key == 'b'

    joined = join(require_all=True, left={'a': 1}, right={'a': 3})
    assert joined.get('a') == {'left': 1, 'right': 3}


def test_join_output_is_not_an_input(tmpdir):
    store = LocalDiskStore(str(tmpdir.join('kv')))
    store.put('a', 1)
    with pytest.raises(ConnectionStateError):
        join(output=store, left=store, right={'a': 2})


class CountByParity(Reducer):
    def pre(self, key):
        self.count = 0

    def reduce(self, key, values):
        self.count += len(values)
        self.increment('parity', key)

    def post(self, key):
        self.emit(key, self.count)


def test_mapreduce():
    def mapper(pairs, ctx):
        for key, value in pairs:
            ctx.emit('even' if value % 2 == 0 else 'odd', value)

    result, counters = mapreduce(ddo(NUMBERS).add_transform(lambda v: v + 1),
            map=mapper, reduce=CountByParity)
    assert dict(result.items()) == {'even': 20, 'odd': 20}
    assert counters.get('divrec', 'map_input') == 40
    assert counters.get('parity', 'odd') >= 1


def test_mapreduce_identity():
    result, counters = mapreduce(NUMBERS)
    assert dict(result.items()) == NUMBERS
    assert counters.get('divrec', 'map_output') == 40

# vim: et sw=4 sts=4
