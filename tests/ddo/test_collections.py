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

import logging

import pandas
import pytest

from divrec import DistributedCollection, ddf, ddo
from divrec.attributes import PartialAttributes, VariableSummary, quantiles
from divrec.errors import DivisionSpecError, NotFound, SchemaMismatch
from divrec.stores import LocalDiskStore, MemoryStore


def test_ddo_from_pairs():
    collection = ddo([('a', 1), ('b', 2)])
    assert isinstance(collection.store, MemoryStore)
    assert sorted(collection.keys()) == ['a', 'b']
    assert collection['a'] == 1
    assert 'b' in collection
    assert len(collection) == 2


def test_ddo_to_store(tmpdir):
    store = LocalDiskStore(str(tmpdir.join('kv')))
    collection = ddo({'a': 1}, output=store)
    assert collection.store is store
    assert store.get('a') == 1


def test_ddf_from_frame(iris):
    collection = ddf(iris, chunk_rows=40)
    assert sorted(collection.keys()) == [1, 2, 3, 4]
    assert [len(collection.get(k)) for k in (1, 2, 3, 4)] == [40, 40, 40, 30]
    assert collection.is_ddf


def test_ddf_rejects_other_values():
    with pytest.raises(DivisionSpecError) as excinfo:
        ddf({'a': pandas.DataFrame({'x': [1]}), 'b': [1, 2]})
    assert excinfo.value.key == 'b'


def test_transforms_are_deferred():
    base = ddo({'a': 1, 'b': 2})
    doubled = base.add_transform(lambda v: v * 2)
    labelled = doubled.add_transform(lambda k, v: '%s=%s' % (k, v))

    assert base.get('a') == 1
    assert doubled.get('a') == 2
    assert labelled.get('b') == 'b=4'
    assert dict(labelled.items()) == {'a': 'a=2', 'b': 'b=4'}
    assert labelled.store is base.store
    assert len(labelled.transforms) == 2


def test_first():
    assert ddo({'a': 1}).add_transform(str).first() == ('a', '1')
    with pytest.raises(NotFound):
        ddo({}).first()


def test_attributes(iris_pairs):
    collection = ddf(iris_pairs)
    assert not collection.has_attributes
    collection.update_attributes()

    assert collection.has_attributes
    assert collection.n_pairs == 5
    assert collection.n_rows == 150
    assert sorted(collection.sizes) == [1, 2, 3, 4, 5]
    assert collection.split_vars == []
    assert collection.split_rows[0.5] == 30

    summary = collection.summary
    assert summary['Species']['type'] == 'categorical'
    assert summary['Species']['levels'] == 3
    assert sorted(n for level, n in summary['Species']['top']) == [50] * 3
    assert summary['Petal.Width']['count'] == 150
    assert summary['Petal.Width']['na'] == 0


def test_missing_attributes_warn(caplog):
    collection = ddo({'a': 1})
    with caplog.at_level(logging.WARNING, logger='divrec'):
        assert collection.n_rows is None
    assert 'update_attributes' in caplog.text


def test_attributes_persist(iris_pairs, tmpdir):
    path = str(tmpdir.join('kv'))
    ddf(iris_pairs, output=LocalDiskStore(path)).update_attributes()
    again = DistributedCollection(LocalDiskStore(path))
    assert again.n_rows == 150
    assert len(again) == 5


def test_delete(tmpdir):
    store = LocalDiskStore(str(tmpdir.join('kv')))
    collection = ddo({'a': 1}, output=store)
    collection.delete()
    assert not tmpdir.join('kv').check()


def test_summary_kind_mismatch():
    numeric = VariableSummary.from_series(pandas.Series([1.0, 2.0]))
    text = VariableSummary.from_series(pandas.Series(['a', 'b']))
    with pytest.raises(SchemaMismatch):
        numeric.merge(text, 'x')


def test_numeric_summary():
    summary = VariableSummary.from_series(pandas.Series([1.0, None, 3.0]))
    other = VariableSummary.from_series(pandas.Series([5.0]))
    summary.merge(other, 'x')
    result = summary.as_dict()
    assert result['count'] == 3
    assert result['na'] == 1
    assert result['min'] == 1.0
    assert result['max'] == 5.0
    assert result['mean'] == pytest.approx(3.0)
    assert result['stdev'] == pytest.approx(2.0)


def test_partial_attributes_merge():
    a = PartialAttributes()
    a.add('x', pandas.DataFrame({'v': [1, 2]}))
    b = PartialAttributes()
    b.add('y', 'not a frame')
    a.merge(b)
    result = a.as_dict()
    assert result['n_pairs'] == 2
    assert result['n_rows'] == 3
    assert result['ddf'] is False


def test_quantiles():
    assert quantiles([]) == {}
    assert quantiles([2, 4])[0.5] == 3.0

# vim: et sw=4 sts=4
