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

import math

import pandas
import pytest

from divrec import DistributedCollection, ddf, divide
from divrec.divide import CondDiv, RRDiv, as_division
from divrec.errors import (ConnectionStateError, DivisionSpecError,
        SpillConfigError, TransformError)
from divrec.stores import LocalDiskStore, MemoryStore, reconnect


def canonical(frame):
    columns = sorted(frame.columns)
    return frame[columns].sort_values(columns).reset_index(drop=True)


def rows_by_key(collection):
    return dict((key, len(value)) for key, value in collection.items())


def test_by_species(iris_pairs, iris):
    divided = divide(iris_pairs, by='Species')

    assert rows_by_key(divided) == {
            'Species=setosa': 50,
            'Species=versicolor': 50,
            'Species=virginica': 50,
            }
    for key, value in divided.items():
        assert 'Species' not in value.columns
        assert key.split_dict() == {'Species': key.split('=')[1]}
    assert divided.split_vars == ['Species']
    assert divided.division == {'type': 'condDiv', 'vars': ['Species']}


def test_rows_conserved(iris_pairs, iris):
    divided = divide(iris_pairs, by=['Species'])
    frames = []
    for key, value in divided.items():
        value = value.copy()
        value['Species'] = key.split_dict()['Species']
        frames.append(value)
    result = pandas.concat(frames, ignore_index=True)
    pandas.testing.assert_frame_equal(canonical(result), canonical(iris))


def test_spill(iris_pairs):
    divided = divide(iris_pairs, by='Species', spill=12)

    rows = rows_by_key(divided)
    assert len(rows) == 15
    for species in ('setosa', 'versicolor', 'virginica'):
        counts = [rows['Species=%s_%d' % (species, i)] for i in range(1, 6)]
        assert sorted(counts, reverse=True) == [12, 12, 12, 12, 2]
    for key in rows:
        assert key.split_dict()['Species'] in key


@pytest.mark.parametrize('spill', [7, 25, 49, 50, 51])
def test_spill_counts(iris_pairs, spill):
    divided = divide(iris_pairs, by='Species', spill=spill)
    rows = rows_by_key(divided)
    assert max(rows.values()) <= spill
    assert sum(rows.values()) == 150
    assert len(rows) == 3 * math.ceil(50 / spill)


def test_two_variables(iris_pairs):
    def add_size(frame):
        frame = frame.copy()
        frame['big'] = frame['Petal.Length'] > 4
        return frame

    divided = divide(iris_pairs, by=['Species', 'big'],
            pre_transform=add_size)
    assert sum(rows_by_key(divided).values()) == 150
    for key, value in divided.items():
        split = key.split_dict()
        assert set(split) == set(['Species', 'big'])
        assert isinstance(split['big'], bool)
        assert 'big' not in value.columns


def test_collection_transforms_run_first(iris_pairs):
    collection = ddf(iris_pairs).add_transform(
            lambda frame: frame[frame['Sepal.Width'] > 3.0])
    expected = sum((value['Sepal.Width'] > 3.0).sum()
            for key, value in iris_pairs)
    divided = divide(collection, by='Species')
    assert sum(rows_by_key(divided).values()) == expected


def test_filter_and_post_transform(iris_pairs):
    divided = divide(iris_pairs, by='Species', spill=12,
            filter=lambda frame: len(frame) > 2,
            post_transform=lambda key, frame: frame.assign(chunk=str(key)))
    rows = rows_by_key(divided)
    # The 2-row chunk of each species is dropped; the others keep their
    # suffixes.
    assert len(rows) == 12
    assert set(rows.values()) == set([12])
    for key, value in divided.items():
        assert (value['chunk'] == key).all()


def test_random_replicate(iris_pairs):
    divided = divide(iris_pairs, by=RRDiv(30, seed=7))
    rows = rows_by_key(divided)
    assert abs(len(rows) - 5) <= 1
    assert sum(rows.values()) == 150
    for key in rows:
        assert key.startswith('rr_')
    assert divided.split_vars == []


def test_random_replicate_is_reproducible(iris_pairs):
    first = divide(iris_pairs, by=RRDiv(30, seed=7))
    second = divide(iris_pairs, by=RRDiv(30, seed=7),
            control={'map_batch_bytes': 1})
    assert sorted(first.keys()) == sorted(second.keys())
    for key, value in first.items():
        pandas.testing.assert_frame_equal(canonical(value),
                canonical(second.get(key)))


def test_random_replicate_uses_attributes(iris_pairs):
    collection = ddf(iris_pairs).update_attributes()
    assert collection.n_rows == 150
    divided = divide(collection, by=RRDiv(75, seed=1))
    assert len(divided.keys()) == 2


def test_update_attributes(iris_pairs):
    divided = divide(iris_pairs, by='Species', spill=12, update=True)
    assert divided.n_pairs == 15
    assert divided.n_rows == 150
    assert divided.split_rows[1.0] == 12
    assert divided.split_rows[0.0] == 2
    summary = divided.summary
    assert summary['Sepal.Length']['type'] == 'numeric'
    assert summary['Sepal.Length']['count'] == 150


@pytest.mark.parametrize('spill', [0, -3, 2.5, '10', True])
def test_bad_spill(iris_pairs, spill):
    output = MemoryStore()
    with pytest.raises(SpillConfigError):
        divide(iris_pairs, by='Species', spill=spill, output=output)
    assert output.is_empty()


def test_bad_division_spec(iris_pairs):
    with pytest.raises(DivisionSpecError):
        divide(iris_pairs, by=42)
    with pytest.raises(DivisionSpecError):
        as_division([])
    with pytest.raises(DivisionSpecError):
        RRDiv(0)


def test_missing_column(iris_pairs):
    with pytest.raises(DivisionSpecError) as excinfo:
        divide(iris_pairs, by='Color')
    assert excinfo.value.key in (1, 2, 3, 4, 5)


def test_non_tabular_values():
    with pytest.raises(DivisionSpecError):
        divide({'a': [1, 2, 3]}, by='x')


def test_transform_error_names_key(iris_pairs):
    def explode(key, frame):
        if key == 4:
            raise ValueError('cannot transform')
        return frame

    with pytest.raises(TransformError) as excinfo:
        divide(iris_pairs, by='Species', pre_transform=explode)
    assert excinfo.value.key == 4


def test_output_checks(iris_pairs, tmpdir):
    path = str(tmpdir.join('by_species'))
    divided = divide(iris_pairs, by='Species', output=LocalDiskStore(path))

    with pytest.raises(ConnectionStateError):
        divide(iris_pairs, by='Species', output=LocalDiskStore(path))
    with pytest.raises(ConnectionStateError):
        divide(divided, by='Species', output=LocalDiskStore(path))

    again = divide(iris_pairs, by='Species', spill=25,
            output=LocalDiskStore(path), overwrite=True)
    assert len(again.keys()) == 6


def test_reopen_keeps_metadata(iris_pairs, tmpdir):
    path = str(tmpdir.join('by_species'))
    divided = divide(iris_pairs, by='Species', output=LocalDiskStore(path),
            update=True)
    before = (divided.n_pairs, divided.split_vars)
    del divided

    again = DistributedCollection(reconnect(path))
    assert (again.n_pairs, again.split_vars) == before == (3, ['Species'])
    assert len(again.get('Species=setosa')) == 50


@pytest.mark.parametrize('executor', ['multicore', 'cluster'])
def test_parallel_division(iris_pairs, tmpdir, executor):
    output = LocalDiskStore(str(tmpdir.join('out')), n_bins=2)
    control = {'executor': executor, 'worker_count': 2,
            'map_batch_bytes': 1, 'reduce_tasks': 2}
    divided = divide(iris_pairs, by='Species', spill=12, output=output,
            control=control)
    rows = rows_by_key(divided)
    assert len(rows) == 15
    assert sum(rows.values()) == 150


def test_cond_div_repr():
    assert CondDiv(['a', 'b']).vars == ['a', 'b']
    with pytest.raises(DivisionSpecError):
        CondDiv(['a', 'a'])

# vim: et sw=4 sts=4
