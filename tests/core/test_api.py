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

import divrec
from divrec.ddo import DistributedCollection


def test_entry_points_from_package(iris_pairs):
    by_species = divrec.divide(iris_pairs, 'Species')
    assert isinstance(by_species, DistributedCollection)
    assert sorted(by_species.keys()) == ['Species=setosa',
            'Species=versicolor', 'Species=virginica']

    counts = divrec.recombine(by_species, apply=len)
    assert sum(n for key, n in counts) == 150

    sizes = divrec.lapply(by_species, len)
    assert sorted(value for key, value in sizes.items()) == [50, 50, 50]

    kept = divrec.filter_collection(by_species,
            lambda key, value: key.endswith('setosa'))
    assert kept.keys() == ['Species=setosa']

    sampled = divrec.sample(by_species, 1.0, seed=3)
    assert len(sampled.store) == 3

    joined = divrec.join(rows=by_species, sizes=sizes)
    value = joined.get('Species=setosa')
    assert isinstance(value['rows'], pandas.DataFrame)
    assert value['sizes'] == 50

    copied, counters = divrec.mapreduce(by_species)
    assert counters.get('divrec', 'map_output') == 3
    assert sorted(copied.keys()) == sorted(by_species.keys())

    converted = divrec.convert(by_species)
    assert sorted(converted.keys()) == sorted(by_species.keys())

# vim: et sw=4 sts=4
