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

import numpy
import pandas
import pytest

SPECIES = ('setosa', 'versicolor', 'virginica')


def pytest_configure(config):
    config.addinivalue_line('markers',
            'hadoop: needs a live HDFS cluster reachable over WebHDFS')


def pytest_collection_modifyitems(config, items):
    if os.environ.get('DIVREC_HADOOP'):
        return
    skip = pytest.mark.skip(reason='set DIVREC_HADOOP to run')
    for item in items:
        if 'hadoop' in item.keywords:
            item.add_marker(skip)


def make_iris():
    """An iris-shaped frame: 150 rows, 50 of each species."""
    rng = numpy.random.default_rng(2012)
    frames = []
    for i, species in enumerate(SPECIES):
        frames.append(pandas.DataFrame({
            'Sepal.Length': numpy.round(rng.normal(5.0 + i, 0.3, 50), 1),
            'Sepal.Width': numpy.round(rng.normal(3.0, 0.3, 50), 1),
            'Petal.Length': numpy.round(rng.normal(1.5 + 2 * i, 0.2, 50), 1),
            'Petal.Width': numpy.round(rng.normal(0.2 + i, 0.1, 50), 1),
            'Species': species,
            }))
    iris = pandas.concat(frames, ignore_index=True)
    order = rng.permutation(len(iris))
    return iris.iloc[order].reset_index(drop=True)


@pytest.fixture
def iris():
    return make_iris()


@pytest.fixture
def iris_pairs(iris):
    """The iris frame cut into five input pairs of 30 rows."""
    return [(i + 1, iris.iloc[30 * i:30 * (i + 1)].reset_index(drop=True))
            for i in range(5)]

# vim: et sw=4 sts=4
