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

import pickle

import pytest

from divrec.keys import CondKey, spilled_key, split_of
from divrec.routines import Routine, TransformChain, as_chain, detect_arity
from divrec.serializers import key_digest, partition_of
from divrec.tasks import ShuffleWriter, iter_run, merge_runs


def test_cond_key_string_form():
    key = CondKey.from_split((('Species', 'setosa'), ('n', 3)))
    assert key == 'Species=setosa_n=3'
    assert key.split_dict() == {'Species': 'setosa', 'n': 3}
    assert key_digest(key) == key_digest('Species=setosa_n=3')


def test_cond_key_pickles():
    key = CondKey.from_split((('Species', 'setosa'),)).spilled(4)
    again = pickle.loads(pickle.dumps(key))
    assert again == 'Species=setosa_4'
    assert again.spill == 4
    assert again.base() == 'Species=setosa'


def test_spilled_key():
    assert spilled_key('rr_2', 3) == 'rr_2_3'
    key = CondKey.from_split((('a', 1),))
    assert spilled_key(key.spilled(1), 2) == 'a=1_2'


def test_split_of_plain_keys():
    assert split_of('a=1') == {}
    assert split_of(7) == {}


def test_arity():
    def one(value):
        pass

    def two(key, value):
        pass

    def optional(value, scale=2):
        pass

    assert detect_arity(one) == 1
    assert detect_arity(two) == 2
    assert detect_arity(optional) == 1
    assert detect_arity(lambda *args: None) == 2
    assert Routine(one, arity=2).arity == 2
    with pytest.raises(TypeError):
        Routine(42)


def test_chain_is_immutable():
    base = as_chain(lambda v: v + 1)
    longer = base.then(lambda k, v: v * k)
    assert len(base) == 1
    assert len(longer) == 2
    assert base(3, 1) == 2
    assert longer(3, 1) == 6
    assert not TransformChain()
    assert as_chain(None)('k', 'v') == 'v'
    assert as_chain(longer) is longer


def test_partitions_are_stable():
    digests = [key_digest('key%d' % i) for i in range(100)]
    partitions = [partition_of(d, 4) for d in digests]
    assert set(partitions) == set([0, 1, 2, 3])
    assert partition_of(digests[0], 1) == 0


def test_shuffle_spills_sorted_runs(tmpdir):
    writer = ShuffleWriter(2, 200, str(tmpdir), 'map00000', in_memory=False)
    for i in range(50):
        writer.emit('k%d' % (i % 10), i)
    runs = writer.finish()

    assert len(runs) == 2
    assert all(len(partition_runs) > 1 for partition_runs in runs)
    for partition_runs in runs:
        merged = list(merge_runs(partition_runs))
        digests = [record[0] for record in merged]
        assert digests == sorted(digests)
        for run in partition_runs:
            run_digests = [record[0] for record in iter_run(run)]
            assert run_digests == sorted(run_digests)

# vim: et sw=4 sts=4
