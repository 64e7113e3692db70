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

from divrec import param
from divrec.control import Control, make_control, DEFAULT_BATCH_BYTES


class Rabbit(param.ParamObj):
    """A small rodent, very similar to a hare, which feeds on grass and
    burrows in the earth.
    """

    _params = dict(
        weight=param.Param(default=42, doc='Body Weight', type='posint'),
        a_b_c=param.Param(default='hello', doc='A param with underscores'),
        )


def test_defaults():
    obj = Rabbit()
    assert obj.weight == 42
    assert obj.a_b_c == 'hello'


def test_keywords():
    obj = Rabbit(weight=17, a_b_c='hi')
    assert obj.weight == 17
    assert obj.a_b_c == 'hi'


def test_unknown_param():
    with pytest.raises(param.ParamError) as excinfo:
        Rabbit(height=3)
    assert excinfo.value.paramname == 'height'
    assert 'no parameter' in str(excinfo.value)


def test_bad_value():
    with pytest.raises(param.ParamError) as excinfo:
        Rabbit(weight=0)
    assert 'positive integer' in str(excinfo.value)


def test_param_error_pickles():
    error = param.ParamError('Control', 'worker_count', 'must be positive')
    again = pickle.loads(pickle.dumps(error))
    assert str(again) == str(error)


def test_docs_list_params():
    assert 'weight: Body Weight (default=42)' in Rabbit.__doc__


def test_inherit():
    class Hare(Rabbit):
        _params = dict(weight=param.Param(default=50))

    hare = Hare()
    assert hare.weight == 50
    assert hare.a_b_c == 'hello'
    with pytest.raises(param.ParamError):
        Hare(weight=-1)


def test_control_defaults():
    control = Control()
    assert control.worker_count == 1
    assert control.map_batch_bytes == DEFAULT_BATCH_BYTES
    assert control.shuffle_batch_bytes == DEFAULT_BATCH_BYTES
    assert control.reduce_batch_bytes == DEFAULT_BATCH_BYTES
    assert control.executor is None
    assert control.n_reduce_tasks() == 1
    assert control.tempdir()


def test_control_validation():
    with pytest.raises(param.ParamError):
        Control(worker_count=0)
    with pytest.raises(param.ParamError):
        Control(map_batch_bytes='big')
    with pytest.raises(param.ParamError):
        Control(executor='threads')
    with pytest.raises(param.ParamError):
        Control(workers=2)


def test_make_control(tmpdir):
    control = make_control({'worker_count': 3, 'reduce_tasks': 5})
    assert control.worker_count == 3
    assert control.n_reduce_tasks() == 5
    assert make_control(control) is control
    assert make_control(temp_directory=str(tmpdir)).tempdir() == str(tmpdir)


def test_replace():
    control = Control(worker_count=4)
    other = control.replace(keep_temp=True)
    assert other.worker_count == 4
    assert other.keep_temp is True
    assert control.keep_temp is False

# vim: et sw=4 sts=4
