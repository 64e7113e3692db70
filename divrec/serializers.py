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

"""Conversion between Python objects and bytes.

Keys and values are pickled unless a `Serializer` says otherwise.  Keys also
have a digest, which names them on disk and decides which reduce partition
they belong to.
"""

from collections import namedtuple
import functools
import hashlib
import pickle


PICKLE_PROTOCOL = pickle.HIGHEST_PROTOCOL

Serializer = namedtuple('Serializer', ('dumps', 'loads'))


class Serializers(object):
    """Keeps track of a pair of serializers (for keys and for values)."""

    def __init__(self, key_s, value_s):
        self.key_s = key_s
        self.value_s = value_s

    def __repr__(self):
        return 'Serializers(%r, %r)' % (self.key_s, self.value_s)


def dumps_functions(serializers):
    """Return a pair of dumps functions (for the key and value).

    If a serializer is None, use pickle.  Otherwise, use the serializer's
    `dumps` function, which may itself be None to mean the data are already
    bytes.
    """
    if serializers is None:
        key_s = None
        value_s = None
    else:
        key_s = serializers.key_s
        value_s = serializers.value_s

    if key_s is None:
        dumps_key = functools.partial(pickle.dumps, protocol=PICKLE_PROTOCOL)
    else:
        dumps_key = key_s.dumps

    if value_s is None:
        dumps_value = functools.partial(pickle.dumps, protocol=PICKLE_PROTOCOL)
    else:
        dumps_value = value_s.dumps

    return dumps_key, dumps_value


def loads_functions(serializers):
    """Return a pair of loads functions (for the key and value)."""
    if serializers is None:
        key_s = None
        value_s = None
    else:
        key_s = serializers.key_s
        value_s = serializers.value_s

    if key_s is None:
        loads_key = pickle.loads
    else:
        loads_key = key_s.loads

    if value_s is None:
        loads_value = pickle.loads
    else:
        loads_value = value_s.loads

    return loads_key, loads_value


def dumps(obj):
    return pickle.dumps(obj, protocol=PICKLE_PROTOCOL)


def loads(b):
    return pickle.loads(b)


def canonical_key(key):
    """Strip subclasses from string keys.

    Division keys are `str` subclasses carrying extra information; looking
    them up by their plain string form must reach the same object.

    >>> from divrec.keys import CondKey
    >>> k = CondKey.from_split((('Species', 'setosa'),))
    >>> type(canonical_key(k)) is str
    True
    """
    if isinstance(key, str) and type(key) is not str:
        return str(key)
    return key


def key_digest(key):
    """Return a hex digest identifying the key.

    >>> key_digest('abc') == key_digest(u'abc')
    True
    >>> len(key_digest(('a', 1)))
    32
    """
    raw = pickle.dumps(canonical_key(key), protocol=2)
    return hashlib.md5(raw).hexdigest()


def partition_of(digest, n):
    """Choose one of `n` reduce partitions for a key digest."""
    if n <= 1:
        return 0
    return int(digest[:8], 16) % n


###############################################################################
# bytes <-> bytes (no-op)

raw_serializer = Serializer(None, None)
raw_serializers = Serializers(raw_serializer, raw_serializer)

###############################################################################
# str <-> bytes

def str_dumps(s):
    return s.encode('utf-8')

def str_loads(b):
    return b.decode('utf-8')

str_serializer = Serializer(str_dumps, str_loads)

# vim: et sw=4 sts=4
