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

from io import BytesIO

import pytest

from divrec.fileformats import (BinReader, BinWriter, MapFileWriter,
        TextReader, TextWriter, read_index, read_pair_at)
from divrec.keys import CondKey
from divrec.serializers import (Serializers, key_digest, raw_serializer,
        raw_serializers)


def test_raw_records():
    kv_pairs = [(b'key 1', b'value 1'),
            (b'hello', b'world'),
            (b'the', b'end')]
    # A 4-byte header, then a 4-byte length before each key and value.
    expected_size = 4 + sum(4 + len(k) + 4 + len(v) for k, v in kv_pairs)

    f = BytesIO()
    writer = BinWriter(f, serializers=raw_serializers)
    for pair in kv_pairs:
        writer.writepair(pair)
    writer.finish()

    assert f.tell() == expected_size
    assert writer.tell() == expected_size

    f.seek(0)
    reader = BinReader(f, serializers=raw_serializers)
    assert list(reader) == kv_pairs


def test_pickled_records():
    key = CondKey.from_split((('Species', 'setosa'), ('big', True)))
    kv_pairs = [(key, {'rows': 3}), (7, [1, 2, 3]), (('a', 1), None)]

    f = BytesIO()
    with BinWriter(f) as writer:
        for pair in kv_pairs:
            writer.writepair(pair)

    f.seek(0)
    new_pairs = list(BinReader(f))
    assert new_pairs == kv_pairs
    assert new_pairs[0][0].split_dict() == {'Species': 'setosa', 'big': True}


def test_sized_iteration():
    f = BytesIO()
    with BinWriter(f) as writer:
        sizes = [writer.writepair(('a', 'x' * 10)),
                writer.writepair(('b', 'y' * 1000))]

    f.seek(0)
    triples = list(BinReader(f).iter_sized())
    assert [(k, len(v)) for k, v, n in triples] == [('a', 10), ('b', 1000)]
    assert [n for k, v, n in triples] == sizes


def test_bad_header():
    with pytest.raises(RuntimeError):
        list(BinReader(BytesIO(b'nope')))


def test_truncated_file():
    f = BytesIO()
    with BinWriter(f) as writer:
        writer.writepair(('a', 'b' * 100))
    data = f.getvalue()[:-10]
    with pytest.raises(RuntimeError):
        list(BinReader(BytesIO(data)))


def test_key_only_serializer():
    serializers = Serializers(raw_serializer, None)
    f = BytesIO()
    with BinWriter(f, serializers) as writer:
        writer.writepair((b'k', {'v': 1}))
    f.seek(0)
    assert list(BinReader(f, serializers)) == [(b'k', {'v': 1})]


def test_text_lines():
    f = BytesIO()
    with TextWriter(f) as writer:
        writer.writepair(('a', 1))
        writer.writepair(('b', 'two\nlines'))
    assert f.getvalue() == b'a\t1\nb\ttwo lines\n'

    f.seek(0)
    assert list(TextReader(f)) == [('a', '1'), ('b', 'two lines')]


def test_text_line_without_tab():
    reader = TextReader(BytesIO(b'no tab here\n'))
    assert list(reader) == [(None, 'no tab here')]


def test_mapfile():
    datafile = BytesIO()
    indexfile = BytesIO()
    with MapFileWriter(datafile, indexfile) as writer:
        for i in range(20):
            writer.writepair(('k%d' % i, i * i))

    indexfile.seek(0)
    index = read_index(indexfile)
    assert len(index) == 20

    data = datafile.getvalue()
    offset = index[key_digest('k13')]
    f = BytesIO(data)
    f.seek(offset)
    assert read_pair_at(f) == ('k13', 169)

# vim: et sw=4 sts=4
