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

"""On-disk formats for key-value pairs.

The binary record format is used everywhere data leave a process: objects in
a local-disk store, shuffle runs, and sequence files on the distributed
filesystem.  A mapfile is a sequence file plus an index from key digest to
the byte offset of the record.
"""

import io
import struct

from .serializers import (dumps_functions, loads_functions, key_digest,
        Serializers, str_serializer)


DEFAULT_BUFFER_SIZE = 4096
LENFIELD = struct.Struct('<L')


class Writer(object):
    """A writer takes a file-like object and writes key-value pairs.

    Writers do not flush or close the file object.

    This class is abstract.

    Parameters:
        fileobj: A file or filelike object.
        serializers: A Serializers instance for converting keys and values
            to bytes.  If a serializer is None, use pickle.
    """
    def __init__(self, fileobj, serializers=None):
        self.fileobj = fileobj
        self.dumps_key, self.dumps_value = dumps_functions(serializers)

    def writepair(self, kvpair):
        raise NotImplementedError

    def finish(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.finish()


class Reader(object):
    """A reader takes a file-like object and iterates over key-value pairs.

    A Reader closes the file object if the close method is called or if it
    is used as a context manager (with the "with" statement).

    This class is abstract.
    """
    def __init__(self, fileobj, serializers=None):
        self.fileobj = fileobj
        self.loads_key, self.loads_value = loads_functions(serializers)

    def __iter__(self):
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.close()

    def close(self):
        self.fileobj.close()


class BinWriter(Writer):
    """A key-value store using a simple binary record format.

    Each record is a little-endian 4-byte length followed by that many
    bytes; a pair is a key record followed by a value record.  The `tell`
    method reports the offset where the next pair will start.
    """
    ext = 'drb'
    magic = b'DrsB'

    def __init__(self, fileobj, *args, **kwds):
        super(BinWriter, self).__init__(fileobj, *args, **kwds)
        self.fileobj.write(self.magic)
        self._offset = len(self.magic)

    def writepair(self, kvpair):
        """Write a key-value pair and return the number of bytes written."""
        key, value = kvpair
        if self.dumps_key is not None:
            key = self.dumps_key(key)
        if self.dumps_value is not None:
            value = self.dumps_value(value)

        self.fileobj.write(LENFIELD.pack(len(key)))
        self.fileobj.write(key)
        self.fileobj.write(LENFIELD.pack(len(value)))
        self.fileobj.write(value)

        nbytes = 2 * LENFIELD.size + len(key) + len(value)
        self._offset += nbytes
        return nbytes

    def tell(self):
        return self._offset


class BinReader(Reader):
    """A key-value store using a simple binary record format.

    If `check_magic` is False, the reader expects to start directly at a
    record boundary (as when seeking to an offset from a mapfile index).
    """
    magic = b'DrsB'

    def __init__(self, fileobj, *args, **kwds):
        check_magic = kwds.pop('check_magic', True)
        super(BinReader, self).__init__(fileobj, *args, **kwds)
        self._buffer = b''
        self._magic_read = not check_magic

    def __iter__(self):
        """Iterate over key-value pairs."""
        while True:
            pair = self.readpair()
            if pair is None:
                return
            yield pair

    def iter_sized(self):
        """Iterate over (key, value, nbytes) triples."""
        while True:
            raw = self.readraw()
            if raw is None:
                return
            raw_key, raw_value = raw
            nbytes = 2 * LENFIELD.size + len(raw_key) + len(raw_value)
            yield self._load(raw_key, raw_value) + (nbytes,)

    def readraw(self):
        """Read the next pair as bytes, or return None at the end."""
        if not self._magic_read:
            buf = self.fileobj.read(len(self.magic))
            if buf != self.magic:
                raise RuntimeError('Invalid file header: %r' % buf)
            self._magic_read = True

        key = self._read_record()
        if key is None:
            return None
        value = self._read_record()
        if value is None:
            raise RuntimeError('File ended with a lone key')
        return key, value

    def readpair(self):
        """Read the next pair, or return None at the end."""
        raw = self.readraw()
        if raw is None:
            return None
        return self._load(*raw)

    def _load(self, key, value):
        if self.loads_key is not None:
            key = self.loads_key(key)
        if self.loads_value is not None:
            value = self.loads_value(value)
        return (key, value)

    def _fill_buffer(self, size=DEFAULT_BUFFER_SIZE):
        self._buffer += self.fileobj.read(size)

    def _read_record(self):
        if len(self._buffer) < LENFIELD.size:
            self._fill_buffer()
        if not self._buffer:
            return None
        if len(self._buffer) < LENFIELD.size:
            raise RuntimeError('File ended unexpectedly')

        length, = LENFIELD.unpack(self._buffer[:LENFIELD.size])

        end = LENFIELD.size + length
        while end > len(self._buffer):
            before = len(self._buffer)
            self._fill_buffer(end - before)
            if len(self._buffer) == before:
                raise RuntimeError('File ended unexpectedly')

        data = self._buffer[LENFIELD.size:end]
        self._buffer = self._buffer[end:]
        return data


class TextWriter(Writer):
    """A line-oriented format, primarily for user interaction.

    The key and value are converted to str and written as UTF-8, separated
    by a tab, with one entry per line.  Text output cannot be read back as
    the original objects.
    """
    ext = 'txt'

    def __init__(self, fileobj, *args, **kwds):
        fileobj = io.TextIOWrapper(fileobj, encoding='utf-8', newline='\n')
        super(TextWriter, self).__init__(fileobj, *args, **kwds)

    def writepair(self, kvpair):
        key, value = kvpair
        self.fileobj.write(str(key))
        self.fileobj.write('\t')
        self.fileobj.write(str(value).replace('\n', ' '))
        self.fileobj.write('\n')

    def finish(self):
        # Flush and detach so that the underlying file stays open.
        self.fileobj.flush()
        self.fileobj.detach()


class TextReader(Reader):
    """Reads (key, value) string pairs from tab-separated lines.

    Lines without a tab produce a None key.  Invalid UTF-8 is replaced with
    u'\\ufffd'.
    """
    def __init__(self, fileobj, *args, **kwds):
        fileobj = io.TextIOWrapper(fileobj, encoding='utf-8',
                errors='replace')
        super(TextReader, self).__init__(fileobj, *args, **kwds)

    def __iter__(self):
        for line in self.fileobj:
            line = line.rstrip('\n')
            key, sep, value = line.partition('\t')
            if sep:
                yield (key, value)
            else:
                yield (None, line)


###############################################################################
# Mapfiles

index_serializers = Serializers(str_serializer, None)


class MapFileWriter(object):
    """Writes a mapfile: a data file of pairs plus an index of offsets.

    Both files are written to file-like objects supplied by the caller.  The
    index is a binary record file mapping each key digest to the offset of
    its pair in the data file.  A later pair with the same key replaces an
    earlier one.
    """
    def __init__(self, datafile, indexfile, serializers=None):
        self.data_writer = BinWriter(datafile, serializers)
        self.indexfile = indexfile
        self.offsets = {}

    def writepair(self, kvpair):
        offset = self.data_writer.tell()
        self.data_writer.writepair(kvpair)
        self.offsets[key_digest(kvpair[0])] = offset

    def finish(self):
        self.data_writer.finish()
        with BinWriter(self.indexfile, index_serializers) as writer:
            for digest in sorted(self.offsets):
                writer.writepair((digest, self.offsets[digest]))

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.finish()


def read_index(fileobj):
    """Load a mapfile index into a {digest: offset} dict."""
    with BinReader(fileobj, index_serializers) as reader:
        return dict(reader)


def read_pair_at(fileobj, serializers=None):
    """Read a single pair from a file object positioned at a record."""
    reader = BinReader(fileobj, serializers, check_magic=False)
    try:
        pair = reader.readpair()
    finally:
        reader.close()
    if pair is None:
        raise RuntimeError('No record at the given offset')
    return pair


def writerformat(extension):
    """Returns the writer class associated with the given file extension."""
    return writer_map[extension]


writer_map = {
        'txt': TextWriter,
        'drb': BinWriter,
        }

# vim: et sw=4 sts=4
