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

"""Key-value stores on three substrates.

All stores share one contract (`BaseStore`): get/put by key, list the keys,
iterate over the pairs, add a batch of pairs, plus the batch references that
executors hand to their workers.  A store is also the connection: it is
created from a location, and opening the same location again (without
`reset`) finds the same data and metadata.

`MemoryStore`
    A dict in this process.  Nothing is persisted.
`LocalDiskStore`
    A directory holding one file per key, named by the key's digest and
    optionally sharded into `n_bins` subdirectories.
`HDFSStore`
    A directory on a distributed filesystem (WebHDFS, or a shared POSIX
    directory) holding sequence files written in batches.  Lookup by key
    needs `make_random_access`, which rewrites the data as indexed mapfiles.

Each persisted store keeps its metadata under the reserved `_meta`
subdirectory: the settings it was created with and the attributes computed
by `DistributedCollection.update_attributes`.
"""

import copy
import io
import math
import os
import pickle
import posixpath
import time

from logging import getLogger

from . import hdfs
from . import util
from .errors import (NotFound, NotRandomAccessible, ConnectionStateError,
        DuplicateKeyError)
from .fileformats import (BinWriter, BinReader, TextWriter, TextReader,
        MapFileWriter, read_index, read_pair_at, writerformat)
from .serializers import dumps, key_digest, partition_of

logger = getLogger('divrec')

META_DIR = '_meta'
CONN_FILE = 'conn.pkl'
ATTRIBUTES_FILE = 'attributes.pkl'
OBJECT_EXT = '.' + BinWriter.ext
MAP_BUCKET_BYTES = 64 * 1024 * 1024


def encode_pair(key, value):
    """Serialize a single pair in the binary record format."""
    buf = io.BytesIO()
    with BinWriter(buf) as writer:
        writer.writepair((key, value))
    return buf.getvalue()


def decode_pair(data):
    with BinReader(io.BytesIO(data)) as reader:
        pair = reader.readpair()
    if pair is None:
        raise RuntimeError('Empty object')
    return pair


class BaseStore(object):
    """The interface shared by every substrate.

    Attributes:
        kind: name of the substrate ('memory', 'localdisk' or 'hdfs').
        shared: whether worker processes can write to the store directly
            (otherwise the executor ships their output back to the parent).
        read_only: writes raise ConnectionStateError.
        strict: adding a key that is already present raises
            DuplicateKeyError instead of replacing the old value.
    """
    kind = None
    shared = False

    def __init__(self, read_only=False, strict=False):
        self.read_only = read_only
        self.strict = strict

    def get(self, key):
        """Return the value for a key or raise NotFound."""
        raise NotImplementedError

    def _put(self, key, value):
        raise NotImplementedError

    def list_keys(self):
        raise NotImplementedError

    def iterate_sized(self):
        """Iterate over (key, value, nbytes) triples."""
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError

    def clear(self):
        """Remove every pair and the computed attributes."""
        raise NotImplementedError

    def destroy(self):
        """Remove the store's location entirely."""
        raise NotImplementedError

    def batch_refs(self, max_bytes):
        """Return a list of picklable references to batches of pairs.

        Each batch holds about `max_bytes` of serialized data (a single large
        pair is a batch by itself).
        """
        raise NotImplementedError

    def read_batch(self, ref):
        """Return the list of pairs named by a batch reference."""
        raise NotImplementedError

    def load_meta(self):
        raise NotImplementedError

    def save_meta(self, meta):
        raise NotImplementedError

    @property
    def settings(self):
        return {'kind': self.kind}

    def iterate(self):
        for key, value, nbytes in self.iterate_sized():
            yield key, value

    def __iter__(self):
        return self.iterate()

    def put(self, key, value):
        self._check_writable()
        if self.strict and key in self:
            raise DuplicateKeyError('Key is already present', key)
        self._put(key, value)

    def add_batch(self, pairs):
        for key, value in pairs:
            self.put(key, value)

    def make_random_access(self):
        return self

    def finalize(self):
        """Called once after a job has finished writing to the store."""

    @property
    def meta(self):
        return self.load_meta()

    def update_meta(self, **kwds):
        self._check_writable()
        meta = self.load_meta()
        meta.update(kwds)
        self.save_meta(meta)

    def is_empty(self):
        for key in self.list_keys():
            return False
        return True

    def describe(self):
        settings = dict(self.settings)
        kind = settings.pop('kind')
        return '%s store (%s)' % (kind, ', '.join('%s=%r' % item
            for item in sorted(settings.items())))

    def __len__(self):
        return sum(1 for key in self.list_keys())

    def __contains__(self, key):
        try:
            self.get(key)
        except NotFound:
            return False
        return True

    def __repr__(self):
        return '<%s>' % self.describe()

    def _check_writable(self):
        if self.read_only:
            raise ConnectionStateError('Cannot write to a read-only %s'
                    % self.describe())


class MemoryStore(BaseStore):
    """A store held in a dict in this process.

    Keys must be hashable.  Batches handed to workers are deep copies, so a
    routine that modifies its input cannot change the stored values.
    """
    kind = 'memory'

    def __init__(self, pairs=None, read_only=False, strict=False):
        super(MemoryStore, self).__init__(strict=strict)
        self._data = {}
        self._meta = {}
        if pairs is not None:
            if isinstance(pairs, dict):
                pairs = pairs.items()
            self.add_batch(pairs)
        self.read_only = read_only

    def get(self, key):
        try:
            return self._data[key]
        except (KeyError, TypeError):
            raise NotFound(key)

    def _put(self, key, value):
        # Replace the key object too, so that a structured key wins over an
        # equal plain string.
        self._data.pop(key, None)
        self._data[key] = value

    def list_keys(self):
        return list(self._data)

    def iterate(self):
        return iter(list(self._data.items()))

    def iterate_sized(self):
        for key, value in list(self._data.items()):
            yield key, value, len(dumps(key)) + len(dumps(value))

    def delete(self, key):
        self._check_writable()
        try:
            del self._data[key]
        except KeyError:
            raise NotFound(key)

    def clear(self):
        self._check_writable()
        self._data.clear()
        self._meta = {}

    def destroy(self):
        self._data.clear()
        self._meta = {}

    def batch_refs(self, max_bytes):
        sizeof = lambda key: len(dumps(key)) + len(dumps(self._data[key]))
        return [tuple(batch) for batch in
                util.chunked(list(self._data), max_bytes, sizeof)]

    def read_batch(self, ref):
        return [(key, copy.deepcopy(self._data[key])) for key in ref]

    def load_meta(self):
        return dict(self._meta)

    def save_meta(self, meta):
        self._meta = dict(meta)

    def __len__(self):
        return len(self._data)

    def __contains__(self, key):
        try:
            return key in self._data
        except TypeError:
            return False


class LocalDiskStore(BaseStore):
    """A directory with one file per key.

    Each file is named by the digest of its key and holds a single pair in
    the binary record format, so a key is found without any index and the
    store is always random-access.  With `n_bins` > 0 the files are spread
    across that many subdirectories.

    Arguments:
        path: the directory (created if missing).
        n_bins: sharding factor.  None means the value it was created with
            (or 0 for a new store); a different value for an existing store
            raises ConnectionStateError unless `reset` is given.
        reset: remove any existing contents and metadata.
    """
    kind = 'localdisk'
    shared = True

    def __init__(self, path, n_bins=None, reset=False, read_only=False,
            strict=False):
        super(LocalDiskStore, self).__init__(read_only, strict)
        self.path = os.path.abspath(path)
        if n_bins is not None and n_bins < 0:
            raise ConnectionStateError('n_bins must be non-negative')

        conn = self._read_conn()
        if reset:
            if read_only:
                raise ConnectionStateError('Cannot reset a read-only store')
            if conn is not None:
                logger.info('Resetting local disk store at %s', self.path)
                util.remove_recursive(self.path)
            if n_bins is None and conn is not None:
                n_bins = conn['n_bins']
            conn = None
        elif conn is not None:
            if conn.get('kind') != self.kind:
                raise ConnectionStateError('%s holds a %s store, not a %s '
                        'store' % (self.path, conn.get('kind'), self.kind))
            if n_bins is not None and n_bins != conn['n_bins']:
                raise ConnectionStateError('%s was created with n_bins=%s, '
                        'not %s' % (self.path, conn['n_bins'], n_bins))
            n_bins = conn['n_bins']
        elif read_only:
            raise ConnectionStateError('No store at %s' % self.path)

        self.n_bins = n_bins or 0
        if conn is None:
            util.try_makedirs(os.path.join(self.path, META_DIR))
            util.atomic_write(self._meta_path(CONN_FILE),
                    dumps(self.settings))

    @property
    def settings(self):
        return {'kind': self.kind, 'path': self.path, 'n_bins': self.n_bins}

    def _meta_path(self, name):
        return os.path.join(self.path, META_DIR, name)

    def _read_conn(self):
        try:
            with open(self._meta_path(CONN_FILE), 'rb') as f:
                return pickle.load(f)
        except FileNotFoundError:
            return None

    def _object_path(self, key):
        digest = key_digest(key)
        filename = digest + OBJECT_EXT
        if self.n_bins:
            shard = '%d' % (int(digest, 16) % self.n_bins)
            return os.path.join(self.path, shard, filename)
        else:
            return os.path.join(self.path, filename)

    def _object_files(self):
        """Return the paths of all objects, relative to the store's path."""
        result = []
        for name in sorted(os.listdir(self.path)):
            if name == META_DIR or name.startswith('.'):
                continue
            full = os.path.join(self.path, name)
            if os.path.isdir(full):
                for subname in sorted(os.listdir(full)):
                    if (subname.endswith(OBJECT_EXT) and
                            not subname.startswith('.')):
                        result.append(os.path.join(name, subname))
            elif name.endswith(OBJECT_EXT):
                result.append(name)
        return result

    def _read_object(self, relpath):
        with open(os.path.join(self.path, relpath), 'rb') as f:
            return decode_pair(f.read())

    def get(self, key):
        try:
            with open(self._object_path(key), 'rb') as f:
                data = f.read()
        except FileNotFoundError:
            raise NotFound(key)
        return decode_pair(data)[1]

    def _put(self, key, value):
        path = self._object_path(key)
        if self.n_bins:
            util.try_makedirs(os.path.dirname(path))
        util.atomic_write(path, encode_pair(key, value))

    def list_keys(self):
        for relpath in self._object_files():
            with BinReader(open(os.path.join(self.path, relpath), 'rb')) as r:
                raw = r.readraw()
                yield r.loads_key(raw[0])

    def iterate_sized(self):
        for relpath in self._object_files():
            path = os.path.join(self.path, relpath)
            with BinReader(open(path, 'rb')) as reader:
                for key, value, nbytes in reader.iter_sized():
                    yield key, value, nbytes

    def delete(self, key):
        self._check_writable()
        try:
            os.remove(self._object_path(key))
        except FileNotFoundError:
            raise NotFound(key)

    def clear(self):
        self._check_writable()
        for name in os.listdir(self.path):
            if name == META_DIR:
                continue
            full = os.path.join(self.path, name)
            if os.path.isdir(full):
                util.remove_recursive(full)
            else:
                os.remove(full)
        self.save_meta({})

    def destroy(self):
        util.remove_recursive(self.path)

    def batch_refs(self, max_bytes):
        sizeof = lambda relpath: os.path.getsize(
                os.path.join(self.path, relpath))
        return [tuple(batch) for batch in
                util.chunked(self._object_files(), max_bytes, sizeof)]

    def read_batch(self, ref):
        return [self._read_object(relpath) for relpath in ref]

    def make_random_access(self):
        logger.debug('Local disk store at %s is already random-access',
                self.path)
        return self

    def load_meta(self):
        try:
            with open(self._meta_path(ATTRIBUTES_FILE), 'rb') as f:
                return pickle.load(f)
        except FileNotFoundError:
            return {}

    def save_meta(self, meta):
        util.try_makedirs(os.path.join(self.path, META_DIR))
        util.atomic_write(self._meta_path(ATTRIBUTES_FILE), dumps(meta))

    def __len__(self):
        return len(self._object_files())

    def __contains__(self, key):
        return os.path.exists(self._object_path(key))


class HDFSStore(BaseStore):
    """A directory of sequence files on a distributed filesystem.

    Every `add_batch` call writes one new part file, so concurrent tasks
    never write to the same file.  `make_random_access` rewrites all part
    files into mapfile buckets (a data file plus an index from key digest to
    byte offset); keys are assigned to buckets by digest, so a lookup reads
    one index and seeks once.  Any later write leaves part files beside the
    buckets, and `get` refuses to answer until the index is rebuilt.

    If a key was written more than once, the most recently written pair
    wins when the index is built.  With `strict`, duplicates raise
    DuplicateKeyError at that point instead.

    Arguments:
        location: an hdfs://host:port/path URL or a local directory.
        file_kind: 'sequence' (binary part files), 'map' (binary part files
            indexed automatically when a job finishes) or 'text' (tab
            separated lines of str(key) and str(value)).
        fs: a filesystem object (hdfs.WebHDFS or hdfs.LocalFileSystem) to
            use instead of the one chosen by the location.
    """
    kind = 'hdfs'
    shared = True
    batched_writes = True
    FILE_KINDS = ('sequence', 'map', 'text')

    def __init__(self, location, file_kind=None, fs=None, reset=False,
            read_only=False, strict=False):
        super(HDFSStore, self).__init__(read_only, strict)
        if file_kind is not None and file_kind not in self.FILE_KINDS:
            raise ConnectionStateError('Unknown file kind %r' % file_kind)
        self.location = location
        self.fs, self.path = hdfs.filesystem_for(location, fs)
        self._layout = None
        self._indexes = {}

        conn = self._read_meta_file(CONN_FILE)
        if reset:
            if read_only:
                raise ConnectionStateError('Cannot reset a read-only store')
            if conn is not None:
                logger.info('Resetting distributed store at %s', location)
                self.fs.delete(self.path, recursive=True)
            if file_kind is None and conn is not None:
                file_kind = conn['file_kind']
            conn = None
        elif conn is not None:
            if conn.get('kind') != self.kind:
                raise ConnectionStateError('%s holds a %s store, not a %s '
                        'store' % (location, conn.get('kind'), self.kind))
            if file_kind is not None and file_kind != conn['file_kind']:
                raise ConnectionStateError('%s was created with file kind '
                        '%r, not %r' % (location, conn['file_kind'],
                            file_kind))
            file_kind = conn['file_kind']
        elif read_only:
            raise ConnectionStateError('No store at %s' % location)

        self.file_kind = file_kind or 'sequence'
        if conn is None:
            self.fs.mkdirs(posixpath.join(self.path, META_DIR))
            self._write_meta_file(CONN_FILE, self.settings)

    @property
    def settings(self):
        return {'kind': self.kind, 'location': self.location,
                'file_kind': self.file_kind}

    def __getstate__(self):
        state = self.__dict__.copy()
        state['_layout'] = None
        state['_indexes'] = {}
        return state

    def _join(self, *names):
        return posixpath.join(self.path, *names)

    def _read_meta_file(self, name):
        try:
            f = self.fs.open(self._join(META_DIR, name))
        except hdfs.FileNotFoundException:
            return None
        try:
            return pickle.loads(f.read())
        finally:
            f.close()

    def _write_meta_file(self, name, obj):
        self.fs.create(self._join(META_DIR, name), dumps(obj))

    def _invalidate(self):
        self._layout = None
        self._indexes = {}

    def _listing(self):
        """Return (part files, mapfile directories, sizes by data file)."""
        if self._layout is None:
            parts = []
            maps = []
            sizes = {}
            for status in self.fs.list_status(self.path):
                name = status['pathSuffix']
                if status['type'] == 'FILE' and name.startswith('part-'):
                    parts.append(name)
                    sizes[name] = status['length']
                elif status['type'] == 'DIRECTORY' and name.startswith('map-'):
                    maps.append(name)
            for name in maps:
                for status in self.fs.list_status(self._join(name)):
                    if status['pathSuffix'] == 'data':
                        sizes[name + '/data'] = status['length']
            self._layout = (sorted(parts), sorted(maps), sizes)
        return self._layout

    def _data_files(self):
        parts, maps, sizes = self._listing()
        return [name + '/data' for name in maps] + parts

    def _open_reader(self, name):
        f = self.fs.open(self._join(name))
        if name.endswith('.' + TextWriter.ext):
            return TextReader(f)
        else:
            return BinReader(f)

    def _read_file(self, name):
        with self._open_reader(name) as reader:
            return list(reader)

    def _iter_file_sized(self, name):
        with self._open_reader(name) as reader:
            if isinstance(reader, BinReader):
                for triple in reader.iter_sized():
                    yield triple
            else:
                for key, value in reader:
                    nbytes = len(('%s\t%s\n' % (key, value)).encode('utf-8'))
                    yield key, value, nbytes

    def _write_file(self, name, pairs):
        buf = io.BytesIO()
        writer_cls = writerformat(posixpath.splitext(name)[1][1:])
        with writer_cls(buf) as writer:
            for pair in pairs:
                writer.writepair(pair)
        self.fs.create(self._join(name), buf.getvalue())

    def _write_mapfile(self, dirname, pairs):
        databuf = io.BytesIO()
        indexbuf = io.BytesIO()
        with MapFileWriter(databuf, indexbuf) as writer:
            for pair in pairs:
                writer.writepair(pair)
        self.fs.mkdirs(self._join(dirname))
        self.fs.create(self._join(dirname, 'data'), databuf.getvalue())
        self.fs.create(self._join(dirname, 'index'), indexbuf.getvalue())

    def add_batch(self, pairs):
        self._check_writable()
        if self.file_kind == 'text':
            ext = TextWriter.ext
        else:
            ext = BinWriter.ext
        pairs = list(pairs)
        if not pairs:
            return
        name = 'part-%020d-%s.%s' % (time.time_ns(), util.random_string(6),
                ext)
        self._write_file(name, pairs)
        self._invalidate()

    def put(self, key, value):
        self.add_batch([(key, value)])

    def list_keys(self):
        for key, value, nbytes in self.iterate_sized():
            yield key

    def iterate_sized(self):
        for name in self._data_files():
            for triple in self._iter_file_sized(name):
                yield triple

    def is_random_access(self):
        parts, maps, sizes = self._listing()
        return bool(maps) and not parts

    def get(self, key):
        parts, maps, sizes = self._listing()
        if not maps or parts:
            raise NotRandomAccessible('Lookup by key needs an index; call '
                    'make_random_access() on %s first' % self.location, key)
        digest = key_digest(key)
        bucket = maps[partition_of(digest, len(maps))]
        index = self._indexes.get(bucket)
        if index is None:
            index = read_index(self.fs.open(self._join(bucket, 'index')))
            self._indexes[bucket] = index
        try:
            offset = index[digest]
        except KeyError:
            raise NotFound(key)
        f = self.fs.open(self._join(bucket, 'data'), offset=offset)
        return read_pair_at(f)[1]

    def __contains__(self, key):
        if self.is_random_access():
            return super(HDFSStore, self).__contains__(key)
        digest = key_digest(key)
        return any(key_digest(k) == digest for k in self.list_keys())

    def make_random_access(self, n_buckets=None):
        """Rewrite the store as indexed mapfile buckets."""
        self._check_writable()
        parts, maps, sizes = self._listing()
        if maps and not parts:
            return self

        # Older mapfiles come first, so the most recent write of a key wins.
        files = [name + '/data' for name in maps] + parts
        last = {}
        total_bytes = 0
        for file_index, name in enumerate(files):
            for record_index, (key, value, nbytes) in enumerate(
                    self._iter_file_sized(name)):
                digest = key_digest(key)
                if self.strict and digest in last:
                    raise DuplicateKeyError('Key was written more than once',
                            key)
                last[digest] = (file_index, record_index)
                total_bytes += nbytes
        if n_buckets is None:
            n_buckets = max(1, int(math.ceil(total_bytes / MAP_BUCKET_BYTES)))

        generation = '%d%s' % (time.time_ns(), util.random_string(4))
        tmpdir = util.mktempdir(None, 'divrec_index_')
        try:
            files_out = []
            writers = []
            for bucket in range(n_buckets):
                datapath = os.path.join(tmpdir, 'data-%05d' % bucket)
                indexpath = os.path.join(tmpdir, 'index-%05d' % bucket)
                datafile = open(datapath, 'wb')
                indexfile = open(indexpath, 'wb')
                files_out.append((datapath, indexpath, datafile, indexfile))
                writers.append(MapFileWriter(datafile, indexfile))

            for file_index, name in enumerate(files):
                for record_index, (key, value, nbytes) in enumerate(
                        self._iter_file_sized(name)):
                    digest = key_digest(key)
                    if last[digest] == (file_index, record_index):
                        bucket = partition_of(digest, n_buckets)
                        writers[bucket].writepair((key, value))

            for writer, (datapath, indexpath, datafile, indexfile) in zip(
                    writers, files_out):
                writer.finish()
                datafile.close()
                indexfile.close()

            for bucket, (datapath, indexpath, _, _) in enumerate(files_out):
                dirname = self._join('map-%s-%05d' % (generation, bucket))
                self.fs.mkdirs(dirname)
                with open(datapath, 'rb') as f:
                    self.fs.create(posixpath.join(dirname, 'data'), f)
                with open(indexpath, 'rb') as f:
                    self.fs.create(posixpath.join(dirname, 'index'), f)
        finally:
            util.remove_recursive(tmpdir)

        for name in parts:
            self.fs.delete(self._join(name), recursive=False)
        for name in maps:
            self.fs.delete(self._join(name), recursive=True)
        self._invalidate()
        logger.info('Indexed %s pairs into %s mapfile buckets at %s',
                len(last), n_buckets, self.location)
        return self

    def finalize(self):
        self._invalidate()
        if self.file_kind == 'map':
            self.make_random_access()

    def delete(self, key):
        """Remove a key by rewriting every file that holds it."""
        self._check_writable()
        digest = key_digest(key)
        found = False
        for name in self._data_files():
            pairs = self._read_file(name)
            kept = [pair for pair in pairs if key_digest(pair[0]) != digest]
            if len(kept) == len(pairs):
                continue
            found = True
            if name.endswith('/data'):
                self._write_mapfile(posixpath.dirname(name), kept)
            elif kept:
                self._write_file(name, kept)
            else:
                self.fs.delete(self._join(name), recursive=False)
        self._invalidate()
        if not found:
            raise NotFound(key)

    def clear(self):
        self._check_writable()
        parts, maps, sizes = self._listing()
        for name in parts:
            self.fs.delete(self._join(name), recursive=False)
        for name in maps:
            self.fs.delete(self._join(name), recursive=True)
        self._invalidate()
        self.save_meta({})

    def destroy(self):
        self.fs.delete(self.path, recursive=True)
        self._invalidate()

    def batch_refs(self, max_bytes):
        parts, maps, sizes = self._listing()
        return [tuple(batch) for batch in
                util.chunked(self._data_files(), max_bytes, sizes.get)]

    def read_batch(self, ref):
        pairs = []
        for name in ref:
            pairs.extend(self._read_file(name))
        return pairs

    def load_meta(self):
        meta = self._read_meta_file(ATTRIBUTES_FILE)
        if meta is None:
            return {}
        return meta

    def save_meta(self, meta):
        self._write_meta_file(ATTRIBUTES_FILE, meta)

    def __len__(self):
        if self.is_random_access():
            parts, maps, sizes = self._listing()
            total = 0
            for name in maps:
                total += len(read_index(self.fs.open(self._join(name,
                    'index'))))
            return total
        return super(HDFSStore, self).__len__()


def reconnect(location, **kwds):
    """Open an existing persisted store, whichever substrate created it.

    The substrate is read from the store's metadata, so a store can be found
    again from nothing but its location.
    """
    if hdfs.urlsplit(location) is not None:
        return HDFSStore(location, **kwds)
    conn_path = os.path.join(location, META_DIR, CONN_FILE)
    try:
        with open(conn_path, 'rb') as f:
            conn = pickle.load(f)
    except FileNotFoundError:
        raise ConnectionStateError('No store at %s' % location)
    if conn['kind'] == HDFSStore.kind:
        return HDFSStore(location, **kwds)
    return LocalDiskStore(location, **kwds)


def as_store(data):
    """Accept a store, a dict or an iterable of pairs."""
    if isinstance(data, BaseStore):
        return data
    if hasattr(data, 'store') and isinstance(data.store, BaseStore):
        return data.store
    return MemoryStore(data)

# vim: et sw=4 sts=4
