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

"""Miscellaneous Helper Functions"""

import errno
import math
import os
import random
import string
import subprocess
import tempfile

from logging import getLogger
logger = getLogger('divrec')

TEMPFILE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_NOFOLLOW
ID_CHARACTERS = string.ascii_letters + string.digits
BITS_IN_DOUBLE = 53
ID_MAXLEN = int(BITS_IN_DOUBLE * math.log(2) / math.log(len(ID_CHARACTERS)))
ID_RANGES = [len(ID_CHARACTERS) ** i for i in range(ID_MAXLEN + 1)]


def try_makedirs(path):
    """Do the equivalent of mkdir -p."""
    try:
        os.makedirs(path)
    except OSError as e:
        if e.errno != errno.EEXIST:
            raise

def remove_recursive(path):
    """Do the equivalent of rm -r."""
    p = subprocess.Popen(['/bin/rm', '-rf', path])
    retcode = p.wait()
    if retcode == 0:
        return
    else:
        message = 'Failed to delete some of %s (probably due to NFS).' % path
        logger.warning(message)

def random_string(length):
    """Returns a string of the given (short) length suitable for a random ID."""
    # Note that we do this by hand instead of calling random.choice because
    # it's much, much faster (and we call it a lot).
    choices = len(ID_CHARACTERS)
    try:
        r = int(random.random() * ID_RANGES[length])
    except IndexError:
        raise RuntimeError('Cannot create a string of length %s' % length)

    s = ''
    for place in range(length):
        index = int(r % choices)
        s += ID_CHARACTERS[index]
        r //= choices
    return s

def mktempfile(dir, prefix, suffix):
    """Creates and opens a new temporary file with a unique filename.

    Returns a (file object, path) pair.  The file is opened in binary write
    mode.  This falls back to tempfile.NamedTemporaryFile if necessary, but by
    default it uses the faster strategy of not adding random characters to the
    filename.
    """
    path = os.path.join(dir, prefix + suffix)
    try:
        fd = os.open(path, TEMPFILE_FLAGS, 0o600)
        f = os.fdopen(fd, 'wb')
    except OSError:
        f = tempfile.NamedTemporaryFile(delete=False, dir=dir,
                prefix=prefix, suffix=suffix)
        path = f.name
    return f, path

def mktempdir(dir, prefix):
    """Creates a new uniquely named directory inside `dir`."""
    if dir is None:
        dir = tempfile.gettempdir()
    try_makedirs(dir)
    for i in range(tempfile.TMP_MAX):
        name = os.path.join(dir, prefix + random_string(6))
        try:
            os.mkdir(name, 0o700)
            return name
        except OSError as e:
            if e.errno != errno.EEXIST:
                raise
    raise RuntimeError('Could not create a temporary directory in %s' % dir)

def atomic_write(path, data):
    """Write bytes to `path` so that readers never see a partial file."""
    dirname, basename = os.path.split(path)
    f, tmp_path = mktempfile(dirname, '.' + basename + '.',
            random_string(6) + '.tmp')
    try:
        with f:
            f.write(data)
        os.rename(tmp_path, path)
    except BaseException:
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise

def chunked(pairs, max_bytes, sizeof):
    """Group an iterable into lists whose total size stays under max_bytes.

    A single item larger than `max_bytes` forms a batch of its own.

    >>> list(chunked([1, 2, 3, 4, 5], 5, lambda x: x))
    [[1, 2], [3], [4], [5]]
    """
    batch = []
    batch_bytes = 0
    for item in pairs:
        size = sizeof(item)
        if batch and batch_bytes + size > max_bytes:
            yield batch
            batch = []
            batch_bytes = 0
        batch.append(item)
        batch_bytes += size
    if batch:
        yield batch

# vim: et sw=4 sts=4
