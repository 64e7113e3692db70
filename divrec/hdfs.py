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

"""Connect to a Hadoop Distributed File System (HDFS) server over WebHDFS.

The low-level API is implemented as functions of the form:
    hdfs_operation(server, username, path, **args)
The `server` is of the form 'addr:port' (where the port defaults to
`DEFAULT_PORT`).  The low-level API is a thin wrapper around the protocol
specification defined at:
    http://hadoop.apache.org/common/docs/r1.0.0/webhdfs.html

Assumes that authentication is disabled on the server (it believes whatever
username you give).  All paths must be absolute.

The distributed store only needs a handful of primitives from a filesystem:
mkdirs, list_status, open (with an offset, for mapfile lookups), create,
delete and exists.  `WebHDFS` provides them on top of the functions below,
and `LocalFileSystem` provides them for a POSIX directory (usually shared
storage such as NFS) so that the distributed substrate can run without a
Hadoop cluster.
"""

import getpass
import http.client as httplib
import io
import json
import os
import shutil
import urllib.parse as urlparse
from urllib.parse import quote, urlencode

from . import util


DEFAULT_PORT = 50070


##############################################################################
# High-level functionality

def urlsplit(url):
    """Split an HDFS URL into a (server, username, path) tuple.

    If the URL's scheme is not 'hdfs', returns None.

    >>> urlsplit('hdfs://namenode:8020/user/me/iris')
    ('namenode:8020', 'me', '/user/me/iris')
    >>> urlsplit('/tmp/iris') is None
    True
    """
    fields = urlparse.urlsplit(url)
    if fields.scheme != 'hdfs':
        return None

    if fields.port:
        server = '%s:%s' % (fields.hostname, fields.port)
    else:
        server = fields.hostname
    if fields.username:
        username = fields.username
    else:
        path_parts = fields.path.split('/')
        if len(path_parts) > 2 and path_parts[1] == 'user':
            username = path_parts[2]
        else:
            username = getpass.getuser()
    return (server, username, fields.path)


##############################################################################
# Get Methods

def hdfs_open(server, username, path, **args):
    """Read a file.

    Returns a filelike object (specifically, an httplib response object).
    The `offset` and `length` arguments select a byte range.
    """
    url = datanode_url(server, username, path, **args)

    response = _datanode_request(server, username, 'GET', url)
    if response.status == httplib.OK:
        return response
    else:
        content = response.read()
        _raise_error(response.status, content)

def datanode_url(server, username, path, **args):
    """Finds the URL on the datanode associated with an HDFS path."""
    response = _namenode_request(server, username, 'GET', path, 'OPEN', args)
    content = response.read()
    _check_code(response.status, content, httplib.TEMPORARY_REDIRECT)
    return response.getheader('Location')

def hdfs_get_file_status(server, username, path):
    """Get the status of a single path.

    Returns a dictionary which contains the keys "accessTime", "blockSize",
    "group", "length", "modificationTime", "owner", "pathSuffix",
    "permission", "replication", and "type".
    """
    response = _namenode_request(server, username, 'GET', path,
            'GETFILESTATUS')
    content = response.read()
    _check_code(response.status, content)
    filestatus_json = json.loads(content)
    return filestatus_json['FileStatus']

def hdfs_list_status(server, username, path):
    """List a directory.

    Returns a list of dictionaries, one for each file, with the same keys as
    `hdfs_get_file_status`.
    """
    response = _namenode_request(server, username, 'GET', path, 'LISTSTATUS')
    content = response.read()
    _check_code(response.status, content)
    filestatuses_json = json.loads(content)
    return filestatuses_json['FileStatuses']['FileStatus']


##############################################################################
# Put/Delete Methods

# Unlike the other commands, CREATE requires a two-step process to ensure
# that data is not unnecessarily sent to the namenode.

def hdfs_create(server, username, path, data, **args):
    """Create and write to a file.

    The `data` parameter can be either bytes or a file (but not necessarily
    a filelike in general--it needs to define either `__len__()` or
    `fileno()`.
    """
    response = _namenode_request(server, username, 'PUT', path, 'CREATE', args)
    content = response.read()
    _check_code(response.status, content, httplib.TEMPORARY_REDIRECT)
    url = response.getheader('Location')

    response = _datanode_request(server, username, 'PUT', url, data)
    content = response.read()
    _check_code(response.status, content, httplib.CREATED)

def hdfs_mkdirs(server, username, path, **args):
    """Make a directory (and any missing parents)."""
    response = _namenode_request(server, username, 'PUT', path, 'MKDIRS', args)
    content = response.read()
    _check_code(response.status, content)
    boolean_json = json.loads(content)
    return boolean_json['boolean']

def hdfs_delete(server, username, path, **args):
    """Delete a file or directory."""
    response = _namenode_request(server, username, 'DELETE', path, 'DELETE',
            args)
    content = response.read()
    _check_code(response.status, content)
    boolean_json = json.loads(content)
    return boolean_json['boolean']


##############################################################################
# Filesystems

class WebHDFS(object):
    """Filesystem primitives on an HDFS cluster reached over WebHDFS."""

    def __init__(self, server, username=None):
        self.server = server
        self.username = username or getpass.getuser()

    def __repr__(self):
        return 'WebHDFS(%r, %r)' % (self.server, self.username)

    def mkdirs(self, path):
        hdfs_mkdirs(self.server, self.username, path)

    def list_status(self, path):
        return hdfs_list_status(self.server, self.username, path)

    def exists(self, path):
        try:
            hdfs_get_file_status(self.server, self.username, path)
        except FileNotFoundException:
            return False
        return True

    def open(self, path, offset=0, length=None):
        args = {}
        if offset:
            args['offset'] = offset
        if length is not None:
            args['length'] = length
        return hdfs_open(self.server, self.username, path, **args)

    def create(self, path, data):
        hdfs_create(self.server, self.username, path, data,
                overwrite='true')

    def delete(self, path, recursive=True):
        recursive = 'true' if recursive else 'false'
        return hdfs_delete(self.server, self.username, path,
                recursive=recursive)


class LocalFileSystem(object):
    """Filesystem primitives on a POSIX directory tree.

    The results of `list_status` use the same dictionary keys as WebHDFS.
    """

    def __repr__(self):
        return 'LocalFileSystem()'

    def mkdirs(self, path):
        util.try_makedirs(path)

    def list_status(self, path):
        if not os.path.isdir(path):
            raise FileNotFoundException('File %s does not exist.' % path)
        statuses = []
        for name in sorted(os.listdir(path)):
            full = os.path.join(path, name)
            if os.path.isdir(full):
                kind, length = 'DIRECTORY', 0
            else:
                kind, length = 'FILE', os.path.getsize(full)
            statuses.append({'pathSuffix': name, 'type': kind,
                'length': length})
        return statuses

    def exists(self, path):
        return os.path.exists(path)

    def open(self, path, offset=0, length=None):
        try:
            f = open(path, 'rb')
        except FileNotFoundError:
            raise FileNotFoundException('File %s does not exist.' % path)
        if offset:
            f.seek(offset)
        if length is not None:
            data = f.read(length)
            f.close()
            return io.BytesIO(data)
        return f

    def create(self, path, data):
        if not isinstance(data, bytes):
            data = data.read()
        util.atomic_write(path, data)

    def delete(self, path, recursive=True):
        if not os.path.exists(path):
            return False
        if os.path.isdir(path):
            if recursive:
                shutil.rmtree(path)
            else:
                os.rmdir(path)
        else:
            os.remove(path)
        return True


def filesystem_for(location, fs=None):
    """Choose the filesystem and path for a distributed store location.

    Returns an (fs, path) pair.  An explicit `fs` always wins; otherwise an
    hdfs:// URL selects WebHDFS and anything else is a local directory.
    """
    parts = urlsplit(location)
    if parts is not None:
        server, username, path = parts
        if fs is None:
            fs = WebHDFS(server, username)
        return fs, path
    if fs is None:
        fs = LocalFileSystem()
        location = os.path.abspath(location)
    return fs, location


##############################################################################
# Other

def _namenode_conn(server):
    """Make and return a new http connection to the namenode."""
    fields = server.split(':')
    addr = fields[0]
    if len(fields) == 1:
        port = DEFAULT_PORT
    else:
        port = int(fields[1])
    return httplib.HTTPConnection(addr, port)

def _namenode_request(server, username, method, path, op, args=None,
        body=None):
    """Send a request to the namenode.

    Returns the HTTPResponse object, which is filelike. Note that this
    response object must be fully read before beginning to read any
    subsequent response.
    """
    request_uri = _request_uri(server, username, path, op, args)
    namenode_conn = _namenode_conn(server)
    namenode_conn.request(method, request_uri, body)
    return namenode_conn.getresponse()

def _datanode_request(server, username, method, url, body=None):
    """Send a request to the datanode."""
    host = urlparse.urlsplit(url)[1]
    datanode_conn = httplib.HTTPConnection(host)
    datanode_conn.request(method, url, body)
    return datanode_conn.getresponse()

def _request_uri(server, username, path, op, args=None):
    """Builds a webhdfs request URI from a path, operation, and args.

    The `args` argument is a dictionary used to construct the query. All
    parts of the resulting request URI are properly quoted.

    >>> _request_uri('nn', 'me', '/a b', 'OPEN', {'offset': 5})
    '/webhdfs/v1/a%20b?op=OPEN&user.name=me&offset=5'
    """
    assert path.startswith('/')
    quoted_path = quote('/webhdfs/v1' + path)

    query = {'op': op,
            'user.name': username}
    if args:
        query.update(args)
    quoted_query = urlencode(query)

    return '%s?%s' % (quoted_path, quoted_query)


# Exceptions defined by the webhdfs spec. Note that IllegalArgumentException
# and UnsupportedOperationException are combined.
class IllegalArgumentException(Exception):
    pass

class SecurityException(Exception):
    pass

class IOException(Exception):
    pass

class FileNotFoundException(Exception):
    pass

exceptions = {400: IllegalArgumentException,
        401: SecurityException,
        403: IOException,
        404: FileNotFoundException}

def _check_code(code, content, expected_code=httplib.OK):
    """Raise a remote exception if necessary."""
    if code == expected_code:
        return
    else:
        _raise_error(code, content)

def _raise_error(code, content):
    """Raise a remote exception."""
    try:
        exception_cls = exceptions[code]
    except KeyError:
        raise RuntimeError('Unknown webhdfs error code: %s' % code)

    exception_json = json.loads(content)
    message = exception_json['RemoteException']['message']
    raise exception_cls(message)

# vim: et sw=4 sts=4
