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

"""Exceptions raised by divrec.

Every exception takes a message and an optional key.  The arguments are kept
in `args` so that instances can be pickled and sent back from worker
processes and cluster tasks.
"""


class DivRecError(Exception):
    """Base class for all divrec errors."""

    def __init__(self, message, key=None):
        super(DivRecError, self).__init__(message, key)
        self.message = message
        self.key = key

    def __str__(self):
        if self.key is None:
            return self.message
        return '%s (key: %r)' % (self.message, self.key)


class NotFound(DivRecError, KeyError):
    """The key is not present in the store."""

    def __init__(self, key, message=None):
        if message is None:
            message = 'Key not found'
        super(NotFound, self).__init__(message, key)

    def __reduce__(self):
        return (self.__class__, (self.key, self.message))


class NotRandomAccessible(DivRecError):
    """The store must be indexed before a key can be looked up."""


class SchemaMismatch(DivRecError):
    """A statistical fold received values of inconsistent shape."""


class TaskError(DivRecError):
    """A map or reduce task failed.

    Attributes:
        key: the input or intermediate key being processed (if known)
        cause: name of the original exception type
        traceback: formatted traceback from the process that failed
    """

    def __init__(self, message, key=None, cause=None, traceback=None):
        super(TaskError, self).__init__(message, key)
        self.args = (message, key, cause, traceback)
        self.cause = cause
        self.traceback = traceback

    def __str__(self):
        s = super(TaskError, self).__str__()
        if self.cause:
            s = '%s: %s' % (self.cause, s)
        return s


class TransformError(TaskError):
    """A user-supplied routine raised an exception."""


class SpillConfigError(DivRecError):
    """The spill limit is not a positive integer."""


class DivisionSpecError(DivRecError):
    """The division specification is invalid for the given data."""


class JoinKeyMismatch(DivRecError):
    """A join requiring all inputs found a key missing from one of them."""


class ConnectionStateError(DivRecError):
    """Invalid use of a connection (read-only writes, conflicting settings)."""


class DuplicateKeyError(ConnectionStateError):
    """A strict store received a second value for an existing key."""


# vim: et sw=4 sts=4
