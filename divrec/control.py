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

"""Execution-control parameters shared by every job."""

import tempfile

from .param import ParamObj, Param

MiB = 1024 * 1024
DEFAULT_BATCH_BYTES = 10 * MiB

EXECUTORS = ('serial', 'multicore', 'cluster')


class Control(ParamObj):
    """Settings that tune how (not what) a job computes.

    None of these settings change the result of a job.  Batch sizes only
    bound memory use, and the worker count only changes parallelism.
    """

    _params = dict(
        worker_count=Param(default=1, type='posint',
            doc='Number of worker processes (or cluster tasks per phase)'),
        map_batch_bytes=Param(default=DEFAULT_BATCH_BYTES, type='posint',
            doc='Ceiling on the input bytes handed to one map task'),
        shuffle_batch_bytes=Param(default=DEFAULT_BATCH_BYTES, type='posint',
            doc='Intermediate bytes buffered before spilling a sorted run'),
        reduce_batch_bytes=Param(default=DEFAULT_BATCH_BYTES, type='posint',
            doc='Ceiling on the bytes of values handed to one reduce call'),
        temp_directory=Param(default=None,
            doc='Scratch location for intermediate shuffle data'),
        reduce_tasks=Param(default=0, type='nonnegint',
            doc='Number of reduce partitions (0 means worker_count)'),
        executor=Param(default=None, choices=EXECUTORS,
            doc='Force an executor instead of choosing by input substrate'),
        scheduler=Param(default=None, type='object',
            doc='Cluster scheduler (None for a local process pool)'),
        keep_temp=Param(default=False, type='bool',
            doc='Do not delete intermediate data after a job'),
        )

    def tempdir(self):
        """Return the scratch location, defaulting to the system's."""
        if self.temp_directory is None:
            return tempfile.gettempdir()
        return self.temp_directory

    def n_reduce_tasks(self):
        if self.reduce_tasks:
            return self.reduce_tasks
        return self.worker_count


def make_control(control=None, **kwds):
    """Accept a Control, a dict of settings, or None.

    >>> make_control({'worker_count': 2}).worker_count
    2
    >>> make_control().map_batch_bytes == DEFAULT_BATCH_BYTES
    True
    """
    if control is None:
        control = Control(**kwds)
    elif isinstance(control, dict):
        settings = dict(control)
        settings.update(kwds)
        control = Control(**settings)
    elif kwds:
        control = control.replace(**kwds)
    return control

# vim: et sw=4 sts=4
