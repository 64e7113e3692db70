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

"""Run a job on the executor that suits its substrate.

Division, recombination and conversion all build a `Job` and hand it to
`execute`.  Unless `Control.executor` names one, the executor follows the
substrate of the first input:

    memory      serial
    localdisk   multicore when worker_count > 1, otherwise serial
    hdfs        cluster
"""

from .cluster import ClusterExecutor
from .job import Job
from .serial import SerialExecutor
from .worker import MulticoreExecutor

from logging import getLogger
logger = getLogger('divrec')

EXECUTOR_CLASSES = {
        'serial': SerialExecutor,
        'multicore': MulticoreExecutor,
        'cluster': ClusterExecutor,
        }


def choose_executor(job):
    """Return the executor class for a job."""
    control = job.control
    if control.executor is not None:
        return EXECUTOR_CLASSES[control.executor]
    kind = job.inputs[0].kind if job.inputs else 'memory'
    if kind == 'hdfs':
        return ClusterExecutor
    elif kind == 'localdisk' and control.worker_count > 1:
        return MulticoreExecutor
    else:
        return SerialExecutor


def execute(job):
    """Run a job and return a JobResult (output store, counters)."""
    executor_cls = choose_executor(job)
    executor = executor_cls(job.control)
    return executor.run(job)


def run_job(inputs, mapper=None, reducer=None, output=None, control=None,
        name='job', params=None):
    """Build a Job from its parts and execute it."""
    job = Job(inputs, mapper, reducer, output, control, name, params)
    return execute(job)

# vim: et sw=4 sts=4
