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

"""Cluster executor.

Tasks run wherever an external scheduler puts them.  The executor's only
job is to carry the job, the task and the result across that boundary: each
task is serialized with dill (which, unlike pickle, handles the lambdas and
closures that user routines usually are) and handed to the scheduler as
bytes.

A scheduler is any object with

    submit(payload) -> concurrent.futures.Future

where the future resolves to the bytes returned by `run_task_payload`
(called wherever the scheduler likes, with the payload as its argument), and
optionally `shutdown()`.  `LocalScheduler` runs the tasks on a local process
pool.  Retrying a lost task, if it happens at all, is up to the scheduler.

Intermediate data are written under `temp_directory`, which must therefore
be visible to every task (shared storage) when tasks run on other machines.
"""

import concurrent.futures
import multiprocessing
import traceback

import dill

from . import runner
from .worker import portable_exception, raise_failure

from logging import getLogger
logger = getLogger('divrec')


class TaskSpec(object):
    """Everything a cluster task needs."""

    def __init__(self, job, task, tmpdir):
        self.job = job
        self.task = task
        self.tmpdir = tmpdir


def run_task_payload(payload):
    """Run a serialized TaskSpec and return the serialized outcome.

    The outcome is ('ok', TaskResult) or ('error', exception, traceback), so
    the remote traceback survives the trip back.
    """
    spec = dill.loads(payload)
    try:
        result = spec.task.run(spec.job, spec.tmpdir)
        return dill.dumps(('ok', result))
    except Exception as e:
        return dill.dumps(('error', portable_exception(e),
            traceback.format_exc()))


class LocalScheduler(object):
    """Run cluster tasks on a pool of local processes."""

    def __init__(self, max_workers=1):
        mp = multiprocessing.get_context('fork')
        self.pool = concurrent.futures.ProcessPoolExecutor(
                max_workers=max_workers, mp_context=mp)

    def submit(self, payload):
        return self.pool.submit(run_task_payload, payload)

    def shutdown(self):
        self.pool.shutdown(wait=True)


class ClusterExecutor(runner.BaseExecutor):
    """Submit every task of a phase to the scheduler and wait for them."""
    name = 'cluster'

    def __init__(self, control):
        super(ClusterExecutor, self).__init__(control)
        self.scheduler = None

    def run(self, job):
        owned = job.control.scheduler is None
        if owned:
            self.scheduler = LocalScheduler(job.control.worker_count)
        else:
            self.scheduler = job.control.scheduler
        try:
            return super(ClusterExecutor, self).run(job)
        finally:
            if owned:
                self.scheduler.shutdown()
            self.scheduler = None

    def run_tasks(self, job, task_list, tmpdir):
        if not task_list:
            return []
        remote_job = job.remote_copy()
        futures = {}
        for task in task_list:
            payload = dill.dumps(TaskSpec(remote_job, task, tmpdir),
                    recurse=True)
            futures[self.scheduler.submit(payload)] = task.task_id
        logger.debug('Submitted %s tasks to %r', len(futures), self.scheduler)

        results = []
        try:
            for future in concurrent.futures.as_completed(futures):
                outcome = dill.loads(future.result())
                if outcome[0] == 'error':
                    raise_failure(futures[future], outcome[1], outcome[2])
                results.append(outcome[1])
        except BaseException:
            for future in futures:
                future.cancel()
            raise
        return results

# vim: et sw=4 sts=4
