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

"""Multicore executor.

A fixed pool of worker processes executes the user's map and reduce
routines.  That's it.  They just do what the executor tells them to: each
request names one task, and each worker answers with a success or failure
message.  Workers are forked, so they inherit the job (including user
routines that could not be pickled) and only tasks and results cross the
queues.
"""

import multiprocessing
import pickle
import queue
import traceback

from . import runner
from .errors import TaskError

from logging import getLogger
logger = getLogger('divrec')

POLL_INTERVAL = 0.5


class WorkerTaskRequest(object):
    """Request the worker to run a task."""

    def __init__(self, task):
        self.task = task

    def id(self):
        return self.task.task_id


class WorkerQuitRequest(object):
    """Request the worker to quit."""


class WorkerSuccess(object):
    """Successful response from worker."""
    def __init__(self, request_id, result):
        self.request_id = request_id
        self.result = result


class WorkerFailure(object):
    """Failure response from worker."""
    def __init__(self, request_id, exception, traceback):
        self.request_id = request_id
        self.exception = exception
        self.traceback = traceback


class Worker(object):
    """Execute map tasks and reduce tasks.

    The worker waits for requests on the request queue and puts one response
    on the response queue for each task.
    """
    def __init__(self, job, tmpdir, request_queue, response_queue):
        self.job = job
        self.tmpdir = tmpdir
        self.request_queue = request_queue
        self.response_queue = response_queue

    def run(self):
        while self.run_once():
            pass

    def run_once(self):
        """Runs one iteration of the event loop.

        Returns True if it should keep running.
        """
        request = self.request_queue.get()
        if isinstance(request, WorkerQuitRequest):
            return False

        try:
            logger.debug('Running task: %s', request.id())
            result = request.task.run(self.job, self.tmpdir)
            response = WorkerSuccess(request.id(), result)
        except KeyboardInterrupt:
            return False
        except Exception as e:
            logger.info('Failed task: %s', request.id())
            response = WorkerFailure(request.id(), portable_exception(e),
                    traceback.format_exc())
        self.response_queue.put(response)
        return True


def portable_exception(e):
    """Return the exception if it survives pickling, or a TaskError."""
    try:
        pickle.loads(pickle.dumps(e))
        return e
    except Exception:
        return TaskError(str(e), getattr(e, 'key', None), type(e).__name__)


def raise_failure(request_id, exception, tb):
    """Log a task failure (with the remote traceback) and re-raise it."""
    logger.critical('Exception in task %s: %s', request_id, exception)
    logger.error('Traceback: %s', tb)
    raise exception


class MulticoreExecutor(runner.BaseExecutor):
    """Run tasks on a pool of `worker_count` forked processes.

    At most one task per worker is outstanding at any time, so after a
    failure no new tasks are handed out and the pool is shut down.
    """
    name = 'multicore'

    def run_tasks(self, job, task_list, tmpdir):
        if not task_list:
            return []
        mp = multiprocessing.get_context('fork')
        request_queue = mp.Queue()
        response_queue = mp.Queue()
        n_workers = min(job.control.worker_count, len(task_list))
        processes = []
        for i in range(n_workers):
            worker = Worker(job, tmpdir, request_queue, response_queue)
            process = mp.Process(target=worker.run,
                    name='divrec worker %s' % i)
            process.daemon = True
            process.start()
            processes.append(process)

        results = []
        failed = True
        try:
            pending = list(reversed(task_list))
            outstanding = 0
            while pending and outstanding < n_workers:
                request_queue.put(WorkerTaskRequest(pending.pop()))
                outstanding += 1

            while outstanding:
                response = self._next_response(response_queue, processes)
                outstanding -= 1
                if isinstance(response, WorkerFailure):
                    raise_failure(response.request_id, response.exception,
                            response.traceback)
                results.append(response.result)
                if pending:
                    request_queue.put(WorkerTaskRequest(pending.pop()))
                    outstanding += 1
            failed = False
        finally:
            if failed:
                request_queue.cancel_join_thread()
                for process in processes:
                    process.terminate()
            else:
                for process in processes:
                    request_queue.put(WorkerQuitRequest())
            for process in processes:
                process.join()
        return results

    def _next_response(self, response_queue, processes):
        while True:
            try:
                return response_queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                for process in processes:
                    if not process.is_alive():
                        raise TaskError('Worker process %s died with exit '
                                'code %s' % (process.name, process.exitcode))

# vim: et sw=4 sts=4
