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

"""The part of job execution that every executor shares.

An executor turns a job into map tasks (one per input batch), waits for all
of them (the shuffle barrier), turns the sorted runs into reduce tasks (one
per partition), and finally loads any task output that could not be written
to the output store directly.  Subclasses only decide where tasks run, by
implementing `run_tasks`.
"""

import time

from . import tasks
from . import util
from .job import Counters, JobResult

from logging import getLogger
logger = getLogger('divrec')


class BaseExecutor(object):
    """Runs jobs.

    Attributes:
        name: used in log messages.
        in_process: tasks run in this process (so they can write to any
            output store and keep intermediate data in memory).
    """
    name = 'base'
    in_process = False

    def __init__(self, control):
        self.control = control

    def n_partitions(self, job):
        return job.control.n_reduce_tasks()

    def run_tasks(self, job, task_list, tmpdir):
        """Run the tasks and return their TaskResults (in any order).

        If any task fails, the remaining tasks must not be started, and the
        error must be raised.
        """
        raise NotImplementedError

    def run(self, job):
        start = time.time()
        control = job.control
        logger.info('Starting %s on the %s executor', job.name, self.name)
        tmpdir = util.mktempdir(control.tempdir(), 'divrec_%s_' % job.name)
        try:
            n_partitions = self.n_partitions(job)
            map_tasks = []
            for input_index, store in enumerate(job.inputs):
                for ref in store.batch_refs(control.map_batch_bytes):
                    task_id = 'map%05d' % len(map_tasks)
                    map_tasks.append(tasks.MapTask(task_id, input_index, ref,
                        n_partitions))
            logger.info('%s: running %s map tasks', job.name, len(map_tasks))
            results = self.run_tasks(job, map_tasks, tmpdir)

            if job.reducer is not None:
                runs = tasks.collect_runs(results, n_partitions)
                reduce_tasks = [tasks.ReduceTask('reduce%05d' % partition,
                        partition_runs)
                    for partition, partition_runs in enumerate(runs)
                    if partition_runs]
                logger.info('%s: map phase done; running %s reduce tasks',
                        job.name, len(reduce_tasks))
                results = results + self.run_tasks(job, reduce_tasks, tmpdir)

            counters = Counters()
            for result in results:
                counters.merge(result.counters)
                if result.output_file is not None:
                    tasks.load_output_file(job.output, result.output_file,
                            control.reduce_batch_bytes)
            job.output.finalize()
        finally:
            if control.keep_temp:
                logger.info('Keeping intermediate data in %s', tmpdir)
            else:
                util.remove_recursive(tmpdir)

        logger.info('Finished %s in %.2f seconds', job.name,
                time.time() - start)
        return JobResult(job.output, counters)

# vim: et sw=4 sts=4
