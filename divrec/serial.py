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

"""Serial executor"""

from . import runner

import logging
logger = logging.getLogger('divrec')


class SerialExecutor(runner.BaseExecutor):
    """Run every task, one after the other, in this process.

    There is a single reduce partition, and intermediate data stay in memory
    unless they outgrow `shuffle_batch_bytes`.
    """
    name = 'serial'
    in_process = True

    def n_partitions(self, job):
        return 1

    def run_tasks(self, job, task_list, tmpdir):
        results = []
        for task in task_list:
            logger.debug('Running task %s', task.task_id)
            results.append(task.run(job, tmpdir, in_process=True))
        return results

# vim: et sw=4 sts=4
