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

"""Map and reduce tasks.

A Task represents a unit of work and the mechanism for carrying it out.  The
same task code runs in every executor; the executors differ only in where
tasks run and how their results travel back.

Intermediate data are partitioned by key digest.  Each map task sorts its
output by digest and spills sorted runs to temporary files whenever its
buffer exceeds `shuffle_batch_bytes`.  A reduce task merges the runs of its
partition (an external merge sort), so all values for one key arrive
together no matter how many map tasks produced them.
"""

import heapq
import itertools
from operator import itemgetter
import os

from . import util
from .fileformats import BinWriter, BinReader
from .job import (Context, Counters, COUNTER_GROUP, is_reducer_class,
        user_routine)
from .serializers import dumps, loads, key_digest, partition_of, \
        raw_serializers

from logging import getLogger
logger = getLogger('divrec')

DIGEST_LEN = 32


class TaskResult(object):
    """What a task sends back to the executor.

    Attributes:
        task_id: identifies the task in log messages.
        counters: the task's Counters.
        runs: for a map task with a reduce step, one list of runs per reduce
            partition (a run is a file path or an in-memory sorted list).
        output_file: a file of output pairs for the executor to load, if the
            task could not write to the output store itself.
    """

    def __init__(self, task_id, counters, runs=None, output_file=None):
        self.task_id = task_id
        self.counters = counters
        self.runs = runs
        self.output_file = output_file


##############################################################################
# Shuffle

class ShuffleWriter(object):
    """Partition, sort and spill intermediate pairs.

    Arguments:
        n_partitions: number of reduce partitions.
        max_bytes: buffer size that triggers a spill.
        tmpdir: where spilled runs are written.
        prefix: names this writer's files.
        in_memory: keep the final (unspilled) buffer in memory instead of
            writing it out.  Only useful when the reduce runs in the same
            process.
    """

    def __init__(self, n_partitions, max_bytes, tmpdir, prefix,
            in_memory=False):
        self.n_partitions = n_partitions
        self.max_bytes = max_bytes
        self.tmpdir = tmpdir
        self.prefix = prefix
        self.in_memory = in_memory
        self.buffers = [[] for _ in range(n_partitions)]
        self.runs = [[] for _ in range(n_partitions)]
        self.buffer_bytes = 0
        self.spills = 0

    def emit(self, key, value):
        digest = key_digest(key)
        raw_key = dumps(key)
        raw_value = dumps(value)
        partition = partition_of(digest, self.n_partitions)
        self.buffers[partition].append((digest, raw_key, raw_value))
        self.buffer_bytes += DIGEST_LEN + len(raw_key) + len(raw_value)
        if self.buffer_bytes > self.max_bytes:
            self.spill()

    def spill(self):
        if not self.buffer_bytes:
            return
        logger.debug('Spilling %s bytes of intermediate data from %s',
                self.buffer_bytes, self.prefix)
        for partition, buf in enumerate(self.buffers):
            if not buf:
                continue
            buf.sort(key=itemgetter(0))
            self.runs[partition].append(self._write_run(partition, buf))
        self.buffers = [[] for _ in range(self.n_partitions)]
        self.buffer_bytes = 0
        self.spills += 1

    def _write_run(self, partition, buf):
        prefix = '%s_p%s_r%s_' % (self.prefix, partition, self.spills)
        f, path = util.mktempfile(self.tmpdir, prefix, util.random_string(6)
                + '.' + BinWriter.ext)
        with f:
            with BinWriter(f, raw_serializers) as writer:
                for digest, raw_key, raw_value in buf:
                    writer.writepair((digest.encode('ascii') + raw_key,
                        raw_value))
        return path

    def finish(self):
        """Return the runs for each partition."""
        if self.in_memory:
            for partition, buf in enumerate(self.buffers):
                if buf:
                    buf.sort(key=itemgetter(0))
                    self.runs[partition].append(buf)
            self.buffers = [[] for _ in range(self.n_partitions)]
            self.buffer_bytes = 0
        else:
            self.spill()
        return self.runs


def iter_run(run):
    """Iterate over the (digest, raw_key, raw_value) records of a run."""
    if isinstance(run, list):
        for record in run:
            yield record
        return
    with BinReader(open(run, 'rb'), raw_serializers) as reader:
        for prefixed_key, raw_value in reader:
            digest = prefixed_key[:DIGEST_LEN].decode('ascii')
            yield digest, prefixed_key[DIGEST_LEN:], raw_value


def merge_runs(runs):
    """Merge sorted runs into one stream ordered by digest.

    The merge is stable, so values from earlier runs come first.
    """
    return heapq.merge(*[iter_run(run) for run in runs], key=itemgetter(0))


def remove_runs(runs):
    for run in runs:
        if not isinstance(run, list):
            try:
                os.remove(run)
            except FileNotFoundError:
                pass


##############################################################################
# Output

class DirectSink(object):
    """Write output pairs straight into the output store.

    Stores that write a file per batch get their pairs in batches of about
    `max_bytes`.
    """

    def __init__(self, store, max_bytes):
        self.store = store
        self.max_bytes = max_bytes
        self.batched = getattr(store, 'batched_writes', False)
        self.buffer = []
        self.buffer_bytes = 0

    def __call__(self, key, value):
        if not self.batched:
            self.store.put(key, value)
            return
        self.buffer.append((key, value))
        self.buffer_bytes += len(dumps(value))
        if self.buffer_bytes > self.max_bytes:
            self.flush()

    def flush(self):
        if self.buffer:
            self.store.add_batch(self.buffer)
        self.buffer = []
        self.buffer_bytes = 0

    def finish(self):
        self.flush()
        return None


class FileSink(object):
    """Write output pairs to a temporary file for the executor to load."""

    def __init__(self, tmpdir, prefix):
        f, self.path = util.mktempfile(tmpdir, prefix + '_out_',
                util.random_string(6) + '.' + BinWriter.ext)
        self.fileobj = f
        self.writer = BinWriter(f)

    def __call__(self, key, value):
        self.writer.writepair((key, value))

    def finish(self):
        self.writer.finish()
        self.fileobj.close()
        return self.path


def make_sink(job, tmpdir, prefix, in_process):
    if in_process or (job.output is not None and job.output.shared):
        return DirectSink(job.output, job.control.reduce_batch_bytes)
    return FileSink(tmpdir, prefix)


def load_output_file(store, path, max_bytes):
    """Copy the pairs of a FileSink file into a store, in batches."""
    with BinReader(open(path, 'rb')) as reader:
        batch = []
        batch_bytes = 0
        for key, value, nbytes in reader.iter_sized():
            batch.append((key, value))
            batch_bytes += nbytes
            if batch_bytes > max_bytes:
                store.add_batch(batch)
                batch = []
                batch_bytes = 0
        if batch:
            store.add_batch(batch)


##############################################################################
# Tasks

class Task(object):
    """A unit of work.  Tasks are small and picklable; the job is not part
    of the task, so an executor can send many tasks for the same job."""

    def run(self, job, tmpdir, in_process=False):
        raise NotImplementedError

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, self.task_id)


class MapTask(Task):
    """Run the mapper over one batch of one input store."""

    def __init__(self, task_id, input_index, ref, n_partitions):
        self.task_id = task_id
        self.input_index = input_index
        self.ref = ref
        self.n_partitions = n_partitions

    def run(self, job, tmpdir, in_process=False):
        counters = Counters()
        store = job.inputs[self.input_index]
        pairs = store.read_batch(self.ref)

        if job.reducer is None:
            sink = make_sink(job, tmpdir, self.task_id, in_process)
            emit = sink
        else:
            sink = None
            shuffle = ShuffleWriter(self.n_partitions,
                    job.control.shuffle_batch_bytes, tmpdir, self.task_id,
                    in_memory=in_process)
            emit = shuffle.emit

        ctx = Context(emit, counters, self.input_index, job.params)
        with user_routine(ctx, 'map'):
            job.map(ctx.track(pairs), ctx)
        counters.increment(COUNTER_GROUP, 'map_output', ctx.emitted)

        if sink is None:
            return TaskResult(self.task_id, counters, runs=shuffle.finish())
        else:
            return TaskResult(self.task_id, counters,
                    output_file=sink.finish())


class ReduceTask(Task):
    """Merge the runs of one partition and reduce each key."""

    def __init__(self, task_id, runs):
        self.task_id = task_id
        self.runs = runs

    def run(self, job, tmpdir, in_process=False):
        counters = Counters()
        sink = make_sink(job, tmpdir, self.task_id, in_process)
        ctx = Context(sink, counters, params=job.params)
        max_bytes = job.control.reduce_batch_bytes

        for digest, records in itertools.groupby(merge_runs(self.runs),
                key=itemgetter(0)):
            first = next(records)
            key = loads(first[1])
            ctx.key = key
            records = itertools.chain([first], records)
            counters.increment(COUNTER_GROUP, 'reduce_input_keys')
            with user_routine(ctx, 'reduce'):
                if is_reducer_class(job.reducer):
                    reducer = job.reducer()
                    reducer.ctx = ctx
                    reducer.pre(key)
                    for batch in util.chunked(records, max_bytes,
                            lambda record: len(record[2])):
                        reducer.reduce(key, [loads(r[2]) for r in batch])
                    reducer.post(key)
                else:
                    values = (loads(r[2]) for r in records)
                    for value in job.reducer(key, values):
                        ctx.emit(key, value)
        counters.increment(COUNTER_GROUP, 'reduce_output', ctx.emitted)

        if not in_process:
            remove_runs(self.runs)
        return TaskResult(self.task_id, counters, output_file=sink.finish())


def collect_runs(map_results, n_partitions):
    """Gather the runs of every map task by partition."""
    runs = [[] for _ in range(n_partitions)]
    for result in map_results:
        if result.runs is None:
            continue
        for partition, partition_runs in enumerate(result.runs):
            runs[partition].extend(partition_runs)
    return runs

# vim: et sw=4 sts=4
