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

"""Collection attributes computed by a full scan.

Each map task summarizes its batch into a `PartialAttributes`, and a single
reducer merges the partial results.  Merging only adds counts and takes
minimums and maximums, so the result does not depend on how the collection
was split into batches.
"""

import math

import numpy
import pandas

from .errors import SchemaMismatch
from .job import Reducer
from .keys import split_of
from .serializers import dumps

ATTRIBUTES_KEY = 'attributes'
TOP_LEVELS = 5
ROW_QUANTILES = (0.0, 0.25, 0.5, 0.75, 1.0)


def rows_of(value):
    """The number of rows in a value (1 for anything that is not tabular).

    >>> rows_of(pandas.DataFrame({'a': [1, 2, 3]}))
    3
    >>> rows_of('abc')
    1
    """
    if isinstance(value, (pandas.DataFrame, pandas.Series, numpy.ndarray)):
        return len(value)
    return 1


class VariableSummary(object):
    """Running summary of one column across subsets."""

    def __init__(self, kind):
        self.kind = kind
        self.na = 0
        self.count = 0
        self.minimum = None
        self.maximum = None
        self.total = 0.0
        self.total_sq = 0.0
        self.levels = {}

    @classmethod
    def from_series(cls, series):
        if (pandas.api.types.is_numeric_dtype(series) and
                not pandas.api.types.is_bool_dtype(series)):
            summary = cls('numeric')
            values = series.dropna().astype(float)
            summary.na = int(series.isna().sum())
            summary.count = len(values)
            if len(values):
                summary.minimum = float(values.min())
                summary.maximum = float(values.max())
                summary.total = float(values.sum())
                summary.total_sq = float((values * values).sum())
        else:
            summary = cls('categorical')
            summary.na = int(series.isna().sum())
            counts = series.dropna().value_counts()
            summary.levels = dict((level, int(n))
                    for level, n in counts.items())
            summary.count = int(counts.sum())
        return summary

    def merge(self, other, name):
        if self.kind != other.kind:
            raise SchemaMismatch('Variable %r is %s in some subsets and %s '
                    'in others' % (name, self.kind, other.kind))
        self.na += other.na
        self.count += other.count
        self.total += other.total
        self.total_sq += other.total_sq
        if other.minimum is not None:
            if self.minimum is None or other.minimum < self.minimum:
                self.minimum = other.minimum
        if other.maximum is not None:
            if self.maximum is None or other.maximum > self.maximum:
                self.maximum = other.maximum
        for level, n in other.levels.items():
            self.levels[level] = self.levels.get(level, 0) + n

    def as_dict(self):
        if self.kind == 'numeric':
            mean = stdev = None
            if self.count:
                mean = self.total / self.count
            if self.count > 1:
                variance = ((self.total_sq - self.total * self.total /
                    self.count) / (self.count - 1))
                stdev = math.sqrt(max(variance, 0.0))
            return {'type': 'numeric', 'count': self.count, 'na': self.na,
                    'min': self.minimum, 'max': self.maximum, 'mean': mean,
                    'stdev': stdev}
        else:
            top = sorted(self.levels.items(), key=lambda item: (-item[1],
                str(item[0])))[:TOP_LEVELS]
            return {'type': 'categorical', 'count': self.count,
                    'na': self.na, 'levels': len(self.levels), 'top': top}


class PartialAttributes(object):
    """Attributes of part of a collection."""

    def __init__(self):
        self.n_pairs = 0
        self.n_rows = 0
        self.sizes = {}
        self.row_counts = []
        self.split_vars = []
        self.split_values = {}
        self.variables = {}
        self.ddf = True

    def add(self, key, value):
        self.n_pairs += 1
        rows = rows_of(value)
        self.n_rows += rows
        self.row_counts.append(rows)
        self.sizes[key] = len(dumps(value))
        for var, level in split_of(key).items():
            if var not in self.split_values:
                self.split_vars.append(var)
                self.split_values[var] = set()
            self.split_values[var].add(level)
        if isinstance(value, pandas.DataFrame):
            for name in value.columns:
                summary = VariableSummary.from_series(value[name])
                self._merge_variable(name, summary)
        else:
            self.ddf = False

    def _merge_variable(self, name, summary):
        if name in self.variables:
            self.variables[name].merge(summary, name)
        else:
            self.variables[name] = summary

    def merge(self, other):
        self.n_pairs += other.n_pairs
        self.n_rows += other.n_rows
        self.sizes.update(other.sizes)
        self.row_counts.extend(other.row_counts)
        for var in other.split_vars:
            if var not in self.split_values:
                self.split_vars.append(var)
                self.split_values[var] = set()
            self.split_values[var].update(other.split_values[var])
        for name, summary in other.variables.items():
            self._merge_variable(name, summary)
        self.ddf = self.ddf and other.ddf

    def as_dict(self):
        return {
            'n_pairs': self.n_pairs,
            'n_rows': self.n_rows,
            'sizes': dict(self.sizes),
            'row_counts': list(self.row_counts),
            'split_vars': list(self.split_vars),
            'split_values': dict((var, sorted(values, key=str))
                for var, values in self.split_values.items()),
            'summary': dict((name, summary.as_dict())
                for name, summary in self.variables.items()),
            'ddf': self.ddf and self.n_pairs > 0,
            }


def attributes_mapper(pairs, ctx):
    partial = PartialAttributes()
    for key, value in pairs:
        partial.add(key, value)
    ctx.emit(ATTRIBUTES_KEY, partial)


class AttributesReducer(Reducer):
    def pre(self, key):
        self.total = PartialAttributes()

    def reduce(self, key, values):
        for partial in values:
            self.total.merge(partial)

    def post(self, key):
        self.emit(key, self.total)


def quantiles(counts):
    """Summarize row counts by their quantiles.

    >>> quantiles([1, 2, 3, 4, 5])[0.5]
    3.0
    """
    if not counts:
        return {}
    values = numpy.quantile(numpy.asarray(counts, dtype=float),
            ROW_QUANTILES)
    return dict(zip(ROW_QUANTILES, (float(v) for v in values)))

# vim: et sw=4 sts=4
