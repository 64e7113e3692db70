#!/usr/bin/env python
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

"""Divide the iris data by species and recombine per-species summaries.

Usage: iris.py iris.csv [directory]

With a directory, the division is kept on local disk there (and run on two
worker processes); otherwise everything stays in memory.
"""

import sys

import numpy
import pandas

import divrec


def petal_fit(frame):
    """Least-squares fit of petal width on petal length."""
    slope, intercept = numpy.polyfit(frame['Petal.Length'],
            frame['Petal.Width'], 1)
    return pandas.Series({'intercept': intercept, 'slope': slope})


def main(argv):
    if len(argv) < 2:
        print(__doc__)
        return 2
    divrec.set_log_level(verbose=True)
    iris = pandas.read_csv(argv[1])
    control = divrec.Control()
    output = None
    if len(argv) > 2:
        control = divrec.Control(worker_count=2)
        output = divrec.LocalDiskStore(argv[2], n_bins=4, reset=True)

    data = divrec.ddf(iris, chunk_rows=50)
    by_species = divrec.divide(data, by='Species', output=output,
            control=control, update=True)
    print('%s subsets, %s rows' % (by_species.n_pairs, by_species.n_rows))

    means = divrec.recombine(by_species,
            apply=lambda frame: frame.mean(numeric_only=True),
            combine=divrec.RowBind(), control=control)
    print(means)

    replicates = divrec.divide(data, by=divrec.RRDiv(25, seed=1))
    coef = divrec.recombine(replicates, apply=petal_fit,
            combine=divrec.MeanCoef())
    print('Mean coefficients over %s random subsets:' %
            len(replicates.keys()))
    print(coef)
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))

# vim: et sw=4 sts=4
