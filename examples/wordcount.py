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

"""Count words with the generic MapReduce entry point.

Usage: wordcount.py file...
"""

import string
import sys

import divrec


def map_words(pairs, ctx):
    for line_num, line_text in pairs:
        for word in line_text.split():
            word = word.strip(string.punctuation).lower()
            if word:
                ctx.emit(word, 1)


def sum_counts(word, counts):
    yield sum(counts)


def main(argv):
    lines = []
    for filename in argv[1:]:
        with open(filename) as f:
            lines.extend(f)
    data = divrec.ddo(enumerate(lines))
    counts, counters = divrec.mapreduce(data, map=map_words, reduce=sum_counts)
    for word, count in sorted(counts.items(), key=lambda pair: -pair[1])[:20]:
        print('%s\t%s' % (word, count))
    print('%s lines, %s words' % (counters.get('divrec', 'map_input'),
        counters.get('divrec', 'map_output')))


if __name__ == '__main__':
    main(sys.argv)

# vim: et sw=4 sts=4
