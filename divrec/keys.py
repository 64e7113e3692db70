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

"""Keys produced by division."""

SPLIT_SEPARATOR = '_'
SPILL_SEPARATOR = '_'


class CondKey(str):
    """A conditioning-variable key.

    The string form is the canonical "var1=value1_var2=value2" encoding, so
    a CondKey compares and hashes exactly like that string.  The
    `assignment` attribute keeps the (name, value) pairs with the original
    value types.

    >>> k = CondKey.from_split((('Species', 'setosa'), ('big', True)))
    >>> k
    'Species=setosa_big=True'
    >>> k == 'Species=setosa_big=True'
    True
    >>> k.split_dict()
    {'Species': 'setosa', 'big': True}
    >>> k.spilled(2)
    'Species=setosa_big=True_2'
    >>> k.spilled(2).split_dict()
    {'Species': 'setosa', 'big': True}
    """

    def __new__(cls, s, split=(), spill=None):
        self = super(CondKey, cls).__new__(cls, s)
        self.assignment = tuple(split)
        self.spill = spill
        return self

    @classmethod
    def from_split(cls, split):
        s = SPLIT_SEPARATOR.join('%s=%s' % (var, value)
                for var, value in split)
        return cls(s, split)

    def spilled(self, index):
        """Return the key for the `index`-th chunk of a spilled partition."""
        base = self if self.spill is None else self.base()
        s = '%s%s%d' % (base, SPILL_SEPARATOR, index)
        return CondKey(s, self.assignment, index)

    def base(self):
        """Return the key of the logical partition (without spill suffix)."""
        return CondKey.from_split(self.assignment)

    def split_dict(self):
        return dict(self.assignment)

    def __reduce__(self):
        return (CondKey, (str(self), self.assignment, self.spill))


def spilled_key(key, index):
    """Add a spill suffix to any key.

    >>> spilled_key('rr_3', 1)
    'rr_3_1'
    >>> spilled_key(7, 2)
    '7_2'
    """
    if isinstance(key, CondKey):
        return key.spilled(index)
    return '%s%s%d' % (key, SPILL_SEPARATOR, index)


def split_of(key):
    """Return the split-variable assignment of a key as a dict (or {})."""
    assignment = getattr(key, 'assignment', None)
    if isinstance(assignment, tuple):
        return dict(assignment)
    return {}

# vim: et sw=4 sts=4
