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

"""User routines with a declared calling convention.

A user function is called either as ``f(value)`` or as ``f(key, value)``.
The arity is worked out once, when the routine is wrapped, instead of on
every call.
"""

import inspect


class Routine(object):
    """A user callable tagged with its arity (1 or 2).

    Arguments:
        fn: the callable.
        arity: force the calling convention instead of inspecting `fn`.

    >>> Routine(lambda v: v + 1)('k', 1)
    2
    >>> Routine(lambda k, v: (k, v))('k', 1)
    ('k', 1)
    """

    def __init__(self, fn, arity=None):
        if isinstance(fn, Routine):
            fn, arity = fn.fn, (arity or fn.arity)
        if not callable(fn):
            raise TypeError('%r is not callable' % (fn,))
        self.fn = fn
        if arity is None:
            arity = detect_arity(fn)
        if arity not in (1, 2):
            raise ValueError('A routine takes one or two arguments')
        self.arity = arity

    def __call__(self, key, value):
        if self.arity == 1:
            return self.fn(value)
        else:
            return self.fn(key, value)

    def __repr__(self):
        return 'Routine(%r, arity=%s)' % (self.fn, self.arity)


def detect_arity(fn):
    """Count the positional arguments a callable needs.

    A callable that accepts two or more positional arguments (or *args) is
    given the key and the value.

    >>> detect_arity(len)
    1
    >>> detect_arity(lambda key, value, scale=2: None)
    2
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 1
    required = 0
    positional = 0
    for param in signature.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return 2
        if param.kind in (param.POSITIONAL_ONLY,
                param.POSITIONAL_OR_KEYWORD):
            positional += 1
            if param.default is param.empty:
                required += 1
    if required >= 2:
        return 2
    if required == 0 and positional >= 2:
        return 2
    return 1


class TransformChain(object):
    """An ordered, immutable list of value transforms.

    Each transform returns the new value.  `then` returns a new chain, so a
    chain can be shared between collections.

    >>> chain = TransformChain().then(lambda v: v * 2).then(lambda k, v: k + v)
    >>> chain('a', 'b')
    'abb'
    >>> len(chain)
    2
    """

    def __init__(self, routines=()):
        self.routines = tuple(Routine(r) for r in routines)

    def then(self, fn):
        if fn is None:
            return self
        if isinstance(fn, TransformChain):
            return TransformChain(self.routines + fn.routines)
        return TransformChain(self.routines + (Routine(fn),))

    def __call__(self, key, value):
        for routine in self.routines:
            value = routine(key, value)
        return value

    def __len__(self):
        return len(self.routines)

    def __bool__(self):
        return bool(self.routines)

    def __repr__(self):
        return 'TransformChain(%r)' % (list(self.routines),)


def as_chain(transforms):
    """Accept None, a callable, a list of callables or a TransformChain."""
    if transforms is None:
        return TransformChain()
    if isinstance(transforms, TransformChain):
        return transforms
    if callable(transforms):
        return TransformChain([transforms])
    return TransformChain(transforms)

# vim: et sw=4 sts=4
