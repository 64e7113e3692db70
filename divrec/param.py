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

"""param.py: Create objects with inheritable keyword parameters/attributes

Anything that subclasses ParamObj will be an object for which _params is
a special directory of Param objects.  Values given as keyword arguments are
checked against the Param's type, so a bad setting fails when the object is
created rather than in the middle of a job.
"""


class ParamError(Exception):
    def __init__(self, clsname, paramname, reason=None):
        self.clsname = clsname
        self.paramname = paramname
        self.reason = reason

    def __reduce__(self):
        return (ParamError, (self.clsname, self.paramname, self.reason))

    def __str__(self):
        if self.reason is None:
            return 'Class %s has no parameter "%s"' % (self.clsname,
                    self.paramname)
        else:
            return 'Parameter "%s" of class %s %s' % (self.paramname,
                    self.clsname, self.reason)


# People need to be able to override inherited values with None, so we need a
# NotSpecified to do this.
NotSpecified = object()


def _check_int(value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError('must be an integer')

def _check_posint(value):
    _check_int(value)
    if value < 1:
        raise ValueError('must be a positive integer')

def _check_nonnegint(value):
    _check_int(value)
    if value < 0:
        raise ValueError('must be a non-negative integer')

def _check_bool(value):
    if not isinstance(value, bool):
        raise ValueError('must be True or False')

def _check_string(value):
    if not isinstance(value, str):
        raise ValueError('must be a string')

def _check_object(value):
    pass

TYPE_CHECKS = {
        'int': _check_int,
        'posint': _check_posint,
        'nonnegint': _check_nonnegint,
        'bool': _check_bool,
        'string': _check_string,
        'object': _check_object,
        }


class Param(object):
    """A Parameter with name, default value, and documentation.

    A list of Params is used by a class of type ParamMeta.

    Attributes:
        default: The default value to be used.
        type: One of the names in TYPE_CHECKS ('int', 'posint', 'bool',
                'string', ...).  None is always accepted as a value, which
                means "use the automatic choice".
        doc: Help text.
        choices: If given, the value must be one of these (or None).
    """
    def __init__(self, default=NotSpecified, type=NotSpecified,
            doc=NotSpecified, choices=NotSpecified):
        self.default = default
        self.doc = doc
        self.type = type
        self.choices = choices

    def check(self):
        """Check for validity."""
        if self.type == 'bool':
            if self.default is None:
                self.default = False
        assert self.type in TYPE_CHECKS, 'Unknown param type %r' % self.type

    def validate(self, value):
        """Raise ValueError if the value is unacceptable."""
        if value is None:
            return
        if self.choices:
            if value not in self.choices:
                raise ValueError('must be one of %s' %
                        ', '.join(repr(c) for c in self.choices))
            return
        TYPE_CHECKS[self.type](value)

    def inherit(self, base):
        """Replace any NotSpecified elements with replacements from a base instance."""
        if self.doc is NotSpecified:
            self.doc = base.doc
        if self.type is NotSpecified:
            self.type = base.type
        if self.default is NotSpecified:
            self.default = base.default
        if self.choices is NotSpecified:
            self.choices = base.choices

    def copy(self):
        p = Param()
        p.default = self.default
        p.type = self.type
        p.doc = self.doc
        p.choices = self.choices
        return p

    def set_defaults(self):
        """Switch any NotSpecified things to the correct defaults."""
        if self.doc is NotSpecified:
            self.doc = None
        if self.type is NotSpecified:
            self.type = 'string'
        if self.default is NotSpecified:
            self.default = None
        if self.choices is NotSpecified:
            self.choices = None


class _ParamMeta(type):
    """A metaclass that lets you define params.

    When creating a new class of type _ParamMeta, add a dictionary named
    params into the class namespace.  Add Param objects to the dictionary
    with the key being the name of the parameter.  Now, each object of the
    class will have an attribute with the appropriate name.  The value will
    default to the default value in the Param object, but it can be
    overridden by name in __init__.

    Rather than using _ParamMeta directly, we recommend that you subclass
    ParamObj, which will allow you to override __init__ as long as you
    call super's __init__.
    """

    def __new__(cls, classname, bases, classdict):
        # Make sure we have a params dict in classdict.
        if '_params' not in classdict:
            classdict['_params'] = {}
        params = classdict['_params']

        # Collect the params from each of the parent classes.
        for base in bases:
            try:
                baseparams = base._params
            except AttributeError:
                # This base class doesn't have a params list.
                continue

            # Inherit any possible values.
            for name, baseparam in baseparams.items():
                if name in params:
                    params[name].inherit(baseparam)
                else:
                    params[name] = baseparam.copy()

        # Get rid of any leftover NotSpecified values.
        for name, param in params.items():
            param.set_defaults()
            param.check()

        # Update documentation based on our parameters
        if '__doc__' not in classdict or classdict['__doc__'] is None:
            classdict['__doc__'] = '%s -- Class using Params' % classname
        docs = [('%s: %s (default=%s)' % (name, param.doc, param.default))
                    for name, param in params.items()]
        docs.sort()
        classdict['__doc__'] = classdict['__doc__'] + \
                '\n    '.join(['\n%s Parameters:' % classname] + docs)

        return type.__new__(cls, classname, bases, classdict)


class ParamObj(metaclass=_ParamMeta):
    """An object that treats "_params" specially.

    An object of class ParamObj may contain a dictionary named _params.  This
    dictionary should have string keys and Param values.  For each entry in
    the dictionary, an object attribute is created with the same name as the
    key, and the value and documentation of the attribute are given by the
    arguments to the Param.  Inheritance of _params works right.

    Example:

    >>> class Rabbit(ParamObj):
    ...     _params = dict(weight=Param(default=42, type='posint'))
    >>> Rabbit().weight
    42
    >>> Rabbit(weight=12).weight
    12
    """

    def __init__(self, **kwds):
        for key in kwds:
            if key not in self._params:
                raise ParamError(self.__class__.__name__, key)
        for name, param in self._params.items():
            if name in kwds:
                value = kwds[name]
                try:
                    param.validate(value)
                except ValueError as e:
                    raise ParamError(self.__class__.__name__, name, str(e))
            else:
                value = param.default
            setattr(self, name, value)

    def params(self):
        """Return the current parameter values as a dict."""
        return dict((name, getattr(self, name)) for name in self._params)

    def replace(self, **kwds):
        """Return a new object of the same class with some values changed."""
        values = self.params()
        values.update(kwds)
        return self.__class__(**values)

    def __repr__(self):
        items = sorted(self.params().items())
        return '%s(%s)' % (self.__class__.__name__,
                ', '.join('%s=%r' % item for item in items))

# vim: et sw=4 sts=4
