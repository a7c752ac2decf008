"""
Query parameters and their canonical encoding.
"""
from collections import namedtuple

from .encoding import percent_encode

class Parameter(namedtuple("Parameter", ["name", "value"])):
    """
    A single name/value pair in a query.
    """
    __slots__ = ()

    def encode(self):
        """
        The name=value form of this parameter. Only the value is
        percent-encoded; parameter names are sent as-is.
        """
        return self.name + "=" + percent_encode(self.value)

class ParameterSet(object):
    """
    An ordered collection of query parameters.

    Parameters are kept in insertion order, but the encoded form is always
    sorted by name. The sort is stable: parameters sharing a name are
    emitted in the order they were added.
    """

    def __init__(self, pairs=()):
        super(ParameterSet, self).__init__()
        self._params = []
        self.extend(pairs)
        return

    def add(self, name, value):
        """
        Append a parameter. Existing parameters with the same name are
        neither replaced nor removed.
        """
        if not isinstance(name, str):
            raise TypeError("Expected parameter name to be a string.")

        if not isinstance(value, str):
            raise TypeError("Expected value of parameter %r to be a string." %
                            (name,))

        self._params.append(Parameter(name, value))
        return

    def extend(self, pairs):
        """
        Append every (name, value) pair from an iterable.
        """
        for name, value in pairs:
            self.add(name, value)
        return

    def get(self, name, default=None):
        """
        The value of the first parameter named name, or default.
        """
        for param in self._params:
            if param.name == name:
                return param.value
        return default

    def sort(self):
        """
        Sort the parameters in place by name.
        """
        self._params.sort(key=lambda param: param.name)
        return

    def encode(self):
        """
        The canonical form of the parameters: name=value pairs sorted by
        name and joined with '&'.
        """
        return "&".join([
            param.encode()
            for param in sorted(self._params, key=lambda param: param.name)])

    def __len__(self):
        return len(self._params)

    def __iter__(self):
        return iter(self._params)

    def __contains__(self, name):
        return any(param.name == name for param in self._params)

    def __repr__(self):
        return "ParameterSet(%r)" % (self._params,)

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8
