"""
Structured logging on top of Twisted's ``msg``/``err`` with fields bound in
advance.
"""

import functools


class BoundLog(object):
    """
    A pair of logging callables with keyword fields partially applied.

    :ivar msg: called to log an informational event.
    :ivar err: called to log a failure or exception.
    """
    def __init__(self, msg, err):
        self.msg = msg
        self.err = err

    def bind(self, **fields):
        """
        :return: a new :class:`BoundLog` that adds ``fields`` to every event
            it logs, on top of whatever this one already binds.
        """
        return self.__class__(functools.partial(self.msg, **fields),
                              functools.partial(self.err, **fields))

    @property
    def fields(self):
        """
        The fields bound so far, later bindings overriding earlier ones.
        """
        return bound_log_kwargs(self)


def bound_log_kwargs(log):
    """
    :return: the keyword arguments bound to ``log.msg`` through any number of
        :meth:`BoundLog.bind` calls.
    """
    layers = []
    f = log.msg
    while isinstance(f, functools.partial):
        layers.append(f.keywords)
        f = f.func
    fields = {}
    for layer in reversed(layers):
        fields.update(layer)
    return fields
