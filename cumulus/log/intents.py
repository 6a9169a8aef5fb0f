"""
Effects for structured logging, so pure code such as the cloud clients can
log without being handed a logger.

Fields are bound in layers by the dispatcher and by enclosing
:func:`with_log` effects.  Inner layers win.
"""

import attr

from effect import (
    ComposedDispatcher, Effect, TypeDispatcher, perform, sync_performer)

from toolz.dicttoolz import merge
from toolz.functoolz import curry

from twisted.python.failure import Failure


@attr.s
class Log(object):
    """An informational event."""
    msg = attr.ib()
    fields = attr.ib()


@attr.s(init=False)
class LogErr(object):
    """
    A failure event.  ``failure`` may be given as a :class:`Failure`, an
    exception, or ``None`` for the exception currently being handled.
    """
    failure = attr.ib()
    msg = attr.ib()
    fields = attr.ib()

    def __init__(self, failure, msg, fields):
        # None must be resolved now; the exception is gone by perform time.
        if failure is None or (isinstance(failure, BaseException) and
                               not isinstance(failure, Failure)):
            failure = Failure(failure)
        self.failure = failure
        self.msg = msg
        self.fields = fields


@attr.s
class GetFields(object):
    """Results in the fields bound where it is performed."""


@attr.s
class BoundFields(object):
    """
    Performs ``effect`` with ``fields`` added to anything it logs.  Results
    in whatever ``effect`` results in.
    """
    effect = attr.ib()
    fields = attr.ib()


def with_log(effect, **fields):
    """
    :return: Effect of ``effect`` with ``fields`` bound for its logging.
    """
    return Effect(BoundFields(effect, fields))


def msg(msg, **fields):
    """:return: Effect of logging ``msg``."""
    return Effect(Log(msg, fields))


def err(failure, msg, **fields):
    """:return: Effect of logging ``failure`` with ``msg`` as the reason."""
    return Effect(LogErr(failure, msg, fields))


def get_fields():
    """:return: Effect of the currently bound fields."""
    return Effect(GetFields())


@curry
def err_on_error(msg, exc, **fields):
    """
    Log ``exc`` and raise it again.  Curried so it can be given directly as
    an error handler:

    >>> nova.list_servers_in_detail().on(
    ...     error=err_on_error('list-servers-failed'))
    """
    def reraise(_):
        raise exc
    return err(exc, msg, **fields).on(reraise)


def get_log_dispatcher(log, fields):
    """
    :param log: a :class:`~cumulus.log.bound.BoundLog` to send events to.
    :param dict fields: fields to bind to every event.
    :return: a dispatcher for the logging intents.
    """
    def bound(intent):
        return merge(fields, intent.fields)

    @sync_performer
    def perform_msg(dispatcher, intent):
        log.msg(intent.msg, **bound(intent))

    @sync_performer
    def perform_err(dispatcher, intent):
        log.err(intent.failure, intent.msg, **bound(intent))

    def perform_bound_fields(dispatcher, intent, box):
        inner = ComposedDispatcher(
            [get_log_dispatcher(log, bound(intent)), dispatcher])
        perform(inner, intent.effect.on(box.succeed, box.fail))

    return TypeDispatcher({
        Log: perform_msg,
        LogErr: perform_err,
        BoundFields: perform_bound_fields,
        GetFields: sync_performer(lambda dispatcher, intent: fields),
    })

