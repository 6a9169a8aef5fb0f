"""
Observer factories used to configure logging for the command line tool.
"""
import socket
import sys

from cumulus.log.formatters import (
    ErrorFormattingWrapper,
    JSONObserverWrapper,
    ObserverWrapper,
    PEP3101FormattingWrapper,
    RedactingWrapper,
    StreamObserverWrapper,
    SystemFilterWrapper,
)


def make_observer_chain(ultimate_observer, indent):
    """
    Return our feature observers wrapped around the ultimate_observer
    """
    return RedactingWrapper(
        PEP3101FormattingWrapper(
            SystemFilterWrapper(
                ErrorFormattingWrapper(
                    ObserverWrapper(
                        JSONObserverWrapper(
                            ultimate_observer,
                            sort_keys=True,
                            indent=indent or None),
                        hostname=socket.gethostname())))))


def observer_factory(stream=None):
    """
    Log non-pretty JSON formatted structures to ``stream``, or
    ``sys.stderr``.
    """
    return make_observer_chain(
        StreamObserverWrapper(stream or sys.stderr), False)


def observer_factory_debug(stream=None):
    """
    Log pretty JSON formatted structures to ``stream``, or ``sys.stderr``.
    """
    return make_observer_chain(
        StreamObserverWrapper(stream or sys.stderr), 2)
