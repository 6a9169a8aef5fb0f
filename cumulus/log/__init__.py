"""
Package for all cumulus specific logging functionality.
"""

from twisted.python.log import err, msg

from cumulus.log.bound import BoundLog
from cumulus.log.setup import observer_factory, observer_factory_debug


log = BoundLog(msg, err).bind(system='cumulus')


__all__ = ['BoundLog', 'observer_factory', 'observer_factory_debug', 'log']
