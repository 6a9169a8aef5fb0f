"""
Log observers for Twisted's log module, each wrapping the next, that turn
events into one line of JSON each.  :mod:`cumulus.log.setup` chains them.
"""
import json
import re
import time
from datetime import datetime
from functools import singledispatch

from twisted.python.failure import Failure

from cumulus.codec.types import JsonBall


SECRET_FIELDS = frozenset([
    'password', 'secret_key', 'secretKey', 'api_key', 'apiKey', 'adminPass',
    'admin_pass', 'x-auth-token', 'signature'])

REDACTED = '*****'


class LogLevel(object):
    """Syslog severities of the events."""
    INFO = 6
    ERROR = 3


@singledispatch
def to_loggable(obj):
    """
    The JSON form of a field value JSON does not know.  Anything unexpected
    is logged as its ``repr``, so no event is dropped over one odd field.
    """
    return repr(obj)


@to_loggable.register(datetime)
def _datetime(obj):
    return obj.isoformat()


@to_loggable.register(Failure)
@to_loggable.register(JsonBall)
def _as_str(obj):
    return str(obj)


@to_loggable.register(bytes)
def _bytes(obj):
    return obj.decode('utf-8', 'replace')


class LoggingEncoder(json.JSONEncoder):
    """Encodes log events, see :func:`to_loggable`."""
    def default(self, obj):
        return to_loggable(obj)


def JSONObserverWrapper(observer, **kwargs):
    """
    Pass each event on as a single message: the event as JSON.

    :param observer: the observer to pass the JSON on to.
    :param kwargs: passed to :func:`json.dumps`.
    """
    def JSONObserver(eventDict):
        if 'message' in eventDict:
            eventDict['message'] = ''.join(eventDict['message'])
        line = json.dumps(eventDict, cls=LoggingEncoder, **kwargs)
        observer({'message': (line,)})

    return JSONObserver


def StreamObserverWrapper(stream, delimiter='\n', buffered=False):
    """
    Write each message to ``stream``, followed by ``delimiter`` unless it is
    ``None``.  Unless ``buffered``, the stream is flushed every time.
    """
    def StreamObserver(eventDict):
        stream.write(''.join(eventDict['message']))
        if delimiter is not None:
            stream.write(delimiter)
        if not buffered:
            stream.flush()

    return StreamObserver


def SystemFilterWrapper(observer):
    """
    Use ``cumulus`` as the system of events logged without one.  Twisted
    gives those ``-`` or a comma separated connection context; a context is
    kept as ``log_context``.
    """
    def SystemFilterObserver(eventDict):
        system = eventDict.get('system', '-')
        if ',' in system:
            eventDict['log_context'] = system
        if system == '-' or ',' in system:
            system = 'cumulus'
        eventDict['system'] = system
        observer(eventDict)

    return SystemFilterObserver


def PEP3101FormattingWrapper(observer):
    """
    Format the message and ``why`` of each event with ``str.format``, using
    the event's fields.  A message that cannot be formatted is logged as it
    is, along with ``message_formatting_error``.
    """
    def PEP3101FormattingObserver(eventDict):
        why = eventDict.get('why')
        if why:
            try:
                eventDict['why'] = why.format(**eventDict)
            except (KeyError, IndexError, ValueError):
                pass

        message = ' '.join(eventDict.get('message', ()))
        if message:
            try:
                eventDict['message'] = (message.format(**eventDict),)
            except (KeyError, IndexError, ValueError, AttributeError):
                eventDict['message_formatting_error'] = str(Failure())
                eventDict['message'] = (message,)

        observer(eventDict)

    return PEP3101FormattingObserver


def RedactingWrapper(observer, fields=SECRET_FIELDS):
    """
    Mask the values of fields named in ``fields``, at any depth of nested
    dicts, lists and tuples, so credentials and tokens never reach the logs.
    Query parameters with those names are masked in string values too, such
    as the ``url`` of a signed CloudStack request.
    """
    query_secret = re.compile(
        r'([?&;](?:{0})=)[^&;#]*'.format(
            '|'.join(re.escape(f) for f in sorted(fields))))

    def redact(value):
        if isinstance(value, dict):
            return {k: REDACTED if k in fields else redact(v)
                    for k, v in value.items()}
        if isinstance(value, list):
            return [redact(v) for v in value]
        if isinstance(value, tuple):
            return tuple(redact(v) for v in value)
        if isinstance(value, str):
            return query_secret.sub(r'\g<1>' + REDACTED, value)
        return value

    def RedactingObserver(eventDict):
        observer(redact(eventDict))

    return RedactingObserver


def ErrorFormattingWrapper(observer):
    """
    Give every event a ``level``, and replace the error fields of failure
    events (``isError``, ``failure``, ``why``) with a message made of
    ``why`` and the exception, plus ``traceback`` and ``exception_type``.
    An explicit message or level is kept.
    """
    def ErrorFormattingObserver(event):
        level = LogLevel.INFO
        message = ''
        if event.pop('isError', False):
            level = LogLevel.ERROR
            failure = event.pop('failure', None)
            if failure is not None:
                message = repr(failure.value)
                event['traceback'] = failure.getTraceback()
                event['exception_type'] = type(failure.value).__name__
            why = event.pop('why', None)
            if why:
                message = '{0}: {1}'.format(why, message)
        event.pop('failure', None)
        event.pop('why', None)

        event['message'] = (''.join(event.get('message', ())) or message,)
        event.setdefault('level', level)
        observer(event)

    return ErrorFormattingObserver


def ObserverWrapper(observer, hostname, seconds=None):
    """
    Add the fields every event is indexed by: ``host``, ``@timestamp``,
    ``@version`` and ``cumulus_facility`` (the event's system).  Twisted's
    own bookkeeping fields are dropped.

    :param str hostname: the host to log as.
    :param seconds: returns the current time, for events without one.
    """
    if seconds is None:
        seconds = time.time

    def Observer(eventDict):
        timestamp = eventDict.get('time', None)
        if timestamp is None:
            timestamp = seconds()
        event = {
            '@version': 1,
            'host': hostname,
            '@timestamp': datetime.fromtimestamp(timestamp).isoformat(),
            'cumulus_facility': eventDict.get('system', 'cumulus'),
            'message': eventDict['message'],
        }
        event.update((k, v) for k, v in eventDict.items()
                     if k not in ('time', 'system', 'id', 'message'))
        observer(event)

    return Observer
