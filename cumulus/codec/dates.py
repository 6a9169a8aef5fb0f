"""
Date formatting and parsing in the handful of formats cloud providers put on
the wire.

Every formatter renders UTC.  Every parser returns a timezone-aware
``datetime``.  Naive datetimes passed to formatters are assumed to already be
in UTC.
"""

import calendar
import re
from datetime import datetime, timezone

import iso8601


_DAYS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')
_MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
           'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

_FRACTION = re.compile(r'T\d{2}:\d{2}:\d{2}[.,]\d+')
_SECONDS = re.compile(r'T\d{2}:\d{2}:\d{2}(?![.,\d])')

_C_DATE = re.compile(
    r'^(?P<day>[A-Z][a-z]{2}) (?P<month>[A-Z][a-z]{2}) (?P<dom>\d{2}) '
    r'(?P<h>\d{2}):(?P<m>\d{2}):(?P<s>\d{2}) \+0000 (?P<year>\d{4})$')

_RFC822_DATE = re.compile(
    r'^(?P<day>[A-Z][a-z]{2}), (?P<dom>\d{2}) (?P<month>[A-Z][a-z]{2}) '
    r'(?P<year>\d{4}) (?P<h>\d{2}):(?P<m>\d{2}):(?P<s>\d{2}) GMT$')


class DateParseError(ValueError):
    """
    Raised when a string does not match the expected date format.
    """


def _utc(dt):
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _from_match(match):
    try:
        month = _MONTHS.index(match.group('month')) + 1
        return datetime(
            int(match.group('year')), month, int(match.group('dom')),
            int(match.group('h')), int(match.group('m')),
            int(match.group('s')), tzinfo=timezone.utc)
    except ValueError as e:
        raise DateParseError(str(e))


def iso8601_date_format(dt):
    """
    :return: ``yyyy-MM-ddTHH:mm:ss.SSSZ``
    """
    dt = _utc(dt)
    return '{0}.{1:03d}Z'.format(
        dt.strftime('%Y-%m-%dT%H:%M:%S'), dt.microsecond // 1000)


def iso8601_date_parse(text):
    """
    Parse an ISO8601 timestamp that carries fractional seconds.

    :raise DateParseError: if there are no fractional seconds, or the string
        is not ISO8601 at all.
    """
    if not _FRACTION.search(text):
        raise DateParseError(
            'no fractional seconds in {0!r}'.format(text))
    return _parse_iso8601(text)


def iso8601_seconds_date_format(dt):
    """
    :return: ``yyyy-MM-ddTHH:mm:ssZ``
    """
    return _utc(dt).strftime('%Y-%m-%dT%H:%M:%SZ')


def iso8601_seconds_date_parse(text):
    """
    Parse an ISO8601 timestamp with whole seconds.

    :raise DateParseError: if the timestamp has fractional seconds or is not
        ISO8601 at all.
    """
    if not _SECONDS.search(text):
        raise DateParseError(
            'not a seconds-precision timestamp: {0!r}'.format(text))
    return _parse_iso8601(text)


def _parse_iso8601(text):
    try:
        return iso8601.parse_date(text)
    except iso8601.ParseError as e:
        raise DateParseError(str(e))


def c_date_format(dt):
    """
    :return: ``EEE MMM dd HH:mm:ss +0000 yyyy``, e.g.
        ``Thu Dec 16 14:33:26 +0000 2010``
    """
    dt = _utc(dt)
    return '{0} {1} {2:02d} {3} +0000 {4}'.format(
        _DAYS[dt.weekday()], _MONTHS[dt.month - 1], dt.day,
        dt.strftime('%H:%M:%S'), dt.year)


def c_date_parse(text):
    """
    Parse a date produced by :func:`c_date_format`.
    """
    match = _C_DATE.match(text)
    if match is None:
        raise DateParseError('not a C date: {0!r}'.format(text))
    return _from_match(match)


def rfc822_date_format(dt):
    """
    :return: ``EEE, dd MMM yyyy HH:mm:ss GMT``, as used by HTTP headers.
    """
    dt = _utc(dt)
    return '{0}, {1:02d} {2} {3} {4} GMT'.format(
        _DAYS[dt.weekday()], dt.day, _MONTHS[dt.month - 1], dt.year,
        dt.strftime('%H:%M:%S'))


def rfc822_date_parse(text):
    """
    Parse a date produced by :func:`rfc822_date_format`.
    """
    match = _RFC822_DATE.match(text)
    if match is None:
        raise DateParseError('not an RFC822 date: {0!r}'.format(text))
    return _from_match(match)


def to_epoch_millis(dt):
    """
    Convert a datetime into milliseconds since the epoch.
    """
    dt = _utc(dt)
    return calendar.timegm(dt.utctimetuple()) * 1000 + dt.microsecond // 1000


def from_epoch_millis(millis):
    """
    Convert milliseconds since the epoch into an aware UTC datetime.
    """
    seconds, millis = divmod(int(millis), 1000)
    return datetime.fromtimestamp(seconds, timezone.utc).replace(
        microsecond=millis * 1000)
