"""
Helpers shared by the cumulus tests: stub HTTP responses, fixtures, and
matchers for mock assertions.
"""
import json
import os

from effect.testing import resolve_effect as eff_resolve_effect

import mock

from twisted.internet.defer import succeed
from twisted.python.failure import Failure
from twisted.web.http_headers import Headers

from zope.interface import directlyProvides

from cumulus.log.bound import BoundLog
from cumulus.util.config import set_config_data


class CheckFailure(object):
    """
    Equal to any :class:`Failure` of ``exception_type``, for use in
    ``assert_called_with`` and friends.
    """
    def __init__(self, exception_type):
        self.exception_type = exception_type

    def __eq__(self, other):
        return isinstance(other, Failure) and other.check(
            self.exception_type) is not None

    def __ne__(self, other):
        return not self == other


def fixture(fixture_name):
    """
    :param fixture_name: The base filename of the fixture, ex:
        extension_list.json.

    :returns: the contents as ``str``
    """
    with open(os.path.join(os.path.dirname(__file__), 'fixtures',
                           fixture_name)) as f:
        return f.read()


def json_fixture(fixture_name):
    """
    :returns: the decoded contents of a JSON fixture.
    """
    return json.loads(fixture(fixture_name))


def patch(testcase, *args, **kwargs):
    """
    Start a :func:`mock.patch` that is undone when ``testcase`` ends.
    """
    if not getattr(testcase, '_stopallAdded', False):
        testcase.addCleanup(mock.patch.stopall)
        testcase._stopallAdded = True

    return mock.patch(*args, **kwargs).start()


class SameJSON(object):
    """
    Equal to any string of JSON that decodes to ``expected``::

        observer.assert_called_once_with(SameJSON({"message": "hi"}))
    """
    def __init__(self, expected):
        self._expected = expected

    def __eq__(self, other):
        return self._expected == json.loads(other)

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        return 'SameJSON({0!r})'.format(self._expected)


def mock_log(*args, **kwargs):
    """
    A :class:`BoundLog` whose ``msg`` and ``err`` are mocks.  Since binding
    wraps them in partials, assert on the fields bound along the way::

        log.msg.assert_called_with("Using default network", system="cumulus")
    """
    msg = mock.Mock(spec=[])
    msg.return_value = None
    err = mock.Mock(spec=[])
    err.return_value = None
    return BoundLog(msg, err)


class StubClientRequest(object):
    """
    A fake request object attached to a Twisted response object
    """
    method = "method"
    absoluteURI = "original/request/URL"
    headers = Headers({'x-cumulus-request-id': ['original-request-id']})


class StubResponse(object):
    """
    A fake pre-built Twisted Web Response object.
    """
    def __init__(self, code, headers, data=None):
        self.code = code
        self.headers = headers
        self.request = StubClientRequest()
        # Data is not part of twisted response object
        self._data = data

    def __eq__(self, other):
        return (
            isinstance(other, self.__class__) and
            self.code == other.code and
            self.headers == other.headers and
            self._data == other._data)

    def __ne__(self, other):
        return not self == other

    __hash__ = object.__hash__


def stub_pure_response(body, code=200, response_headers=None):
    """
    Return the type of two-tuple response that pure_http.Request returns:
    the body is always ``bytes``.
    """
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode('utf-8')
    if response_headers is None:
        response_headers = {}
    return (StubResponse(code, response_headers), body)


def stub_json_response(body, code=200, response_headers=None):
    """
    Return the type of two-tuple response that ServiceRequest returns when
    json_response=True.
    """
    return (StubResponse(code, response_headers), body)


class DummyException(Exception):
    """
    Fake exception
    """


def set_config_for_test(testcase, data):
    """
    Set config data for the duration of a test.
    """
    set_config_data(data)
    testcase.addCleanup(set_config_data, {})


def resolve_effect(effect, result, is_error=False):
    """
    Just like :func:`effect.testing.resolve_effect`, except it performs a
    type-check on ``result`` based on the intent's ``intent_result_pred``
    method, if it has one.
    """
    if not is_error:
        pred = getattr(effect.intent, 'intent_result_pred', None)
        if pred is not None:
            assert pred(result), \
                "%r does not conform to the intent_result_pred of %r" % (
                    result, effect.intent)
    return eff_resolve_effect(effect, result, is_error=is_error)


def const(v):
    """
    Return function that takes an argument but always return given `v`.
    Useful with :func:`effect.testing.perform_sequence`. For example,

    >>> perform_sequence([(Func(_random_suffix), const('abc123'))], eff)
    """
    return lambda i: v


def conste(e):
    """
    Like ``const`` but takes an exception and returns a function that raises
    the exception
    """
    def raise_it(i):
        raise e
    return raise_it


def alist_get(alist, key):
    """
    Look ``key`` up in a list of (key, value) pairs.

    :raise KeyError: if there is no such key.
    """
    for k, v in alist:
        if k == key:
            return v
    raise KeyError(key)


class StubTreq(object):
    """
    A stub version of :mod:`cumulus.util.logging_treq` that returns canned
    responses.
    """
    def __init__(self, reqs=(), contents=()):
        """
        :param reqs: (key, response) pairs, where a key is a tuple of
            (method, url, headers, data, params, <other kwargs dict>).
        :param contents: (response, content) pairs.
        """
        self.reqs = reqs
        self.contents = contents

    def request(self, method, url, **kwargs):
        """
        Return the response canned for these arguments.
        """
        key = (method, url, kwargs.pop('headers', None),
               kwargs.pop('data', None), kwargs.pop('params', None), kwargs)
        return succeed(alist_get(self.reqs, key))

    def content(self, response):
        """Return the content canned for ``response``."""
        return succeed(alist_get(self.contents, response))


def iMock(*ifaces, **kwargs):
    """
    Creates a mock object that provides a particular interface.

    :param iface: the interface to provide
    :type iface: :class:``zope.interface.Interface``

    :returns: a mock object that is specced to have the attributes and methods
        as a provider of the interface
    :rtype: :class:``mock.MagicMock``
    """
    all_names = [name for iface in ifaces for name in iface.names(all=True)]
    kwargs.pop('spec', None)
    imock = mock.MagicMock(spec=all_names, **kwargs)
    directlyProvides(imock, *ifaces)
    return imock


class matches(object):
    """
    A helper for using `testtools matchers
    <http://testtools.readthedocs.org/en/latest/for-test-authors.html#matchers>`_
    with mock.

    It allows argument assertions on mocks to use testtools matchers to
    express more complex requirements than simple equality.

    Example::

        m.assert_called_once_with(matches(Contains('foo')))
    """
    def __init__(self, matcher):
        self._matcher = matcher

    def __eq__(self, other):
        return self._matcher.match(other) is None

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        return 'matches({0!s})'.format(self._matcher)
