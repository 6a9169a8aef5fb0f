"""
HTTP requests as Effects.

A request function takes ``(method, url, headers=None, data=None, ...)`` and
returns an Effect of ``(response, body)``.  The ``add_*`` functions below each
wrap a request function with one concern (auth headers, JSON, error checking
and so on) and are stacked to build the clients in :mod:`cumulus.cloud_client`.
Each takes the request function last, so they also work as
``@partial(add_foo, ...)`` decorators.
"""

import json

from functools import partial, wraps

import attr

from effect import Effect

from toolz.dicttoolz import merge
from toolz.functoolz import memoize

from twisted.internet.defer import inlineCallbacks

from txeffect import deferred_performer

from cumulus.util import logging_treq
from cumulus.util.http import APIError


@attr.s
class Request(object):
    """
    An HTTP request.  Results in ``(response, body)``, with the body as
    ``bytes``.

    :ivar log: a :class:`~cumulus.log.bound.BoundLog` the request and its
        response are logged to.
    """
    method = attr.ib()
    url = attr.ib()
    headers = attr.ib(default=None)
    data = attr.ib(default=None)
    params = attr.ib(default=None)
    log = attr.ib(default=None)

    treq = logging_treq

    def intent_result_pred(self, result):
        """Whether ``result`` is a ``(response, bytes)`` pair."""
        if not isinstance(result, tuple) or len(result) != 2:
            return False
        return isinstance(result[1], bytes)


@deferred_performer
@inlineCallbacks
def perform_request(dispatcher, intent):
    """
    Performer for :class:`Request` that makes the request with (logging)
    treq and reads the whole body.
    """
    response = yield intent.treq.request(
        intent.method.upper(), intent.url, headers=intent.headers,
        data=intent.data, params=intent.params, log=intent.log)
    body = yield intent.treq.content(response)
    return (response, body)


def request(method, url, **kwargs):
    """The innermost request function: an Effect of :class:`Request`."""
    return Effect(Request(method=method, url=url, **kwargs))


@memoize
def has_code(*codes):
    """
    A success predicate that accepts only the given status codes, for
    :func:`check_response`.  Calls with the same codes return the same
    predicate, so requests built with them compare equal.

    :return: ``pred(response, body)``, with the codes as ``pred.codes``.
    """
    def code_in(response, _body):
        return response.code in codes
    code_in.codes = codes
    return code_in


def check_response(pred, result):
    """
    :param pred: ``pred(response, body)`` deciding whether the request
        succeeded.
    :param result: ``(response, body)``.
    :raise APIError: if ``pred`` says it did not.
    :return: ``result``.
    """
    response, body = result
    if not pred(response, body):
        raise APIError(response.code, body, response.headers)
    return result


def effect_on_response(codes, effect, result):
    """
    If the response has one of ``codes``, perform ``effect`` before handing
    the result on.  Used to drop cached tokens when a request is refused.

    :return: ``result``, or an Effect of it.
    """
    if result[0].code not in codes:
        return result
    return effect.on(lambda _: result)


def add_effectful_headers(headers_effect, request_func):
    """
    Merge the result of ``headers_effect`` into each request's headers,
    taking precedence over the headers passed in.  Used to add auth tokens.
    """
    @wraps(request_func)
    def request(*args, **kwargs):
        given = kwargs.pop('headers', None) or {}
        return headers_effect.on(
            lambda extra: request_func(*args, headers=merge(given, extra),
                                       **kwargs))
    return request


def add_headers(fixed_headers, request_func):
    """
    Add ``fixed_headers`` to each request.  Headers passed in take
    precedence.
    """
    @wraps(request_func)
    def request(*args, **kwargs):
        given = kwargs.pop('headers', None) or {}
        return request_func(*args, headers=merge(fixed_headers, given),
                            **kwargs)
    return request


def add_effect_on_response(effect, codes, request_func):
    """
    Perform ``effect`` whenever a response has one of ``codes``; see
    :func:`effect_on_response`.
    """
    @wraps(request_func)
    def request(*args, **kwargs):
        return request_func(*args, **kwargs).on(
            partial(effect_on_response, codes, effect))
    return request


def add_error_handling(pred, request_func):
    """Check each response with ``pred``; see :func:`check_response`."""
    @wraps(request_func)
    def request(*args, **kwargs):
        return request_func(*args, **kwargs).on(
            partial(check_response, pred))
    return request


def add_content_only(request_func):
    """
    Result in the body alone.  Goes outermost, since the other wrappers
    expect ``(response, body)``.
    """
    @wraps(request_func)
    def request(*args, **kwargs):
        return request_func(*args, **kwargs).on(lambda result: result[1])
    return request


def _parse_json_body(result):
    response, body = result
    return (response, json.loads(body) if body else None)


def add_json_response(request_func):
    """
    Parse response bodies as JSON.  An empty body is ``None``.
    """
    @wraps(request_func)
    def request(*args, **kwargs):
        return request_func(*args, **kwargs).on(_parse_json_body)
    return request


def add_json_request_data(request_func):
    """
    Send the ``data`` of each request as JSON.  No data stays no data rather
    than becoming ``null``.
    """
    @wraps(request_func)
    def request(*args, **kwargs):
        data = kwargs.pop('data', None)
        if data is not None:
            data = json.dumps(data)
        return request_func(*args, data=data, **kwargs)
    return request


def add_bind_root(root, request_func):
    """
    Make each request's URL relative to ``root``.  The URL is appended as it
    is; quoting it is up to the caller.
    """
    root = root.rstrip('/')

    @wraps(request_func)
    def request(method, url, *args, **kwargs):
        return request_func(method, '{0}/{1}'.format(root, url), *args,
                            **kwargs)
    return request
