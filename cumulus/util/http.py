"""
Small HTTP helpers shared by the clients.
"""

from urllib.parse import quote

import treq


def append_segments(uri, *segments):
    """
    Join path segments onto ``uri``, which may or may not end in a slash::

        append_segments('http://nova/v2/1/', 'servers', 'a b')
        # -> 'http://nova/v2/1/servers/a%20b'

    Segments are converted to ``str`` and percent-quoted, slashes included.
    """
    if isinstance(uri, bytes):
        uri = uri.decode('ascii')
    parts = [uri.rstrip('/')]
    parts.extend(quote(str(segment), safe='') for segment in segments)
    return '/'.join(parts)


class APIError(Exception):
    """
    A response with a status code that was not expected.

    :ivar int code: the status code.
    :ivar body: the response body, as ``bytes``, or ``None``.
    :ivar headers: the response headers, or ``None``.
    """
    def __init__(self, code, body, headers=None):
        super(APIError, self).__init__(
            'API Error code={0!r}, body={1!r}, headers={2!r}'.format(
                code, body, headers))
        self.code = code
        self.body = body
        self.headers = headers


def check_success(response, success_codes):
    """
    Callback for a Deferred of a response that fails it with an
    :class:`APIError`, body included, unless the status code is one of
    ``success_codes``.
    """
    if response.code in success_codes:
        return response

    def fail(body):
        raise APIError(response.code, body, response.headers)
    return treq.content(response).addCallback(fail)


def headers(auth_token=None):
    """
    :return: the headers of a JSON request, authenticated with
        ``auth_token`` if given.
    """
    h = {'content-type': ['application/json'],
         'accept': ['application/json'],
         'User-Agent': ['Cumulus/0.0']}
    if auth_token is not None:
        h['x-auth-token'] = [auth_token]
    return h
