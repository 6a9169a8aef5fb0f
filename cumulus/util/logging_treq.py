"""
treq, but every request is logged with how it ended and how long it took,
tagged with an ``x-cumulus-request-id`` header, and cancelled if unanswered
for too long.
"""
from functools import wraps
from uuid import uuid4

import attr

import treq

from twisted.internet import reactor

from cumulus.log import log as default_log
from cumulus.util.config import config_value


DEFAULT_TIMEOUT = 45

REQUEST_ID_HEADER = 'x-cumulus-request-id'


@attr.s
class LoggingTreq(object):
    """
    Logging versions of treq's request functions.  Anything else is treq's
    own.

    Each request function also takes ``clock`` and ``log`` keyword
    arguments, overriding the instance's.

    :ivar clock: times requests and their timeouts.
    :ivar log: a :class:`~cumulus.log.bound.BoundLog`.
    :ivar bool log_response: also log response bodies.  Off by default since
        they can hold secrets like admin passwords.
    :ivar timeout: seconds to wait for a response, unless the
        ``http.timeout`` config value is set.
    """
    clock = attr.ib(default=reactor)
    log = attr.ib(default=default_log)
    log_response = attr.ib(default=False)
    timeout = attr.ib(default=DEFAULT_TIMEOUT)

    def __getattr__(self, name):
        return getattr(treq, name)

    def request(self, method, url, **kwargs):
        """Logging :func:`treq.request`."""
        return self.log_request(treq.request)(url, method=method, **kwargs)

    def get(self, url, headers=None, **kwargs):
        """Logging :func:`treq.get`."""
        return self.log_request(treq.get)(url, headers=headers, **kwargs)

    def post(self, url, data=None, **kwargs):
        """Logging :func:`treq.post`."""
        return self.log_request(treq.post)(url, data=data, **kwargs)

    def delete(self, url, **kwargs):
        """Logging :func:`treq.delete`."""
        return self.log_request(treq.delete)(url, **kwargs)

    def _ended(self, log, clock, start, response):
        elapsed = clock.seconds() - start
        message = ("Request to {method} {url} resulted in a {status_code} "
                   "response after {request_time} seconds.")
        fields = dict(request_time=elapsed, status_code=response.code,
                      headers=response.headers)
        if not self.log_response:
            log.msg(message, **fields)
            return response

        d = treq.content(response)
        d.addCallback(lambda body: log.msg(message, response_body=body,
                                           **fields))
        return d.addCallback(lambda _: response)

    def log_request(self, treq_call):
        """
        Wrap ``treq_call`` so the request is tagged, logged and timed out.
        The headers passed in are copied, not changed.
        """
        @wraps(treq_call)
        def logged(url, **kwargs):
            clock = kwargs.pop('clock', self.clock)
            log = kwargs.pop('log', None) or self.log
            request_id = str(uuid4())
            headers = dict(kwargs.get('headers') or {})
            headers[REQUEST_ID_HEADER] = [request_id]
            kwargs['headers'] = headers
            log = log.bind(system='treq.request', url=url,
                           method=kwargs.get('method', treq_call.__name__),
                           url_params=kwargs.get('params'),
                           treq_request_id=request_id)

            log.msg("Request to {method} {url} starting.")
            start = clock.seconds()
            d = treq_call(url=url, **kwargs)
            d.addTimeout(config_value('http.timeout') or self.timeout, clock)

            def failed(failure):
                log.msg("Request to {method} {url} failed after "
                        "{request_time} seconds.", reason=failure,
                        request_time=clock.seconds() - start)
                return failure

            return d.addCallbacks(
                lambda response: self._ended(log, clock, start, response),
                failed)
        return logged


_logging_treq = LoggingTreq()

request = _logging_treq.request
get = _logging_treq.get
post = _logging_treq.post
delete = _logging_treq.delete

json_content = treq.json_content
content = treq.content
