"""
Requests to Keystone-authenticated services (Nova, CloudServers) as Effects.

Provider clients describe requests with :func:`service_request`, relative to
the service's endpoint and without any tenant or token.  Wrapping them in a
:obj:`TenantScope` chooses the tenant; its performer authenticates, finds the
endpoint in the service catalog (or uses a configured URL) and turns each
:obj:`ServiceRequest` into a :obj:`~cumulus.util.pure_http.Request`.
"""
import json
from functools import partial, wraps

import attr

from effect import (
    ComposedDispatcher,
    Effect,
    TypeDispatcher,
    catch,
    perform,
    sync_performer)

from toolz.dicttoolz import get_in

from cumulus.auth import (
    Authenticate,
    InvalidateToken,
    public_endpoint_url,
    regions_for_service)
from cumulus.log.intents import msg as msg_effect
from cumulus.util.http import APIError
from cumulus.util.http import headers as cumulus_headers
from cumulus.util.pure_http import (
    add_bind_root,
    add_effect_on_response,
    add_error_handling,
    add_headers,
    add_json_request_data,
    add_json_response,
    has_code,
    request,
)


@attr.s
class ServiceRequest(object):
    """
    A request to the service of type ``service_type``, with ``url`` relative
    to its endpoint.  Only performable inside a :obj:`TenantScope`, which
    supplies the tenant.

    Results in ``(response, body)``, where the body is parsed JSON if
    ``json_response`` and ``bytes`` otherwise.
    """
    service_type = attr.ib()
    method = attr.ib()
    url = attr.ib()
    headers = attr.ib()
    data = attr.ib()
    params = attr.ib()
    log = attr.ib()
    reauth_codes = attr.ib()
    success_pred = attr.ib()
    json_response = attr.ib()
    region = attr.ib(default=None)

    def intent_result_pred(self, result):
        """Whether ``result`` is ``(response, body)`` of the right type."""
        if not isinstance(result, tuple):
            return False
        # Bare JSON strings and numbers are not expected from these APIs.
        body_types = (dict, list) if self.json_response else bytes
        return isinstance(result[1], body_types)


def service_request(service_type, method, url, headers=None, data=None,
                    params=None, log=None, reauth_codes=(401, 403),
                    success_pred=has_code(200), json_response=True,
                    region=None):
    """
    :param cumulus.constants.ServiceType service_type: the service to talk to.
    :param str method: HTTP method.
    :param str url: path relative to the service's endpoint.
    :param dict headers: extra headers; auth headers are added.
    :param data: a JSON-able request body, or ``None``.
    :param params: query parameters, as a dict of name to list of values or
        a list of pairs.
    :param log: a bound log to log the request to, instead of the
        dispatcher's.
    :param reauth_codes: response codes that mean the cached token must be
        dropped.
    :param success_pred: ``pred(response, body)`` deciding whether the
        request succeeded.
    :param bool json_response: whether to parse the response body as JSON.
    :param str region: the region whose endpoint to use, instead of the
        configured one.

    :raise APIError: when ``success_pred`` rejects the response.
    :return: Effect of a :obj:`ServiceRequest`.
    """
    return Effect(ServiceRequest(
        service_type=service_type, method=method, url=url, headers=headers,
        data=data, params=params, log=log, reauth_codes=reauth_codes,
        success_pred=success_pred, json_response=json_response,
        region=region))


@attr.s
class ConfiguredRegions(object):
    """
    The regions the tenant's catalog has endpoints for ``service_type`` in,
    sorted.  Only performable inside a :obj:`TenantScope`.
    """
    service_type = attr.ib()


@attr.s(init=False)
class TenantScope(object):
    """
    Performs ``effect`` with any :obj:`ServiceRequest` or
    :obj:`ConfiguredRegions` in it, however deeply nested, made on behalf of
    ``tenant_id``::

        TenantScope(nova.list_servers_in_detail(), '123456')
    """
    effect = attr.ib()
    tenant_id = attr.ib()

    def __init__(self, effect, tenant_id):
        self.effect = effect
        self.tenant_id = tenant_id


def add_bind_service(catalog, service_name, region, log, request_func):
    """
    Make request URLs relative to the public endpoint of ``service_name`` in
    ``region``, as listed in ``catalog``.
    """
    @wraps(request_func)
    def service_request(*args, **kwargs):
        endpoint = public_endpoint_url(catalog, service_name, region)
        return add_bind_root(endpoint, request_func)(*args, **kwargs)
    return service_request


def concretize_service_request(authenticator, log, service_configs,
                               tenant_id, service_request):
    """
    Turn a :obj:`ServiceRequest` into an Effect of authenticating and then
    making the actual :obj:`~cumulus.util.pure_http.Request`.

    :param ICachingAuthenticator authenticator: where tokens come from.
    :param BoundLog log: requests are logged here unless the
        :obj:`ServiceRequest` has its own log.
    :param dict service_configs: as returned by
        :func:`cumulus.constants.get_service_configs`.
    :param tenant_id: the tenant to authenticate as.
    """
    log = service_request.log if service_request.log is not None else log
    config = service_configs[service_request.service_type]
    region = service_request.region or config.get('region')

    def make_request(auth):
        token, catalog = auth
        request_ = add_headers(cumulus_headers(token), request)
        request_ = add_effect_on_response(
            Effect(InvalidateToken(authenticator, tenant_id)),
            service_request.reauth_codes, request_)
        request_ = add_json_request_data(request_)
        if 'url' in config:
            request_ = add_bind_root(config['url'], request_)
        else:
            request_ = add_bind_service(catalog, config.get('name'), region,
                                        log, request_)
        request_ = add_error_handling(service_request.success_pred, request_)
        if service_request.json_response:
            request_ = add_json_response(request_)
        return request_(service_request.method, service_request.url,
                        headers=service_request.headers,
                        data=service_request.data,
                        params=service_request.params,
                        log=log)

    return Effect(Authenticate(authenticator, tenant_id, log)).on(
        make_request)


def concretize_configured_regions(authenticator, log, service_configs,
                                  tenant_id, configured_regions):
    """
    Turn a :obj:`ConfiguredRegions` into an Effect of authenticating and
    reading the regions from the catalog.  A service configured with a fixed
    URL has none.
    """
    config = service_configs[configured_regions.service_type]
    if 'url' in config:
        return []
    return Effect(Authenticate(authenticator, tenant_id, log)).on(
        lambda auth: regions_for_service(auth[1], config['name']))


def perform_tenant_scope(authenticator, log, service_configs,
                         dispatcher, tenant_scope, box,
                         _concretize=concretize_service_request):
    """
    Performer for :obj:`TenantScope`, once the arguments before
    ``dispatcher`` are partially applied.  The scoped effect is performed
    with a dispatcher that also knows how to perform :obj:`ServiceRequest`
    and :obj:`ConfiguredRegions` for the scope's tenant.
    """
    tenant_id = tenant_scope.tenant_id

    @sync_performer
    def perform_service_request(dispatcher, intent):
        return _concretize(authenticator, log, service_configs, tenant_id,
                           intent)

    @sync_performer
    def perform_configured_regions(dispatcher, intent):
        return concretize_configured_regions(
            authenticator, log, service_configs, tenant_id, intent)

    scoped = ComposedDispatcher([
        TypeDispatcher({ServiceRequest: perform_service_request,
                        ConfiguredRegions: perform_configured_regions}),
        dispatcher])
    perform(scoped, tenant_scope.effect.on(box.succeed, box.fail))


def get_cloud_client_dispatcher(authenticator, log, service_configs):
    """
    :return: a dispatcher for :obj:`TenantScope`.
    """
    return TypeDispatcher({
        TenantScope: partial(perform_tenant_scope, authenticator, log,
                             service_configs),
    })


def log_success_response(msg_type, response_body_filter, log_as_json=True,
                         request_body=""):
    """
    Log a successful JSON response, e.g. to keep a record of servers created.

    :param str msg_type: the message logged.
    :param response_body_filter: returns the part of the parsed body to log,
        without changing the body it is given.
    :param bool log_as_json: log the filtered body as a JSON string rather
        than as it is.
    :param str request_body: the body of the request, if it should be logged
        too.
    :return: a callback for an Effect of ``(response, parsed body)`` that
        logs and then passes the result on.
    """
    def log_it(result):
        response, body = result
        logged_body = response_body_filter(body)
        if log_as_json:
            logged_body = json.dumps(logged_body, sort_keys=True)
        # Matches the id logging_treq logged the request with.
        request_id = response.request.headers.getRawHeaders(
            'x-cumulus-request-id', [None])[0]
        return msg_effect(
            msg_type,
            method=response.request.method,
            url=response.request.absoluteURI,
            request_body=request_body,
            response_body=logged_body,
            request_id=request_id).on(lambda _: result)

    return log_it


@attr.s(these={"message": attr.ib()}, init=False, hash=False)
class ExceptionWithMessage(Exception):
    """
    An exception that compares equal to others of its type with the same
    ``message``.
    """
    def __init__(self, message):
        super(ExceptionWithMessage, self).__init__(message)
        self.message = message


def match_errors(code_keys_exc_mapping, status_code, response_dict):
    """
    Raise the first matching exception from a table of
    ``(status code, keys, pattern or None, make_exception)``.  An entry
    matches when its code is the status code and there is a message at
    ``keys`` in the body that ``pattern`` (if any) matches.
    """
    for code, keys, pattern, make_exc in code_keys_exc_mapping:
        if code != status_code:
            continue
        message = get_in(keys, response_dict, None)
        if message is None:
            continue
        if pattern is None or pattern.match(message):
            raise make_exc(message)


def only_json_api_errors(f):
    """
    Turn ``f(code, json_body)`` into an error handler for :class:`APIError`
    whose body is JSON.  ``f`` may raise a more specific error; otherwise,
    and for bodies that are not JSON, the :class:`APIError` is raised again.
    """
    @wraps(f)
    def handle(api_error):
        try:
            body = json.loads(api_error.body)
        except (ValueError, TypeError):
            raise api_error
        f(api_error.code, body)
        raise api_error

    return catch(APIError, handle)


def return_on_not_found(value):
    """
    :return: an error handler resulting in ``value`` when the request failed
        with a 404, and raising any other error again.

    >>> eff.on(error=return_on_not_found([]))
    """
    def handle(api_error):
        if api_error.code != 404:
            raise api_error
        return value

    return catch(APIError, handle)
