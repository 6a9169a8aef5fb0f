"""Tests for cumulus.cloud_client"""

import json
import re
from functools import partial

from effect import (
    ComposedDispatcher,
    Constant,
    Effect,
    TypeDispatcher,
    base_dispatcher,
    sync_perform)
from effect.testing import perform_sequence

from twisted.trial.unittest import SynchronousTestCase

from cumulus.auth import Authenticate, InvalidateToken
from cumulus.cloud_client import (
    ConfiguredRegions,
    ExceptionWithMessage,
    ServiceRequest,
    TenantScope,
    add_bind_service,
    concretize_configured_regions,
    concretize_service_request,
    get_cloud_client_dispatcher,
    log_success_response,
    match_errors,
    only_json_api_errors,
    perform_tenant_scope,
    return_on_not_found,
    service_request)
from cumulus.constants import ServiceType
from cumulus.log.intents import Log
from cumulus.test.utils import (
    DummyException,
    StubResponse,
    resolve_effect,
    stub_json_response,
    stub_pure_response)
from cumulus.util.http import APIError, headers
from cumulus.util.pure_http import Request, has_code


fake_service_catalog = [
    {'type': 'compute',
     'name': 'cloudServersOpenStack',
     'endpoints': [
         {'region': 'DFW', 'publicURL': 'http://dfw.openstack/'},
         {'region': 'ORD', 'publicURL': 'http://ord.openstack/'}
     ]},
    {'type': 'compute',
     'name': 'cloudServers',
     'endpoints': [
         {'publicURL': 'http://servers.api/v1.0/000000'},
     ]},
]


def make_service_configs():
    """
    Generate service configs for performing service requests.
    """
    return {
        ServiceType.NOVA: {
            'name': 'cloudServersOpenStack',
            'region': 'DFW'},
        ServiceType.CLOUD_SERVERS: {
            'name': 'cloudServers',
            'region': None},
    }


def resolve_authenticate(eff, token='token'):
    """Resolve an Authenticate effect with test data."""
    return resolve_effect(eff, (token, fake_service_catalog))


def service_request_eqf(stub_response):
    """
    Return a function to be used as the performer of a ServiceRequest in
    :func:`perform_sequence`.
    """
    def resolve_service_request(service_request_intent):
        eff = concretize_service_request(
            authenticator=object(),
            log=object(),
            service_configs=make_service_configs(),
            tenant_id='000000',
            service_request=service_request_intent)

        # "authenticate"
        eff = resolve_authenticate(eff)
        # make request
        return resolve_effect(eff, stub_response)

    return resolve_service_request


def log_intent(msg_type, body, log_as_json=True, req_body=''):
    """
    Return a :obj:`Log` intent for the given mesasge type and body.
    """
    body = json.dumps(body, sort_keys=True) if log_as_json else body
    return Log(
        msg_type,
        {'url': "original/request/URL",
         'method': 'method',
         'request_id': "original-request-id",
         'response_body': body, 'request_body': req_body}
    )


def perform_one_request(intent, effect, response_code, response_body,
                        log_intent=None):
    """
    Perform ``effect``, answering ``intent`` with a response of the given
    code and body, and expecting ``log_intent`` to be logged after it if
    given.
    """
    seq = [(intent, service_request_eqf(
        stub_pure_response(response_body, response_code)))]
    if log_intent is not None:
        seq.append((log_intent, lambda _: None))
    return perform_sequence(seq, effect)


class BindServiceTests(SynchronousTestCase):
    """Tests for :func:`add_bind_service`."""

    def setUp(self):
        """Save some common parameters."""
        self.log = object()

    def request_func(self, method, url, headers=None, data=None):
        """
        A request func for testing that just returns its args.
        """
        return method, url, headers, data

    def test_add_bind_service(self):
        """
        URL paths passed to the request function are appended to the
        endpoint of the service in the specified region for the tenant.
        """
        request = add_bind_service(fake_service_catalog,
                                   'cloudServersOpenStack', 'DFW', self.log,
                                   self.request_func)
        self.assertEqual(
            request('get', 'foo'),
            ('get', 'http://dfw.openstack/foo', None, None))

    def test_other_region(self):
        """
        The endpoint of the given region is used.
        """
        request = add_bind_service(fake_service_catalog,
                                   'cloudServersOpenStack', 'ORD', self.log,
                                   self.request_func)
        self.assertEqual(
            request('get', 'servers/detail'),
            ('get', 'http://ord.openstack/servers/detail', None, None))

    def test_no_region(self):
        """
        Without a region, a service's only endpoint is used.
        """
        request = add_bind_service(fake_service_catalog,
                                   'cloudServers', None, self.log,
                                   self.request_func)
        self.assertEqual(
            request('get', 'flavors'),
            ('get', 'http://servers.api/v1.0/000000/flavors', None, None))


class ServiceRequestTests(SynchronousTestCase):
    """Tests for :func:`service_request`."""
    def test_defaults(self):
        """Default arguments are populated."""
        eff = service_request(ServiceType.NOVA, 'GET', 'foo')
        self.assertEqual(
            eff,
            Effect(
                ServiceRequest(
                    service_type=ServiceType.NOVA,
                    method='GET',
                    url='foo',
                    headers=None,
                    data=None,
                    params=None,
                    log=None,
                    reauth_codes=(401, 403),
                    success_pred=has_code(200),
                    json_response=True,
                    region=None
                )
            )
        )

    def test_result_pred(self):
        """
        A JSON service request results in parsed JSON, otherwise in bytes.
        """
        json_req = service_request(ServiceType.NOVA, 'GET', 'foo').intent
        raw_req = service_request(ServiceType.NOVA, 'GET', 'foo',
                                  json_response=False).intent
        self.assertTrue(json_req.intent_result_pred(
            stub_json_response({'a': 1})))
        self.assertFalse(json_req.intent_result_pred(
            stub_pure_response('{}')))
        self.assertTrue(raw_req.intent_result_pred(stub_pure_response('')))


class PerformServiceRequestTests(SynchronousTestCase):
    """Tests for :func:`concretize_service_request`."""
    def setUp(self):
        """Save some common parameters."""
        self.log = object()
        self.authenticator = object()
        self.service_configs = make_service_configs()
        eff = service_request(ServiceType.NOVA, 'GET', 'servers')
        self.svcreq = eff.intent

    def _concrete(self, svcreq):
        """
        Call :func:`concretize_service_request` with premade test objects.
        """
        return concretize_service_request(
            self.authenticator, self.log, self.service_configs,
            1, svcreq)

    def test_authenticates(self):
        """Auth is done before making the request."""
        eff = self._concrete(self.svcreq)
        expected_intent = Authenticate(self.authenticator, 1, self.log)
        self.assertEqual(eff.intent, expected_intent)
        next_eff = resolve_authenticate(eff)
        # The next effect in the chain is the requested HTTP request,
        # with appropriate auth headers
        self.assertEqual(
            next_eff.intent,
            Request(method='GET', url='http://dfw.openstack/servers',
                    headers=headers('token'), log=self.log))

    def test_request_log(self):
        """
        A log given in the service request is used instead of the default.
        """
        log = object()
        svcreq = service_request(ServiceType.NOVA, 'GET', 'servers',
                                 log=log).intent
        next_eff = resolve_authenticate(self._concrete(svcreq))
        self.assertIs(next_eff.intent.log, log)

    def test_region_override(self):
        """
        The region of the service request wins over the configured one.
        """
        svcreq = service_request(ServiceType.NOVA, 'GET', 'servers',
                                 region='ORD').intent
        next_eff = resolve_authenticate(self._concrete(svcreq))
        self.assertEqual(next_eff.intent.url, 'http://ord.openstack/servers')

    def test_no_region(self):
        """
        CloudServers is looked up in the catalog without a region.
        """
        svcreq = service_request(ServiceType.CLOUD_SERVERS, 'GET',
                                 'flavors').intent
        next_eff = resolve_authenticate(self._concrete(svcreq))
        self.assertEqual(next_eff.intent.url,
                         'http://servers.api/v1.0/000000/flavors')

    def test_invalidate_on_auth_error_code(self):
        """
        Upon authentication error, the auth cache is invalidated.
        """
        eff = self._concrete(self.svcreq)
        next_eff = resolve_authenticate(eff)
        # When the HTTP response is an auth error, the auth cache is
        # invalidated, by way of the next effect:
        invalidate_eff = resolve_effect(next_eff, stub_pure_response("", 401))
        expected_intent = InvalidateToken(self.authenticator, 1)
        self.assertEqual(invalidate_eff.intent, expected_intent)
        self.assertRaises(APIError, resolve_effect, invalidate_eff, None)

    def test_binds_url(self):
        """
        Binds a URL from service config if it has URL instead of binding
        URL from service catalog
        """
        self.service_configs[ServiceType.NOVA] = {'url': 'myurl'}
        eff = self._concrete(self.svcreq)
        next_eff = resolve_authenticate(eff)
        # URL in HTTP request is configured URL
        self.assertEqual(
            next_eff.intent,
            Request(method='GET', url='myurl/servers',
                    headers=headers('token'), log=self.log))

    def test_json(self):
        """
        JSON-serializable requests are dumped before being sent, and
        JSON-serialized responses are parsed.
        """
        input_json = {"a": 1}
        output_json = {"b": 2}
        svcreq = service_request(ServiceType.NOVA, "GET", "servers",
                                 data=input_json).intent
        eff = self._concrete(svcreq)

        # Input is serialized
        next_eff = resolve_authenticate(eff)
        self.assertEqual(next_eff.intent.data, json.dumps(input_json))

        # Output is parsed
        response, body = stub_pure_response(json.dumps(output_json))
        result = resolve_effect(next_eff, (response, body))
        self.assertEqual(result, (response, output_json))

    def test_no_json_response(self):
        """
        ``json_response`` can be set to :data:`False` to get the response
        object and the plaintext body of the response.
        """
        svcreq = service_request(ServiceType.NOVA, "GET", "servers",
                                 json_response=False).intent
        eff = self._concrete(svcreq)
        next_eff = resolve_authenticate(eff)
        stub_response = stub_pure_response("foo")
        result = resolve_effect(next_eff, stub_response)
        self.assertEqual(result, stub_response)

    def test_no_json_parsing_on_error(self):
        """
        Whatever ``json_response`` is set to, it is ignored, if the response
        does not pass the success predicate (because errors may just be
        HTML or otherwise not JSON parsable, even if the success response
        would have been).
        """
        svcreq = service_request(ServiceType.NOVA, "GET", "servers",
                                 json_response=True).intent
        eff = self._concrete(svcreq)
        next_eff = resolve_authenticate(eff)
        stub_response = stub_pure_response("THIS IS A FAILURE", 500)
        with self.assertRaises(APIError) as cm:
            resolve_effect(next_eff, stub_response)

        self.assertEqual(cm.exception.body, b"THIS IS A FAILURE")
        self.assertEqual(cm.exception.code, 500)

    def test_params(self):
        """Params are passed through."""
        svcreq = service_request(ServiceType.NOVA, "GET", "servers",
                                 params={"foo": ["bar"]}).intent
        eff = self._concrete(svcreq)
        pure_request_eff = resolve_authenticate(eff)
        self.assertEqual(pure_request_eff.intent.params, {"foo": ["bar"]})


class ConcretizeConfiguredRegionsTests(SynchronousTestCase):
    """Tests for :func:`concretize_configured_regions`."""

    def test_regions_from_catalog(self):
        """
        The regions are read from the catalog after authenticating.
        """
        authenticator, log = object(), object()
        eff = concretize_configured_regions(
            authenticator, log, make_service_configs(), 1,
            ConfiguredRegions(ServiceType.NOVA))
        self.assertEqual(eff.intent, Authenticate(authenticator, 1, log))
        self.assertEqual(resolve_authenticate(eff), ['DFW', 'ORD'])

    def test_fixed_url(self):
        """
        A service with a fixed URL has no regions, and needs no
        authentication to say so.
        """
        configs = make_service_configs()
        configs[ServiceType.NOVA] = {'url': 'http://nova/'}
        self.assertEqual(
            concretize_configured_regions(
                object(), object(), configs, 1,
                ConfiguredRegions(ServiceType.NOVA)),
            [])


class GetCloudClientDispatcherTests(SynchronousTestCase):
    """Tests for :func:`get_cloud_client_dispatcher`."""

    def test_performs_tenant_scope(self):
        """
        The dispatcher performs :obj:`TenantScope` intents.
        """
        dispatcher = ComposedDispatcher([
            get_cloud_client_dispatcher(object(), object(),
                                        make_service_configs()),
            base_dispatcher])
        tscope = TenantScope(Effect(Constant('foo')), 1)
        self.assertEqual(sync_perform(dispatcher, Effect(tscope)), 'foo')


class PerformTenantScopeTests(SynchronousTestCase):
    """Tests for :func:`perform_tenant_scope`."""

    def setUp(self):
        """Save some common parameters."""
        self.log = object()
        self.authenticator = object()
        self.service_configs = make_service_configs()

        def concretize(au, lo, smap, tenid, srvreq):
            return Effect(Constant(('concretized', au, lo, smap, tenid,
                                    srvreq)))

        self.dispatcher = ComposedDispatcher([
            TypeDispatcher({
                TenantScope: partial(perform_tenant_scope, self.authenticator,
                                     self.log, self.service_configs,
                                     _concretize=concretize)}),
            base_dispatcher])

    def test_perform_boring(self):
        """Other effects within a TenantScope are performed as usual."""
        tscope = TenantScope(Effect(Constant('foo')), 1)
        self.assertEqual(sync_perform(self.dispatcher, Effect(tscope)), 'foo')

    def test_perform_service_request(self):
        """
        Performing a :obj:`TenantScope` when it contains a
        :obj:`ServiceRequest` concretizes the :obj:`ServiceRequest` into a
        :obj:`Request` as per :func:`concretize_service_request`.
        """
        ereq = service_request(ServiceType.NOVA, 'GET', 'servers')
        tscope = TenantScope(ereq, 1)
        self.assertEqual(
            sync_perform(self.dispatcher, Effect(tscope)),
            ('concretized', self.authenticator, self.log, self.service_configs,
             1, ereq.intent))

    def test_perform_srvreq_nested(self):
        """
        Concretizing of :obj:`ServiceRequest` effects happens even when they
        are not directly passed as the TenantScope's toplevel Effect, but also
        when they are returned from callbacks down the line.
        """
        ereq = service_request(ServiceType.NOVA, 'GET', 'servers')
        eff = Effect(Constant("foo")).on(lambda r: ereq)
        tscope = TenantScope(eff, 1)
        self.assertEqual(
            sync_perform(self.dispatcher, Effect(tscope)),
            ('concretized', self.authenticator, self.log, self.service_configs,
             1, ereq.intent))

    def test_perform_configured_regions(self):
        """
        :obj:`ConfiguredRegions` is performed within the tenant scope too.
        """
        self.service_configs[ServiceType.NOVA] = {'url': 'http://nova/'}
        tscope = TenantScope(Effect(ConfiguredRegions(ServiceType.NOVA)), 1)
        self.assertEqual(sync_perform(self.dispatcher, Effect(tscope)), [])

    def test_errors_propagate(self):
        """
        An error in the scoped effect fails the :obj:`TenantScope`.
        """
        def fail(_):
            raise DummyException('bad')

        tscope = TenantScope(Effect(Constant('foo')).on(fail), 1)
        self.assertRaises(DummyException, sync_perform, self.dispatcher,
                          Effect(tscope))


class LogSuccessResponseTests(SynchronousTestCase):
    """Tests for :func:`log_success_response`."""

    def test_logs_filtered_body(self):
        """
        The filtered body is logged as JSON along with the request details,
        and the result is passed through untouched.
        """
        result = stub_json_response({'a': 1, 'secret': 2})
        eff = log_success_response(
            'request-thing', lambda body: {'a': body['a']})(result)
        self.assertEqual(
            perform_sequence([(log_intent('request-thing', {'a': 1}),
                               lambda _: None)], eff),
            result)

    def test_logs_raw_body(self):
        """
        With ``log_as_json`` false, the filtered body is logged as-is.
        """
        result = stub_json_response({'a': 1})
        eff = log_success_response('request-thing', lambda body: body,
                                   log_as_json=False)(result)
        self.assertEqual(
            perform_sequence([(log_intent('request-thing', {'a': 1},
                                          log_as_json=False),
                               lambda _: None)], eff),
            result)


class MatchErrorsTests(SynchronousTestCase):
    """Tests for :func:`match_errors` and :func:`only_json_api_errors`."""

    class _OverLimit(ExceptionWithMessage):
        pass

    mapping = [
        (413, ('overLimit', 'message'), re.compile('^over', re.I),
         _OverLimit),
    ]

    def test_matches(self):
        """
        The exception of the matching code, keys and pattern is raised.
        """
        with self.assertRaises(self._OverLimit) as cm:
            match_errors(self.mapping, 413,
                         {'overLimit': {'message': 'OVER the limit'}})
        self.assertEqual(cm.exception, self._OverLimit('OVER the limit'))
        self.assertEqual(str(cm.exception), 'OVER the limit')

    def test_no_match(self):
        """
        Nothing is raised if the code, the keys or the pattern differ.
        """
        match_errors(self.mapping, 500,
                     {'overLimit': {'message': 'over the limit'}})
        match_errors(self.mapping, 413, {'other': {'message': 'over'}})
        match_errors(self.mapping, 413,
                     {'overLimit': {'message': 'rate limited'}})

    def test_only_json_api_errors(self):
        """
        The decorated function gets the code and parsed body of an
        :class:`APIError`, which is re-raised if the function does not raise
        something else.
        """
        calls = []
        handler = only_json_api_errors(
            lambda code, body: calls.append((code, body)))
        error = APIError(400, b'{"a": 1}')
        self.assertRaises(APIError, handler, error)
        self.assertEqual(calls, [(400, {'a': 1})])

    def test_only_json_api_errors_not_json(self):
        """
        Bodies that are not JSON are not passed to the decorated function.
        """
        calls = []
        handler = only_json_api_errors(
            lambda code, body: calls.append((code, body)))
        self.assertRaises(APIError, handler, APIError(500, b'<html>'))
        self.assertEqual(calls, [])

    def test_only_json_api_errors_other_errors(self):
        """
        Errors other than :class:`APIError` pass straight through.
        """
        handler = only_json_api_errors(lambda code, body: None)
        self.assertRaises(DummyException, handler, DummyException())


class ReturnOnNotFoundTests(SynchronousTestCase):
    """Tests for :func:`return_on_not_found`."""

    def test_not_found(self):
        """A 404 results in the given value."""
        self.assertEqual(return_on_not_found([])(APIError(404, b'')), [])

    def test_other_errors(self):
        """Other errors are re-raised."""
        handler = return_on_not_found(None)
        self.assertRaises(APIError, handler, APIError(500, b''))
        self.assertRaises(DummyException, handler, DummyException())


class StubResponseTests(SynchronousTestCase):
    """Sanity checks of the stub responses used throughout these tests."""

    def test_bytes_body(self):
        """Stubbed pure responses always carry bytes."""
        self.assertEqual(stub_pure_response({'a': 1}),
                         (StubResponse(200, {}), b'{"a": 1}'))
