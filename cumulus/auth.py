"""
Functions for interacting with the Keystone v2.0 authentication API.

Both OpenStack Nova and Rackspace CloudServers accept a token obtained from a
Keystone ``/tokens`` call, and locate their endpoints in the service catalog
that comes back with it.  The workflow is:

#. POST the configured credentials (and optionally a tenant name) to
   ``<identity url>/tokens``.
#. Keep the token and the service catalog from the response, cached per
   tenant for a configurable time.
#. Look up the public URL of the service being called in the catalog, by
   service name and (optionally) region.
#. Drop the cached token if the service rejects it, so the next request
   authenticates again.
"""

import json

import attr

from effect import sync_performer

from twisted.internet.defer import Deferred, succeed

from txeffect import deferred_performer

from zope.interface import Interface, implementer

from cumulus.log import log as default_log
from cumulus.util import logging_treq as treq
from cumulus.util.http import append_segments, check_success, headers


class IAuthenticator(Interface):
    """
    Authenticators know how to authenticate tenants.
    """
    def authenticate_tenant(tenant_id, log=None):
        """
        :param tenant_id: A keystone tenant to authenticate as, or
            :data:`None` for the credentials' default tenant.

        :returns: Deferred of a 2-tuple of auth token and service catalog.
        """


class ICachingAuthenticator(IAuthenticator):
    """
    Caching authenticators can authenticate tenants and can have their cache
    invalidated on a tenant-by-tenant basis.
    """
    def invalidate(tenant_id):
        """
        Invalidate the cache for a particular tenant.

        After this is called, a call to authenticate_tenant must return a fresh
        token.

        :param tenant_id: A keystone tenant ID

        :returns: :data:`None`
        """


@attr.s
class PasswordCredentials(object):
    """
    A username and password.
    """
    username = attr.ib()
    password = attr.ib(repr=False)

    def auth_body(self):
        """Return the credentials part of a ``/tokens`` request body."""
        return {"passwordCredentials": {"username": self.username,
                                        "password": self.password}}


@attr.s
class ApiAccessKeyCredentials(object):
    """
    An access key and secret key pair, as issued by HP Cloud style Keystones.
    """
    access_key = attr.ib()
    secret_key = attr.ib(repr=False)

    def auth_body(self):
        """Return the credentials part of a ``/tokens`` request body."""
        return {"apiAccessKeyCredentials": {"accessKey": self.access_key,
                                            "secretKey": self.secret_key}}


@attr.s
class RackspaceApiKeyCredentials(object):
    """
    A Rackspace username and API key.
    """
    username = attr.ib()
    api_key = attr.ib(repr=False)

    def auth_body(self):
        """Return the credentials part of a ``/tokens`` request body."""
        return {"RAX-KSKEY:apiKeyCredentials": {"username": self.username,
                                                "apiKey": self.api_key}}


def credentials_from_config(config):
    """
    Build credentials from the ``identity.credentials`` config section.

    :param dict config: one of ``{"username", "password"}``,
        ``{"access_key", "secret_key"}`` or ``{"username", "api_key"}``.
    :raise ValueError: if the section is none of those.
    """
    if 'password' in config:
        return PasswordCredentials(config['username'], config['password'])
    if 'secret_key' in config:
        return ApiAccessKeyCredentials(config['access_key'],
                                       config['secret_key'])
    if 'api_key' in config:
        return RackspaceApiKeyCredentials(config['username'],
                                          config['api_key'])
    raise ValueError(
        'Unrecognized credentials: {0}'.format(sorted(config.keys())))


def authenticate_user(auth_endpoint, credentials, tenant_name=None, log=None):
    """
    Authenticate to a Identity auth endpoint.

    :param str auth_endpoint: Identity API endpoint URL.
    :param credentials: One of :class:`PasswordCredentials`,
        :class:`ApiAccessKeyCredentials` or
        :class:`RackspaceApiKeyCredentials`.
    :param str tenant_name: The tenant to scope the token to, if any.

    :return: Deferred of the decoded JSON response as dict.
    """
    auth = credentials.auth_body()
    if tenant_name is not None:
        auth["tenantName"] = tenant_name
    d = treq.post(
        append_segments(auth_endpoint, 'tokens'),
        json.dumps({"auth": auth}),
        headers=headers(),
        log=log)
    d.addCallback(check_success, [200, 203])
    d.addCallback(treq.json_content)
    return d


def extract_token(auth_response):
    """
    Extract an auth token from an authentication response.

    :param dict auth_response: A dictionary containing the decoded response
        from the authentication API.
    :rtype: str
    """
    return auth_response['access']['token']['id']


def extract_service_catalog(auth_response):
    """
    Extract the service catalog from an authentication response.

    :param dict auth_response: A dictionary containing the decoded response
        from the authentication API.
    :return: list of services; an empty list if there is none.
    """
    return auth_response['access'].get('serviceCatalog', [])


class NoSuchEndpointError(LookupError):
    """
    Raised when the service catalog has no endpoint for a service and region.
    """
    def __init__(self, service_name, region):
        super(NoSuchEndpointError, self).__init__(
            'No endpoint for service {0!r} in region {1!r}'.format(
                service_name, region))
        self.service_name = service_name
        self.region = region


def endpoints(service_catalog, service_name, region=None):
    """
    Search a service catalog for matching endpoints.

    :param list service_catalog: List of services.
    :param str service_name: Name of service.  Example: 'cloudServersOpenStack'
    :param str region: Region of service.  Example: 'ORD'.  :data:`None`
        matches every endpoint of the service, regional or not.

    :return: Iterable of endpoints.
    """
    for service in service_catalog:
        if service_name != service['name']:
            continue

        for endpoint in service['endpoints']:
            if region is not None and region != endpoint.get('region'):
                continue

            yield endpoint


def public_endpoint_url(service_catalog, service_name, region=None):
    """
    Return the first publicURL for a given service in a given region.

    :param list service_catalog: List of services.
    :param str service_name: Name of service.  Example: 'cloudServersOpenStack'
    :param str region: Region of service, or :data:`None` for any.

    :raise NoSuchEndpointError: if there is no matching endpoint.
    :return: URL as a string.
    """
    for endpoint in endpoints(service_catalog, service_name, region):
        return endpoint['publicURL']
    raise NoSuchEndpointError(service_name, region)


def regions_for_service(service_catalog, service_name):
    """
    Return the regions a service has endpoints in.

    :param list service_catalog: List of services.
    :param str service_name: Name of service.

    :return: sorted list of region names, without duplicates.
    """
    return sorted(
        {endpoint['region']
         for endpoint in endpoints(service_catalog, service_name)
         if endpoint.get('region')})


@implementer(IAuthenticator)
class KeystoneAuthenticator(object):
    """
    An authenticator that posts a fixed set of credentials to Keystone.

    :param str url: Identity API endpoint URL.
    :param credentials: see :func:`authenticate_user`.
    """
    def __init__(self, url, credentials):
        self._url = url
        self._credentials = credentials

    def authenticate_tenant(self, tenant_id, log=None):
        """
        see :meth:`IAuthenticator.authenticate_tenant`
        """
        d = authenticate_user(self._url, self._credentials,
                              tenant_name=tenant_id, log=log)
        d.addCallback(lambda response: (extract_token(response),
                                        extract_service_catalog(response)))
        return d


@implementer(ICachingAuthenticator)
class CachingAuthenticator(object):
    """
    An authenticator which caches the result of the provided authenticator
    based on the tenant_id.

    Concurrent requests for a tenant that is already being authenticated wait
    for that one authentication rather than starting their own.

    :param IReactorTime reactor: An IReactorTime provider used for enforcing
        the cache TTL.
    :param IAuthenticator authenticator:
    :param int ttl: An integer indicating the TTL of a cache entry in seconds.
    """
    def __init__(self, reactor, authenticator, ttl):
        self._reactor = reactor
        self._authenticator = authenticator
        self._ttl = ttl

        self._waiters = {}
        self._cache = {}
        self._log = self._bind_log(default_log)

    def _bind_log(self, log, **kwargs):
        return log.bind(system='cumulus.auth.cache',
                        authenticator=self._authenticator,
                        cache_ttl=self._ttl,
                        **kwargs)

    def authenticate_tenant(self, tenant_id, log=None):
        """
        see :meth:`IAuthenticator.authenticate_tenant`
        """
        if log is None:
            log = self._log.bind(tenant_id=tenant_id)
        else:
            log = self._bind_log(log, tenant_id=tenant_id)

        if tenant_id in self._cache:
            (created, data) = self._cache[tenant_id]
            now = self._reactor.seconds()

            if now - created <= self._ttl:
                log.msg('cumulus.auth.cache.hit', age=now - created)
                return succeed(data)

            log.msg('cumulus.auth.cache.expired', age=now - created)

        if tenant_id in self._waiters:
            d = Deferred()
            self._waiters[tenant_id].append(d)
            log.msg('cumulus.auth.cache.waiting',
                    waiters=len(self._waiters[tenant_id]))
            return d

        def when_authenticated(result):
            log.msg('cumulus.auth.cache.populate')
            self._cache[tenant_id] = (self._reactor.seconds(), result)

            for waiter in self._waiters.pop(tenant_id, []):
                waiter.callback(result)

            return result

        def when_auth_fails(failure):
            for waiter in self._waiters.pop(tenant_id, []):
                waiter.errback(failure)

            return failure

        log.msg('cumulus.auth.cache.miss')
        self._waiters[tenant_id] = []
        d = self._authenticator.authenticate_tenant(tenant_id, log=log)
        d.addCallbacks(when_authenticated, when_auth_fails)

        return d

    def invalidate(self, tenant_id):
        """Remove a tenant's token from the cache."""
        self._cache.pop(tenant_id, None)


@attr.s
class Authenticate(object):
    """
    An intent to authenticate as a tenant. Results in a 2-tuple of auth token
    and service catalog.
    """
    authenticator = attr.ib()
    tenant_id = attr.ib()
    log = attr.ib(default=None)

    def intent_result_pred(self, result):
        """Check that the result looks like (token, catalog)."""
        return (isinstance(result, tuple) and len(result) == 2
                and isinstance(result[1], list))


@deferred_performer
def perform_authenticate(dispatcher, intent):
    """Perform an :obj:`Authenticate` intent."""
    return intent.authenticator.authenticate_tenant(intent.tenant_id,
                                                    log=intent.log)


@attr.s
class InvalidateToken(object):
    """
    An intent to drop a tenant's cached token.
    """
    authenticator = attr.ib()
    tenant_id = attr.ib()


@sync_performer
def perform_invalidate_token(dispatcher, intent):
    """Perform an :obj:`InvalidateToken` intent.  Results in ``None``."""
    intent.authenticator.invalidate(intent.tenant_id)


def generate_authenticator(reactor, config):
    """
    Generate authenticator based on settings in config

    :param reactor: Twisted reactor
    :param dict config: Identity specific config, as validated by
        :data:`cumulus.json_schema.config.identity`.
    """
    return CachingAuthenticator(
        reactor,
        KeystoneAuthenticator(config['url'],
                              credentials_from_config(config['credentials'])),
        config.get('cache_ttl', 300))
