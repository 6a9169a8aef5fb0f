"""Effect dispatchers for cumulus."""

from effect import (
    ComposedDispatcher,
    TypeDispatcher,
    base_dispatcher)

from txeffect import make_twisted_dispatcher

from .auth import (
    Authenticate,
    InvalidateToken,
    perform_authenticate,
    perform_invalidate_token,
)
from .cloud_client import get_cloud_client_dispatcher
from .cloud_client.cloudstack import get_cloudstack_dispatcher
from .log.intents import get_log_dispatcher
from .util.pure_http import Request, perform_request


def get_simple_dispatcher(reactor):
    """
    Get an Effect dispatcher that can handle the basic effects in cumulus:
    authentication, HTTP requests and the Twisted-specific intents.  Note
    that this does NOT handle :obj:`ServiceRequest`, :obj:`TenantScope` or
    :obj:`CloudStackRequest`.

    Usually, :func:`get_full_dispatcher` should be used instead of this
    function.
    """
    return ComposedDispatcher([
        base_dispatcher,
        TypeDispatcher({
            Authenticate: perform_authenticate,
            InvalidateToken: perform_invalidate_token,
            Request: perform_request,
        }),
        make_twisted_dispatcher(reactor),
    ])


def get_full_dispatcher(reactor, authenticator, log, service_configs,
                        cloudstack_config=None):
    """
    Return a dispatcher that can perform all of cumulus' effects.

    :param cloudstack_config: the ``cloudstack`` config section; CloudStack
        requests cannot be performed without it.
    """
    dispatchers = [
        get_cloud_client_dispatcher(authenticator, log, service_configs)]
    if cloudstack_config is not None:
        dispatchers.append(get_cloudstack_dispatcher(cloudstack_config, log))
    dispatchers.extend([
        get_simple_dispatcher(reactor),
        get_log_dispatcher(log, {}),
    ])
    return ComposedDispatcher(dispatchers)
