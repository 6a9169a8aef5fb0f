"""
OpenStack Nova v1.1 client, using Effect.

Every function returns an Effect of :obj:`ServiceRequest` (plus parsing),
which has to be performed inside a :obj:`TenantScope`.  Known Nova faults
are raised as :class:`NovaRateLimitError` and :class:`NovaComputeFaultError`.
"""

from effect import Effect, parallel

from cumulus.cloud_client import (
    ConfiguredRegions,
    ExceptionWithMessage,
    log_success_response,
    match_errors,
    only_json_api_errors,
    return_on_not_found,
    service_request,
)
from cumulus.codec import ListOf
from cumulus.constants import ServiceType
from cumulus.models.nova import (
    Extension,
    Flavor,
    Image,
    Resource,
    Server,
    ServerCreated,
    codec,
)
from cumulus.util.http import append_segments
from cumulus.util.pure_http import has_code


class NovaRateLimitError(ExceptionWithMessage):
    """
    Exception to be raised when Nova has rate-limited requests.
    """


class NovaComputeFaultError(ExceptionWithMessage):
    """
    Exception to be raised when there is a service failure from Nova.
    """


_nova_standard_errors = [
    (413, ('overLimit', 'message'), None, NovaRateLimitError),
    (500, ('computeFault', 'message'), None, NovaComputeFaultError)
]


@only_json_api_errors
def _parse_nova_errors(code, json_body):
    match_errors(_nova_standard_errors, code, json_body)


def _nova_request(method, url, region=None, **kwargs):
    return service_request(ServiceType.NOVA, method, url, region=region,
                           **kwargs).on(error=_parse_nova_errors)


def _read(member, type_):
    """Read ``body[member]`` as ``type_`` from a (response, body) result."""
    return lambda result: codec.from_primitive(result[1][member], type_)


def _no_admin_pass(body):
    return {'server': {k: v for k, v in body['server'].items()
                       if k != 'adminPass'}}


# ----- Extensions -----

def list_extensions(region=None):
    """
    List the extensions the endpoint supports.

    :return: Effect of a list of :class:`Extension`; empty if the endpoint
        does not support ``/extensions``.
    """
    return (_nova_request('GET', 'extensions', region=region)
            .on(_read('extensions', ListOf(Extension)))
            .on(error=return_on_not_found([])))


def get_extension_by_alias(alias, region=None):
    """
    :return: Effect of an :class:`Extension`, or ``None``.
    """
    return (_nova_request('GET', append_segments('extensions', alias),
                          region=region)
            .on(_read('extension', Extension))
            .on(error=return_on_not_found(None)))


# ----- Servers -----

def list_servers(region=None):
    """
    :return: Effect of a list of :class:`Resource`.
    """
    return _nova_request('GET', 'servers', region=region).on(
        _read('servers', ListOf(Resource)))


def list_servers_in_detail(region=None):
    """
    :return: Effect of a list of :class:`Server`.
    """
    return _nova_request('GET', 'servers/detail', region=region).on(
        _read('servers', ListOf(Server)))


def get_server(server_id, region=None):
    """
    :return: Effect of a :class:`Server`, or ``None``.
    """
    return (_nova_request('GET', append_segments('servers', server_id),
                          region=region)
            .on(_read('server', Server))
            .on(error=return_on_not_found(None)))


def create_server(name, image_ref, flavor_ref, metadata=None, key_name=None,
                  security_groups=None, region=None):
    """
    Create a server.

    Succeed on 202, and only reauthenticate on 401 because 403s may be
    terminal errors.

    :param dict metadata: string metadata to set on the server.
    :param list security_groups: names of security groups to apply.
    :return: Effect of a :class:`ServerCreated`, whose ``admin_pass`` is
        never logged.
    """
    server = {'name': name, 'imageRef': image_ref, 'flavorRef': flavor_ref}
    if metadata:
        server['metadata'] = dict(metadata)
    if key_name is not None:
        server['key_name'] = key_name
    if security_groups:
        server['security_groups'] = [{'name': g} for g in security_groups]
    return (_nova_request('POST', 'servers', region=region,
                          data={'server': server},
                          success_pred=has_code(202),
                          reauth_codes=(401,))
            .on(log_success_response('request-create-server',
                                     _no_admin_pass))
            .on(_read('server', ServerCreated)))


def delete_server(server_id, region=None):
    """
    :return: Effect of ``True``, or ``False`` if there was no such server.
    """
    return (_nova_request('DELETE', append_segments('servers', server_id),
                          region=region,
                          success_pred=has_code(204),
                          json_response=False)
            .on(lambda _: True)
            .on(error=return_on_not_found(False)))


# ----- Flavors -----

def list_flavors_in_detail(region=None):
    """
    :return: Effect of a list of :class:`Flavor`.
    """
    return _nova_request('GET', 'flavors/detail', region=region).on(
        _read('flavors', ListOf(Flavor)))


def get_flavor(flavor_id, region=None):
    """
    :return: Effect of a :class:`Flavor`, or ``None``.
    """
    return (_nova_request('GET', append_segments('flavors', flavor_id),
                          region=region)
            .on(_read('flavor', Flavor))
            .on(error=return_on_not_found(None)))


# ----- Images -----

def list_images_in_detail(region=None):
    """
    :return: Effect of a list of :class:`Image`.
    """
    return _nova_request('GET', 'images/detail', region=region).on(
        _read('images', ListOf(Image)))


def get_image(image_id, region=None):
    """
    :return: Effect of an :class:`Image`, or ``None``.
    """
    return (_nova_request('GET', append_segments('images', image_id),
                          region=region)
            .on(_read('image', Image))
            .on(error=return_on_not_found(None)))


def configured_regions():
    """
    :return: Effect of the sorted regions Nova has endpoints in.
    """
    return Effect(ConfiguredRegions(ServiceType.NOVA))


def in_each_region(make_effect, regions):
    """
    Return effects of ``make_effect(region=...)`` for every region, e.g. to
    list servers everywhere::

        configured_regions().on(partial(in_each_region, list_servers))

    :return: Effect of a dict of region to result.
    """
    effs = [make_effect(region=region) for region in regions]
    return parallel(effs).on(lambda results: dict(zip(regions, results)))

