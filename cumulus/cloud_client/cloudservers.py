"""
Rackspace CloudServers v1.0 client, using Effect.

The v1.0 API is not regional, so none of these take a region.  GETs may be
answered from a cache, with a 203, which counts as success.
"""

import base64

from cumulus.cloud_client import return_on_not_found, service_request
from cumulus.codec import ListOf
from cumulus.constants import ServiceType
from cumulus.models.cloudservers import Flavor, Image, Server, codec
from cumulus.util.http import append_segments
from cumulus.util.pure_http import has_code


_GET_CODES = has_code(200, 203)


def _get(url):
    return service_request(ServiceType.CLOUD_SERVERS, 'GET', url,
                           success_pred=_GET_CODES)


def _read(member, type_):
    return lambda result: codec.from_primitive(result[1][member], type_)


def _collection(name, detail):
    return '{0}/detail'.format(name) if detail else name


def list_servers(detail=False):
    """
    :param bool detail: whether to get full details or just ids and names.
    :return: Effect of a list of :class:`Server`.
    """
    return _get(_collection('servers', detail)).on(
        _read('servers', ListOf(Server)))


def get_server(server_id):
    """
    :return: Effect of a :class:`Server`, or ``None``.
    """
    return (_get(append_segments('servers', server_id))
            .on(_read('server', Server))
            .on(error=return_on_not_found(None)))


def create_server(name, image_id, flavor_id, metadata=None, personality=None):
    """
    Create a server.

    :param dict metadata: string metadata to set on the server.
    :param dict personality: files to inject, as a mapping of path to
        contents (``bytes``, or ``str`` encoded as UTF-8).
    :return: Effect of the new :class:`Server`, with ``admin_pass`` set.
    """
    server = {'name': name, 'imageId': image_id, 'flavorId': flavor_id}
    if metadata:
        server['metadata'] = dict(metadata)
    if personality:
        server['personality'] = [
            {'path': path, 'contents': _b64(contents)}
            for path, contents in sorted(personality.items())]
    return service_request(
        ServiceType.CLOUD_SERVERS, 'POST', 'servers',
        data={'server': server},
        success_pred=has_code(202),
        reauth_codes=(401,)).on(_read('server', Server))


def _b64(contents):
    if isinstance(contents, str):
        contents = contents.encode('utf-8')
    return base64.b64encode(contents).decode('ascii')


def delete_server(server_id):
    """
    :return: Effect of ``True``, or ``False`` if there was no such server.
    """
    return (service_request(ServiceType.CLOUD_SERVERS, 'DELETE',
                            append_segments('servers', server_id),
                            success_pred=has_code(202),
                            json_response=False)
            .on(lambda _: True)
            .on(error=return_on_not_found(False)))


def reboot_server(server_id, hard=False):
    """
    Reboot a server, by power cycling it if ``hard``.

    :return: Effect of ``None``.
    """
    return service_request(
        ServiceType.CLOUD_SERVERS, 'POST',
        append_segments('servers', server_id, 'action'),
        data={'reboot': {'type': 'HARD' if hard else 'SOFT'}},
        success_pred=has_code(202),
        json_response=False).on(lambda _: None)


def list_flavors(detail=False):
    """
    :return: Effect of a list of :class:`Flavor`.
    """
    return _get(_collection('flavors', detail)).on(
        _read('flavors', ListOf(Flavor)))


def get_flavor(flavor_id):
    """
    :return: Effect of a :class:`Flavor`, or ``None``.
    """
    return (_get(append_segments('flavors', flavor_id))
            .on(_read('flavor', Flavor))
            .on(error=return_on_not_found(None)))


def list_images(detail=False):
    """
    :return: Effect of a list of :class:`Image`.
    """
    return _get(_collection('images', detail)).on(
        _read('images', ListOf(Image)))


def get_image(image_id):
    """
    :return: Effect of an :class:`Image`, or ``None``.
    """
    return (_get(append_segments('images', image_id))
            .on(_read('image', Image))
            .on(error=return_on_not_found(None)))
