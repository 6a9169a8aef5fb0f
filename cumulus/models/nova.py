"""
OpenStack Nova v1.1 domain objects.
"""

from datetime import datetime

import attr

from cumulus.codec import ListOf, MapOf, Properties, json_attr, make_codec
from cumulus.codec.adapters import Iso8601DateAdapter
from cumulus.models import FallbackEnum


codec = make_codec(Iso8601DateAdapter())


@attr.s(frozen=True)
class Link(object):
    """
    A link to a resource, e.g. the ``self`` and ``bookmark`` links every
    resource carries, or a ``describedby`` link to an extension's docs.
    """
    rel = json_attr(default=None)
    type = json_attr(default=None)
    href = json_attr(default=None)


@attr.s(frozen=True)
class Extension(object):
    """
    An API extension advertised by ``/extensions``.
    """
    alias = json_attr()
    name = json_attr(default=None)
    namespace = json_attr(default=None)
    updated = json_attr(type=datetime, default=None)
    description = json_attr(default=None)
    links = json_attr(type=ListOf(Link), default=())


@attr.s(frozen=True)
class Resource(object):
    """
    The id, name and links of a server, image or flavor, as listed by the
    non-detailed collection calls and embedded in a :class:`Server`.
    """
    id = json_attr()
    name = json_attr(default=None)
    links = json_attr(type=ListOf(Link), default=())


@attr.s(frozen=True)
class Flavor(object):
    """
    A hardware configuration.  ``ram`` is in megabytes, ``disk`` in gigabytes.
    """
    id = json_attr()
    name = json_attr(default=None)
    ram = json_attr(type=int, default=None)
    disk = json_attr(type=int, default=None)
    vcpus = json_attr(type=int, default=None)
    links = json_attr(type=ListOf(Link), default=())


@attr.s(frozen=True)
class Image(object):
    """
    A bootable image.
    """
    id = json_attr()
    name = json_attr(default=None)
    status = json_attr(default=None)
    created = json_attr(type=datetime, default=None)
    updated = json_attr(type=datetime, default=None)
    progress = json_attr(type=int, default=None)
    metadata = json_attr(type=Properties, default=None)
    links = json_attr(type=ListOf(Link), default=())


class ServerStatus(FallbackEnum):
    """
    The states a server goes through.
    """
    ACTIVE = 'ACTIVE'
    BUILD = 'BUILD'
    REBUILD = 'REBUILD'
    SUSPENDED = 'SUSPENDED'
    RESIZE = 'RESIZE'
    VERIFY_RESIZE = 'VERIFY_RESIZE'
    PASSWORD = 'PASSWORD'
    RESCUE = 'RESCUE'
    REBOOT = 'REBOOT'
    HARD_REBOOT = 'HARD_REBOOT'
    DELETE_IP = 'DELETE_IP'
    DELETED = 'DELETED'
    ERROR = 'ERROR'
    UNKNOWN = 'UNKNOWN'
    UNRECOGNIZED = 'UNRECOGNIZED'


@attr.s(frozen=True)
class Address(object):
    """One IP address of a server."""
    addr = json_attr()
    version = json_attr(type=int, default=4)


@attr.s(frozen=True)
class Server(object):
    """
    A server, as returned by ``/servers/detail`` or ``/servers/<id>``.

    ``addresses`` maps network names such as ``public`` and ``private`` to
    lists of :class:`Address`.
    """
    id = json_attr()
    name = json_attr(default=None)
    tenant_id = json_attr(default=None)
    user_id = json_attr(default=None)
    status = json_attr(type=ServerStatus, default=None)
    created = json_attr(type=datetime, default=None)
    updated = json_attr(type=datetime, default=None)
    host_id = json_attr('hostId', default=None)
    access_ipv4 = json_attr('accessIPv4', default=None)
    access_ipv6 = json_attr('accessIPv6', default=None)
    progress = json_attr(type=int, default=None)
    key_name = json_attr(default=None)
    image = json_attr(type=Resource, default=None)
    flavor = json_attr(type=Resource, default=None)
    metadata = json_attr(type=Properties, default=None)
    addresses = json_attr(type=MapOf(ListOf(Address)), default=None)
    links = json_attr(type=ListOf(Link), default=())


@attr.s(frozen=True, repr=False)
class ServerCreated(object):
    """
    The response to creating a server.  The admin password is only ever
    returned here, so it is kept out of ``repr``.
    """
    id = json_attr()
    name = json_attr(default=None)
    admin_pass = json_attr('adminPass', default=None)
    links = json_attr(type=ListOf(Link), default=())

    def __repr__(self):
        return 'ServerCreated(id={0!r}, name={1!r})'.format(self.id, self.name)
