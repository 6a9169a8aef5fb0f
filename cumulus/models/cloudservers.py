"""
Rackspace CloudServers v1.0 domain objects.
"""

from datetime import datetime

import attr

from cumulus.codec import ListOf, Properties, json_attr, make_codec
from cumulus.codec.adapters import Iso8601DateAdapter
from cumulus.models import FallbackEnum


codec = make_codec(Iso8601DateAdapter())


class ServerStatus(FallbackEnum):
    """
    The states a v1.0 server goes through.
    """
    ACTIVE = 'ACTIVE'
    BUILD = 'BUILD'
    REBUILD = 'REBUILD'
    SUSPENDED = 'SUSPENDED'
    QUEUE_RESIZE = 'QUEUE_RESIZE'
    PREP_RESIZE = 'PREP_RESIZE'
    RESIZE = 'RESIZE'
    VERIFY_RESIZE = 'VERIFY_RESIZE'
    QUEUE_MOVE = 'QUEUE_MOVE'
    PREP_MOVE = 'PREP_MOVE'
    MOVE = 'MOVE'
    VERIFY_MOVE = 'VERIFY_MOVE'
    RESCUE = 'RESCUE'
    ERROR = 'ERROR'
    RESTORING = 'RESTORING'
    PASSWORD = 'PASSWORD'
    SHARE_IP = 'SHARE_IP'
    SHARE_IP_NO_CONFIG = 'SHARE_IP_NO_CONFIG'
    DELETE_IP = 'DELETE_IP'
    REBOOT = 'REBOOT'
    HARD_REBOOT = 'HARD_REBOOT'
    DELETED = 'DELETED'
    UNKNOWN = 'UNKNOWN'
    UNRECOGNIZED = 'UNRECOGNIZED'


class ImageStatus(FallbackEnum):
    """
    The states an image goes through.
    """
    ACTIVE = 'ACTIVE'
    SAVING = 'SAVING'
    PREPARING = 'PREPARING'
    QUEUED = 'QUEUED'
    FAILED = 'FAILED'
    UNKNOWN = 'UNKNOWN'
    UNRECOGNIZED = 'UNRECOGNIZED'


@attr.s(frozen=True)
class Addresses(object):
    """The public and private IPs of a server."""
    public = json_attr(type=ListOf(str), default=())
    private = json_attr(type=ListOf(str), default=())


@attr.s(frozen=True, repr=False)
class Server(object):
    """
    A server.  ``admin_pass`` is only set in the response to a create.
    """
    id = json_attr()
    name = json_attr(default=None)
    image_id = json_attr('imageId', default=None)
    flavor_id = json_attr('flavorId', default=None)
    host_id = json_attr('hostId', default=None)
    status = json_attr(type=ServerStatus, default=None)
    progress = json_attr(type=int, default=None)
    addresses = json_attr(type=Addresses, default=None)
    metadata = json_attr(type=Properties, default=None)
    admin_pass = json_attr('adminPass', default=None)

    def __repr__(self):
        return 'Server(id={0!r}, name={1!r}, status={2!r})'.format(
            self.id, self.name, self.status)


@attr.s(frozen=True)
class Flavor(object):
    """
    A hardware configuration.  ``ram`` is in megabytes, ``disk`` in gigabytes.
    """
    id = json_attr()
    name = json_attr(default=None)
    ram = json_attr(type=int, default=None)
    disk = json_attr(type=int, default=None)


@attr.s(frozen=True)
class Image(object):
    """
    A bootable image; ``server_id`` is set for images taken from a server.
    """
    id = json_attr()
    name = json_attr(default=None)
    status = json_attr(type=ImageStatus, default=None)
    created = json_attr(type=datetime, default=None)
    updated = json_attr(type=datetime, default=None)
    progress = json_attr(type=int, default=None)
    server_id = json_attr('serverId', default=None)
