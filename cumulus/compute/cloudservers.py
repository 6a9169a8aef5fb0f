"""
Portable compute operations over Rackspace CloudServers v1.0.
"""

from uuid import uuid4

from effect import Effect, Func

from cumulus.cloud_client import cloudservers
from cumulus.compute.model import (
    Hardware,
    ImageSpec,
    NodeMetadata,
    NodeState,
    OperatingSystem,
    OsFamily,
)
from cumulus.compute.template import TemplateBuilder
from cumulus.models.cloudservers import ServerStatus


_PENDING = {
    ServerStatus.BUILD, ServerStatus.REBUILD, ServerStatus.QUEUE_RESIZE,
    ServerStatus.PREP_RESIZE, ServerStatus.RESIZE, ServerStatus.VERIFY_RESIZE,
    ServerStatus.QUEUE_MOVE, ServerStatus.PREP_MOVE, ServerStatus.MOVE,
    ServerStatus.VERIFY_MOVE, ServerStatus.RESCUE, ServerStatus.RESTORING,
    ServerStatus.PASSWORD, ServerStatus.SHARE_IP,
    ServerStatus.SHARE_IP_NO_CONFIG, ServerStatus.DELETE_IP,
    ServerStatus.REBOOT, ServerStatus.HARD_REBOOT,
}

_STATES = {
    ServerStatus.ACTIVE: NodeState.RUNNING,
    ServerStatus.SUSPENDED: NodeState.SUSPENDED,
    ServerStatus.DELETED: NodeState.TERMINATED,
    ServerStatus.ERROR: NodeState.ERROR,
}


def node_state(status):
    """
    :param ServerStatus status: a CloudServers status.
    :return: the corresponding :class:`NodeState`.
    """
    if status in _PENDING:
        return NodeState.PENDING
    return _STATES.get(status, NodeState.UNRECOGNIZED)


def flavor_to_hardware(flavor):
    """Convert a :class:`cumulus.models.cloudservers.Flavor`."""
    return Hardware(id=flavor.id, name=flavor.name, ram=flavor.ram,
                    disk=flavor.disk)


def image_to_spec(image):
    """Convert a :class:`cumulus.models.cloudservers.Image`."""
    return ImageSpec(
        id=image.id, name=image.name,
        os=OperatingSystem(family=OsFamily.from_name(image.name),
                           description=image.name))


def group_from_name(name):
    """
    Recover the group a node was started in from its ``<group>-<suffix>``
    name.

    :return: the group, or ``None`` if the name has no suffix.
    """
    if name and '-' in name:
        return name.rsplit('-', 1)[0]
    return None


def server_to_node(server):
    """Convert a :class:`cumulus.models.cloudservers.Server`."""
    addresses = server.addresses
    group = (server.metadata or {}).get('group') or group_from_name(
        server.name)
    return NodeMetadata(
        id=str(server.id),
        name=server.name,
        group=group,
        state=node_state(server.status),
        public_addresses=addresses.public if addresses else (),
        private_addresses=addresses.private if addresses else (),
        credentials=server.admin_pass)


def _random_suffix():
    return uuid4().hex[:6]


class CloudServersComputeService(object):
    """
    Lists, starts and stops nodes on CloudServers.  Every method returns an
    Effect to be performed inside a
    :obj:`~cumulus.cloud_client.TenantScope`.
    """
    def list_hardware(self):
        """:return: Effect of a list of :class:`Hardware`."""
        return cloudservers.list_flavors(detail=True).on(
            lambda flavors: [flavor_to_hardware(f) for f in flavors])

    def list_images(self):
        """:return: Effect of a list of :class:`ImageSpec`."""
        return cloudservers.list_images(detail=True).on(
            lambda images: [image_to_spec(i) for i in images])

    def template_builder(self):
        """:return: an empty :class:`TemplateBuilder`."""
        return TemplateBuilder()

    def list_nodes(self):
        """:return: Effect of a list of :class:`NodeMetadata`."""
        return cloudservers.list_servers(detail=True).on(
            lambda servers: [server_to_node(s) for s in servers])

    def run_node(self, group, template):
        """
        Start a node named ``<group>-<random suffix>`` from ``template``.
        The group is also recorded in the server's metadata.

        :return: Effect of the new :class:`NodeMetadata`, with the admin
            password as its credentials.
        """
        def create(suffix):
            name = '{0}-{1}'.format(group, suffix)
            return cloudservers.create_server(
                name, template.image.id, template.hardware.id,
                metadata={'group': group})

        return (Effect(Func(_random_suffix))
                .on(create)
                .on(server_to_node))

    def destroy_node(self, node_id):
        """:return: Effect of whether the node existed."""
        return cloudservers.delete_server(node_id)

    def reboot_node(self, node_id, hard=False):
        """:return: Effect of ``None``."""
        return cloudservers.reboot_server(node_id, hard=hard)
