"""
Turning portable template options into CloudStack ``deployVirtualMachine``
parameters.

How guest networking is chosen depends on the zone: basic zones isolate
guests with security groups, while advanced zones put them on networks.  An
:class:`IOptionsConverter` is picked per zone by
:func:`options_converter_for_zone` and applies the network part of the
options.
"""

import attr

from pyrsistent import pmap

from zope.interface import Interface, implementer

from cumulus.cloud_client.cloudstack import DeployVirtualMachineOptions
from cumulus.log import log as default_log
from cumulus.models.cloudstack import GuestIPType, NetworkType


@attr.s(frozen=True)
class CloudStackTemplateOptions(object):
    """
    CloudStack specific options for starting a node.

    :ivar security_group_ids: security groups to apply (basic zones only).
    :ivar network_ids: networks to attach; the first is the default.
    :ivar ips_to_networks: mapping of fixed IP address to network id.
    :ivar ip_on_default_network: a fixed IP on the default network.
    :ivar keypair: the SSH key pair to install.
    :ivar user_data: user data, as ``bytes`` or ``str``.
    """
    security_group_ids = attr.ib(default=(), converter=tuple)
    network_ids = attr.ib(default=(), converter=tuple)
    ips_to_networks = attr.ib(default=pmap(), converter=pmap)
    ip_on_default_network = attr.ib(default=None)
    keypair = attr.ib(default=None)
    user_data = attr.ib(default=None, repr=False)


class IOptionsConverter(Interface):
    """
    Applies the network related template options for one kind of zone.
    """
    def apply(template_options, networks, zone_id, options):
        """
        :param CloudStackTemplateOptions template_options: what was asked for.
        :param dict networks: the zone's networks, by network id.
        :param zone_id: the zone the node is going into.
        :param DeployVirtualMachineOptions options: the options so far.

        :raise ValueError: if the template options cannot be honored.
        :return: the resulting :class:`DeployVirtualMachineOptions`.
        """


def default_network_in_zone(zone_id):
    """
    :return: a predicate matching the default network of ``zone_id``.
    """
    def predicate(network):
        return network.is_default and str(network.zone_id) == str(zone_id)
    return predicate


def supports_static_nat(network):
    """
    Whether the network's ``Firewall`` service can do static NAT.
    """
    return any(service.name == 'Firewall' and
               service.capabilities.get('StaticNat') == 'true'
               for service in network.services)


def is_virtual_network(network):
    """
    Whether guests on the network are on a virtual (isolated) guest network.
    """
    return network.guest_ip_type == GuestIPType.VIRTUAL


@implementer(IOptionsConverter)
class BasicNetworkOptionsConverter(object):
    """
    Basic zones: pass any security groups and networks straight through.
    """
    def apply(self, template_options, networks, zone_id, options):
        """
        see :meth:`IOptionsConverter.apply`
        """
        if template_options.security_group_ids:
            options = options.security_group_ids(
                template_options.security_group_ids)
        if template_options.network_ids:
            options = options.network_ids(template_options.network_ids)
        return options


@implementer(IOptionsConverter)
class AdvancedNetworkOptionsConverter(object):
    """
    Advanced zones: no security groups, and a network is always chosen.
    Without explicit networks or fixed IPs, the zone's default network is
    used as long as it can do static NAT.
    Fixed IPs are applied by :func:`deploy_options` for every kind of zone.
    """
    def __init__(self, log=None):
        self._log = (log or default_log).bind(
            system='cumulus.compute.cloudstack')

    def apply(self, template_options, networks, zone_id, options):
        """
        see :meth:`IOptionsConverter.apply`
        """
        if template_options.security_group_ids:
            raise ValueError(
                'security groups cannot be specified for zones that use '
                'advanced networking: {0}'.format(zone_id))
        if template_options.network_ids:
            return options.network_ids(template_options.network_ids)
        if template_options.ips_to_networks:
            # The fixed IPs already pick the networks.
            return options

        if not networks:
            raise ValueError(
                'please setup a network for zone: {0}'.format(zone_id))
        is_default = default_network_in_zone(zone_id)
        for network in networks.values():
            if is_default(network) and supports_static_nat(network):
                self._log.msg('Using default network {network_id} in zone '
                              '{zone_id}', network_id=network.id,
                              zone_id=zone_id)
                return options.network_id(network.id)
        raise ValueError(
            'please choose a specific network in zone {0}: {1}'.format(
                zone_id, sorted(str(n) for n in networks)))


def options_converter_for_zone(zone):
    """
    :param cumulus.models.cloudstack.Zone zone: the zone to deploy into.
    :raise ValueError: for a zone of unknown network type.
    :return: the :class:`IOptionsConverter` for the zone.
    """
    if zone.network_type == NetworkType.ADVANCED:
        return AdvancedNetworkOptionsConverter()
    if zone.network_type == NetworkType.BASIC:
        return BasicNetworkOptionsConverter()
    raise ValueError('unknown network type {0!r} of zone {1}'.format(
        zone.network_type, zone.id))


def deploy_options(template_options, zone, networks, converter=None):
    """
    Build the ``deployVirtualMachine`` options for a node.

    :param CloudStackTemplateOptions template_options: what was asked for.
    :param cumulus.models.cloudstack.Zone zone: the zone to deploy into.
    :param dict networks: the zone's networks, by network id.
    :param IOptionsConverter converter: defaults to the one for ``zone``.
    :return: :class:`DeployVirtualMachineOptions`.
    """
    options = DeployVirtualMachineOptions()
    if template_options.ip_on_default_network is not None:
        options = options.ip_on_default_network(
            template_options.ip_on_default_network)
    if template_options.keypair is not None:
        options = options.keypair(template_options.keypair)
    if template_options.user_data is not None:
        options = options.user_data(template_options.user_data)
    if template_options.ips_to_networks:
        options = options.ips_to_networks(template_options.ips_to_networks)
    if converter is None:
        converter = options_converter_for_zone(zone)
    return converter.apply(template_options, networks, zone.id, options)
