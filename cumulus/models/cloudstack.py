"""
CloudStack domain objects.

CloudStack spells its members in lower case with no separators
(``domainid``, ``securitygroupsenabled``), and reports timestamps with a
numeric offset and no fraction (``2011-12-12T13:55:39-0800``), which the
ISO-8601 adapter reads through its whole-seconds fallback.
"""

from datetime import datetime

import attr

from cumulus.codec import ListOf, Properties, json_attr, make_codec
from cumulus.codec.adapters import Iso8601DateAdapter, TypeAdapter
from cumulus.codec.errors import JsonParseError
from cumulus.codec.types import JsonBall
from cumulus.models import FallbackEnum


class Capabilities(Properties):
    """
    The capabilities of a network service, which CloudStack sends as a list
    of ``{"name": ..., "value": ...}`` objects.
    """


class CapabilitiesAdapter(TypeAdapter):
    """
    Reads and writes :class:`Capabilities` in CloudStack's list form.
    """
    def write(self, codec, value):
        return [{'name': name, 'value': value[name]} for name in sorted(value)]

    def read(self, codec, data):
        if not isinstance(data, list):
            raise JsonParseError(
                'expected a list of capabilities, got {0!r}'.format(data))
        capabilities = Capabilities()
        for i, item in enumerate(data):
            if not isinstance(item, dict) or 'name' not in item:
                raise JsonParseError(
                    'capability without a name: {0!r}'.format(item),
                    path=(i,))
            value = item.get('value')
            capabilities[str(item['name'])] = (
                '' if value is None else str(value))
        return capabilities

    def __eq__(self, other):
        return isinstance(other, CapabilitiesAdapter)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(CapabilitiesAdapter)


codec = make_codec(
    Iso8601DateAdapter(),
    bindings={Capabilities: CapabilitiesAdapter().null_safe()})


class AccountType(FallbackEnum):
    """
    The kind of an account, sent as ``accounttype``.
    """
    USER = 0
    ADMIN = 1
    DOMAIN_ADMIN = 2
    UNRECOGNIZED = -1


@attr.s(frozen=True)
class User(object):
    """
    A user of an account.  ``api_key`` and ``secret_key`` are only set once
    keys have been registered for the user.
    """
    id = json_attr()
    name = json_attr('username', default=None)
    account = json_attr(default=None)
    account_type = json_attr('accounttype', type=AccountType, default=None)
    domain = json_attr(default=None)
    domain_id = json_attr('domainid', default=None)
    email = json_attr(default=None)
    first_name = json_attr('firstname', default=None)
    last_name = json_attr('lastname', default=None)
    created = json_attr(type=datetime, default=None)
    state = json_attr(default=None)
    api_key = json_attr('apikey', default=None, repr=False)
    secret_key = json_attr('secretkey', default=None, repr=False)


@attr.s(frozen=True)
class Account(object):
    """
    An account, which owns users and resources within a domain.
    """
    Type = AccountType

    id = json_attr()
    name = json_attr(default=None)
    type = json_attr('accounttype', type=AccountType, default=None)
    domain = json_attr(default=None)
    domain_id = json_attr('domainid', default=None)
    state = json_attr(default=None)
    users = json_attr('user', type=ListOf(User), default=())


class NetworkType(FallbackEnum):
    """
    How guest networking is set up in a zone.
    """
    BASIC = 'Basic'
    ADVANCED = 'Advanced'
    UNRECOGNIZED = 'UNRECOGNIZED'

    @classmethod
    def from_value(cls, value):
        """Match ``value`` regardless of case."""
        for member in cls:
            if str(value).lower() == member.value.lower():
                return member
        return cls.UNRECOGNIZED


@attr.s(frozen=True)
class Zone(object):
    """
    A data center.
    """
    NetworkType = NetworkType

    id = json_attr()
    name = json_attr(default=None)
    description = json_attr(default=None)
    network_type = json_attr('networktype', type=NetworkType, default=None)
    security_groups_enabled = json_attr(
        'securitygroupsenabled', type=bool, default=False)


class GuestIPType(FallbackEnum):
    """
    How guests on a network get their addresses.
    """
    VIRTUAL = 'Virtual'
    DIRECT = 'Direct'
    ISOLATED = 'Isolated'
    SHARED = 'Shared'
    UNRECOGNIZED = 'UNRECOGNIZED'


@attr.s(frozen=True)
class NetworkService(object):
    """
    A service offered on a network, e.g. ``Firewall`` or ``Dhcp``.
    """
    name = json_attr()
    capabilities = json_attr('capability', type=Capabilities,
                             default=attr.Factory(Capabilities))


@attr.s(frozen=True)
class Network(object):
    """
    A guest network in a zone.
    """
    id = json_attr()
    name = json_attr(default=None)
    zone_id = json_attr('zoneid', default=None)
    is_default = json_attr('isdefault', type=bool, default=False)
    guest_ip_type = json_attr('guestiptype', type=GuestIPType, default=None)
    services = json_attr('service', type=ListOf(NetworkService), default=())


@attr.s(frozen=True)
class AsyncCreateResponse(object):
    """
    The response to an asynchronous create: the id the new resource will
    have, and the job to poll for the outcome.
    """
    id = json_attr()
    job_id = json_attr('jobid')


class AsyncJobStatus(FallbackEnum):
    """
    The outcome of an asynchronous job.
    """
    IN_PROGRESS = 0
    SUCCEEDED = 1
    FAILED = 2
    UNRECOGNIZED = -1


@attr.s(frozen=True)
class AsyncJob(object):
    """
    An asynchronous job.  ``result`` is whatever the finished command
    returned, kept as raw JSON since its shape depends on the command.
    """
    Status = AsyncJobStatus

    id = json_attr('jobid')
    status = json_attr('jobstatus', type=AsyncJobStatus, default=None)
    result_code = json_attr('jobresultcode', type=int, default=None)
    result_type = json_attr('jobresulttype', default=None)
    result = json_attr('jobresult', type=JsonBall, default=None)
