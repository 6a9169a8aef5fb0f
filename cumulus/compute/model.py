"""
Provider-neutral compute objects: what hardware and images are on offer, and
the nodes running on them.
"""

from enum import Enum

import attr


class OsFamily(Enum):
    """
    Operating system families, recognized from image names and
    descriptions.
    """
    UNRECOGNIZED = 'unrecognized'
    ARCH = 'arch'
    CENTOS = 'centos'
    DEBIAN = 'debian'
    FEDORA = 'fedora'
    FREEBSD = 'freebsd'
    GENTOO = 'gentoo'
    OEL = 'oel'
    RHEL = 'rhel'
    SUSE = 'suse'
    UBUNTU = 'ubuntu'
    WINDOWS = 'windows'

    @classmethod
    def from_name(cls, name):
        """
        Guess the family from a free-form name such as ``"Ubuntu 10.04 LTS"``
        or ``"Red Hat Enterprise Linux 5.5"``.

        :return: the family, or ``UNRECOGNIZED``.
        """
        lowered = (name or '').lower()
        for keyword, family in _FAMILY_KEYWORDS:
            if keyword in lowered:
                return family
        return cls.UNRECOGNIZED


# Checked in order, so names that contain others come first.
_FAMILY_KEYWORDS = [
    ('oracle', OsFamily.OEL),
    ('red hat', OsFamily.RHEL),
    ('redhat', OsFamily.RHEL),
    ('rhel', OsFamily.RHEL),
    ('centos', OsFamily.CENTOS),
    ('ubuntu', OsFamily.UBUNTU),
    ('debian', OsFamily.DEBIAN),
    ('fedora', OsFamily.FEDORA),
    ('gentoo', OsFamily.GENTOO),
    ('arch', OsFamily.ARCH),
    ('suse', OsFamily.SUSE),
    ('freebsd', OsFamily.FREEBSD),
    ('windows', OsFamily.WINDOWS),
]


class NodeState(Enum):
    """
    The lifecycle of a node, common to all providers.
    """
    PENDING = 'pending'
    RUNNING = 'running'
    SUSPENDED = 'suspended'
    TERMINATED = 'terminated'
    ERROR = 'error'
    UNRECOGNIZED = 'unrecognized'


@attr.s(frozen=True)
class Hardware(object):
    """
    A hardware profile.  ``ram`` is in megabytes, ``disk`` in gigabytes.
    """
    id = attr.ib()
    name = attr.ib()
    ram = attr.ib()
    disk = attr.ib()


@attr.s(frozen=True)
class OperatingSystem(object):
    """The operating system on an image."""
    family = attr.ib()
    description = attr.ib()


@attr.s(frozen=True)
class ImageSpec(object):
    """An image that nodes can be started from."""
    id = attr.ib()
    name = attr.ib()
    os = attr.ib()


@attr.s(frozen=True)
class Template(object):
    """The image and hardware to start a node with."""
    image = attr.ib()
    hardware = attr.ib()


@attr.s(frozen=True)
class NodeMetadata(object):
    """
    A node.  ``credentials`` is the initial admin password where the
    provider hands one out, and ``None`` otherwise.
    """
    id = attr.ib()
    name = attr.ib()
    group = attr.ib()
    state = attr.ib()
    public_addresses = attr.ib(default=(), converter=tuple)
    private_addresses = attr.ib(default=(), converter=tuple)
    credentials = attr.ib(default=None, repr=False)
