"""
Domain objects returned by the provider clients.
"""

from enum import Enum


class FallbackEnum(Enum):
    """
    Base for enums read from provider responses.  Every subclass defines an
    ``UNRECOGNIZED`` member, which is what values added to the API after this
    client was written read as.
    """
    @classmethod
    def from_value(cls, value):
        """
        :return: the member whose value is ``value``, or ``UNRECOGNIZED``.
        """
        for member in cls:
            if member.value == value:
                return member
        return cls.UNRECOGNIZED
