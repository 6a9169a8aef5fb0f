"""
Type adapters: paired readers and writers registered against a value type.

An adapter converts between a Python value and its JSON-compatible primitive
form (``dict``, ``list``, ``str``, numbers, booleans and ``None``).  Both
directions receive the :class:`cumulus.codec.Codec` doing the conversion, so
adapters for container-like values can delegate their members back to it.
"""

import binascii
import json

from cumulus.codec import dates
from cumulus.codec.errors import JsonParseError, JsonSerializationError
from cumulus.codec.types import JsonBall, Properties


class TypeAdapter(object):
    """
    Base class for adapters.  Subclasses implement :meth:`write` and
    :meth:`read`.
    """
    def write(self, codec, value):
        """
        :return: the JSON primitive representing ``value``.
        """
        raise NotImplementedError()

    def read(self, codec, data):
        """
        :return: the value represented by the JSON primitive ``data``.
        """
        raise NotImplementedError()

    def null_safe(self):
        """
        :return: an adapter that passes ``None`` through in both directions
            and otherwise delegates to this one.
        """
        return NullSafeAdapter(self)

    def for_type(self, type_):
        """
        Specialize this adapter for a concrete subtype it was resolved for
        through a hierarchy binding.  Most adapters need no specializing.
        """
        return self


class NullSafeAdapter(TypeAdapter):
    """
    Wraps another adapter so that it never sees ``None``.
    """
    def __init__(self, adapter):
        self.adapter = adapter

    def write(self, codec, value):
        if value is None:
            return None
        return self.adapter.write(codec, value)

    def read(self, codec, data):
        if data is None:
            return None
        return self.adapter.read(codec, data)

    def null_safe(self):
        return self

    def for_type(self, type_):
        return NullSafeAdapter(self.adapter.for_type(type_))

    def __eq__(self, other):
        return (isinstance(other, NullSafeAdapter) and
                self.adapter == other.adapter)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((NullSafeAdapter, self.adapter))

    def __repr__(self):
        return 'NullSafeAdapter({0!r})'.format(self.adapter)


class _StatelessAdapter(TypeAdapter):
    """
    Adapters with no configuration compare equal to other instances of the
    same class.
    """
    def __eq__(self, other):
        return type(self) is type(other)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(type(self))

    def __repr__(self):
        return '{0}()'.format(type(self).__name__)


def _expect_string(data, what):
    if not isinstance(data, str):
        raise JsonParseError(
            'expected a string for {0}, got {1!r}'.format(what, data))
    return data


# ----- dates -----

class DateAdapter(_StatelessAdapter):
    """
    Base of the date adapters.  Providers pick the one matching their wire
    format when building their codec.
    """


class CDateAdapter(DateAdapter):
    """
    Dates such as ``Thu Dec 16 14:33:26 +0000 2010``.  This is the default.
    """
    def write(self, codec, value):
        return dates.c_date_format(value)

    def read(self, codec, data):
        try:
            return dates.c_date_parse(_expect_string(data, 'a date'))
        except dates.DateParseError as e:
            raise JsonParseError(str(e))


class Iso8601DateAdapter(DateAdapter):
    """
    ISO8601 dates.  Written with milliseconds; read with milliseconds if
    present, otherwise with whole seconds.
    """
    def write(self, codec, value):
        return dates.iso8601_date_format(value)

    def read(self, codec, data):
        return self.parse_date(_expect_string(data, 'a date'))

    def parse_date(self, text):
        """
        Try the millisecond format, then fall back to the seconds format.
        """
        try:
            return dates.iso8601_date_parse(text)
        except dates.DateParseError:
            try:
                return dates.iso8601_seconds_date_parse(text)
            except dates.DateParseError as e:
                raise JsonParseError(str(e))


class LongDateAdapter(DateAdapter):
    """
    Dates as milliseconds since the epoch.  ``-1`` means "no date".
    """
    def write(self, codec, value):
        return dates.to_epoch_millis(value)

    def read(self, codec, data):
        if isinstance(data, bool) or not isinstance(data, int):
            raise JsonParseError(
                'expected epoch milliseconds, got {0!r}'.format(data))
        if data == -1:
            return None
        return dates.from_epoch_millis(data)


# ----- bytes -----

def _unhex(data):
    try:
        return binascii.unhexlify(_expect_string(data, 'hex bytes'))
    except (binascii.Error, ValueError) as e:
        raise JsonParseError('invalid hex {0!r}: {1}'.format(data, e))


class HexByteArrayAdapter(_StatelessAdapter):
    """
    ``bytes`` as a lower-case hex string.
    """
    def write(self, codec, value):
        return binascii.hexlify(value).decode('ascii')

    def read(self, codec, data):
        return _unhex(data)


class HexByteListAdapter(_StatelessAdapter):
    """
    ``bytearray`` (a mutable list of bytes) as a lower-case hex string.
    """
    def write(self, codec, value):
        return binascii.hexlify(bytes(value)).decode('ascii')

    def read(self, codec, data):
        return bytearray(_unhex(data))


# ----- properties -----

class PropertiesAdapter(_StatelessAdapter):
    """
    :class:`Properties` as a flat JSON object.  When reading, member values
    must be strings or numbers; numbers are taken as their string form.
    """
    def write(self, codec, value):
        return {str(k): str(v) for k, v in value.items()}

    def read(self, codec, data):
        if not isinstance(data, dict):
            raise JsonParseError(
                'expected an object of properties, got {0!r}'.format(data))
        props = Properties()
        for name, value in data.items():
            # bool is an int, but true and false are not numbers in JSON.
            if (isinstance(value, bool) or
                    not isinstance(value, (str, int, float))):
                raise JsonParseError(
                    'property {0!r} is not a string or number: {1!r}'.format(
                        name, value), path=(name,))
            props[str(name)] = str(value)
        return props


# ----- raw json -----

class JsonBallAdapter(_StatelessAdapter):
    """
    :class:`JsonBall` values are written inline as the JSON they hold, and
    any JSON value can be read back as its raw text.
    """
    def write(self, codec, value):
        return json.loads(value.raw)

    def read(self, codec, data):
        return JsonBall(json.dumps(data))


# ----- enums -----

class EnumAdapter(TypeAdapter):
    """
    Registered against the whole :class:`enum.Enum` hierarchy.

    Members are written as their value.  Reading tries the member name, then
    the enum's ``from_value`` class method if it has one (conventionally
    returning an ``UNRECOGNIZED`` member for unknown values), then the member
    value.

    :ivar enum_type: the concrete enum being read; filled in by
        :meth:`for_type` when the registry resolves a hierarchy binding.
    """
    def __init__(self, enum_type=None):
        self.enum_type = enum_type

    def for_type(self, type_):
        return EnumAdapter(type_)

    def write(self, codec, value):
        return value.value

    def read(self, codec, data):
        enum_type = self.enum_type
        if enum_type is None:
            raise JsonSerializationError(
                'an enum type is needed to read {0!r}'.format(data))
        if isinstance(data, str) and data in enum_type.__members__:
            return enum_type[data]
        from_value = getattr(enum_type, 'from_value', None)
        if from_value is not None:
            return from_value(data)
        try:
            return enum_type(data)
        except ValueError:
            raise JsonParseError(
                '{0!r} is not a valid {1}'.format(data, enum_type.__name__))

    def __eq__(self, other):
        return (isinstance(other, EnumAdapter) and
                self.enum_type is other.enum_type)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((EnumAdapter, self.enum_type))

    def __repr__(self):
        return 'EnumAdapter({0!r})'.format(self.enum_type)
