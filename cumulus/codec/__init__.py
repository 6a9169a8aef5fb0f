"""
Conversion of domain objects to and from wire JSON.

Every provider builds one :class:`Codec` with :func:`make_codec`, choosing the
date format its API speaks and binding adapters for any types that need
special treatment.  Domain objects are attrs classes whose attributes are
declared with :func:`json_attr`.
"""

import json
from collections.abc import Mapping
from datetime import datetime
from enum import Enum

import attr

from cumulus.codec.adapters import (
    CDateAdapter,
    EnumAdapter,
    HexByteArrayAdapter,
    HexByteListAdapter,
    JsonBallAdapter,
    PropertiesAdapter,
)
from cumulus.codec.errors import JsonParseError, JsonSerializationError
from cumulus.codec.registry import TypeAdapterRegistry
from cumulus.codec.types import (
    JsonBall,
    ListOf,
    MapOf,
    Properties,
    SetOf,
    json_attr,
    wire_name,
    wire_type,
)


_SCALARS = (str, int, float, bool)


def _with_path(e, key):
    """Prefix the path of a :class:`JsonParseError` with ``key``."""
    return JsonParseError(e.message, path=(key,) + e.path)


@attr.s(frozen=True)
class Codec(object):
    """
    Reads and writes JSON using the adapters in a
    :class:`TypeAdapterRegistry`.

    Resolution order when writing a value: a bound adapter for the value's
    runtime type, then attrs classes, then mappings, sequences and scalars.
    When reading, the requested type drives the same order.
    """
    registry = attr.ib()

    def to_primitive(self, value, type_=None):
        """
        :return: a JSON-compatible structure representing ``value``.
        :raise JsonSerializationError: if some part of ``value`` has no
            known representation.
        """
        if value is None:
            return None
        if isinstance(type_, (ListOf, SetOf)):
            return [self.to_primitive(v, type_.item_type) for v in value]
        if isinstance(type_, MapOf):
            return {str(k): self.to_primitive(v, type_.value_type)
                    for k, v in value.items()}

        adapter = self.registry.adapter_for(type(value))
        if adapter is not None:
            return adapter.write(self, value)
        if attr.has(type(value)):
            return self._write_attrs(value)
        if isinstance(value, Mapping):
            return {str(k): self.to_primitive(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.to_primitive(v) for v in value]
        if isinstance(value, _SCALARS):
            return value
        raise JsonSerializationError(
            'no JSON representation for {0!r}'.format(value))

    def _write_attrs(self, value):
        result = {}
        for field in attr.fields(type(value)):
            member = getattr(value, field.name)
            if member is None:
                continue
            result[wire_name(field)] = self.to_primitive(
                member, wire_type(field))
        return result

    def from_primitive(self, data, type_):
        """
        :return: ``data`` read as ``type_``.
        :raise JsonParseError: if ``data`` does not fit ``type_``.
        """
        if type_ is None or type_ is object:
            return data
        if isinstance(type_, (ListOf, SetOf)):
            if data is None:
                return None
            if not isinstance(data, list):
                raise JsonParseError(
                    'expected an array, got {0!r}'.format(data))
            items = []
            for i, item in enumerate(data):
                try:
                    items.append(self.from_primitive(item, type_.item_type))
                except JsonParseError as e:
                    raise _with_path(e, i)
            return frozenset(items) if isinstance(type_, SetOf) else items
        if isinstance(type_, MapOf):
            if data is None:
                return None
            if not isinstance(data, dict):
                raise JsonParseError(
                    'expected an object, got {0!r}'.format(data))
            result = {}
            for key, item in data.items():
                try:
                    result[key] = self.from_primitive(item, type_.value_type)
                except JsonParseError as e:
                    raise _with_path(e, key)
            return result

        adapter = self.registry.adapter_for(type_)
        if adapter is not None:
            return adapter.read(self, data)
        if data is None:
            return None
        if attr.has(type_):
            return self._read_attrs(data, type_)
        if type_ in (dict, list):
            if not isinstance(data, type_):
                raise JsonParseError('expected {0}, got {1!r}'.format(
                    type_.__name__, data))
            return data
        if type_ is float and isinstance(data, int) and \
                not isinstance(data, bool):
            return float(data)
        if type_ in _SCALARS:
            if type(data) is not type_:
                raise JsonParseError('expected {0}, got {1!r}'.format(
                    type_.__name__, data))
            return data
        raise JsonSerializationError(
            'do not know how to read {0!r}'.format(type_))

    def _read_attrs(self, data, type_):
        if not isinstance(data, dict):
            raise JsonParseError('expected an object for {0}, got {1!r}'
                                 .format(type_.__name__, data))
        kwargs = {}
        for field in attr.fields(type_):
            if not field.init:
                continue
            name = wire_name(field)
            arg = field.name.lstrip('_')
            if name in data:
                try:
                    kwargs[arg] = self.from_primitive(
                        data[name], wire_type(field))
                except JsonParseError as e:
                    raise _with_path(e, name)
            elif field.default is attr.NOTHING:
                kwargs[arg] = None
        return type_(**kwargs)

    def to_json(self, value, type_=None):
        """
        :return: ``value`` serialized as JSON text.
        """
        return json.dumps(self.to_primitive(value, type_))

    def from_json(self, text, type_):
        """
        Parse JSON text and read the result as ``type_``.

        :param text: ``str`` or UTF-8 ``bytes``.
        """
        if isinstance(text, bytes):
            text = text.decode('utf-8')
        try:
            data = json.loads(text)
        except ValueError as e:
            raise JsonParseError('malformed JSON: {0}'.format(e))
        return self.from_primitive(data, type_)


def make_codec(date_adapter=None, bindings=None):
    """
    Build a :class:`Codec` with the standard adapters.

    :param date_adapter: the :class:`~cumulus.codec.adapters.DateAdapter`
        for ``datetime`` values; :class:`CDateAdapter` if not given.
    :param bindings: optional mapping of type to adapter, registered after
        (and so overriding) the standard adapters.
    """
    if date_adapter is None:
        date_adapter = CDateAdapter()

    registry = (
        TypeAdapterRegistry()
        .register(Properties, PropertiesAdapter().null_safe())
        .register(datetime, date_adapter.null_safe())
        .register(bytearray, HexByteListAdapter().null_safe())
        .register(bytes, HexByteArrayAdapter().null_safe())
        .register(JsonBall, JsonBallAdapter().null_safe())
        .register_hierarchy(Enum, EnumAdapter().null_safe()))

    if bindings:
        registry = registry.register_all(bindings)

    return Codec(registry)


__all__ = ['Codec', 'JsonBall', 'JsonParseError', 'JsonSerializationError',
           'ListOf', 'MapOf', 'Properties', 'SetOf', 'TypeAdapterRegistry',
           'json_attr', 'make_codec']
