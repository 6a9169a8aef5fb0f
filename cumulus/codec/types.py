"""
Value types and type descriptors understood by :class:`cumulus.codec.Codec`.
"""

import json

import attr


JSON_NAME = 'cumulus.json_name'
JSON_TYPE = 'cumulus.json_type'


@attr.s(frozen=True)
class ListOf(object):
    """A JSON array whose items are read as ``item_type``."""
    item_type = attr.ib()


@attr.s(frozen=True)
class SetOf(object):
    """A JSON array read into a ``frozenset`` of ``item_type``."""
    item_type = attr.ib()


@attr.s(frozen=True)
class MapOf(object):
    """A JSON object with string keys and values read as ``value_type``."""
    value_type = attr.ib()


def json_attr(name=None, type=None, **kwargs):
    """
    Declare an attrs attribute along with how it appears on the wire.

    :param str name: the JSON member name, if different from the attribute
        name.
    :param type: the value type, or a type descriptor like :class:`ListOf`.
        ``None`` means the JSON value is used as-is.

    All other keyword arguments are passed on to :func:`attr.ib`.
    """
    metadata = dict(kwargs.pop('metadata', {}))
    metadata[JSON_NAME] = name
    metadata[JSON_TYPE] = type
    return attr.ib(metadata=metadata, **kwargs)


def wire_name(field):
    """
    :return: the JSON member name for the given :class:`attr.Attribute`.
    """
    return field.metadata.get(JSON_NAME) or field.name


def wire_type(field):
    """
    :return: the declared value type of the given :class:`attr.Attribute`.
    """
    return field.metadata.get(JSON_TYPE)


class Properties(dict):
    """
    A mapping of string keys to string values, as found in free-form
    "capabilities" or "metadata" members.
    """


def _quote_unless_literal(value):
    """
    Leave numbers, booleans, null, objects, arrays and quoted strings alone;
    quote anything else so it is a valid JSON literal.
    """
    try:
        json.loads(value)
    except ValueError:
        return json.dumps(value)
    return value


@attr.s(frozen=True, repr=False)
class JsonBall(object):
    """
    A snippet of raw JSON carried through the codec untouched.

    ``JsonBall('foo')`` holds ``"foo"`` since a bare word is not a JSON
    literal, while ``JsonBall('1')`` and ``JsonBall('{"a": 1}')`` hold their
    text as-is.
    """
    raw = attr.ib(converter=_quote_unless_literal)

    def __str__(self):
        return self.raw

    def __repr__(self):
        return 'JsonBall({0})'.format(self.raw)
