"""
Exceptions raised while converting values to and from wire JSON.
"""


class JsonParseError(ValueError):
    """
    Raised when JSON text is malformed, or when a JSON value cannot be read
    as the requested type.

    :ivar path: the location of the offending value, as a tuple of keys and
        indices from the document root, when known.
    """
    def __init__(self, message, path=()):
        super(JsonParseError, self).__init__(message)
        self.message = message
        self.path = tuple(path)

    def __str__(self):
        if self.path:
            return '{0} (at {1})'.format(
                self.message, '.'.join(str(p) for p in self.path))
        return self.message


class JsonSerializationError(TypeError):
    """
    Raised when a value has no JSON representation known to the codec.
    """
