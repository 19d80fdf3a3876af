"""Error types raised by the map codecs."""


class FormatError(ValueError):
    """Raised when a compact payload is structurally impossible to decode.

    Short tuples are never a format error (missing trailing fields take
    their defaults); a tuple that is not an array, or a scalar where an
    array is expected, is.
    """

    pass


class DecodeError(ValueError):
    """Raised when a share string cannot be decoded at any stage.

    Wraps base64, inflate, JSON and :class:`FormatError` failures into a
    single error; the original cause is chained.
    """

    pass
