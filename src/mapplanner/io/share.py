"""Share strings: compact maps packed for clipboard and chat transport.

A share string is ``base64(deflate(JSON(compact)))``. Decoding is done
entirely into a new document; a live document is only replaced once the
whole string has decoded successfully.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import zlib

from ..config import MAX_INFLATED_BYTES, MAX_SHARE_STRING_LENGTH
from ..core.document import MapDocument
from . import compact
from .errors import DecodeError, FormatError

LOGGER = logging.getLogger(__name__)


def encode_share_string(document: MapDocument) -> str:
    """Pack a document into a share string.

    Args:
        document: The document to share; it is not modified.

    Returns:
        Base64 text of the deflated compact JSON.
    """
    text = compact.dumps(compact.encode(document))
    deflated = zlib.compress(text.encode("utf-8"), 9)
    return base64.b64encode(deflated).decode("ascii")


def _inflate(data: bytes, limit: int) -> bytes:
    inflater = zlib.decompressobj()
    inflated = inflater.decompress(data, limit)
    if inflater.unconsumed_tail or (len(inflated) >= limit and not inflater.eof):
        raise DecodeError(f"Share string inflates beyond {limit} bytes")
    if not inflater.eof:
        raise DecodeError("Share string is truncated")
    return inflated


def decode_share_string(share_string: str) -> MapDocument:
    """Unpack a share string into a new document.

    Whitespace (e.g. line breaks from pasting) is ignored.

    Args:
        share_string: The share string.

    Returns:
        The decoded document, with its id counter recomputed.

    Raises:
        DecodeError: If the string fails at any stage (length limit,
            base64, inflate, JSON or compact layout).
    """
    try:
        return _decode(share_string)
    except DecodeError as e:
        LOGGER.warning("Share string rejected: %s", e)
        raise


def _decode(share_string: str) -> MapDocument:
    if not isinstance(share_string, str):
        raise DecodeError(f"Share string must be text, got {type(share_string).__name__}")

    cleaned = "".join(share_string.split())
    if not cleaned:
        raise DecodeError("Share string is empty")
    if len(cleaned) > MAX_SHARE_STRING_LENGTH:
        raise DecodeError(
            f"Share string is {len(cleaned)} characters, limit is {MAX_SHARE_STRING_LENGTH}"
        )

    try:
        deflated = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Share string is not valid base64: {e}") from e

    try:
        inflated = _inflate(deflated, MAX_INFLATED_BYTES)
    except zlib.error as e:
        raise DecodeError(f"Share string could not be inflated: {e}") from e

    try:
        payload = json.loads(inflated.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Share string does not hold valid JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("Share string JSON is nested too deeply") from e

    try:
        return compact.decode(payload)
    except FormatError as e:
        raise DecodeError(f"Share string holds an invalid map: {e}") from e


def load_share_string(document: MapDocument, share_string: str) -> MapDocument:
    """Replace a live document with the contents of a share string.

    Raises:
        DecodeError: If decoding fails; ``document`` is left untouched.
    """
    decoded = decode_share_string(share_string)
    document.replace_with(decoded)
    return document
