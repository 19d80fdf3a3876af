"""Reading and writing map documents.

Three encodings are supported: expanded JSON files (:mod:`.parser`),
versioned compact tuples (:mod:`.compact`) and share strings
(:mod:`.share`).
"""

from .compact import decode as decode_compact
from .compact import encode as encode_compact
from .errors import DecodeError, FormatError
from .parser import import_map, load_map, save_map
from .share import decode_share_string, encode_share_string, load_share_string

__all__ = [
    "DecodeError",
    "FormatError",
    "decode_compact",
    "decode_share_string",
    "encode_compact",
    "encode_share_string",
    "import_map",
    "load_map",
    "load_share_string",
    "save_map",
]
