from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote_from_bytes

# everything printable in ASCII stays as is; C0 controls, DEL and non-ASCII bytes get %XX
_PRINTABLE_ASCII = ''.join(chr(c) for c in range(0x20, 0x7F))


def percent_encode_path(path: Path | str | bytes) -> str:
    """
    Human readable form of a path which is safe to print one per line.
    Undecodable bytes end up as U+FFFD (and hence as %EF%BF%BD)
    """
    raw = os.fsencode(path)
    lossy = raw.decode('utf8', errors='replace').encode('utf8')
    return quote_from_bytes(lossy, safe=_PRINTABLE_ASCII)


def raw_path(path: Path | str | bytes) -> bytes:
    return os.fsencode(path)
