"""WBI request signing: mixin key derivation and parameter canonicalization."""
import hashlib
from typing import Any, Dict, Mapping

from bpi.errors import ParseError

MIXIN_KEY_TAB = (
    46, 47, 18, 2, 53, 8, 23, 32, 15, 50, 10, 31, 58, 3, 45, 35,
    27, 43, 5, 49, 33, 9, 42, 19, 29, 28, 14, 39, 12, 38, 41, 13,
    37, 48, 7, 16, 24, 55, 40, 61, 26, 17, 0, 1, 60, 51, 30, 4,
    22, 25, 54, 21, 56, 59, 6, 63, 57, 62, 11, 36, 20, 34, 44, 52,
)

MIXIN_KEY_LENGTH = 32

_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)
_STRIPPED_CHARS = str.maketrans("", "", "!'()*")


def get_mixin_key(img_key: str, sub_key: str) -> str:
    """Derive the mixin key from the image and subtitle raw keys.

    Indices of ``MIXIN_KEY_TAB`` beyond the concatenated keys are skipped, so
    short raw keys produce a mixin key shorter than 32 characters.
    """
    raw = (img_key + sub_key).encode("utf-8")
    mixed = bytes(raw[index] for index in MIXIN_KEY_TAB if index < len(raw))
    return mixed[:MIXIN_KEY_LENGTH].decode("latin-1")


def url_encode(value: str) -> str:
    """Percent-encode ``value`` byte by byte with uppercase hex digits."""
    parts = []
    for byte in value.encode("utf-8"):
        if byte in _UNRESERVED:
            parts.append(chr(byte))
        elif byte == 0x20:
            parts.append("%20")
        else:
            parts.append(f"%{byte:02X}")
    return "".join(parts)


def strip_value(value: Any) -> str:
    return str(value).translate(_STRIPPED_CHARS)


def enc_wbi(params: Mapping[str, Any], mixin_key: str, wts: int) -> Dict[str, str]:
    """Sign a parameter set with WBI.

    Args:
        params: Request parameters to sign (values are stringified)
        mixin_key: Key derived by :func:`get_mixin_key`
        wts: Timestamp in seconds since epoch

    Returns:
        New dictionary, sorted by key, with ``wts`` and ``w_rid`` added.
        ``params`` is not modified.
    """
    signed = {str(key): str(value) for key, value in params.items()}
    signed["wts"] = str(wts)
    signed = {key: strip_value(signed[key]) for key in sorted(signed)}

    query = "&".join(f"{url_encode(key)}={url_encode(value)}" for key, value in signed.items())
    signed["w_rid"] = hashlib.md5((query + mixin_key).encode("utf-8")).hexdigest()
    return dict(sorted(signed.items()))


def extract_key_from_url(url: str) -> str:
    """Return the file stem of a key URL (after the last ``/``, before the first ``.``)."""
    key = url.rsplit("/", 1)[-1].split(".", 1)[0]
    if not key:
        raise ParseError(f"cannot extract wbi key from url: {url!r}")
    return key
