"""Text encodings used by the login flow.

* :func:`base64url` -- RFC 4648 section 5 alphabet, no ``=`` padding, as
  required for PKCE challenges.
* :func:`percent_encode` -- RFC 3986 unreserved characters pass through,
  everything else becomes ``%XX``.
* :func:`percent_decode` -- lenient decoder for callback query values.

The decoder never raises; malformed escapes in a callback target are
kept as literal text.
"""

from __future__ import annotations

_B64URL_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"

_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def base64url(data: bytes) -> str:
    """Encode *data* as unpadded base64url.

    Args:
        data: Raw bytes to encode.

    Returns:
        The encoded string, ``ceil(len(data) * 4 / 3)`` characters long.
    """
    out: list[str] = []
    length = len(data)
    i = 0
    while i + 2 < length:
        chunk = (data[i] << 16) | (data[i + 1] << 8) | data[i + 2]
        out.append(_B64URL_ALPHABET[(chunk >> 18) & 0x3F])
        out.append(_B64URL_ALPHABET[(chunk >> 12) & 0x3F])
        out.append(_B64URL_ALPHABET[(chunk >> 6) & 0x3F])
        out.append(_B64URL_ALPHABET[chunk & 0x3F])
        i += 3

    if i < length:
        b0 = data[i]
        out.append(_B64URL_ALPHABET[(b0 >> 2) & 0x3F])
        if i + 1 < length:
            b1 = data[i + 1]
            out.append(_B64URL_ALPHABET[((b0 & 0x03) << 4) | ((b1 >> 4) & 0x0F)])
            out.append(_B64URL_ALPHABET[(b1 & 0x0F) << 2])
        else:
            out.append(_B64URL_ALPHABET[(b0 & 0x03) << 4])

    return "".join(out)


def percent_encode(value: str) -> str:
    """Percent-encode *value* for use as a query parameter value.

    Non-ASCII characters are encoded as their UTF-8 bytes. Hex digits are
    uppercase.
    """
    out: list[str] = []
    for byte in value.encode("utf-8"):
        if byte in _UNRESERVED:
            out.append(chr(byte))
        else:
            out.append(f"%{byte:02X}")
    return "".join(out)


def percent_decode(value: str) -> str:
    """Decode ``%XX`` escapes and ``+`` in a query value without ever raising.

    * ``%XX`` with two hex digits becomes that byte.
    * ``+`` becomes a space (form encoding). A ``+`` produced by ``%2B``
      stays a literal plus.
    * A ``%`` that is not followed by two hex digits, including a
      truncated escape at the end of the input, is kept literally.

    The resulting bytes are read as UTF-8; invalid sequences become U+FFFD.

    Args:
        value: The raw, still-encoded value.

    Returns:
        The decoded string.
    """
    buf = bytearray()
    i = 0
    length = len(value)
    while i < length:
        ch = value[i]
        if (
            ch == "%"
            and i + 2 < length
            and value[i + 1] in _HEX_DIGITS
            and value[i + 2] in _HEX_DIGITS
        ):
            buf.append(int(value[i + 1 : i + 3], 16))
            i += 3
            continue
        if ch == "+":
            buf.append(0x20)
        else:
            buf += ch.encode("utf-8", errors="replace")
        i += 1
    return buf.decode("utf-8", errors="replace")
