"""
RFC 3986 percent-encoding for query parameter values.
"""
from io import BytesIO
from string import ascii_letters, digits

# Unreserved bytes from RFC 3986.
_rfc3986_unreserved = frozenset((ascii_letters + digits + "-._~")
                                .encode("utf-8"))

# Valid bytes following a '%'
_hex_digits = frozenset(b"0123456789abcdefABCDEF")

# ASCII code for '%'
_ascii_percent = ord(b"%")

def percent_encode(value):
    """
    percent_encode(value) -> str

    Encode the UTF-8 bytes of value according to RFC 3986:
    * Alpha, digit, and the symbols '-', '.', '_', and '~' (unreserved
      characters) are left alone.
    * Every other byte is replaced by '%XX', using uppercase hex digits.

    Spaces become '%20', never '+'. AWS recomputes the signature over this
    exact form, so any deviation is a signature mismatch.
    """
    if not isinstance(value, bytes):
        value = value.encode("utf-8")

    result = BytesIO()
    for c in value:
        if c in _rfc3986_unreserved:
            result.write(bytes((c,)))
        else:
            result.write(("%%%02X" % c).encode("ascii"))

    return result.getvalue().decode("ascii")

def percent_decode(value):
    """
    percent_decode(value) -> str

    Reverse percent_encode. '%XX' sequences are decoded (in either case)
    and the resulting bytes are interpreted as UTF-8.

    A ValueError exception is raised if a percent encoding is incomplete or
    includes non-hex characters (e.g. %3z).
    """
    value = value.encode("utf-8")
    result = BytesIO()

    i = 0
    while i < len(value):
        c = value[i]
        if c == _ascii_percent:
            if i + 3 > len(value):
                raise ValueError("Incomplete %% encoding at position %d" % i)

            hex_digits = value[i+1:i+3]
            if not all(h in _hex_digits for h in hex_digits):
                raise ValueError("Invalid %% encoding at position %d" % i)

            result.write(bytes((int(hex_digits, 16),)))
            i += 3
        else:
            result.write(bytes((c,)))
            i += 1

    return result.getvalue().decode("utf-8")

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8
