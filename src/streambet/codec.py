"""Obscured value codec for wager amounts.

Amounts are stored as opaque tokens of the form ``FHE-<base64(number)>``.
This is a reversible encoding, not encryption: anyone holding a token can
recover the amount. The scheme tag lets other schemes coexist later; tokens
without a known tag are read as bare numbers for older records.

``transform`` applies one of a closed set of numeric operations and returns
only the re-encoded token, so a real confidential-computation backend can
replace this class without touching call sites.

Input validation (finite, non-negative amounts) is the caller's job. The
codec trusts what it is given.
"""
from __future__ import annotations

import base64
import binascii
import logging
import math
import re
from enum import Enum

from streambet.errors import MalformedTokenError

logger = logging.getLogger(__name__)

ObscuredToken = str

SCHEME_TAG = "FHE-"

# Plain decimal literals only; rejects Python-only forms such as "1_0" or "inf"
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


class Operation(str, Enum):
    INCREASE_10PCT = "increase10%"
    DECREASE_10PCT = "decrease10%"
    DOUBLE = "double"
    IDENTITY = "identity"


_FACTORS = {
    Operation.INCREASE_10PCT: 1.1,
    Operation.DECREASE_10PCT: 0.9,
    Operation.DOUBLE: 2.0,
    Operation.IDENTITY: 1.0,
}


def format_number(value: float) -> str:
    """Shortest decimal text for a number; integral values drop the '.0'."""
    value = float(value)
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _to_number(text: str) -> float | None:
    text = text.strip()
    if not _DECIMAL_RE.fullmatch(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


class ObscuredValueCodec:
    scheme = SCHEME_TAG

    def encode(self, value: float) -> ObscuredToken:
        payload = format_number(value).encode("ascii")
        return f"{self.scheme}{base64.b64encode(payload).decode('ascii')}"

    def decode(self, token: ObscuredToken) -> float:
        if token.startswith(self.scheme):
            try:
                text = base64.b64decode(token[len(self.scheme):], validate=True).decode("ascii")
            except (binascii.Error, UnicodeDecodeError):
                text = None
            if text is not None:
                value = _to_number(text)
                if value is not None:
                    return value

        # Raw-numeric fallback for records written before the scheme tag
        value = _to_number(token)
        if value is None:
            raise MalformedTokenError(token)
        return value

    def transform(self, token: ObscuredToken, op: Operation | str) -> ObscuredToken:
        try:
            operation = Operation(op)
        except ValueError:
            logger.warning("Unknown transform operation, applying identity", extra={"op": str(op)})
            operation = Operation.IDENTITY
        return self.encode(self.decode(token) * _FACTORS[operation])

    def is_scheme_token(self, token: ObscuredToken) -> bool:
        return token.startswith(self.scheme)


codec = ObscuredValueCodec()
