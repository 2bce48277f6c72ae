"""HMAC signatures for JW publish requests.

JW signs every publish request with the secret it issued when the webhook was
created.  The ``Authorization`` header carries ``sha256=<hex digest>`` where
the digest is HMAC-SHA256 over the exact request body bytes.  The body must be
the bytes received on the wire: parsing and re-serialising it first changes the
digest.

Every failure is reported as a distinct ``AuthFailure`` for diagnostics, but
callers must treat all of them the same way.
"""

from __future__ import annotations

import enum
import hashlib
import hmac
import re
from dataclasses import dataclass

SCHEME_PREFIX = "sha256="

_DIGEST_RE = re.compile(r"[0-9a-f]{%d}" % (hashlib.sha256().digest_size * 2))


class AuthFailure(str, enum.Enum):
    HEADER_MISSING = "header_missing"
    HEADER_MALFORMED = "header_malformed"
    SECRET_MISSING = "secret_missing"
    DIGEST_MISMATCH = "digest_mismatch"


@dataclass(frozen=True)
class Verification:
    failure: AuthFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


VERIFIED = Verification()


def _digest(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def sign(body: bytes, secret: str) -> str:
    """Return the ``Authorization`` header value JW would send for ``body``."""
    return SCHEME_PREFIX + _digest(body, secret)


def verify(authorization: str | None, secret: str, body: bytes) -> Verification:
    """Check ``authorization`` against the HMAC of ``body`` keyed by ``secret``."""
    if not authorization:
        return Verification(AuthFailure.HEADER_MISSING)

    if not authorization.startswith(SCHEME_PREFIX):
        return Verification(AuthFailure.HEADER_MALFORMED)

    claimed = authorization[len(SCHEME_PREFIX):]
    if not _DIGEST_RE.fullmatch(claimed):
        return Verification(AuthFailure.HEADER_MALFORMED)

    if not secret:
        return Verification(AuthFailure.SECRET_MISSING)

    if not hmac.compare_digest(_digest(body, secret), claimed):
        return Verification(AuthFailure.DIGEST_MISMATCH)

    return VERIFIED
