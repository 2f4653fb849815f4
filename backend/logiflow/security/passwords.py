"""Password hashing with backward compatibility for legacy stored formats.

New hashes always use werkzeug's ``generate_password_hash``. Accounts imported
from earlier deployments may still hold one of the older formats, which are
tried in order:

  1. werkzeug    ``method$salt$hash``
  2. PBKDF2-SHA256  ``salt:hexhash`` (32-byte digest, 100k iterations)
  3. PBKDF2-SHA512  ``salt:hexhash`` (64-byte digest, 100k iterations)
  4. scrypt      ``hexhash.salt`` (N=16384, r=8, p=1, 64-byte key)

Verification never raises: malformed stored values simply fail.
"""
from __future__ import annotations
import hashlib
import hmac
import logging
from typing import Optional

from werkzeug.security import generate_password_hash, check_password_hash

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000
SCRYPT_N, SCRYPT_R, SCRYPT_P, SCRYPT_DKLEN = 16384, 8, 1, 64

FORMAT_WERKZEUG = 'werkzeug'
FORMAT_PBKDF2_SHA256 = 'pbkdf2-sha256'
FORMAT_PBKDF2_SHA512 = 'pbkdf2-sha512'
FORMAT_SCRYPT = 'scrypt'


def hash_password(raw: str) -> str:
    return generate_password_hash(raw)


def detect_format(stored: Optional[str]) -> Optional[str]:
    if not stored or not isinstance(stored, str):
        return None
    if stored.count('$') == 2:
        return FORMAT_WERKZEUG
    if ':' in stored:
        _, _, digest = stored.partition(':')
        if len(digest) == 64:
            return FORMAT_PBKDF2_SHA256
        if len(digest) == 128:
            return FORMAT_PBKDF2_SHA512
        return None
    if '.' in stored:
        return FORMAT_SCRYPT
    return None


def _unhex(value: str) -> Optional[bytes]:
    try:
        return bytes.fromhex(value)
    except ValueError:
        return None


def _check_pbkdf2(raw: str, stored: str, algorithm: str) -> bool:
    salt, _, digest_hex = stored.partition(':')
    expected = _unhex(digest_hex)
    if not salt or expected is None:
        return False
    candidate = hashlib.pbkdf2_hmac(algorithm, raw.encode(), salt.encode(), PBKDF2_ITERATIONS, dklen=len(expected))
    return hmac.compare_digest(candidate, expected)


def _check_scrypt(raw: str, stored: str) -> bool:
    digest_hex, _, salt = stored.partition('.')
    expected = _unhex(digest_hex)
    if not salt or not expected or len(expected) != SCRYPT_DKLEN:
        return False
    candidate = hashlib.scrypt(raw.encode(), salt=salt.encode(), n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P, dklen=SCRYPT_DKLEN)
    return hmac.compare_digest(candidate, expected)


def verify_password(raw: Optional[str], stored: Optional[str]) -> bool:
    if not isinstance(raw, str):
        return False
    fmt = detect_format(stored)
    if fmt is None:
        logger.warning('Stored password hash has no recognised format')
        return False
    if fmt == FORMAT_WERKZEUG:
        try:
            return check_password_hash(stored, raw)
        except ValueError:
            return False
    if fmt == FORMAT_PBKDF2_SHA256:
        return _check_pbkdf2(raw, stored, 'sha256')
    if fmt == FORMAT_PBKDF2_SHA512:
        return _check_pbkdf2(raw, stored, 'sha512')
    return _check_scrypt(raw, stored)


def needs_rehash(stored: Optional[str]) -> bool:
    return detect_format(stored) != FORMAT_WERKZEUG


__all__ = ['hash_password', 'verify_password', 'needs_rehash', 'detect_format']
