#!/usr/bin/env python3
"""
otp_core.py - Core library for TOTP / HOTP code generation (standard and Steam).

Goals:
- Pure functions only: no file access, no prompting, no printing.
- Safe to call from several threads at once; nothing here keeps state.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP (RFC 4226):
  code = Truncate(HMAC-SHA1(key=secret, msg=counter))
- TOTP (RFC 6238):
  HOTP with counter = floor(timestamp / 30)
- Rendering:
  STANDARD -> code mod 10^6, zero-padded to 6 digits
  STEAM    -> 5 symbols from a 26-character alphabet, least significant first
"""

from enum import Enum
from typing import Optional, Tuple
import base64
import binascii
import hmac
import hashlib
import struct
import time

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # standard: 6 digits
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
STEAM_DIGITS = 5
STEAM_ALPHABET = "23456789BCDFGHJKMNPQRTVWXY"
MAX_COUNTER = 2 ** 64 - 1


class InvalidSecret(ValueError):
    """Secret is not valid base-32 once normalized."""


class Variant(Enum):
    """How the truncated HMAC value is rendered for the user."""

    STANDARD = "TOTP"
    STEAM = "Steam"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "Variant":
        """
        Parse the variant column of a config row.

        An empty or missing field means STANDARD. "TOTP", "Standard" and
        "Steam" are accepted regardless of case; surrounding whitespace is
        ignored.

        Raises:
            ValueError: for any other name
        """
        if name is None:
            return cls.STANDARD
        key = name.strip().lower()
        if key in ("", "totp", "standard"):
            return cls.STANDARD
        if key == "steam":
            return cls.STEAM
        raise ValueError(f"Unknown code variant: {name.strip()!r}")


# --- Secret handling -------------------------------------------------------
def normalize_secret(secret: str) -> str:
    """
    Bring a user-typed base-32 secret into canonical form.

    - Uppercase, all spaces removed.
    - Right-padded with '=' up to a multiple of 8 characters.

    Example: normalize_secret("dG Vz dA oO") -> "DGVZDAOO"
    """
    no_padding = secret.replace(" ", "").upper()
    pad_length = 8 - (len(no_padding) % 8)
    if pad_length < 8:
        return no_padding + "=" * pad_length
    return no_padding


def decode_secret(secret: str) -> bytes:
    """
    Normalize, then base-32 decode a secret into raw HMAC key bytes.

    Raises:
        InvalidSecret: if the normalized string is not valid base-32
    """
    normalized = normalize_secret(secret)
    try:
        return base64.b32decode(normalized)
    except (binascii.Error, ValueError) as e:
        raise InvalidSecret(f"Invalid Base32 secret: {normalized!r}") from e


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Convert the counter into the 8-byte big-endian HMAC message.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'

    Raises:
        ValueError: if the counter does not fit an unsigned 64-bit integer
    """
    if not 0 <= i <= MAX_COUNTER:
        raise ValueError(f"counter out of range: {i}")
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    RFC 4226 dynamic truncation.

    - offset = last_byte & 0x0F
    - 4 bytes from offset, MSB of the first one cleared (0x7F)
    - returns a non-negative 31-bit integer
    """
    offset = hmac_digest[-1] & 0x0F
    code = (
        ((hmac_digest[offset] & 0x7F) << 24)
        | ((hmac_digest[offset + 1] & 0xFF) << 16)
        | ((hmac_digest[offset + 2] & 0xFF) << 8)
        | (hmac_digest[offset + 3] & 0xFF)
    )
    return code


def _render_standard(dbc: int) -> str:
    return str(dbc % (10 ** DEFAULT_DIGITS)).zfill(DEFAULT_DIGITS)


def _render_steam(dbc: int) -> str:
    chars = []
    for _ in range(STEAM_DIGITS):
        chars.append(STEAM_ALPHABET[dbc % len(STEAM_ALPHABET)])
        dbc //= len(STEAM_ALPHABET)
    return "".join(chars)


_RENDERERS = {
    Variant.STANDARD: _render_standard,
    Variant.STEAM: _render_steam,
}


def generate_code(secret: str, counter: int, variant: Variant = Variant.STANDARD) -> str:
    """
    Generate the one-time code for a secret at a given counter.

    Steps:
    1. Normalize + base-32 decode secret -> raw key bytes
    2. Message = 8-byte counter (big-endian)
    3. HMAC-SHA1(key, message)
    4. Dynamic truncate -> dbc (31-bit)
    5. Render dbc according to the variant

    Arguments:
        secret: base-32 secret, any case, spaces allowed
        counter: non-negative 64-bit counter (unix_time // 30 for TOTP)
        variant: Variant.STANDARD (6 digits) or Variant.STEAM (5 symbols)

    Raises:
        InvalidSecret: if the secret is not valid base-32
        ValueError: if the counter is out of range
    """
    key = decode_secret(secret)
    msg = int_to_bytes(counter)
    digest = hmac.new(key, msg, hashlib.sha1).digest()
    return _RENDERERS[variant](dynamic_truncate(digest))


def time_step(timestamp: Optional[float] = None, timestep: int = DEFAULT_TIME_STEP) -> Tuple[int, int]:
    """
    Current TOTP counter and seconds elapsed inside the current window.

    Uses time.time() when no timestamp is given.
    """
    if timestamp is None:
        timestamp = time.time()
    now = int(timestamp)
    return now // timestep, now % timestep


def adjacent_codes(secret: str, counter: int,
                   variant: Variant = Variant.STANDARD) -> Tuple[str, str, str]:
    """Codes for the previous, current and next window.

    The previous code is "" when counter is 0.
    """
    prev_code = generate_code(secret, counter - 1, variant) if counter > 0 else ""
    curr_code = generate_code(secret, counter, variant)
    next_code = generate_code(secret, counter + 1, variant)
    return prev_code, curr_code, next_code
