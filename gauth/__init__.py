"""
gauth package
=============

TOTP code generator for the terminal: RFC 4226/6238 codes, Steam Guard codes,
and a config file that can be kept encrypted in openssl's "Salted__" format.

Quick example:
>>> from gauth import Variant, generate_code
>>> generate_code("DGVZDAO=", 0)
'117080'
"""
from .config_crypto import ConfigError, DecryptionFailed, MalformedBlob, decrypt, encrypt
from .config_store import Record, load_records, parse_records
from .otp_core import (
    InvalidSecret,
    Variant,
    adjacent_codes,
    generate_code,
    normalize_secret,
    time_step,
)

__all__ = [
    "ConfigError",
    "DecryptionFailed",
    "InvalidSecret",
    "MalformedBlob",
    "Record",
    "Variant",
    "adjacent_codes",
    "decrypt",
    "encrypt",
    "generate_code",
    "load_records",
    "normalize_secret",
    "parse_records",
    "time_step",
]
