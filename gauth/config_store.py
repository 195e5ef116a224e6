"""
config_store.py - Locate, load and parse the gauth config file.

File format (one account per line, Unix-style colon-separated):

    label:base32secret[:variant]

variant is "TOTP" (default) or "Steam". The file may be stored encrypted,
see config_crypto.py.
"""

from typing import Callable, List, NamedTuple, Optional
import csv
import io
import os

from .config_crypto import ConfigError, decrypt, is_encrypted
from .otp_core import Variant

DEFAULT_CONFIG_FILE = os.path.join("~", ".config", "gauth.csv")


class Record(NamedTuple):
    label: str
    secret: str
    variant: Variant


def config_path(path: Optional[str] = None) -> str:
    """Expand ~ in the given path, or in DEFAULT_CONFIG_FILE when path is None."""
    return os.path.expanduser(path or DEFAULT_CONFIG_FILE)


def read_config(path: str) -> bytes:
    """
    Read raw config bytes.

    Raises:
        ConfigError: if the file cannot be read
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e.strerror or e}") from e


def parse_records(text: str) -> List[Record]:
    """
    Parse colon-delimited config text into records.

    Blank lines are skipped. Secrets are kept as written; normalization is
    done by otp_core when the code is generated.

    Raises:
        ConfigError: a row has fewer than two fields or an unknown variant
    """
    reader = csv.reader(io.StringIO(text), delimiter=":")
    try:
        return _collect(reader)
    except csv.Error as e:
        raise ConfigError(f"Line {reader.line_num}: {e}") from e


def _collect(reader) -> List[Record]:
    records = []
    for row in reader:
        if not row or all(not field.strip() for field in row):
            continue
        if len(row) < 2:
            raise ConfigError(f"Line {reader.line_num}: expected label:secret[:variant]")
        try:
            variant = Variant.from_name(row[2] if len(row) > 2 else None)
        except ValueError as e:
            raise ConfigError(f"Line {reader.line_num}: {e}") from e
        records.append(Record(row[0], row[1], variant))
    return records


def load_records(path: str, get_password: Callable[[], str],
                 legacy_padding: bool = False) -> List[Record]:
    """
    Read, decrypt if needed, and parse a config file.

    get_password is only called when the file carries the encryption marker.

    Raises:
        ConfigError (or a subclass): unreadable, undecryptable or unparsable file
    """
    blob = read_config(path)
    if is_encrypted(blob):
        blob = decrypt(blob, get_password(), legacy_padding=legacy_padding)
    try:
        text = blob.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ConfigError("Config is not valid UTF-8 text (wrong password?)") from e
    return parse_records(text)
