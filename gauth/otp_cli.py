#!/usr/bin/env python3
"""
otp_cli.py - command-line driver for gauth.

Subcommands:
- codes   : (default) previous/current/next code for every configured account
- hotp    : code for one secret at an explicit counter
- encrypt : encrypt a plaintext config into an openssl-compatible blob

Usage examples:
  gauth
  gauth --config ~/secrets/gauth.csv codes
  gauth hotp --secret JBSWY3DPEHPK3PXP --counter 42
  gauth encrypt gauth.csv ~/.config/gauth.csv
"""

import argparse
import getpass
import os
import shutil
import sys

from .config_crypto import encrypt
from .config_store import config_path, load_records
from .otp_core import Variant, adjacent_codes, generate_code, time_step

MIN_LABEL_WIDTH = 10


def log(msg: str, verbose: bool):
    if verbose:
        print(f"[+] {msg}", file=sys.stderr)


def prompt_password(prompt: str = "Encryption password: ") -> str:
    return getpass.getpass(prompt)


def render_table(rows, elapsed: int) -> str:
    """
    Format (label, prev, curr, next) rows plus the progress bar of the
    current 30 second window.
    """
    width = max([MIN_LABEL_WIDTH] + [len(row[0]) for row in rows])
    lines = [f"{'':<{width}} prev   curr   next"]
    for label, prev_code, curr_code, next_code in rows:
        lines.append(f"{label:<{width}} {prev_code:>6} {curr_code:>6} {next_code:>6}")
    lines.append(f"[{'=' * elapsed:<29}]")
    return "\n".join(lines)


# --- CLI command handlers ---
def cmd_codes(args) -> int:
    path = config_path(args.config)
    log(f"Reading config {path}", args.verbose)
    records = load_records(path, prompt_password, legacy_padding=args.legacy_padding)
    log(f"Loaded {len(records)} account(s)", args.verbose)

    counter, elapsed = time_step(args.at)
    log(f"TOTP counter={counter}, elapsed={elapsed}s", args.verbose)

    # every code is computed before anything is printed
    rows = [(r.label,) + adjacent_codes(r.secret, counter, r.variant) for r in records]
    print(render_table(rows, elapsed))
    return 0


def cmd_hotp(args) -> int:
    variant = Variant.from_name(args.variant)
    code = generate_code(args.secret, args.counter, variant)
    log(f"{variant.value}(counter={args.counter})", args.verbose)
    print(code)
    return 0


def cmd_encrypt(args) -> int:
    with open(args.input, "rb") as f:
        plaintext = f.read()

    password = prompt_password("New encryption password: ")
    if password != prompt_password("Repeat password: "):
        print("[!] Passwords do not match", file=sys.stderr)
        return 1

    output = os.path.expanduser(args.output)
    if os.path.exists(output):
        log(f"{output} exists, keeping a backup at {output}.bak", args.verbose)
        shutil.copy2(output, output + ".bak")
    with open(output, "wb") as f:
        f.write(encrypt(plaintext, password))
    print(f"[*] Encrypted config written to {output}")
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gauth", description="TOTP code generator (standard and Steam codes).")
    p.add_argument("--config", help="Config file (default: ~/.config/gauth.csv)")
    p.add_argument("--legacy-padding", action="store_true",
                   help="Strip padding the way older gauth versions did instead of checking PKCS#7")
    p.add_argument("--verbose", action="store_true", help="Verbose output on stderr")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_codes, at=None)

    # codes
    pc = sub.add_parser("codes", help="Show previous/current/next codes for all accounts")
    pc.add_argument("--at", type=float, help="Unix time to use instead of now")
    pc.set_defaults(func=cmd_codes)

    # hotp
    ph = sub.add_parser("hotp", help="Generate the code for a specific counter")
    ph.add_argument("--secret", required=True, help="Base32 secret")
    ph.add_argument("--counter", type=int, required=True)
    ph.add_argument("--variant", default="TOTP", help="TOTP (6 digits) or Steam")
    ph.set_defaults(func=cmd_hotp)

    # encrypt
    pe = sub.add_parser("encrypt", help="Encrypt a plaintext config (openssl aes-128-cbc -md sha256 format)")
    pe.add_argument("input", help="Plaintext config file")
    pe.add_argument("output", help="Where to write the encrypted config")
    pe.set_defaults(func=cmd_encrypt)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (ValueError, OSError) as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\nBye.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
