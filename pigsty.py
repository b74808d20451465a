#!/usr/bin/env python3
"""
pigsty - Packet Signature Compiler CLI
Description:
    This script is the MAIN ENTRY POINT of the pigsty compiler.
    It loads the configuration, picks a signature file (from the command
    line or from the signatures directory) and asks the SignatureEngine to
    compile it, reporting the signatures found or the first error.
"""

import argparse
import os
import sys

from pigsty_core.errors import PigstyError
from pigsty_core.formatter import SignatureFormatter
from pigsty_engine import SignatureEngine


# --------------------------------------
# Helper Functions
# --------------------------------------
def display_menu(files):
    """
    Display available signature files and let the user pick one.
    """
    print("\n=== Available Signature Files ===")
    for idx, name in enumerate(files, 1):
        print(f"{idx}. {name}")

    try:
        choice = int(input("\nSelect file number: ").strip())
        if choice < 1 or choice > len(files):
            raise ValueError
    except ValueError:
        print("[!] Invalid selection.")
        sys.exit(1)

    return files[choice - 1]


def display_compiled(compiled, show=False):
    """
    Print a summary line per signature, or the full canonical source with show=True.
    """
    if show:
        print(SignatureFormatter(multiline=True).format(compiled), end="")
        return

    print(f"\n=== {len(compiled)} Signature(s) Compiled ===")
    for idx, signature in enumerate(compiled, 1):
        print(f"{idx}. {signature.display_name} - {len(signature)} fields")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pigsty",
        description="Compile pigsty packet signature files",
    )
    parser.add_argument("source", nargs="?", help="signature file (path, or name inside the signatures directory)")
    parser.add_argument("-c", "--config", default=None, help="config.yaml path (default: ./config.yaml when present)")
    parser.add_argument("--show", action="store_true", help="print the compiled signatures in canonical form")
    parser.add_argument("--list", action="store_true", help="list the signature files of the signatures directory")
    return parser


# --------------------------------------
# Main Function
# --------------------------------------
def main(argv=None):
    args = build_parser().parse_args(argv)

    config_path = args.config
    if config_path is None and os.path.exists("config.yaml"):
        config_path = "config.yaml"

    try:
        engine = SignatureEngine(config_path)
    except (PigstyError, FileNotFoundError) as e:
        print(f"[ERROR] {e}")
        return 1

    if args.list or args.source is None:
        try:
            files = engine.list_signature_files()
        except FileNotFoundError as e:
            print(f"[ERROR] {e}")
            return 1
        if not files:
            print("[ERROR] No signature files found.")
            return 1
        if args.list:
            for name in files:
                print(name)
            return 0
        args.source = display_menu(files)

    try:
        compiled = engine.compile_file(args.source)
    except PigstyError as e:
        print(f"[ERROR] {e}")
        print("[ERROR] invalid signature detected, fix it and try again.")
        return 1

    display_compiled(compiled, show=args.show)
    return 0


# --------------------------------------
# Entry Point
# --------------------------------------
if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n[!] Exiting gracefully...")
        sys.exit(0)
