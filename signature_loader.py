"""
signature_loader.py
===================
This module handles reading pigsty signature files from disk.
Each file holds one or more `[ ... ]` signature entries and is later
compiled by the SignatureEngine into a CompiledSet.

Responsibilities:
    - Locate signature files (relative to a base directory, or absolute)
    - Read the whole file content in one go
    - Report any read failure as an IoFailure
    - List the signature files available in the base directory
"""

import os
import logging

from pigsty_core.errors import IoFailure

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".pigsty"


class SignatureLoader:
    """
    Loads signature source files for the compiler.
    """

    def __init__(self, base_dir: str = "signatures", extension: str = DEFAULT_EXTENSION):
        """
        Initialize the loader with a base signatures directory.
        :param base_dir: Directory containing signature files (e.g., './signatures')
        :param extension: File extension of signature files (e.g., '.pigsty')
        """
        self.base_dir = base_dir
        self.extension = extension

    # ----------------------------------------------------------------------
    def resolve_path(self, path: str) -> str:
        """
        Resolve a signature path.
        Existing paths are used as given, anything else is looked up in the
        base directory, with and without the signature extension:
            'basic' -> './signatures/basic.pigsty'
        """
        if os.path.isabs(path) or os.path.exists(path):
            return path

        candidate = os.path.join(self.base_dir, path)
        if not os.path.exists(candidate) and not candidate.endswith(self.extension):
            with_ext = candidate + self.extension
            if os.path.exists(with_ext):
                return with_ext
        return candidate

    # ----------------------------------------------------------------------
    def load_source(self, path: str) -> str:
        """
        Return the complete text content of a signature file.
        Raises IoFailure if the file cannot be opened, read or decoded.
        """
        source_path = self.resolve_path(path)

        if not os.path.isfile(source_path):
            logger.error(f"Signature file not found: {source_path}")
            raise IoFailure(f"unable to open file \"{source_path}\"")

        try:
            with open(source_path, "r", encoding="utf-8") as file:
                data = file.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Unable to load data from {source_path}: {e}")
            raise IoFailure(f"unable to load data from file \"{source_path}\": {e}") from e

        logger.debug(f"Loaded {len(data)} characters from {source_path}")
        return data

    # ----------------------------------------------------------------------
    def list_available_signatures(self) -> list:
        """
        List all signature files in the base directory, sorted by name.
        Returns:
            ["basic-tcp.pigsty", "icmp-probes.pigsty"]
        """
        if not os.path.isdir(self.base_dir):
            raise FileNotFoundError(f"Signatures directory not found: {self.base_dir}")

        return sorted(
            f
            for f in os.listdir(self.base_dir)
            if f.endswith(self.extension) and os.path.isfile(os.path.join(self.base_dir, f))
        )
