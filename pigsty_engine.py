import os
import yaml

from pigsty_core.errors import ConfigurationError, PigstyError
from pigsty_core.logger import get_logger as Logger
from pigsty_core.materializer import materialize
from pigsty_core.models import CompiledSet
from pigsty_core.semantic_checker import build_protocol_rules, verify_required_fields
from pigsty_core.syntax_checker import check_buffer
from signature_loader import DEFAULT_EXTENSION, SignatureLoader

DEFAULT_CONFIG = {
    "signatures_dir": "signatures",
    "log_dir": "logs",
    "signature_extension": DEFAULT_EXTENSION,
    "protocol_rules": {},
}


def compile_text(text: str, protocol_rules=None) -> CompiledSet:
    """
    Compile a signature source buffer.

    Runs the syntax check, the materializer and the semantic check, in that
    order. Raises the first PigstyError found; on success returns the whole
    CompiledSet. Nothing built by a failing run is ever returned.
    """
    check_buffer(text)
    compiled = materialize(text)
    return verify_required_fields(compiled, build_protocol_rules(protocol_rules))


class SignatureEngine:
    """
    Core engine for the pigsty signature compiler.
    Coordinates configuration, source loading, the three compiler passes and logging.
    """

    def __init__(self, config_path=None):
        self.config = self._load_config(config_path)
        self.logger = Logger("Pigsty", log_dir=self.config["log_dir"])
        self.protocol_rules = build_protocol_rules(self.config["protocol_rules"])
        self.loader = SignatureLoader(
            self.config["signatures_dir"],
            extension=self.config["signature_extension"],
        )

    # -------------------------------
    # Utility Methods
    # -------------------------------
    def _load_config(self, config_path):
        config = dict(DEFAULT_CONFIG)
        if config_path is None:
            return config

        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path, "r") as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}")

        self._validate_config(loaded, config_path)
        config.update({k: v for k, v in (loaded or {}).items() if v is not None})
        return config

    def _validate_config(self, loaded, config_path):
        """
        Validate the config structure: a mapping of known keys with the right types.
        protocol_rules contents are checked by build_protocol_rules.
        """
        if loaded is None:
            return True
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Config '{config_path}' must be a mapping, got {type(loaded).__name__}"
            )

        unknown = sorted(set(loaded) - set(DEFAULT_CONFIG))
        if unknown:
            raise ConfigurationError(f"Unknown key(s) in config '{config_path}': {', '.join(map(str, unknown))}")

        for key in ("signatures_dir", "log_dir", "signature_extension"):
            if key in loaded and loaded[key] is not None and not isinstance(loaded[key], str):
                raise ConfigurationError(
                    f"'{key}' in {config_path} must be a string, got {type(loaded[key]).__name__}"
                )

        return True

    # -------------------------------
    # Core Compilation Flow
    # -------------------------------
    def compile_text(self, text, source="<text>"):
        """
        Compile an in-memory signature buffer with the configured protocol rules.
        """
        try:
            entries = check_buffer(text)
            self.logger.debug(f"{source}: syntax check passed ({entries} entries)")

            compiled = materialize(text)
            self.logger.debug(f"{source}: materialized {len(compiled)} signature(s)")

            verify_required_fields(compiled, self.protocol_rules)
        except PigstyError as e:
            self.logger.error(f"{source}: invalid signature detected [{e.rule}] {e}")
            raise

        self.logger.info(f"{source}: compiled {len(compiled)} signature(s)")
        return compiled

    def compile_file(self, path):
        """
        Main driver: load a signature file and compile it.
        Raises IoFailure when the file cannot be read.
        """
        try:
            text = self.loader.load_source(path)
        except PigstyError as e:
            self.logger.error(f"Some i/o error happened: {e}")
            raise

        return self.compile_text(text, source=path)

    def list_signature_files(self):
        return self.loader.list_available_signatures()
