import logging
import textwrap

import pytest

BASIC_TCP = """\
[ signature = "basic-tcp", ip.version = 4, ip.src = "192.168.0.1", ip.dst = "192.168.0.2",
  ip.protocol = 6, tcp.src = 1025, tcp.dst = 80 ]
"""


@pytest.fixture
def basic_tcp():
    return BASIC_TCP


@pytest.fixture(autouse=True)
def fresh_logger():
    """Drop the handlers get_logger attached so each test logs to its own streams."""
    yield
    logger = logging.getLogger("Pigsty")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def workspace(tmp_path):
    """A signatures directory, a log directory and a config.yaml pointing at both."""
    signatures = tmp_path / "signatures"
    signatures.mkdir()
    (signatures / "basic.pigsty").write_text(BASIC_TCP, encoding="utf-8")

    config = tmp_path / "config.yaml"
    config.write_text(
        textwrap.dedent(
            f"""\
            signatures_dir: {signatures}
            log_dir: {tmp_path / "logs"}
            signature_extension: .pigsty
            protocol_rules: {{}}
            """
        ),
        encoding="utf-8",
    )
    return tmp_path
