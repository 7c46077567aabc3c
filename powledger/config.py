"""
Configuration for the ledger server and clients.

Defaults live in module constants; ServerConfig.from_env() lets the
POWLEDGER_* environment variables override them. Command-line flags
override both (see main.py).
"""

import os
from dataclasses import dataclass
from typing import Optional, Mapping


# ============================================================================
# Constants
# ============================================================================

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6789
GENESIS_DIFFICULTY = 2
GENESIS_DATA = "Genesis"
DEFAULT_LOG_LEVEL = "INFO"
CLIENT_TIMEOUT = None  # Mining has no upper bound, so neither does a reply


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass
class ServerConfig:
    """Settings for a ledger server process."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    genesis_difficulty: int = GENESIS_DIFFICULTY
    max_difficulty: Optional[int] = None  # None means no cap
    benchmark: bool = True
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ServerConfig':
        """
        Build a config from POWLEDGER_* environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ValueError: If a numeric variable is not an integer
        """
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("POWLEDGER_HOST", DEFAULT_HOST),
            port=int(env.get("POWLEDGER_PORT", DEFAULT_PORT)),
            genesis_difficulty=int(
                env.get("POWLEDGER_GENESIS_DIFFICULTY", GENESIS_DIFFICULTY)
            ),
            max_difficulty=_int_or_none(env.get("POWLEDGER_MAX_DIFFICULTY")),
            benchmark=env.get("POWLEDGER_BENCHMARK", "1") not in ("0", "false", "no"),
            log_level=env.get("POWLEDGER_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )
