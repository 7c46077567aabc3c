"""
Hash Codec Module

SHA-256 hashing for block proof-of-work, rendered as hexadecimal text.

Components:
- Digest: SHA-256 of the UTF-8 bytes of a string, 64 uppercase hex chars
- Difficulty check: count of leading '0' hex characters
- Benchmark: approximate hashes per second on this machine

The digest is computed through the `cryptography` package. If the
backend cannot provide SHA-256, DigestUnavailable is raised; there is
no fallback, since proof of work is meaningless without the primitive.
"""

import time
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes


# ============================================================================
# Constants
# ============================================================================

DIGEST_HEX_LENGTH = 64  # 256 bits as hex
BENCHMARK_HASH_COUNT = 2_000_000
BENCHMARK_SAMPLE = "00000000"


class DigestUnavailable(RuntimeError):
    """Raised when the SHA-256 primitive cannot be obtained."""
    pass


# ============================================================================
# Digest
# ============================================================================

def require_sha256() -> None:
    """
    Make sure SHA-256 is usable before any mining starts.

    Raises:
        DigestUnavailable: If the crypto backend does not support SHA-256
    """
    try:
        hashes.Hash(hashes.SHA256(), backend=default_backend())
    except UnsupportedAlgorithm as e:
        raise DigestUnavailable(f"No SHA-256 available: {e}") from e


def sha256_bytes(data: bytes) -> bytes:
    """Compute the raw 32-byte SHA-256 digest of data."""
    try:
        digest = hashes.Hash(hashes.SHA256(), backend=default_backend())
    except UnsupportedAlgorithm as e:
        raise DigestUnavailable(f"No SHA-256 available: {e}") from e
    digest.update(data)
    return digest.finalize()


def sha256_hex(text: str) -> str:
    """
    Hash a string and return the digest as uppercase hex.

    Characters UTF-8 cannot encode (lone surrogates) are hashed as '?',
    so every string has a digest.

    Args:
        text: Input string (encoded as UTF-8)

    Returns:
        64-character uppercase hexadecimal digest
    """
    return sha256_bytes(text.encode('utf-8', errors='replace')).hex().upper()


# ============================================================================
# Difficulty helpers
# ============================================================================

def leading_zeros(hex_digest: str) -> int:
    """Count leading '0' characters of a hex digest."""
    return len(hex_digest) - len(hex_digest.lstrip('0'))


def meets_difficulty(hex_digest: str, difficulty: int) -> bool:
    """Check whether a hex digest starts with `difficulty` zeros."""
    return leading_zeros(hex_digest) >= difficulty


# ============================================================================
# Benchmark
# ============================================================================

def benchmark_hash_rate(
    count: int = BENCHMARK_HASH_COUNT,
    sample: str = BENCHMARK_SAMPLE
) -> Optional[int]:
    """
    Estimate how many hashes this machine computes per second.

    Hashes `sample` `count` times and divides by the elapsed whole
    milliseconds, matching how the figure has always been reported
    (hashes per millisecond, truncated).

    Args:
        count: Number of digests to compute
        sample: String to hash

    Returns:
        The truncated rate, or None if the elapsed time rounds to zero
        milliseconds (rate unavailable)
    """
    start = time.perf_counter()
    for _ in range(count):
        sha256_hex(sample)
    elapsed_ms = int((time.perf_counter() - start) * 1000)

    if elapsed_ms == 0:
        return None
    return int(count / elapsed_ms)
