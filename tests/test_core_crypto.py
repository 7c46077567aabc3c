"""
Unit tests for the hash codec.

Tests:
- SHA-256 hex digests
- Difficulty helpers
- Hash rate benchmark
- Missing primitive handling
"""

import types

import pytest
from cryptography.exceptions import UnsupportedAlgorithm

from powledger.core_crypto import hash_codec
from powledger.core_crypto.hash_codec import (
    sha256_hex, leading_zeros, meets_difficulty, benchmark_hash_rate,
    require_sha256, DigestUnavailable, DIGEST_HEX_LENGTH
)


class TestSHA256Hex:
    """Unit tests for sha256_hex."""

    def test_empty_string(self):
        """Test SHA-256 of empty string."""
        expected = "E3B0C44298FC1C149AFBF4C8996FB92427AE41E4649B934CA495991B7852B855"
        assert sha256_hex("") == expected

    def test_abc(self):
        """Test SHA-256 of 'abc'."""
        expected = "BA7816BF8F01CFEA414140DE5DAE2223B00361A396177A9CB410FF61F20015AD"
        assert sha256_hex("abc") == expected

    def test_length_and_case(self):
        """Digest is 64 uppercase hex characters."""
        digest = sha256_hex("Genesis")
        assert len(digest) == DIGEST_HEX_LENGTH
        assert digest == digest.upper()
        int(digest, 16)

    def test_deterministic(self):
        """Same input gives same digest."""
        assert sha256_hex("tx1") == sha256_hex("tx1")
        assert sha256_hex("tx1") != sha256_hex("tx2")

    def test_unicode_is_utf8(self):
        """Non-ASCII text is hashed as UTF-8."""
        expected = hash_codec.sha256_bytes("héllo".encode('utf-8')).hex().upper()
        assert sha256_hex("héllo") == expected

    def test_unencodable_text_still_hashes(self):
        """A lone surrogate is hashed as '?' instead of raising."""
        assert sha256_hex("a\ud800b") == sha256_hex("a?b")


class TestDifficultyHelpers:
    """Tests for leading zero helpers."""

    def test_leading_zeros(self):
        assert leading_zeros("00AB") == 2
        assert leading_zeros("AB00") == 0
        assert leading_zeros("0000") == 4

    def test_meets_difficulty(self):
        assert meets_difficulty("00AB", 2)
        assert not meets_difficulty("00AB", 3)

    def test_zero_difficulty_always_met(self):
        assert meets_difficulty("FFFF", 0)

    def test_more_zeros_than_required(self):
        assert meets_difficulty("000A", 1)
        assert not meets_difficulty("0A00", 2)


class TestBenchmark:
    """Tests for the hash rate benchmark."""

    def test_rate_is_count_over_millis(self, monkeypatch):
        """1000 hashes in 10 ms gives 100."""
        ticks = iter([0.0, 0.010])
        monkeypatch.setattr(
            hash_codec, 'time', types.SimpleNamespace(perf_counter=lambda: next(ticks))
        )
        assert benchmark_hash_rate(count=1000) == 100

    def test_zero_elapsed_is_unavailable(self, monkeypatch):
        """No division by zero when the run takes under a millisecond."""
        monkeypatch.setattr(
            hash_codec, 'time', types.SimpleNamespace(perf_counter=lambda: 42.0)
        )
        assert benchmark_hash_rate(count=10) is None

    def test_real_run_returns_int_or_none(self):
        rate = benchmark_hash_rate(count=2000)
        assert rate is None or (isinstance(rate, int) and rate >= 0)


class TestDigestUnavailable:
    """The missing primitive is fatal, never an empty hash."""

    def _raise_unsupported(self, *args, **kwargs):
        raise UnsupportedAlgorithm("sha256 disabled")

    def test_require_sha256_raises(self, monkeypatch):
        monkeypatch.setattr(hash_codec.hashes, 'Hash', self._raise_unsupported)
        with pytest.raises(DigestUnavailable):
            require_sha256()

    def test_sha256_hex_raises(self, monkeypatch):
        monkeypatch.setattr(hash_codec.hashes, 'Hash', self._raise_unsupported)
        with pytest.raises(DigestUnavailable):
            sha256_hex("abc")

    def test_require_sha256_passes_normally(self):
        require_sha256()
