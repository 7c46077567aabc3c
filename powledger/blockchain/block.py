"""
Block Module

A single ledger record and its proof of work.

Hash input is the plain concatenation of
    index + timestamp + data + previous_hash + nonce + difficulty
with the timestamp rendered as 'yyyy-MM-dd HH:mm:ss.SSS'. There are no
delimiters between fields, so two different field splits can produce the
same input string. The format is kept as-is so existing hashes stay
reproducible.

A Block never maintains its own invariants: changing `data` does not
re-mine and changing `nonce` does not re-check anything. Keeping the
proof of work and the chain linkage intact is the job of Blockchain.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any

from ..core_crypto.hash_codec import sha256_hex, meets_difficulty


# ============================================================================
# Timestamps
# ============================================================================

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"  # followed by '.SSS'


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as 'yyyy-MM-dd HH:mm:ss.SSS'."""
    return f"{moment.strftime(TIMESTAMP_FORMAT)}.{moment.microsecond // 1000:03d}"


def parse_timestamp(text: str) -> datetime:
    """
    Parse a 'yyyy-MM-dd HH:mm:ss.SSS' string back into a datetime.

    Raises:
        ValueError: If the text does not match the format
    """
    return datetime.strptime(text, TIMESTAMP_FORMAT + ".%f")


def truncate_to_millis(moment: datetime) -> datetime:
    """Drop sub-millisecond precision."""
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


def now_millis() -> datetime:
    """Current local time at millisecond resolution."""
    return truncate_to_millis(datetime.now())


# ============================================================================
# Block
# ============================================================================

@dataclass
class Block:
    """
    Mutable block record.

    Unlike a sealed block, every field here can be reassigned after the
    block joins a chain; that is what makes corruption and repair possible.
    """
    index: int
    timestamp: datetime
    data: str
    difficulty: int
    previous_hash: str = ""
    nonce: int = 0

    def __post_init__(self):
        if self.index < 0:
            raise ValueError("Block index cannot be negative")
        if self.difficulty < 0:
            raise ValueError("Difficulty cannot be negative")
        self.timestamp = truncate_to_millis(self.timestamp)

    def _hash_prefix(self) -> str:
        # Everything before the nonce; constant during a nonce search
        return (
            f"{self.index}{format_timestamp(self.timestamp)}"
            f"{self.data}{self.previous_hash}"
        )

    def calculate_hash(self) -> str:
        """Hash the current fields as they are (no mining)."""
        return sha256_hex(f"{self._hash_prefix()}{self.nonce}{self.difficulty}")

    def proof_of_work(self) -> str:
        """
        Search for a nonce that gives `difficulty` leading zero hex chars.

        The search starts from the current nonce and counts upward. It has
        no upper bound: a high difficulty can keep this running for a very
        long time, and that cost is the point of proof of work.

        Returns:
            The hex digest that satisfies the difficulty

        Side effects:
            Updates self.nonce to the winning value
        """
        prefix = self._hash_prefix()
        target = '0' * self.difficulty
        while True:
            block_hash = sha256_hex(f"{prefix}{self.nonce}{self.difficulty}")
            if block_hash.startswith(target):
                return block_hash
            self.nonce += 1

    def has_valid_proof(self) -> bool:
        """Check this block's own proof of work without searching."""
        return meets_difficulty(self.calculate_hash(), self.difficulty)

    def to_dict(self) -> Dict[str, Any]:
        """Convert block to its wire representation."""
        return {
            'index': self.index,
            'timeStamp': format_timestamp(self.timestamp),
            'data': self.data,
            'previousHash': self.previous_hash,
            'nonce': self.nonce,
            'difficulty': self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Block':
        """Create block from its wire representation."""
        return cls(
            index=int(data['index']),
            timestamp=parse_timestamp(data['timeStamp']),
            data=data['data'],
            difficulty=int(data['difficulty']),
            previous_hash=data.get('previousHash') or "",
            nonce=int(data['nonce']),
        )

    def __str__(self) -> str:
        return (
            f"Block #{self.index}\n"
            f"  Time: {format_timestamp(self.timestamp)}\n"
            f"  Data: {self.data}\n"
            f"  Prev: {self.previous_hash[:16]}...\n"
            f"  Nonce: {self.nonce}\n"
            f"  Difficulty: {self.difficulty}"
        )
