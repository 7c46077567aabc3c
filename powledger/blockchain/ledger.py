"""
Blockchain Ledger Module

Implements a proof-of-work ledger with:
- SHA-256 hash pointers between consecutive blocks
- Per-block difficulty (leading zero hex characters)
- A running chain hash pointing at the newest block
- Full chain validation in a single forward pass
- Chain repair that re-mines tampered blocks and relinks the rest

Ledger invariant:
- blocks[i + 1].previous_hash == hash(blocks[i])
- chain_hash == hash(blocks[-1])
- every block satisfies its own difficulty

Author: powledger Project
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Dict, Any

from ..core_crypto.hash_codec import (
    require_sha256, meets_difficulty, benchmark_hash_rate, BENCHMARK_HASH_COUNT
)
from .block import Block, now_millis


logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

GENESIS_PREV_HASH = ""  # Genesis has no parent
DEFAULT_GENESIS_DIFFICULTY = 2
DEFAULT_GENESIS_DATA = "Genesis"
VALID_CHAIN = "TRUE"


# ============================================================================
# Errors
# ============================================================================

class OutOfRange(IndexError):
    """Raised when a block index does not exist in the chain."""

    def __init__(self, index: int, size: int):
        super().__init__(
            f"Block index {index} is out of range (chain size {size})"
        )
        self.index = index
        self.size = size


class EmptyLedger(LookupError):
    """Raised when an operation needs a block but the chain has none."""

    def __init__(self, message: str = "The chain has no blocks"):
        super().__init__(message)


# ============================================================================
# Validation Result
# ============================================================================

class FailureKind(Enum):
    """Which ledger check failed."""
    IMPROPER_HASH = "improper_hash"
    LINK_MISMATCH = "link_mismatch"
    CHAIN_HASH_MISMATCH = "chain_hash_mismatch"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of Blockchain.validate().

    A valid chain is always the VALID sentinel; an invalid one carries the
    first failure found: which check, at which block, and a message.
    """
    valid: bool
    message: str
    kind: Optional[FailureKind] = None
    block_index: Optional[int] = None

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def failure(
        cls,
        kind: FailureKind,
        block_index: int,
        message: str
    ) -> 'ValidationResult':
        return cls(valid=False, message=message, kind=kind, block_index=block_index)


ValidationResult.VALID = ValidationResult(valid=True, message=VALID_CHAIN)


# ============================================================================
# Blockchain
# ============================================================================

class Blockchain:
    """
    Ordered list of mutable blocks plus the chain hash.

    Blocks are appended already linked by the caller (previous_hash set to
    the current chain hash) and mined here. The chain does not stop anyone
    from editing a block afterwards; validate() reports such damage and
    repair() undoes it.
    """

    def __init__(self):
        """
        Initialize an empty chain.

        Raises:
            DigestUnavailable: If SHA-256 is not available
        """
        require_sha256()
        self._blocks: List[Block] = []
        self.chain_hash: str = ""
        self.hashes_per_second: Optional[int] = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def blocks(self) -> List[Block]:
        """Get the blocks (list copy, the blocks themselves are shared)."""
        return list(self._blocks)

    @property
    def chain_size(self) -> int:
        return len(self._blocks)

    def get_block(self, i: int) -> Block:
        """
        Get the block at position i.

        Raises:
            OutOfRange: If i is not a valid position (negative included)
        """
        if not 0 <= i < len(self._blocks):
            raise OutOfRange(i, len(self._blocks))
        return self._blocks[i]

    @property
    def latest_block(self) -> Block:
        """
        Get the most recently added block.

        Raises:
            EmptyLedger: If the chain has no blocks
        """
        if not self._blocks:
            raise EmptyLedger()
        return self._blocks[-1]

    @property
    def total_difficulty(self) -> int:
        return sum(block.difficulty for block in self._blocks)

    @property
    def total_expected_hashes(self) -> float:
        """
        Expected number of hashes needed to mine the whole chain.

        Each leading hex zero divides the chance of a hit by 16, so one
        block costs 16 ** difficulty attempts on average. Float, since
        the sum outgrows integers quickly.
        """
        return sum(16.0 ** block.difficulty for block in self._blocks)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_block(self, block: Block) -> str:
        """
        Mine a block and append it.

        The block's previous_hash must already hold the current chain
        hash; this is not checked here.

        Returns:
            The new chain hash
        """
        self.chain_hash = block.proof_of_work()
        self._blocks.append(block)
        logger.debug(
            "Appended block %d (difficulty %d, nonce %d)",
            block.index, block.difficulty, block.nonce
        )
        return self.chain_hash

    def new_block(self, data: str, difficulty: int) -> Block:
        """
        Build the next block on top of the chain, mine it and append it.

        Args:
            data: Transaction payload
            difficulty: Leading zero hex characters to require

        Returns:
            The appended block
        """
        block = Block(
            index=len(self._blocks),
            timestamp=now_millis(),
            data=data,
            difficulty=difficulty,
            previous_hash=self.chain_hash,
        )
        self.add_block(block)
        return block

    def corrupt_block(self, i: int, data: str) -> Block:
        """
        Overwrite a block's data without re-mining it.

        This deliberately breaks the ledger invariant. The only check is
        that the block exists.

        Raises:
            OutOfRange: If i is not a valid position
        """
        block = self.get_block(i)
        block.data = data
        logger.info("Block %d data overwritten", i)
        return block

    def compute_hashes_per_second(self, count: int = BENCHMARK_HASH_COUNT) -> Optional[int]:
        """Benchmark this machine and remember the result."""
        self.hashes_per_second = benchmark_hash_rate(count)
        return self.hashes_per_second

    # ------------------------------------------------------------------
    # Validation and repair
    # ------------------------------------------------------------------

    def validate(self) -> ValidationResult:
        """
        Check the whole chain in index order without mining.

        For each block:
        - its hash must meet its difficulty
        - if not last, its hash must equal the next block's previous_hash
        - if last, its hash must equal the chain hash

        Returns:
            ValidationResult.VALID, or the first failure found
        """
        last = len(self._blocks) - 1
        for i, block in enumerate(self._blocks):
            block_hash = block.calculate_hash()
            leading = '0' * block.difficulty

            if not meets_difficulty(block_hash, block.difficulty):
                return ValidationResult.failure(
                    FailureKind.IMPROPER_HASH, i,
                    f"Improper hash on node {i}. Does not begin with {leading}"
                )

            if i < last and block_hash != self._blocks[i + 1].previous_hash:
                return ValidationResult.failure(
                    FailureKind.LINK_MISMATCH, i,
                    f"Hash of Block {i} does not match with previous hash of Block {i + 1}"
                )

            if i == last and block_hash != self.chain_hash:
                return ValidationResult.failure(
                    FailureKind.CHAIN_HASH_MISMATCH, i,
                    f"Hash of the last Block (Block {i}) does not match with Chain Hash!"
                )

        return ValidationResult.VALID

    def is_chain_valid(self) -> str:
        """Validate and return 'TRUE' or the failure message."""
        return self.validate().message

    def repair(self) -> List[int]:
        """
        Restore the ledger invariant in one forward pass.

        For each block in order:
        1. A lone block must be genesis, so its previous_hash is cleared.
        2. If its own proof of work is broken (e.g. data was edited), the
           nonce is reset to 0 and the block is mined again.
        3. Its hash is pushed forward: into the next block's previous_hash,
           or into the chain hash for the last block.

        Relinking a block changes its hash, which is why step 2 runs on
        each block only after its predecessor has been fixed. Running
        repair on a valid chain changes nothing.

        Returns:
            Indexes of the blocks that had to be re-mined
        """
        remined: List[int] = []
        last = len(self._blocks) - 1

        for i, block in enumerate(self._blocks):
            if len(self._blocks) == 1 and block.previous_hash != GENESIS_PREV_HASH:
                block.previous_hash = GENESIS_PREV_HASH

            if not block.has_valid_proof():
                block.nonce = 0
                block.proof_of_work()
                remined.append(i)

            block_hash = block.calculate_hash()
            if i < last:
                self._blocks[i + 1].previous_hash = block_hash
            else:
                self.chain_hash = block_hash

        if remined:
            logger.info("Repair re-mined blocks %s", remined)
        return remined

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert the chain to its wire representation."""
        return {
            'blocks': [block.to_dict() for block in self._blocks],
            'chainHash': self.chain_hash,
        }

    def to_json(self) -> str:
        """Serialize the chain to JSON."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Blockchain':
        """
        Rebuild a chain from its wire representation.

        The result is not validated; a dump of a corrupted chain loads
        as the same corrupted chain.
        """
        blockchain = cls()
        blockchain._blocks = [Block.from_dict(b) for b in data['blocks']]
        blockchain.chain_hash = data.get('chainHash', "")
        return blockchain

    @classmethod
    def from_json(cls, json_str: str) -> 'Blockchain':
        """Deserialize a chain from JSON."""
        return cls.from_dict(json.loads(json_str))

    def print_chain(self) -> None:
        """Print the blockchain."""
        print(f"\nBlockchain (length={self.chain_size})")
        print("=" * 60)
        for block in self._blocks:
            print(block)
            print("-" * 40)
        print(f"Chain hash: {self.chain_hash}")


# ============================================================================
# Convenience Functions
# ============================================================================

def create_blockchain(
    genesis_difficulty: int = DEFAULT_GENESIS_DIFFICULTY,
    genesis_data: str = DEFAULT_GENESIS_DATA,
    benchmark: bool = True
) -> Blockchain:
    """
    Create a chain holding a mined genesis block.

    Args:
        genesis_difficulty: Difficulty of the genesis block
        genesis_data: Payload of the genesis block
        benchmark: Measure hashes per second (takes a few seconds)

    Raises:
        DigestUnavailable: If SHA-256 is not available
    """
    blockchain = Blockchain()
    if benchmark:
        blockchain.compute_hashes_per_second()
    genesis = Block(
        index=0,
        timestamp=now_millis(),
        data=genesis_data,
        difficulty=genesis_difficulty,
        previous_hash=GENESIS_PREV_HASH,
    )
    blockchain.add_block(genesis)
    return blockchain
