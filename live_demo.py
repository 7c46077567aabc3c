#!/usr/bin/env python
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                          POWLEDGER LIVE DEMO                                  ║
║                  Proof of Work, Tampering and Repair                          ║
╚══════════════════════════════════════════════════════════════════════════════╝

This script walks through the life of a proof-of-work ledger:
- Mining a genesis block and adding transactions
- Verifying the chain
- Corrupting a block and watching verification fail
- Repairing the chain so the forgery verifies again

Run with --no-pause to skip the presenter pauses.
"""

import sys
import time

from powledger.blockchain.ledger import create_blockchain


def print_header(title):
    """Print a formatted section header"""
    print("\n" + "═" * 70)
    print(f"  {title}")
    print("═" * 70)


def print_step(step_num, description):
    """Print a numbered step"""
    print(f"\n  [{step_num}] {description}")


def pause(enabled, message="Press ENTER to continue..."):
    """Pause for presenter to explain"""
    if not enabled:
        return
    print(f"\n  [PAUSE] {message}")
    try:
        input()
    except EOFError:
        pass


def timed(action):
    start = time.perf_counter()
    result = action()
    return result, int((time.perf_counter() - start) * 1000)


def main(argv):
    pausing = "--no-pause" not in argv

    print("\n" * 2)
    print("╔" + "═" * 68 + "╗")
    print("║" + " " * 68 + "║")
    print("║" + "        POWLEDGER - TAMPER-EVIDENT PROOF-OF-WORK LEDGER".center(68) + "║")
    print("║" + " " * 68 + "║")
    print("╚" + "═" * 68 + "╝")

    pause(pausing, "Press ENTER to begin the demonstration...")

    print_header("PART 1: BUILDING THE CHAIN")

    print_step("1.1", "Mining the genesis block (difficulty 2)")
    chain = create_blockchain(genesis_difficulty=2, benchmark=False)
    genesis = chain.get_block(0)
    print(f"  Nonce found: {genesis.nonce}")
    print(f"  Chain hash:  {chain.chain_hash}")

    print_step("1.2", "Adding transactions at rising difficulty")
    for difficulty, data in enumerate(["Alice -> Bob: 10", "Bob -> Carol: 4", "Carol -> Dan: 1"], 1):
        block, elapsed = timed(lambda: chain.new_block(data, difficulty))
        print(f"  Block {block.index} (difficulty {difficulty}): nonce {block.nonce}, {elapsed} ms")

    print(f"\n  Expected total hashes: {chain.total_expected_hashes:.6f}")
    print(f"  Total difficulty:      {chain.total_difficulty}")

    pause(pausing)

    print_header("PART 2: VERIFICATION")
    result, elapsed = timed(chain.validate)
    print(f"\n  Chain verification: {result.message} ({elapsed} ms)")

    pause(pausing)

    print_header("PART 3: CORRUPTION")
    print_step("3.1", "Rewriting block 1 without re-mining")
    chain.corrupt_block(1, "Alice -> Bob: 1000000")
    print(f"  Block 1 now holds {chain.get_block(1).data}")

    print_step("3.2", "Verifying again")
    result = chain.validate()
    print("  Chain verification: FALSE")
    print(f"  {result.message}")

    pause(pausing)

    print_header("PART 4: REPAIR")
    old_hash = chain.chain_hash
    remined, elapsed = timed(chain.repair)
    print(f"\n  Re-mined blocks: {remined}")
    print(f"  Repair took {elapsed} ms")
    print(f"  Chain verification: {chain.validate().message}")
    print(f"  Chain hash changed: {old_hash[:16]}... -> {chain.chain_hash[:16]}...")

    print("\n  The forged transaction now verifies. Proof of work only makes")
    print("  rewriting history expensive; it does not make it impossible.")

    chain.print_chain()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
