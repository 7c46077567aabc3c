# Blockchain Module
"""
Proof-of-work ledger implementation including:
- Mutable blocks with per-block difficulty
- SHA-256 hash pointers and a running chain hash
- Full chain validation
- Chain repair after tampering
"""

# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import to avoid circular import issues."""
    from . import block, ledger
    if hasattr(block, name):
        return getattr(block, name)
    return getattr(ledger, name)

__all__ = [
    'Block',
    'Blockchain',
    'ValidationResult',
    'FailureKind',
    'OutOfRange',
    'EmptyLedger',
    'create_blockchain',
    'format_timestamp',
    'parse_timestamp',
    'GENESIS_PREV_HASH',
]
