# Core Cryptography Module
"""
Hashing primitives used by the ledger:
- SHA-256 hex digests
- Leading-zero difficulty checks
- Hash rate benchmark
"""
