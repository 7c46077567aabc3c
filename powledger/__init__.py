# powledger
"""
Proof-of-work ledger with corruption and repair, served over TCP.

Modules:
- core_crypto: SHA-256 hex digests and hash rate benchmark
- blockchain: blocks, chain validation and repair
- service: wire messages and operation dispatch
- transport: TCP server and client
- cli: interactive menu
"""

__version__ = "1.0.0"
