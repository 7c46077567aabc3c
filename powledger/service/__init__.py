# Service Module
"""
Request/response layer over the ledger:
- Wire message types and JSON line codec
- Operation dispatcher
"""
