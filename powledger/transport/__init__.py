# Transport Module
"""
TCP transport for the ledger protocol:
- Single-connection line server
- Persistent line client
"""
