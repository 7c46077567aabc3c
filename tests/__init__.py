# powledger Test Suite
"""
Test suite including:
- Unit tests (hashing, blocks, ledger, messages, dispatch)
- Transport and CLI tests
- Integration tests (tamper and repair over the wire)
- Security tests (invalid inputs)

Run with: pytest
Coverage: coverage run -m pytest && coverage report
"""
