# CLI Module
"""
Interactive text menu for local and remote ledgers.
"""
