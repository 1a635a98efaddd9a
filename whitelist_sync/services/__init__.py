"""
Whitelist Sync - Services

Address validation, the operator gate, and the reconciliation engine.
"""
