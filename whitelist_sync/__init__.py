"""Whitelist Sync - reconcile approved applications with the on-chain whitelist."""

__version__ = "0.1.0"
