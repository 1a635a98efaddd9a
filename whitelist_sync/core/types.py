"""
Whitelist Sync - Canonical Ledger Types
=======================================

Address: EIP-55 checksummed hex string
        - Input may be lower/upper case, with or without 0x
        - Case is ignored on input (no EIP-55 check)
        - Always normalized to checksum form (web3 refuses anything else)

TxHash:  opaque reference, 0x hex when it comes from the node

Wei:     int, never float (gas prices and costs)

All schemas MUST import ledger types from here.
"""

from typing import Annotated, Any

from eth_utils import is_hex_address, to_checksum_address
from pydantic import BeforeValidator, WithJsonSchema


# =============================================================================
# ADDRESS
# =============================================================================

def _validate_address(v: Any) -> str:
    """Accept any well-formed address and return its checksum form."""
    if not isinstance(v, str):
        raise ValueError(f"Address must be a string, got {type(v).__name__}")
    if not is_hex_address(v):
        raise ValueError(f"Not a valid ledger address: {v!r}")
    return to_checksum_address(v)


Address = Annotated[
    str,
    BeforeValidator(_validate_address),
    WithJsonSchema({"type": "string", "description": "EIP-55 checksummed address"}),
]


# =============================================================================
# TX HASH
# =============================================================================

def _validate_tx_hash(v: Any) -> str:
    """Tx references are opaque; bytes from the node are rendered as 0x hex."""
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if not isinstance(v, str) or not v:
        raise ValueError(f"Tx hash must be a non-empty string, got {v!r}")
    return v


TxHash = Annotated[
    str,
    BeforeValidator(_validate_tx_hash),
    WithJsonSchema({"type": "string", "description": "0x-prefixed transaction hash"}),
]


# =============================================================================
# WEI
# =============================================================================

def _validate_wei(v: Any) -> int:
    if isinstance(v, bool) or isinstance(v, float):
        raise ValueError(f"Wei must be an integer, got {v!r}")
    if isinstance(v, str):
        v = int(v, 0)
    if not isinstance(v, int):
        raise ValueError(f"Invalid wei type: {type(v)}")
    if v < 0:
        raise ValueError(f"Wei cannot be negative: {v}")
    return v


Wei = Annotated[
    int,
    BeforeValidator(_validate_wei),
    WithJsonSchema({"type": "integer", "description": "Amount in wei"}),
]
