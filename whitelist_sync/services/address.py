"""Address validation for record store rows. Pure: no I/O, no state."""

from typing import Optional

from eth_utils import is_hex_address, to_checksum_address

from whitelist_sync.core.exceptions import AddressValidationError


def parse_address(raw: Optional[str]) -> str:
    """
    Parse a raw sheet value into a checksummed ledger address.

    Accepts 40 hex chars with or without a 0x prefix, in any case.
    Letter case is not checked against EIP-55; the result is always
    re-checksummed.

    Raises:
        AddressValidationError: absent, empty, or malformed input.
    """
    if raw is None:
        raise AddressValidationError(raw, "address not available")
    if not isinstance(raw, str):
        raise AddressValidationError(raw, f"expected text, got {type(raw).__name__}")
    if raw == "":
        raise AddressValidationError(raw, "address is empty")
    if not is_hex_address(raw):
        raise AddressValidationError(raw, "not a 20-byte hex address")
    return to_checksum_address(raw)
