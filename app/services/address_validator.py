# app/services/address_validator.py
import re
import logging
from typing import Any, List, Sequence

from app.services.errors import NoAddressesProvided, InvalidAddressFormat

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(value: Any) -> bool:
    """Returns True if value is a 0x-prefixed, 40 hex digit address string."""
    return isinstance(value, str) and ADDRESS_PATTERN.fullmatch(value) is not None


def validate_addresses(addresses: Sequence[Any]) -> List[str]:
    """
    Validates a batch of wallet addresses.

    The batch is accepted or rejected as a whole: if any entry is malformed,
    every malformed entry is reported so the caller can fix them in one go.

    Args:
        addresses: Address strings in request order

    Returns:
        The accepted addresses, in the same order

    Raises:
        NoAddressesProvided: If the sequence is empty
        InvalidAddressFormat: If one or more entries are malformed
    """
    if not addresses:
        raise NoAddressesProvided()

    invalid = [address for address in addresses if not is_valid_address(address)]
    if invalid:
        logger.warning(f"Rejected {len(invalid)} malformed address(es): {invalid}")
        raise InvalidAddressFormat([str(address) for address in invalid])

    return list(addresses)
