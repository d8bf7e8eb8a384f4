"""Serial numbers for certificates and CRLs.
"""

import os
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from .ledger import RevocationList

__all__ = ("SerialAllocator", "SERIAL_TAG", "SERIAL_SIZE")

# certificate serials are 128-bit
SERIAL_SIZE = 16

# first two bytes of every serial, marks certs issued by this tool
SERIAL_TAG = b"\x2c\xca"


class SerialAllocator:
    """Allocates certificate serials and CRL numbers.

    Serials are random, uniqueness against already issued
    certificates is not checked.
    """

    def __init__(self, randbytes: Callable[[int], bytes] = os.urandom) -> None:
        self.randbytes = randbytes

    def next_serial(self) -> int:
        """Return tagged random 128-bit serial.

        Tag has highest bit clear so DER INTEGER stays positive
        without padding byte.
        """
        seed = self.randbytes(SERIAL_SIZE)
        if len(seed) != SERIAL_SIZE:
            raise ValueError("short read from random source")
        data = SERIAL_TAG + seed[len(SERIAL_TAG):]
        return int.from_bytes(data, "big", signed=False)

    def next_crl_number(self, existing: Optional["RevocationList"]) -> int:
        """Return CRL number for the next write.
        """
        if existing is None:
            return 1
        return (existing.crl_number or 0) + 1
