"""
Identifier Generation Module

Externally visible identifiers are a fixed prefix followed by a value drawn
from a durable per-kind counter. The counter is the source of truth for
ordering; the formatted string is derived from it and never parsed back.
"""

from enum import Enum

from .storage import StorageInterface


class IdentifierKind(Enum):
    """Kinds of identifiers, each backed by its own sequence"""
    USER = "user"
    ADDRESS = "address"
    ACCOUNT = "account"
    TRANSACTION = "transaction"


USER_ID_PREFIX = "usr-"
ADDRESS_ID_PREFIX = "adr-"
ACCOUNT_NUMBER_PREFIX = "01"
TRANSACTION_ID_PREFIX = "tan-"

ACCOUNT_NUMBER_DIGITS = 6
TRANSACTION_SUFFIX_WIDTH = 6

_BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    """Encode a non-negative integer in upper-case base36"""
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def format_identifier(kind: IdentifierKind, raw: int) -> str:
    """
    Format a raw sequence value into the identifier for ``kind``.

    >>> format_identifier(IdentifierKind.ACCOUNT, 123)
    '01000123'
    >>> format_identifier(IdentifierKind.TRANSACTION, 36)
    'tan-000010'
    """
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise ValueError(f"Sequence value must be a non-negative integer, got {raw!r}")

    if kind == IdentifierKind.USER:
        return f"{USER_ID_PREFIX}{raw}"
    if kind == IdentifierKind.ADDRESS:
        return f"{ADDRESS_ID_PREFIX}{raw}"
    if kind == IdentifierKind.ACCOUNT:
        return f"{ACCOUNT_NUMBER_PREFIX}{raw:0{ACCOUNT_NUMBER_DIGITS}d}"
    if kind == IdentifierKind.TRANSACTION:
        return f"{TRANSACTION_ID_PREFIX}{to_base36(raw).rjust(TRANSACTION_SUFFIX_WIDTH, '0')}"

    raise ValueError(f"Unknown identifier kind: {kind!r}")


class IdentifierGenerator:
    """Allocates identifiers from durable per-kind sequences"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def next(self, kind: IdentifierKind) -> int:
        """Return the next raw value for ``kind``; never repeats, even across threads"""
        return self.storage.next_sequence(f"{kind.value}_id")

    def next_identifier(self, kind: IdentifierKind) -> str:
        """Allocate and format the next identifier for ``kind``"""
        return format_identifier(kind, self.next(kind))
