"""
Account Management Module

Owns bank account records: opening, reading, renaming and closing accounts.
Every operation on an existing account resolves it by account number first
and then checks that the caller owns it. Balances only change through the
transaction processor.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, List, Optional, Union
from decimal import Decimal
from enum import Enum

from .currency import Money, Currency
from .errors import (
    AccountNotFoundError, InsufficientFundsError,
    InvalidDetailsSuppliedError, NotAllowedError
)
from .identifiers import IdentifierGenerator, IdentifierKind
from .logging_config import get_logger, log_action
from .storage import StorageInterface, StorageRecord


DEFAULT_SORT_CODE = "10-10-10"


class AccountType(Enum):
    """Bank account product types"""
    PERSONAL = "personal"


@dataclass
class BankAccount(StorageRecord):
    """
    User-owned bank account. ``id`` is the account number.
    """
    user_id: str
    name: str
    account_type: AccountType
    sort_code: str
    balance: Money
    currency: Currency

    def __post_init__(self):
        if self.balance.currency != self.currency:
            raise ValueError("Balance currency must match account currency")
        if self.balance.is_negative():
            raise ValueError("Account balance cannot be negative")

    @property
    def account_number(self) -> str:
        return self.id

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id


def parse_account_type(value: Union[AccountType, str, None]) -> AccountType:
    """Coerce user input into an AccountType"""
    if isinstance(value, AccountType):
        return value
    try:
        return AccountType(value)
    except ValueError:
        raise InvalidDetailsSuppliedError(f"Unsupported account type: {value!r}") from None


def _require_text(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidDetailsSuppliedError(f"{field_name} is required")
    return value.strip()


class AccountManager:
    """
    Manages account lifecycle and ownership checks
    """

    def __init__(
        self,
        storage: StorageInterface,
        id_generator: IdentifierGenerator,
        sort_code: str = DEFAULT_SORT_CODE,
        default_currency: Currency = Currency.GBP
    ):
        self.storage = storage
        self.id_generator = id_generator
        self.sort_code = sort_code
        self.default_currency = default_currency
        self.accounts_table = "accounts"
        self.logger = get_logger("bank_ledger.accounts")

    def create_account(
        self,
        name: str,
        account_type: Union[AccountType, str],
        owner_user_id: str
    ) -> BankAccount:
        """
        Open a new account with a zero balance

        Args:
            name: Display name of the account
            account_type: Account product type
            owner_user_id: Authenticated user who will own the account

        Returns:
            Created BankAccount
        """
        name = _require_text(name, "Account name")
        account_type = parse_account_type(account_type)
        owner_user_id = _require_text(owner_user_id, "Owner user id")

        now = datetime.now(timezone.utc)
        account = BankAccount(
            id=self.id_generator.next_identifier(IdentifierKind.ACCOUNT),
            created_at=now,
            updated_at=now,
            user_id=owner_user_id,
            name=name,
            account_type=account_type,
            sort_code=self.sort_code,
            balance=Money.zero(self.default_currency),
            currency=self.default_currency
        )

        self._save_account(account)

        log_action(
            self.logger, "info", "Account created",
            user_id=owner_user_id, action="create_account",
            resource=f"account:{account.account_number}",
            extra={"account_type": account_type.value, "currency": account.currency.code}
        )

        return account

    def get_account(self, account_number: str, caller_user_id: str, for_update: bool = False) -> BankAccount:
        """
        Resolve an account and check that the caller owns it

        Args:
            account_number: Account to fetch
            caller_user_id: Authenticated user making the request
            for_update: Lock the record for a read-modify-write (inside ``storage.atomic()``)

        Raises:
            AccountNotFoundError: No account has this number
            NotAllowedError: The account belongs to another user
        """
        if for_update:
            data = self.storage.load_for_update(self.accounts_table, account_number)
        else:
            data = self.storage.load(self.accounts_table, account_number)
        if not data:
            raise AccountNotFoundError(f"Account {account_number} not found")

        account = self._account_from_dict(data)
        self._check_owner(account, caller_user_id)
        return account

    def list_accounts(self, caller_user_id: str) -> List[BankAccount]:
        """Get all accounts owned by the caller, oldest first"""
        accounts_data = self.storage.find(self.accounts_table, {"user_id": caller_user_id})
        return [self._account_from_dict(data) for data in accounts_data]

    def update_account(
        self,
        account_number: str,
        name: str,
        account_type: Union[AccountType, str],
        caller_user_id: str
    ) -> BankAccount:
        """Rename an account or change its type; nothing else is mutable here"""
        name = _require_text(name, "Account name")
        account_type = parse_account_type(account_type)

        with self.storage.atomic():
            account = self.get_account(account_number, caller_user_id, for_update=True)
            account.name = name
            account.account_type = account_type
            account.updated_at = datetime.now(timezone.utc)
            self._save_account(account)

        log_action(
            self.logger, "info", "Account updated",
            user_id=caller_user_id, action="update_account",
            resource=f"account:{account_number}",
            extra={"name": name, "account_type": account_type.value}
        )

        return account

    def delete_account(self, account_number: str, caller_user_id: str) -> None:
        """
        Close an account. Any balance check is left to the caller's policy.
        """
        with self.storage.atomic():
            account = self.get_account(account_number, caller_user_id, for_update=True)
            self.storage.delete(self.accounts_table, account.account_number)

        log_action(
            self.logger, "info", "Account deleted",
            user_id=caller_user_id, action="delete_account",
            resource=f"account:{account_number}",
            extra={"closing_balance": account.balance.to_string()}
        )

    def has_any_accounts(self, user_id: str) -> bool:
        """Check whether a user still owns at least one account"""
        return bool(self.storage.find(self.accounts_table, {"user_id": user_id}))

    def save_balance(self, account: BankAccount, new_balance: Money) -> BankAccount:
        """
        Persist a new balance computed by the transaction processor.

        Must run inside the same ``storage.atomic()`` unit that read the
        account with ``for_update=True``.
        """
        if new_balance.currency != account.currency:
            raise InvalidDetailsSuppliedError("Balance currency must match account currency")
        if new_balance.is_negative():
            raise InsufficientFundsError(f"Balance of {account.account_number} would become negative")

        account.balance = new_balance
        account.updated_at = datetime.now(timezone.utc)
        self._save_account(account)
        return account

    def _check_owner(self, account: BankAccount, caller_user_id: str) -> None:
        if not caller_user_id or not account.is_owned_by(caller_user_id):
            log_action(
                self.logger, "warning", "Account access denied",
                user_id=caller_user_id, action="check_owner",
                resource=f"account:{account.account_number}"
            )
            raise NotAllowedError(f"User {caller_user_id} does not own account {account.account_number}")

    def _save_account(self, account: BankAccount) -> None:
        """Save account to storage"""
        account_dict = self._account_to_dict(account)
        self.storage.save(self.accounts_table, account.id, account_dict)

    def _account_to_dict(self, account: BankAccount) -> Dict:
        """Convert BankAccount to dictionary for storage"""
        return {
            'id': account.id,
            'created_at': account.created_at.isoformat(),
            'updated_at': account.updated_at.isoformat(),
            'user_id': account.user_id,
            'name': account.name,
            'account_type': account.account_type.value,
            'sort_code': account.sort_code,
            'balance': str(account.balance.amount),
            'currency': account.currency.code,
        }

    def _account_from_dict(self, data: Dict) -> BankAccount:
        """Convert dictionary to BankAccount"""
        currency = Currency[data['currency']]
        return BankAccount(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            user_id=data['user_id'],
            name=data['name'],
            account_type=AccountType(data['account_type']),
            sort_code=data['sort_code'],
            balance=Money(Decimal(data['balance']), currency),
            currency=currency
        )
