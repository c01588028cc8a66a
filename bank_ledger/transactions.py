"""
Transaction Processing Module

Applies deposits and withdrawals to an account balance. Each accepted
transaction is one atomic state transition: the new balance and the
append-only transaction record are written in the same storage unit, so the
balance and its history never diverge. Rejected transactions leave both
untouched.
"""

from decimal import Decimal, InvalidOperation
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, List, Union
from enum import Enum

from .accounts import AccountManager
from .currency import Money, Currency
from .errors import (
    InsufficientFundsError, InvalidDetailsSuppliedError,
    NotAllowedError, TransactionNotFoundError
)
from .identifiers import IdentifierGenerator, IdentifierKind
from .logging_config import get_logger, log_action
from .storage import StorageInterface, StorageRecord


class TransactionType(Enum):
    """Types of ledger transactions"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


@dataclass
class Transaction(StorageRecord):
    """
    Immutable ledger entry against a single account
    """
    account_number: str
    amount: Money
    currency: Currency
    transaction_type: TransactionType

    def __post_init__(self):
        if not self.amount.is_positive():
            raise ValueError("Transaction amount must be positive")
        if self.amount.currency != self.currency:
            raise ValueError("Transaction amount currency must match transaction currency")


def parse_amount(amount: Union[Decimal, int, str, float, None]) -> Decimal:
    """Turn user input into a finite Decimal"""
    if amount is None or isinstance(amount, bool):
        raise InvalidDetailsSuppliedError("Transaction amount is required")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidDetailsSuppliedError(f"Invalid transaction amount: {amount!r}") from None
    if not value.is_finite():
        raise InvalidDetailsSuppliedError(f"Invalid transaction amount: {amount!r}")
    return value


def parse_transaction_type(value: Union[TransactionType, str]) -> TransactionType:
    """Unsupported transaction types are refused, not treated as bad input"""
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(value)
    except ValueError:
        raise NotAllowedError(f"Unsupported transaction type: {value!r}") from None


class TransactionProcessor:
    """
    Validates and applies deposits/withdrawals with ownership checks
    """

    def __init__(
        self,
        storage: StorageInterface,
        account_manager: AccountManager,
        id_generator: IdentifierGenerator
    ):
        self.storage = storage
        self.account_manager = account_manager
        self.id_generator = id_generator
        self.table_name = "transactions"
        self.logger = get_logger("bank_ledger.transactions")

    def create_transaction(
        self,
        account_number: str,
        amount: Union[Decimal, int, str],
        currency: Union[Currency, str],
        transaction_type: Union[TransactionType, str],
        caller_user_id: str
    ) -> Transaction:
        """
        Record a deposit or withdrawal and update the account balance

        Args:
            account_number: Target account
            amount: Strictly positive amount
            currency: Currency of the amount, must match the account currency
            transaction_type: "deposit" or "withdrawal"
            caller_user_id: Authenticated user, must own the account

        Returns:
            The persisted Transaction

        Raises:
            InvalidDetailsSuppliedError: Missing/non-positive amount or bad currency
            AccountNotFoundError: Unknown account number
            NotAllowedError: Caller does not own the account, or unsupported type
            InsufficientFundsError: Withdrawal larger than the balance
        """
        value = parse_amount(amount)
        if not isinstance(currency, Currency):
            try:
                currency = Currency.from_code(currency)
            except ValueError as e:
                raise InvalidDetailsSuppliedError(str(e)) from None
        try:
            # Amounts finer than the currency's minor unit are refused, never rounded
            if value != value.quantize(Decimal('0.1') ** currency.precision):
                raise InvalidDetailsSuppliedError(
                    f"Amount {value} has more than {currency.precision} decimal places"
                )
            money = Money(value, currency)
        except InvalidOperation:
            raise InvalidDetailsSuppliedError(f"Invalid transaction amount: {amount!r}") from None
        if not money.is_positive():
            raise InvalidDetailsSuppliedError("Transaction amount must be positive")

        with self.storage.atomic():
            account = self.account_manager.get_account(account_number, caller_user_id, for_update=True)

            if account.currency != currency:
                raise InvalidDetailsSuppliedError(
                    f"Transaction currency {currency.code} does not match account currency {account.currency.code}"
                )

            transaction_id = self.id_generator.next_identifier(IdentifierKind.TRANSACTION)
            transaction_type = parse_transaction_type(transaction_type)

            if transaction_type == TransactionType.DEPOSIT:
                new_balance = account.balance + money
            else:
                if account.balance < money:
                    log_action(
                        self.logger, "warning", "Withdrawal rejected: insufficient funds",
                        user_id=caller_user_id, action="create_transaction",
                        resource=f"account:{account.account_number}",
                        extra={"amount": money.to_string(), "balance": account.balance.to_string()}
                    )
                    raise InsufficientFundsError(
                        f"Balance {account.balance.to_string()} is less than {money.to_string()}"
                    )
                new_balance = account.balance - money

            now = datetime.now(timezone.utc)
            transaction = Transaction(
                id=transaction_id,
                created_at=now,
                updated_at=now,
                account_number=account.account_number,
                amount=money,
                currency=currency,
                transaction_type=transaction_type
            )

            self.account_manager.save_balance(account, new_balance)
            self._save_transaction(transaction)

        log_action(
            self.logger, "info", f"Transaction created: {transaction_type.value}",
            user_id=caller_user_id, action="create_transaction",
            resource=f"transaction:{transaction.id}",
            extra={
                "account_number": account.account_number,
                "amount": money.to_string(),
                "new_balance": new_balance.to_string()
            }
        )

        return transaction

    def get_transaction(self, account_number: str, transaction_id: str, caller_user_id: str) -> Transaction:
        """
        Fetch a transaction scoped to one account

        A transaction that exists but belongs to another account is reported
        exactly like a missing one.
        """
        account = self.account_manager.get_account(account_number, caller_user_id)

        data = self.storage.load(self.table_name, transaction_id)
        if not data or data.get('account_number') != account.account_number:
            raise TransactionNotFoundError(
                f"Transaction {transaction_id} not found for account {account.account_number}"
            )
        return self._transaction_from_dict(data)

    def list_transactions(self, account_number: str, caller_user_id: str) -> List[Transaction]:
        """Get all transactions of an account in creation order"""
        account = self.account_manager.get_account(account_number, caller_user_id)

        transactions_data = self.storage.find(self.table_name, {"account_number": account.account_number})
        return [self._transaction_from_dict(data) for data in transactions_data]

    def _save_transaction(self, transaction: Transaction) -> None:
        """Save transaction to storage"""
        self.storage.save(self.table_name, transaction.id, self._transaction_to_dict(transaction))

    def _transaction_to_dict(self, transaction: Transaction) -> Dict:
        """Convert Transaction to dictionary for storage"""
        return {
            'id': transaction.id,
            'created_at': transaction.created_at.isoformat(),
            'updated_at': transaction.updated_at.isoformat(),
            'account_number': transaction.account_number,
            'amount': str(transaction.amount.amount),
            'currency': transaction.currency.code,
            'transaction_type': transaction.transaction_type.value,
        }

    def _transaction_from_dict(self, data: Dict) -> Transaction:
        """Convert dictionary to Transaction"""
        currency = Currency[data['currency']]
        return Transaction(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            account_number=data['account_number'],
            amount=Money(Decimal(data['amount']), currency),
            currency=currency,
            transaction_type=TransactionType(data['transaction_type'])
        )
