"""
Test suite for transaction processing

Tests deposits and withdrawals, balance safety, account scoping and
atomicity of the balance/history pair under failure and concurrency.
"""

import pytest
import threading
from decimal import Decimal

from bank_ledger.currency import Money, Currency
from bank_ledger.storage import InMemoryStorage, SQLiteStorage
from bank_ledger.identifiers import IdentifierGenerator
from bank_ledger.accounts import AccountManager
from bank_ledger.transactions import (
    TransactionProcessor, TransactionType, parse_amount, parse_transaction_type
)
from bank_ledger.errors import (
    AccountNotFoundError, InsufficientFundsError, InvalidDetailsSuppliedError,
    NotAllowedError, TransactionNotFoundError
)


def gbp(amount: str) -> Money:
    return Money(Decimal(amount), Currency.GBP)


def build_ledger(storage):
    id_generator = IdentifierGenerator(storage)
    account_manager = AccountManager(storage, id_generator)
    processor = TransactionProcessor(storage, account_manager, id_generator)
    return account_manager, processor


class FailingTransactionStorage(InMemoryStorage):
    """Fails every write to the transactions table"""

    def save(self, table, record_id, data):
        if table == "transactions":
            raise RuntimeError("disk full")
        super().save(table, record_id, data)


class TestParsing:
    """Test input coercion helpers"""

    def test_parse_amount(self):
        assert parse_amount("59.99") == Decimal("59.99")
        assert parse_amount(10) == Decimal("10")
        assert parse_amount(Decimal("0.01")) == Decimal("0.01")

    @pytest.mark.parametrize("raw", [None, True, "abc", "", "NaN", "Infinity"])
    def test_parse_amount_rejects(self, raw):
        with pytest.raises(InvalidDetailsSuppliedError):
            parse_amount(raw)

    def test_parse_transaction_type(self):
        assert parse_transaction_type("deposit") == TransactionType.DEPOSIT
        assert parse_transaction_type(TransactionType.WITHDRAWAL) == TransactionType.WITHDRAWAL
        with pytest.raises(NotAllowedError, match="Unsupported transaction type"):
            parse_transaction_type("transfer")


class TestTransactionProcessor:
    """Test TransactionProcessor operations"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.accounts, self.processor = build_ledger(self.storage)
        self.account = self.accounts.create_account("Everyday", "personal", "usr-1")
        self.number = self.account.account_number

    def balance(self) -> Money:
        return self.accounts.get_account(self.number, "usr-1").balance

    def test_deposit(self):
        """A deposit on an empty account sets the balance and records the entry"""
        transaction = self.processor.create_transaction(self.number, "59.99", "GBP", "deposit", "usr-1")

        assert transaction.id == "tan-000001"
        assert transaction.account_number == self.number
        assert transaction.amount == gbp("59.99")
        assert transaction.currency == Currency.GBP
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert self.balance() == gbp("59.99")
        assert [t.id for t in self.processor.list_transactions(self.number, "usr-1")] == [transaction.id]

    def test_withdrawal(self):
        self.processor.create_transaction(self.number, "100.00", "GBP", "deposit", "usr-1")
        self.processor.create_transaction(self.number, "40.01", "GBP", "withdrawal", "usr-1")

        assert self.balance() == gbp("59.99")

    def test_withdraw_full_balance(self):
        """Withdrawing exactly the balance is allowed and leaves zero"""
        self.processor.create_transaction(self.number, "25.00", "GBP", "deposit", "usr-1")
        self.processor.create_transaction(self.number, "25.00", "GBP", "withdrawal", "usr-1")

        assert self.balance().is_zero()

    def test_insufficient_funds_changes_nothing(self):
        """A rejected withdrawal leaves the balance and history untouched"""
        self.processor.create_transaction(self.number, "50.00", "GBP", "deposit", "usr-1")

        with pytest.raises(InsufficientFundsError):
            self.processor.create_transaction(self.number, "100.00", "GBP", "withdrawal", "usr-1")

        assert self.balance() == gbp("50.00")
        assert len(self.processor.list_transactions(self.number, "usr-1")) == 1

    def test_unsupported_type_is_not_allowed(self):
        with pytest.raises(NotAllowedError):
            self.processor.create_transaction(self.number, "10.00", "GBP", "transfer", "usr-1")

        assert self.balance().is_zero()
        assert self.processor.list_transactions(self.number, "usr-1") == []

    @pytest.mark.parametrize("amount", ["0", "0.00", "-5.00", "0.004", None, "ten"])
    def test_invalid_amounts(self, amount):
        """Missing, zero, negative and sub-penny amounts are rejected"""
        with pytest.raises(InvalidDetailsSuppliedError):
            self.processor.create_transaction(self.number, amount, "GBP", "deposit", "usr-1")
        assert self.storage.count("transactions") == 0

    def test_amounts_finer_than_currency_precision_are_rejected(self):
        """The recorded amount is always exactly the requested amount"""
        self.processor.create_transaction(self.number, "100.00", "GBP", "deposit", "usr-1")

        with pytest.raises(InvalidDetailsSuppliedError, match="decimal places"):
            self.processor.create_transaction(self.number, "59.995", "GBP", "deposit", "usr-1")
        with pytest.raises(InvalidDetailsSuppliedError, match="decimal places"):
            self.processor.create_transaction(self.number, "0.005", "GBP", "withdrawal", "usr-1")

        assert self.balance() == gbp("100.00")
        assert len(self.processor.list_transactions(self.number, "usr-1")) == 1

    def test_trailing_zeros_are_not_extra_precision(self):
        transaction = self.processor.create_transaction(self.number, "10.5000", "GBP", "deposit", "usr-1")
        assert transaction.amount == gbp("10.50")
        assert self.balance() == gbp("10.50")

    def test_currency_checks(self):
        with pytest.raises(InvalidDetailsSuppliedError, match="Unsupported currency"):
            self.processor.create_transaction(self.number, "10.00", "XYZ", "deposit", "usr-1")
        with pytest.raises(InvalidDetailsSuppliedError, match="does not match"):
            self.processor.create_transaction(self.number, "10.00", "USD", "deposit", "usr-1")
        assert self.balance().is_zero()

    def test_ownership_and_existence(self):
        with pytest.raises(NotAllowedError):
            self.processor.create_transaction(self.number, "10.00", "GBP", "deposit", "usr-2")
        with pytest.raises(AccountNotFoundError):
            self.processor.create_transaction("01999999", "10.00", "GBP", "deposit", "usr-1")
        with pytest.raises(NotAllowedError):
            self.processor.list_transactions(self.number, "usr-2")
        assert self.balance().is_zero()

    def test_get_transaction_is_scoped_to_account(self):
        """A transaction of another account is reported as not found"""
        other = self.accounts.create_account("Savings", "personal", "usr-1")
        mine = self.processor.create_transaction(self.number, "5.00", "GBP", "deposit", "usr-1")
        theirs = self.processor.create_transaction(other.account_number, "7.00", "GBP", "deposit", "usr-1")

        assert self.processor.get_transaction(self.number, mine.id, "usr-1").amount == gbp("5.00")
        with pytest.raises(TransactionNotFoundError):
            self.processor.get_transaction(self.number, theirs.id, "usr-1")
        with pytest.raises(TransactionNotFoundError):
            self.processor.get_transaction(self.number, "tan-ZZZZZZ", "usr-1")
        with pytest.raises(NotAllowedError):
            self.processor.get_transaction(self.number, mine.id, "usr-2")

    def test_list_in_creation_order(self):
        ids = [
            self.processor.create_transaction(self.number, amount, "GBP", "deposit", "usr-1").id
            for amount in ("1.00", "2.00", "3.00")
        ]
        listed = self.processor.list_transactions(self.number, "usr-1")

        assert [t.id for t in listed] == ids
        assert self.balance() == gbp("6.00")


class TestAtomicity:
    """Balance and history are written together or not at all"""

    def test_failed_history_write_rolls_back_balance(self):
        storage = FailingTransactionStorage()
        accounts, processor = build_ledger(storage)
        account = accounts.create_account("Everyday", "personal", "usr-1")

        with pytest.raises(RuntimeError, match="disk full"):
            processor.create_transaction(account.account_number, "10.00", "GBP", "deposit", "usr-1")

        assert accounts.get_account(account.account_number, "usr-1").balance.is_zero()
        assert storage.count("transactions") == 0

    @pytest.mark.parametrize("storage_factory", [InMemoryStorage, SQLiteStorage], ids=["memory", "sqlite"])
    def test_concurrent_deposits_are_not_lost(self, storage_factory):
        accounts, processor = build_ledger(storage_factory())
        number = accounts.create_account("Everyday", "personal", "usr-1").account_number

        def deposit():
            for _ in range(5):
                processor.create_transaction(number, "1.00", "GBP", "deposit", "usr-1")

        threads = [threading.Thread(target=deposit) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert accounts.get_account(number, "usr-1").balance == gbp("40.00")
        history = processor.list_transactions(number, "usr-1")
        assert len(history) == 40
        assert len({t.id for t in history}) == 40

    @pytest.mark.parametrize("storage_factory", [InMemoryStorage, SQLiteStorage], ids=["memory", "sqlite"])
    def test_concurrent_withdrawals_never_overdraw(self, storage_factory):
        accounts, processor = build_ledger(storage_factory())
        number = accounts.create_account("Everyday", "personal", "usr-1").account_number
        processor.create_transaction(number, "5.00", "GBP", "deposit", "usr-1")

        outcomes = []
        lock = threading.Lock()

        def withdraw():
            try:
                processor.create_transaction(number, "1.00", "GBP", "withdrawal", "usr-1")
                result = "ok"
            except InsufficientFundsError:
                result = "refused"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=withdraw) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 5
        assert outcomes.count("refused") == 5
        assert accounts.get_account(number, "usr-1").balance.is_zero()
        assert len(processor.list_transactions(number, "usr-1")) == 6
