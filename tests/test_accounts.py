"""
Test suite for accounts module

Tests account lifecycle, ownership checks and balance persistence.
"""

import pytest
from decimal import Decimal
from datetime import datetime, timezone

from bank_ledger.currency import Money, Currency
from bank_ledger.storage import InMemoryStorage
from bank_ledger.identifiers import IdentifierGenerator
from bank_ledger.accounts import (
    AccountManager, AccountType, BankAccount, parse_account_type
)
from bank_ledger.errors import (
    AccountNotFoundError, InsufficientFundsError,
    InvalidDetailsSuppliedError, NotAllowedError
)


class TestBankAccount:
    """Test BankAccount record invariants"""

    def test_valid_account(self):
        now = datetime.now(timezone.utc)
        account = BankAccount(
            id="01000001",
            created_at=now,
            updated_at=now,
            user_id="usr-1",
            name="Everyday",
            account_type=AccountType.PERSONAL,
            sort_code="10-10-10",
            balance=Money(Decimal("12.50"), Currency.GBP),
            currency=Currency.GBP
        )

        assert account.account_number == "01000001"
        assert account.is_owned_by("usr-1")
        assert not account.is_owned_by("usr-2")

    def test_negative_balance_rejected(self):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValueError, match="cannot be negative"):
            BankAccount(
                id="01000001", created_at=now, updated_at=now,
                user_id="usr-1", name="Everyday", account_type=AccountType.PERSONAL,
                sort_code="10-10-10", balance=Money(Decimal("-0.01"), Currency.GBP),
                currency=Currency.GBP
            )

    def test_balance_currency_must_match(self):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValueError, match="must match"):
            BankAccount(
                id="01000001", created_at=now, updated_at=now,
                user_id="usr-1", name="Everyday", account_type=AccountType.PERSONAL,
                sort_code="10-10-10", balance=Money.zero(Currency.EUR),
                currency=Currency.GBP
            )

    def test_parse_account_type(self):
        assert parse_account_type("personal") == AccountType.PERSONAL
        assert parse_account_type(AccountType.PERSONAL) == AccountType.PERSONAL
        with pytest.raises(InvalidDetailsSuppliedError, match="Unsupported account type"):
            parse_account_type("business")


class TestAccountManager:
    """Test AccountManager operations"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.manager = AccountManager(self.storage, IdentifierGenerator(self.storage))

    def test_create_account(self):
        """New accounts start empty, in GBP, on the fixed sort code"""
        account = self.manager.create_account("Everyday", "personal", "usr-1")

        assert account.account_number == "01000001"
        assert account.sort_code == "10-10-10"
        assert account.balance == Money.zero(Currency.GBP)
        assert account.currency == Currency.GBP
        assert account.user_id == "usr-1"
        assert account.created_at == account.updated_at

        second = self.manager.create_account("Savings", AccountType.PERSONAL, "usr-1")
        assert second.account_number == "01000002"

    def test_create_account_validation(self):
        with pytest.raises(InvalidDetailsSuppliedError, match="Account name"):
            self.manager.create_account("  ", "personal", "usr-1")
        with pytest.raises(InvalidDetailsSuppliedError):
            self.manager.create_account("Everyday", "joint", "usr-1")
        assert self.storage.count("accounts") == 0

    def test_get_account(self):
        created = self.manager.create_account("Everyday", "personal", "usr-1")

        fetched = self.manager.get_account(created.account_number, "usr-1")
        assert fetched.account_number == created.account_number
        assert fetched.name == "Everyday"
        assert fetched.balance == Money.zero(Currency.GBP)

    def test_get_account_of_other_user(self):
        created = self.manager.create_account("Everyday", "personal", "usr-1")
        with pytest.raises(NotAllowedError):
            self.manager.get_account(created.account_number, "usr-2")

    def test_not_found_takes_precedence(self):
        """A missing account is reported as missing whoever asks"""
        with pytest.raises(AccountNotFoundError):
            self.manager.get_account("01999999", "usr-2")

    def test_list_accounts_only_returns_own(self):
        first = self.manager.create_account("Everyday", "personal", "usr-1")
        self.manager.create_account("Other", "personal", "usr-2")
        second = self.manager.create_account("Savings", "personal", "usr-1")

        accounts = self.manager.list_accounts("usr-1")
        assert [a.account_number for a in accounts] == [first.account_number, second.account_number]
        assert self.manager.list_accounts("usr-3") == []

    def test_update_account(self):
        """Only name and type change; balance, owner and numbers stay put"""
        account = self.manager.create_account("Everyday", "personal", "usr-1")
        self.manager.save_balance(account, Money(Decimal("20.00"), Currency.GBP))

        updated = self.manager.update_account(account.account_number, "Bills", "personal", "usr-1")

        assert updated.name == "Bills"
        assert updated.account_number == account.account_number
        assert updated.sort_code == account.sort_code
        assert updated.user_id == "usr-1"
        assert updated.balance == Money(Decimal("20.00"), Currency.GBP)
        assert updated.created_at == account.created_at
        assert updated.updated_at >= account.updated_at

        stored = self.manager.get_account(account.account_number, "usr-1")
        assert stored.name == "Bills"

    def test_update_account_checks(self):
        account = self.manager.create_account("Everyday", "personal", "usr-1")

        with pytest.raises(NotAllowedError):
            self.manager.update_account(account.account_number, "Mine now", "personal", "usr-2")
        with pytest.raises(AccountNotFoundError):
            self.manager.update_account("01999999", "Bills", "personal", "usr-1")
        with pytest.raises(InvalidDetailsSuppliedError):
            self.manager.update_account(account.account_number, "", "personal", "usr-1")

        assert self.manager.get_account(account.account_number, "usr-1").name == "Everyday"

    def test_delete_account(self):
        account = self.manager.create_account("Everyday", "personal", "usr-1")

        with pytest.raises(NotAllowedError):
            self.manager.delete_account(account.account_number, "usr-2")
        assert self.manager.has_any_accounts("usr-1")

        self.manager.delete_account(account.account_number, "usr-1")

        assert not self.manager.has_any_accounts("usr-1")
        with pytest.raises(AccountNotFoundError):
            self.manager.delete_account(account.account_number, "usr-1")

    def test_save_balance_never_negative(self):
        account = self.manager.create_account("Everyday", "personal", "usr-1")

        with pytest.raises(InsufficientFundsError):
            self.manager.save_balance(account, Money(Decimal("-1.00"), Currency.GBP))
        with pytest.raises(InvalidDetailsSuppliedError):
            self.manager.save_balance(account, Money(Decimal("1.00"), Currency.USD))

        assert self.manager.get_account(account.account_number, "usr-1").balance.is_zero()

    def test_configured_currency_and_sort_code(self):
        manager = AccountManager(
            self.storage, IdentifierGenerator(self.storage),
            sort_code="20-20-20", default_currency=Currency.EUR
        )
        account = manager.create_account("Euro", "personal", "usr-1")

        assert account.sort_code == "20-20-20"
        assert account.currency == Currency.EUR
        assert account.balance == Money.zero(Currency.EUR)
