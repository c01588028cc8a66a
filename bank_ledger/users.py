"""
User Management Module

Manages user profiles and their postal address. The address is a value
embedded in the user record: it is created, replaced and deleted together
with its user and has no save path of its own.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, Optional
import re

from .accounts import AccountManager
from .errors import (
    InvalidDetailsSuppliedError, NotAllowedError,
    UserHasAccountsError, UserNotFoundError
)
from .identifiers import IdentifierGenerator, IdentifierKind
from .logging_config import get_logger, log_action
from .security import hash_password
from .storage import StorageInterface, StorageRecord


EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


@dataclass
class Address:
    """User postal address"""
    line1: str
    town: str
    county: str
    postcode: str
    line2: Optional[str] = None
    line3: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        for name in ("line1", "town", "county", "postcode"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidDetailsSuppliedError(f"Address {name} is required")


@dataclass
class User(StorageRecord):
    """
    Ledger user with hashed credentials
    """
    name: str
    password_hash: str
    address: Address
    phone_number: str
    email: str

    @classmethod
    def from_dict(cls, data: Dict) -> 'User':
        data = dict(data)
        data['address'] = Address(**data['address'])
        return super().from_dict(data)


def _validate_profile(name: str, phone_number: str, email: str, address: Address) -> None:
    if not isinstance(name, str) or not name.strip():
        raise InvalidDetailsSuppliedError("Name is required")
    if not isinstance(phone_number, str) or not phone_number.strip():
        raise InvalidDetailsSuppliedError("Phone number is required")
    if not isinstance(email, str) or not EMAIL_PATTERN.match(email):
        raise InvalidDetailsSuppliedError("A valid email is required")
    if not isinstance(address, Address):
        raise InvalidDetailsSuppliedError("Address is required")


class UserManager:
    """
    Manages user lifecycle. Users may only read, change or delete themselves.
    """

    def __init__(
        self,
        storage: StorageInterface,
        id_generator: IdentifierGenerator,
        account_manager: AccountManager,
        password_rounds: int = 12
    ):
        self.storage = storage
        self.id_generator = id_generator
        self.account_manager = account_manager
        self.password_rounds = password_rounds
        self.users_table = "users"
        self.logger = get_logger("bank_ledger.users")

    def create_user(
        self,
        name: str,
        password: str,
        address: Address,
        phone_number: str,
        email: str
    ) -> User:
        """
        Register a new user

        Returns:
            Created User, with generated user and address identifiers
        """
        _validate_profile(name, phone_number, email, address)
        password_hash = hash_password(password, rounds=self.password_rounds)

        now = datetime.now(timezone.utc)
        user = User(
            id=self.id_generator.next_identifier(IdentifierKind.USER),
            created_at=now,
            updated_at=now,
            name=name.strip(),
            password_hash=password_hash,
            address=Address(
                line1=address.line1,
                line2=address.line2,
                line3=address.line3,
                town=address.town,
                county=address.county,
                postcode=address.postcode,
                id=self.id_generator.next_identifier(IdentifierKind.ADDRESS)
            ),
            phone_number=phone_number.strip(),
            email=email
        )

        self._save_user(user)

        log_action(
            self.logger, "info", "User created",
            user_id=user.id, action="create_user", resource=f"user:{user.id}"
        )

        return user

    def find_user(self, user_id: str) -> Optional[User]:
        """Look up a user without any caller check (used by authentication)"""
        data = self.storage.load(self.users_table, user_id)
        if data:
            return User.from_dict(data)
        return None

    def get_user(self, user_id: str, caller_user_id: str) -> User:
        """Fetch the caller's own user record"""
        self._check_self(user_id, caller_user_id)

        user = self.find_user(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def update_user(
        self,
        user_id: str,
        caller_user_id: str,
        name: str,
        address: Address,
        phone_number: str,
        email: str
    ) -> User:
        """Replace the caller's profile details; the address keeps its identifier"""
        self._check_self(user_id, caller_user_id)
        _validate_profile(name, phone_number, email, address)

        with self.storage.atomic():
            user = self.find_user(user_id)
            if not user:
                raise UserNotFoundError(f"User {user_id} not found")

            user.name = name.strip()
            user.address = Address(
                line1=address.line1,
                line2=address.line2,
                line3=address.line3,
                town=address.town,
                county=address.county,
                postcode=address.postcode,
                id=user.address.id
            )
            user.phone_number = phone_number.strip()
            user.email = email
            user.updated_at = datetime.now(timezone.utc)
            self._save_user(user)

        log_action(
            self.logger, "info", "User updated",
            user_id=user_id, action="update_user", resource=f"user:{user_id}"
        )

        return user

    def delete_user(self, user_id: str, caller_user_id: str) -> None:
        """
        Delete the caller's user record and its address

        Raises:
            NotAllowedError: Caller is not this user
            UserNotFoundError: No such user
            UserHasAccountsError: The user still owns bank accounts
        """
        self._check_self(user_id, caller_user_id)

        with self.storage.atomic():
            if not self.storage.exists(self.users_table, user_id):
                raise UserNotFoundError(f"User {user_id} not found")

            if self.account_manager.has_any_accounts(user_id):
                log_action(
                    self.logger, "warning", "User deletion blocked: user has accounts",
                    user_id=user_id, action="delete_user", resource=f"user:{user_id}"
                )
                raise UserHasAccountsError(f"User {user_id} still owns bank accounts")

            self.storage.delete(self.users_table, user_id)

        log_action(
            self.logger, "info", "User deleted",
            user_id=user_id, action="delete_user", resource=f"user:{user_id}"
        )

    def _check_self(self, user_id: str, caller_user_id: str) -> None:
        if not caller_user_id or user_id != caller_user_id:
            log_action(
                self.logger, "warning", "User access denied",
                user_id=caller_user_id, action="check_self", resource=f"user:{user_id}"
            )
            raise NotAllowedError(f"User {caller_user_id} may not access user {user_id}")

    def _save_user(self, user: User) -> None:
        """Save user to storage"""
        self.storage.save(self.users_table, user.id, user.to_dict())
