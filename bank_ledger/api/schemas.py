"""
Pydantic schemas for API requests and responses
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from ..accounts import BankAccount
from ..transactions import Transaction
from ..users import Address, User


class AddressModel(BaseModel):
    line1: str
    line2: Optional[str] = None
    line3: Optional[str] = None
    town: str
    county: str
    postcode: str

    def to_address(self) -> Address:
        return Address(
            line1=self.line1,
            line2=self.line2,
            line3=self.line3,
            town=self.town,
            county=self.county,
            postcode=self.postcode
        )

    @classmethod
    def from_address(cls, address: Address) -> 'AddressModel':
        return cls(
            line1=address.line1,
            line2=address.line2,
            line3=address.line3,
            town=address.town,
            county=address.county,
            postcode=address.postcode
        )


# Auth schemas
class AuthRequest(BaseModel):
    user_id: str
    password: str


class AuthResponse(BaseModel):
    token: str


# User schemas
class CreateUserRequest(BaseModel):
    name: str
    password: str
    address: AddressModel
    phone_number: str
    email: str


class UpdateUserRequest(BaseModel):
    name: str
    address: AddressModel
    phone_number: str
    email: str


class UserResponse(BaseModel):
    id: str
    name: str
    address: AddressModel
    phone_number: str
    email: str
    created_timestamp: datetime
    updated_timestamp: datetime

    @classmethod
    def from_user(cls, user: User) -> 'UserResponse':
        return cls(
            id=user.id,
            name=user.name,
            address=AddressModel.from_address(user.address),
            phone_number=user.phone_number,
            email=user.email,
            created_timestamp=user.created_at,
            updated_timestamp=user.updated_at
        )


# Account schemas
class CreateAccountRequest(BaseModel):
    name: str
    account_type: str = Field(..., description="Account type (personal)")


class UpdateAccountRequest(BaseModel):
    name: str
    account_type: str = Field(..., description="Account type (personal)")


class AccountResponse(BaseModel):
    account_number: str
    sort_code: str
    name: str
    account_type: str
    balance: str = Field(..., description="Decimal amount as string")
    currency: str
    created_timestamp: datetime
    updated_timestamp: datetime

    @classmethod
    def from_account(cls, account: BankAccount) -> 'AccountResponse':
        return cls(
            account_number=account.account_number,
            sort_code=account.sort_code,
            name=account.name,
            account_type=account.account_type.value,
            balance=str(account.balance.amount),
            currency=account.currency.code,
            created_timestamp=account.created_at,
            updated_timestamp=account.updated_at
        )


class ListAccountsResponse(BaseModel):
    accounts: List[AccountResponse]


# Transaction schemas
class CreateTransactionRequest(BaseModel):
    amount: Decimal
    currency: str = Field(..., description="Currency code (GBP)")
    type: str = Field(..., description="Transaction type (deposit, withdrawal)")


class TransactionResponse(BaseModel):
    id: str
    account_number: str
    amount: str = Field(..., description="Decimal amount as string")
    currency: str
    type: str
    user_id: str
    created_timestamp: datetime

    @classmethod
    def from_transaction(cls, transaction: Transaction, user_id: str) -> 'TransactionResponse':
        return cls(
            id=transaction.id,
            account_number=transaction.account_number,
            amount=str(transaction.amount.amount),
            currency=transaction.currency.code,
            type=transaction.transaction_type.value,
            user_id=user_id,
            created_timestamp=transaction.created_at
        )


class ListTransactionsResponse(BaseModel):
    transactions: List[TransactionResponse]


class ErrorResponse(BaseModel):
    message: str
