"""
Ledger Error Taxonomy

Domain errors raised by the ledger core. Each error carries a fixed,
client-safe message; the HTTP adapter maps every class to a stable status
code without exposing anything else.
"""


class LedgerError(Exception):
    """Base class for all ledger errors"""
    message = "Ledger error"

    def __init__(self, detail: str = None):
        # detail is for logs only, never returned to clients
        self.detail = detail
        super().__init__(detail or self.message)


class InvalidDetailsSuppliedError(LedgerError):
    """Malformed or incomplete input rejected before any state is touched"""
    message = "Invalid details supplied"


class InvalidCredentialsError(LedgerError):
    """Unknown user identifier or password mismatch"""
    message = "Invalid user credentials details supplied"


class InvalidTokenError(InvalidCredentialsError):
    """Bearer token is malformed, expired or signed with another key"""


class NotAllowedError(LedgerError):
    """Caller does not own the resource, or the operation is not supported"""
    message = "The user is not allowed to access the resource"


class NotFoundError(LedgerError):
    message = "Resource was not found"


class UserNotFoundError(NotFoundError):
    message = "User was not found"


class AccountNotFoundError(NotFoundError):
    message = "Bank Account was not found"


class TransactionNotFoundError(NotFoundError):
    message = "Transaction was not found"


class UserHasAccountsError(LedgerError):
    """User deletion blocked while the user still owns bank accounts"""
    message = "A user cannot be deleted when they are associated with a bank account"


class InsufficientFundsError(LedgerError):
    """Withdrawal amount exceeds the current balance"""
    message = "Insufficient funds to process transaction"


class UnexpectedError(LedgerError):
    message = "Unexpected error occurred"


class TokenSigningError(UnexpectedError):
    """Token could not be signed, usually a missing or invalid secret"""
