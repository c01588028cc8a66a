"""
Service wiring and authentication dependencies
"""

import threading
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..accounts import AccountManager
from ..config import LedgerConfig, get_config
from ..currency import Currency
from ..errors import InvalidTokenError
from ..identifiers import IdentifierGenerator
from ..security import CredentialService, TokenService
from ..storage import StorageInterface, create_storage
from ..transactions import TransactionProcessor
from ..users import UserManager


class LedgerSystem:
    """Ledger components wired to one storage backend"""

    def __init__(self, storage: Optional[StorageInterface] = None, config: Optional[LedgerConfig] = None):
        self.config = config or get_config()
        self.storage = storage or create_storage(self.config.database_url)

        self.id_generator = IdentifierGenerator(self.storage)
        self.account_manager = AccountManager(
            self.storage, self.id_generator,
            sort_code=self.config.sort_code,
            default_currency=Currency.from_code(self.config.default_currency)
        )
        self.transaction_processor = TransactionProcessor(
            self.storage, self.account_manager, self.id_generator
        )
        self.user_manager = UserManager(
            self.storage, self.id_generator, self.account_manager,
            password_rounds=self.config.bcrypt_rounds
        )
        self.token_service = TokenService(
            secret=self.config.jwt_secret,
            expiry_seconds=self.config.jwt_expiry_seconds,
            algorithm=self.config.jwt_algorithm,
            issuer=self.config.jwt_issuer
        )
        self.credential_service = CredentialService(
            self.user_manager, self.token_service, hash_rounds=self.config.bcrypt_rounds
        )

    def close(self) -> None:
        self.storage.close()


_ledger_system: Optional[LedgerSystem] = None
_ledger_system_lock = threading.Lock()


def get_ledger_system() -> LedgerSystem:
    """Dependency returning the process-wide ledger system, created on first use"""
    global _ledger_system
    if _ledger_system is None:
        with _ledger_system_lock:
            if _ledger_system is None:
                _ledger_system = LedgerSystem()
    return _ledger_system


# JWT Security
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: LedgerSystem = Depends(get_ledger_system)
) -> str:
    """Dependency that validates the bearer token and returns the caller's user id"""
    if not credentials:
        raise InvalidTokenError("Not authenticated")
    return system.token_service.verify_token(credentials.credentials)
