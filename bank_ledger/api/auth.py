"""
Token issuance endpoint
"""

from fastapi import APIRouter, Depends

from .dependencies import LedgerSystem, get_ledger_system
from .schemas import AuthRequest, AuthResponse


router = APIRouter()


@router.post("/token", response_model=AuthResponse)
def issue_token(
    request: AuthRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Exchange a user id and password for a bearer token"""
    token = system.credential_service.authenticate(request.user_id, request.password)
    return AuthResponse(token=token)
