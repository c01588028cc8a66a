"""
Account management endpoints
"""

from fastapi import APIRouter, Depends, Response, status

from .dependencies import LedgerSystem, get_current_user, get_ledger_system
from .schemas import (
    AccountResponse, CreateAccountRequest, ListAccountsResponse, UpdateAccountRequest
)


router = APIRouter()


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    request: CreateAccountRequest,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Open a new account owned by the caller"""
    account = system.account_manager.create_account(request.name, request.account_type, caller)
    return AccountResponse.from_account(account)


@router.get("", response_model=ListAccountsResponse)
def list_accounts(
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """List the caller's accounts"""
    accounts = system.account_manager.list_accounts(caller)
    return ListAccountsResponse(accounts=[AccountResponse.from_account(a) for a in accounts])


@router.get("/{account_number}", response_model=AccountResponse)
def get_account(
    account_number: str,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get account details"""
    return AccountResponse.from_account(system.account_manager.get_account(account_number, caller))


@router.patch("/{account_number}", response_model=AccountResponse)
def update_account(
    account_number: str,
    request: UpdateAccountRequest,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Rename an account or change its type"""
    account = system.account_manager.update_account(
        account_number, request.name, request.account_type, caller
    )
    return AccountResponse.from_account(account)


@router.delete("/{account_number}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_number: str,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Close an account"""
    system.account_manager.delete_account(account_number, caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
