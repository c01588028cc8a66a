"""
Transaction endpoints, nested under an account
"""

from fastapi import APIRouter, Depends, status

from .dependencies import LedgerSystem, get_current_user, get_ledger_system
from .schemas import CreateTransactionRequest, ListTransactionsResponse, TransactionResponse


router = APIRouter()


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    account_number: str,
    request: CreateTransactionRequest,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Deposit to or withdraw from an account"""
    transaction = system.transaction_processor.create_transaction(
        account_number=account_number,
        amount=request.amount,
        currency=request.currency,
        transaction_type=request.type,
        caller_user_id=caller
    )
    return TransactionResponse.from_transaction(transaction, caller)


@router.get("", response_model=ListTransactionsResponse)
def list_transactions(
    account_number: str,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get transaction history for an account"""
    transactions = system.transaction_processor.list_transactions(account_number, caller)
    return ListTransactionsResponse(
        transactions=[TransactionResponse.from_transaction(t, caller) for t in transactions]
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    account_number: str,
    transaction_id: str,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get one transaction of an account"""
    transaction = system.transaction_processor.get_transaction(account_number, transaction_id, caller)
    return TransactionResponse.from_transaction(transaction, caller)
