"""
User management endpoints
"""

from fastapi import APIRouter, Depends, Response, status

from .dependencies import LedgerSystem, get_current_user, get_ledger_system
from .schemas import CreateUserRequest, UpdateUserRequest, UserResponse


router = APIRouter()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: CreateUserRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Register a new user (public)"""
    user = system.user_manager.create_user(
        name=request.name,
        password=request.password,
        address=request.address.to_address(),
        phone_number=request.phone_number,
        email=request.email
    )
    return UserResponse.from_user(user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Fetch the caller's own user details"""
    return UserResponse.from_user(system.user_manager.get_user(user_id, caller))


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Replace the caller's profile details"""
    user = system.user_manager.update_user(
        user_id,
        caller,
        name=request.name,
        address=request.address.to_address(),
        phone_number=request.phone_number,
        email=request.email
    )
    return UserResponse.from_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    caller: str = Depends(get_current_user),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Delete the caller's user; refused while they still own accounts"""
    system.user_manager.delete_user(user_id, caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
