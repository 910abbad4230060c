"""
Authentication API endpoints.

Provides login and current-user info. Accounts are created by the seed
script or through user management, never by self-registration.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from budget_ledger.app.db.session import get_db
from budget_ledger.app.models.user import User
from budget_ledger.app.schemas.auth import UserLogin, TokenResponse, UserResponse
from budget_ledger.app.core.security import verify_password
from budget_ledger.app.core.jwt import create_access_token
from budget_ledger.app.core.dependencies import get_current_user
from budget_ledger.app.services.audit import AuditAction
from budget_ledger.app.services.container import LedgerServices, get_ledger_services

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """
    Login user and return JWT token.

    Accepts username or email for login.
    Logs successful and failed login attempts for security monitoring.
    """
    ip_address = request.client.host if request.client else None

    result = await db.execute(
        select(User).where(
            or_(User.username == credentials.username, User.email == credentials.username)
        )
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        services.audit.record(
            action=AuditAction.LOGIN_FAILED,
            table_name="users",
            actor_id=user.id if user else None,
            record_id=user.id if user else None,
            details={
                "username": credentials.username,
                "reason": "Invalid password" if user else "User not found",
                "ip_address": ip_address,
            }
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        services.audit.record(
            action=AuditAction.LOGIN_FAILED,
            table_name="users",
            actor_id=user.id,
            record_id=user.id,
            details={"username": user.username, "reason": "Account is inactive", "ip_address": ip_address}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    # Identity only; role and barangay are re-read on every request
    access_token = create_access_token(data={"sub": user.username, "user_id": user.id})

    services.audit.record(
        action=AuditAction.LOGIN_SUCCESS,
        table_name="users",
        actor_id=user.id,
        record_id=user.id,
        tenant_id=user.tenant_id,
        details={"ip_address": ip_address}
    )

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        username=user.username,
        role=user.role,
        tenant_id=user.tenant_id
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Current authenticated user, as stored right now."""
    return UserResponse.model_validate(current_user)
