"""
Authentication API endpoints.

Senders and carriers register and log in separately; both receive the
same JWT format, distinguished by the role claim.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.models.carrier import Carrier
from backend.app.models.enums import UserRole
from backend.app.schemas.auth import SenderRegister, CarrierRegister, LoginRequest, TokenResponse, MeResponse
from backend.app.core.security import get_password_hash, verify_password
from backend.app.core.jwt import create_access_token
from backend.app.core.dependencies import get_current_user
from backend.app.services.audit import log_auth_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_token(account, role: UserRole) -> TokenResponse:
    jwt_payload = {
        "sub": account.email,
        "user_id": account.id,
        "role": role.value,
    }
    return TokenResponse(
        access_token=create_access_token(data=jwt_payload),
        token_type="bearer",
        user_id=account.id,
        email=account.email,
        role=role,
        firstname=account.firstname,
        lastname=account.lastname,
    )


async def _ensure_email_free(db: AsyncSession, model, email: str):
    result = await db.execute(select(model).where(model.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )


async def _login(db: AsyncSession, model, role: UserRole, credentials: LoginRequest, request: Request) -> TokenResponse:
    """
    Shared login flow for senders and carriers.

    Logs successful and failed login attempts for security monitoring.
    """
    ip_address = request.client.host if request.client else None

    result = await db.execute(select(model).where(model.email == credentials.email))
    account = result.scalar_one_or_none()

    if not account or not verify_password(credentials.password, account.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=account.id if account else None,
            username=credentials.email,
            role=role.value,
            ip_address=ip_address,
            metadata={"reason": "Invalid password" if account else "Account not found"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not account.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=account.id,
            username=account.email,
            role=role.value,
            ip_address=ip_address,
            metadata={"reason": "Account is inactive"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive account"
        )

    token = _issue_token(account, role)

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=account.id,
        username=account.email,
        role=role.value,
        ip_address=ip_address
    )

    return token


@router.post("/sender/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register_sender(
    data: SenderRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new sender with a zero balance."""
    await _ensure_email_free(db, User, data.email)

    sender = User(
        email=data.email,
        phone=data.phone,
        firstname=data.firstname,
        lastname=data.lastname,
        hashed_password=get_password_hash(data.password),
        is_active=True
    )
    db.add(sender)
    await db.commit()
    await db.refresh(sender)

    await log_auth_event(
        db=db,
        action=AuditAction.SENDER_REGISTERED,
        user_id=sender.id,
        username=sender.email,
        role=UserRole.SENDER.value
    )

    return _issue_token(sender, UserRole.SENDER)


@router.post("/sender/login", response_model=TokenResponse)
async def login_sender(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    return await _login(db, User, UserRole.SENDER, credentials, request)


@router.post("/carrier/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register_carrier(
    data: CarrierRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new carrier. New carriers are available for work."""
    await _ensure_email_free(db, Carrier, data.email)

    carrier = Carrier(
        email=data.email,
        phone=data.phone,
        firstname=data.firstname,
        lastname=data.lastname,
        hashed_password=get_password_hash(data.password),
        vehicle_info=data.vehicle_info,
        vehicle_license=data.vehicle_license,
        employment_type=data.employment_type,
        is_available=True,
        is_active=True
    )
    db.add(carrier)
    await db.commit()
    await db.refresh(carrier)

    await log_auth_event(
        db=db,
        action=AuditAction.CARRIER_REGISTERED,
        user_id=carrier.id,
        username=carrier.email,
        role=UserRole.CARRIER.value
    )

    return _issue_token(carrier, UserRole.CARRIER)


@router.post("/carrier/login", response_model=TokenResponse)
async def login_carrier(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    return await _login(db, Carrier, UserRole.CARRIER, credentials, request)


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated sender or carrier.

    Requires valid JWT token in Authorization header.
    """
    role = UserRole(current_user["role"])
    model = User if role == UserRole.SENDER else Carrier

    result = await db.execute(select(model).where(model.id == current_user["user_id"]))
    account = result.scalar_one_or_none()

    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Account not found"
        )

    return MeResponse(
        id=account.id,
        email=account.email,
        role=role,
        firstname=account.firstname,
        lastname=account.lastname,
        is_active=account.is_active
    )
