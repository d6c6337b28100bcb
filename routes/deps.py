from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from datetime import datetime, timedelta
from typing import Optional
from database import users_collection, reimbursements_collection, direct_expenses_collection, expenses_collection
from models.user import UserModel, Actor
from repositories.reimbursement import ReimbursementRepository
from repositories.direct_expense import DirectExpenseRepository
from repositories.expense import ExpenseRepository
from services.ledger import ExpenseLedger
from services.reimbursement import ReimbursementService
from services.direct_expense import DirectExpenseService
from services.storage import LocalBlobStorage
from logging_config import get_logger, user_id_var, role_var
from config import config

logger = get_logger("auth")

SECRET_KEY = config.SECRET_KEY
ALGORITHM = config.ALGORITHM

# Tokens are issued by the external auth provider
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/token")

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Mint a token the way the auth provider does (dev scripts and tests)."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=15)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            logger.warning("Token decoded but missing 'sub' claim")
            raise credentials_exception
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        raise credentials_exception

    user = await users_collection.find_one({"id": user_id})
    if user is None:
        logger.warning(f"Token valid but user not found in DB", extra={"data": {"user_id": user_id}})
        raise credentials_exception

    current_user = UserModel(**user)
    if current_user.status != "active":
        logger.warning(f"Inactive user attempted access", extra={"data": {"user_id": user_id}})
        raise credentials_exception

    user_id_var.set(current_user.id)
    role_var.set(current_user.role)
    return current_user


async def get_actor(current_user: UserModel = Depends(get_current_user)) -> Actor:
    return Actor.from_user(current_user)


# ─── Centralized RBAC Helpers ────────────────────────────────────────────────

def require_role(*allowed_roles):
    """Dependency that checks if the current user has one of the allowed roles."""
    async def checker(current_user: UserModel = Depends(get_current_user)) -> Actor:
        if current_user.role not in allowed_roles:
            logger.warning(
                f"Access denied: requires {allowed_roles}",
                extra={"data": {"user_id": current_user.id, "role": current_user.role}}
            )
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return Actor.from_user(current_user)
    return checker


# ─── Service Wiring ──────────────────────────────────────────────────────────
# Built per request from the shared collections; nothing is cached at module level.

def get_ledger() -> ExpenseLedger:
    return ExpenseLedger(
        ExpenseRepository(expenses_collection),
        ReimbursementRepository(reimbursements_collection),
        DirectExpenseRepository(direct_expenses_collection),
    )

def get_reimbursement_service(ledger: ExpenseLedger = Depends(get_ledger)) -> ReimbursementService:
    return ReimbursementService(ReimbursementRepository(reimbursements_collection), ledger)

def get_direct_expense_service(ledger: ExpenseLedger = Depends(get_ledger)) -> DirectExpenseService:
    return DirectExpenseService(DirectExpenseRepository(direct_expenses_collection), ledger)

def get_storage() -> LocalBlobStorage:
    return LocalBlobStorage()
