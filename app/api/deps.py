from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from app.core.security import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


class PinRole(str, Enum):
    ADMIN = "ADMIN"
    EXPENSE_INVENTORY = "EXPENSE_INVENTORY"
    INVENTORY_ONLY = "INVENTORY_ONLY"
    REGISTRY_MANAGER = "REGISTRY_MANAGER"
    LEADS = "LEADS"


ROLE_PERMISSIONS: dict[PinRole, set[str]] = {
    PinRole.ADMIN: {
        "inventory:view",
        "inventory:write",
        "stock:view",
        "stock:write",
        "stock:produce",
        "expenses:view",
        "expenses:write",
    },
    PinRole.EXPENSE_INVENTORY: {
        "inventory:view",
        "inventory:write",
        "stock:view",
        "stock:write",
        "stock:produce",
        "expenses:view",
        "expenses:write",
    },
    PinRole.INVENTORY_ONLY: {"inventory:view", "inventory:write", "stock:view", "stock:write"},
    PinRole.REGISTRY_MANAGER: set(),
    PinRole.LEADS: set(),
}


@dataclass(frozen=True)
class CurrentSession:
    subject: str
    role: PinRole


def get_current_session(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
) -> CurrentSession:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    raw_token = token or request.cookies.get("session")
    if not raw_token:
        raise credentials_exception

    try:
        payload = decode_token(raw_token.strip())
    except JWTError:
        raise credentials_exception

    subject = payload.get("sub")
    if subject is None or payload.get("type") != "access":
        raise credentials_exception
    try:
        role = PinRole(payload.get("role"))
    except ValueError:
        raise credentials_exception
    return CurrentSession(subject=str(subject), role=role)


def require_admin(current: CurrentSession = Depends(get_current_session)) -> CurrentSession:
    if current.role != PinRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current


def require_permission(permission: str):
    def checker(current: CurrentSession = Depends(get_current_session)) -> CurrentSession:
        permissions = ROLE_PERMISSIONS.get(current.role, set())
        if permission not in permissions:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission required: {permission}",
            )
        return current

    return checker
