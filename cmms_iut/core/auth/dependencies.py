# cmms_iut/core/auth/dependencies.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError
from typing import List

from cmms_iut.core.auth.schemas import Actor, TokenPayload
from cmms_iut.core.auth.service import AuthService

security = HTTPBearer()

class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )

async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Actor:
    """Obtener actor actual desde el token"""
    
    payload = AuthService.verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Token inválido o expirado")
    
    try:
        token = TokenPayload(**payload)
    except PydanticValidationError:
        raise AuthenticationError("Payload del token inválido")
    
    return Actor(name=token.sub, role=token.role, department_code=token.department_code)

def require_roles(allowed_roles: List[str]):
    """Factory para crear dependency que requiere roles específicos"""
    def role_checker(current_actor: Actor = Depends(get_current_actor)) -> Actor:
        if current_actor.role not in allowed_roles:
            raise AuthorizationError(
                f"Rol '{current_actor.role}' no autorizado. Roles permitidos: {allowed_roles}"
            )
        return current_actor
    return role_checker

# Dependencies específicas por rol
def get_requester(current_actor: Actor = Depends(require_roles(["requester", "approver", "inventory_admin"]))):
    """Dependency para quien solicita o cancela transferencias"""
    return current_actor

def get_approver(current_actor: Actor = Depends(require_roles(["approver", "inventory_admin"]))):
    """Dependency para aprobadores"""
    return current_actor

def get_inventory_admin(current_actor: Actor = Depends(require_roles(["inventory_admin"]))):
    """Dependency para administración de inventario"""
    return current_actor
