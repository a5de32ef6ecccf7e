# cmms_iut/core/auth/service.py
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from cmms_iut.config.settings import settings

class AuthService:
    """
    Emisión y verificación de tokens del actor.

    No hay usuarios ni contraseñas: el token trae la identidad (`sub`), el
    rol y opcionalmente el departamento del actor.
    """

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        if not data.get("sub"):
            raise ValueError("sub (identidad del actor) es requerido en el token")

        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        )
        return jwt.encode({**data, "exp": expire}, settings.secret_key, algorithm=settings.algorithm)

    @staticmethod
    def issue_actor_token(name: str, role: str, department_code: Optional[int] = None) -> str:
        """Token para un actor del flujo IUT (scripts y pruebas)"""
        return AuthService.create_access_token(
            {"sub": name, "role": role, "department_code": department_code}
        )

    @staticmethod
    def verify_token(token: str) -> Optional[dict]:
        """Payload decodificado, o None si la firma o la expiración fallan"""
        try:
            return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError:
            return None
