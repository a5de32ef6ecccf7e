# cmms_iut/core/errors.py
"""
Errores de dominio del flujo de transferencias entre unidades.

El motor los lanza; la capa HTTP los traduce a ErrorResponse con
setup_exception_handlers(). Ningún error se reintenta automáticamente.
"""
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from cmms_iut.shared.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class IUTError(Exception):
    """Base de la taxonomía de errores"""
    error_code = "iut_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(IUTError):
    """Solicitud mal formada o semánticamente inválida"""
    error_code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(IUTError):
    """Transferencia, grupo o material inexistente"""
    error_code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity} '{identifier}' no encontrado",
            {"entity": entity, "identifier": str(identifier)}
        )
        self.entity = entity
        self.identifier = identifier


class InvalidStateTransitionError(IUTError):
    """Transición no permitida desde el estado actual (estado del cliente desactualizado)"""
    error_code = "invalid_state_transition"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current_status: str, action: str, transfer_id: Optional[int] = None):
        super().__init__(
            f"No se puede '{action}' una transferencia en estado '{current_status}'",
            {"current_status": current_status, "action": action, "transfer_id": transfer_id}
        )
        self.current_status = current_status
        self.action = action
        self.transfer_id = transfer_id


class InsufficientStockError(IUTError):
    """El origen ya no tiene existencias suficientes para completar"""
    error_code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, material_number: str, requested: int, on_hand: int):
        super().__init__(
            f"Stock insuficiente en material {material_number}. "
            f"Solicitado: {requested}, Disponible: {on_hand}",
            {"material_number": material_number, "requested": requested, "on_hand": on_hand}
        )
        self.material_number = material_number
        self.requested = requested
        self.on_hand = on_hand


def setup_exception_handlers(app: FastAPI):
    """Traducir la taxonomía de dominio a respuestas JSON"""

    @app.exception_handler(IUTError)
    async def iut_error_handler(request: Request, exc: IUTError):
        logger.warning(f"{request.method} {request.url.path} - {exc.error_code}: {exc.message}")
        body = ErrorResponse(
            message=exc.message,
            error_code=exc.error_code,
            details=exc.details
        )
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))
