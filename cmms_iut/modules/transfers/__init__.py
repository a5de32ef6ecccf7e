# cmms_iut/modules/transfers/__init__.py
"""
Módulo de Transferencias entre Unidades (IUT)

Flujo: pending → approved → completed, con rechazo desde pending y
cancelación desde pending o approved. Solo el completado mueve existencias.

Arquitectura:
- router.py: Endpoints del flujo
- service.py: Motor del flujo (unidad de trabajo por operación)
- workflow.py: Máquina de estados pura
- factory.py: Construcción de transferencias nuevas
- ledger.py: Ajustes atómicos de existencias
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import TransferWorkflowService
from .repository import TransfersRepository
from .ledger import InventoryLedger

__all__ = [
    "router",
    "TransferWorkflowService",
    "TransfersRepository",
    "InventoryLedger"
]
