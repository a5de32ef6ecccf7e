# cmms_iut/modules/transfers/router.py
from fastapi import APIRouter, Depends, Query, Body
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from cmms_iut.config.database import get_db
from cmms_iut.core.auth.dependencies import get_current_actor, get_requester, get_approver
from cmms_iut.core.auth.schemas import Actor
from .service import TransferWorkflowService, to_transfer_read
from .schemas import (
    TransferCreate, TransferDecision, TransferResponse,
    TransferListResponse, TransferSummaryResponse
)

router = APIRouter()

@router.get("/health")
def transfers_health():
    """Health check del módulo de transferencias"""
    return {
        "service": "transfers",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Solicitud de transferencias entre departamentos",
            "Aprobación, rechazo y cancelación",
            "Completado con movimiento de existencias"
        ],
        "timestamp": datetime.now()
    }

@router.post("", response_model=TransferResponse, status_code=201)
def create_transfer(
    transfer_data: TransferCreate,
    current_actor: Actor = Depends(get_requester),
    db: Session = Depends(get_db)
):
    """
    Solicitar transferencia de un material compartido a otro departamento

    **Validaciones:**
    - Cantidad entera mayor que cero
    - Origen y destino distintos, ambos vinculados al mismo grupo activo
    - Cantidad no mayor a la existencia actual del origen

    **Resultado:**
    - Transferencia en estado 'pending' con número de referencia IUT-...
    - Valor total congelado (cantidad × costo unitario)
    """
    service = TransferWorkflowService(db)
    transfer = service.create_transfer(
        shared_group_id=transfer_data.shared_group_id,
        from_material_number=transfer_data.from_material_number,
        to_material_number=transfer_data.to_material_number,
        quantity=transfer_data.quantity,
        unit_cost=transfer_data.unit_cost,
        requested_by=current_actor.name,
        notes=transfer_data.notes
    )
    return TransferResponse(
        success=True,
        message=f"Transferencia {transfer.reference_number} creada, pendiente de aprobación",
        transfer=to_transfer_read(transfer)
    )

@router.get("", response_model=TransferListResponse)
def list_transfers(
    status: Optional[str] = Query(None, description="pending, approved, completed, rejected o cancelled"),
    department: Optional[int] = Query(None, ge=0, description="Departamento origen o destino"),
    search: Optional[str] = Query(None, description="Referencia, material, solicitante o grupo"),
    view: Optional[str] = Query(None, description="active (abiertas) o history (terminadas)"),
    group_id: Optional[int] = Query(None, description="Grupo de material compartido"),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Listar transferencias, la solicitud más reciente primero"""
    service = TransferWorkflowService(db)
    transfers = service.list_transfers(
        status=status,
        department=department,
        search_text=search,
        view=view,
        shared_group_id=group_id
    )
    return TransferListResponse(
        success=True,
        message=f"{len(transfers)} transferencia(s)",
        transfers=[to_transfer_read(t) for t in transfers],
        total=len(transfers),
        filters={
            "status": status,
            "department": department,
            "search": search,
            "view": view,
            "group_id": group_id
        }
    )

@router.get("/summary", response_model=TransferSummaryResponse)
def get_transfers_summary(
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Conteo por estado, transferencias abiertas y valor completado"""
    service = TransferWorkflowService(db)
    summary = service.get_summary()
    return TransferSummaryResponse(
        success=True,
        message="Resumen de transferencias",
        **summary
    )

@router.get("/{transfer_id}", response_model=TransferResponse)
def get_transfer(
    transfer_id: int,
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Detalle de una transferencia con sus acciones permitidas"""
    service = TransferWorkflowService(db)
    transfer = service.get_transfer(transfer_id)
    return TransferResponse(
        success=True,
        message="Transferencia obtenida",
        transfer=to_transfer_read(transfer)
    )

@router.post("/{transfer_id}/approve", response_model=TransferResponse)
def approve_transfer(
    transfer_id: int,
    current_actor: Actor = Depends(get_approver),
    db: Session = Depends(get_db)
):
    """Aprobar transferencia pendiente (pending → approved)"""
    service = TransferWorkflowService(db)
    transfer = service.approve(transfer_id, current_actor.name)
    return TransferResponse(
        success=True,
        message=f"Transferencia {transfer.reference_number} aprobada",
        transfer=to_transfer_read(transfer)
    )

@router.post("/{transfer_id}/reject", response_model=TransferResponse)
def reject_transfer(
    transfer_id: int,
    decision: Optional[TransferDecision] = Body(None),
    current_actor: Actor = Depends(get_approver),
    db: Session = Depends(get_db)
):
    """Rechazar transferencia pendiente (pending → rejected)"""
    service = TransferWorkflowService(db)
    transfer = service.reject(transfer_id, current_actor.name, decision.reason if decision else None)
    return TransferResponse(
        success=True,
        message=f"Transferencia {transfer.reference_number} rechazada",
        transfer=to_transfer_read(transfer)
    )

@router.post("/{transfer_id}/complete", response_model=TransferResponse)
def complete_transfer(
    transfer_id: int,
    current_actor: Actor = Depends(get_approver),
    db: Session = Depends(get_db)
):
    """
    Completar transferencia aprobada (approved → completed)

    **Proceso:**
    - Descuenta la cantidad del material origen
    - Suma la cantidad al material destino
    - Registra ambos movimientos en el historial de inventario

    Si el origen ya no tiene existencia suficiente responde 409 y la
    transferencia sigue aprobada.
    """
    service = TransferWorkflowService(db)
    transfer = service.complete(transfer_id, current_actor.name)
    return TransferResponse(
        success=True,
        message=f"Transferencia {transfer.reference_number} completada",
        transfer=to_transfer_read(transfer)
    )

@router.post("/{transfer_id}/cancel", response_model=TransferResponse)
def cancel_transfer(
    transfer_id: int,
    decision: Optional[TransferDecision] = Body(None),
    current_actor: Actor = Depends(get_requester),
    db: Session = Depends(get_db)
):
    """Cancelar transferencia pendiente o aprobada"""
    service = TransferWorkflowService(db)
    transfer = service.cancel(transfer_id, current_actor.name, decision.reason if decision else None)
    return TransferResponse(
        success=True,
        message=f"Transferencia {transfer.reference_number} cancelada",
        transfer=to_transfer_read(transfer)
    )
