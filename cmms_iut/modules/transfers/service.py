# cmms_iut/modules/transfers/service.py
"""
Motor del flujo de transferencias entre unidades (IUT).

Única autoridad para cambiar el estado de una transferencia y, al
completarla, las existencias de los departamentos. Cada operación es una
unidad de trabajo: un commit si todo salió bien, rollback ante cualquier
error. No hay reintentos internos.
"""
from typing import Dict, Any, Optional, List, Union
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from cmms_iut.config.settings import settings
from cmms_iut.core.errors import IUTError, ValidationError, InvalidStateTransitionError
from cmms_iut.shared.database.models import InterUnitTransfer, SharedMaterialGroup
from cmms_iut.modules.shared_materials.repository import SharedMaterialsRepository
from .factory import build_transfer, compute_total_value, to_decimal
from .ledger import InventoryLedger
from .repository import TransfersRepository, VIEW_STATUSES
from .schemas import TransferRead
from .workflow import (
    TransferAction, TransferStatus, next_status, allowed_actions, status_label
)

logger = logging.getLogger(__name__)


def to_transfer_read(transfer: InterUnitTransfer) -> TransferRead:
    return TransferRead(
        id=transfer.id,
        reference_number=transfer.reference_number,
        shared_group_id=transfer.shared_group_id,
        from_department=transfer.from_department,
        to_department=transfer.to_department,
        from_material_number=transfer.from_material_number,
        to_material_number=transfer.to_material_number,
        quantity=transfer.quantity,
        unit_cost=transfer.unit_cost,
        total_value=transfer.total_value,
        status=transfer.status,
        status_label=status_label(transfer.status),
        allowed_actions=allowed_actions(transfer.status),
        requested_by=transfer.requested_by,
        requested_at=transfer.requested_at,
        approved_by=transfer.approved_by,
        approved_at=transfer.approved_at,
        rejected_by=transfer.rejected_by,
        rejected_at=transfer.rejected_at,
        rejection_reason=transfer.rejection_reason,
        cancelled_by=transfer.cancelled_by,
        cancelled_at=transfer.cancelled_at,
        cancellation_reason=transfer.cancellation_reason,
        completed_by=transfer.completed_by,
        completed_at=transfer.completed_at,
        notes=transfer.notes
    )


def _require_actor(actor: str, role: str) -> str:
    if not actor or not str(actor).strip():
        raise ValidationError(f"Se requiere identificar al {role}", {role: actor})
    return str(actor).strip()


class TransferWorkflowService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = TransfersRepository(db)
        self.registry = SharedMaterialsRepository(db)
        self.ledger = InventoryLedger(db)

    # ==================== CREACIÓN ====================

    def create_transfer(
        self,
        shared_group_id: int,
        from_material_number: str,
        to_material_number: str,
        quantity: int,
        unit_cost: Optional[Union[Decimal, int, float, str]],
        requested_by: str,
        notes: Optional[str] = None
    ) -> InterUnitTransfer:
        """
        Validar contra el registro y persistir una transferencia 'pending'.

        Raises:
            ValidationError: cantidad, mismo material, grupo no elegible,
                materiales fuera del grupo o cantidad mayor a la existencia
            NotFoundError: grupo o material inexistente
        """
        logger.info(
            f"📦 Solicitud IUT - grupo #{shared_group_id}: {from_material_number} → "
            f"{to_material_number}, cantidad={quantity}, solicitante={requested_by}"
        )

        try:
            # Validaciones baratas antes de ir a la BD
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError(
                    "La cantidad a transferir debe ser un entero mayor que cero",
                    {"quantity": quantity}
                )
            if from_material_number == to_material_number:
                raise ValidationError(
                    "No se puede transferir al mismo material",
                    {"from_material_number": from_material_number, "to_material_number": to_material_number}
                )

            group = self.registry.get_shared_material_group(shared_group_id)
            self._validate_group(group)

            source = self.registry.get_material(from_material_number)
            destination = self.registry.get_material(to_material_number)

            outside = [
                m.material_number for m in (source, destination)
                if m.shared_group_id != group.id
            ]
            if outside:
                raise ValidationError(
                    "Los materiales no pertenecen al mismo grupo compartido",
                    {"shared_group_id": group.id, "materials_outside_group": outside}
                )

            if quantity > source.on_hand:
                raise ValidationError(
                    f"Cantidad insuficiente en {source.material_number}. "
                    f"Disponible: {source.on_hand}, Solicitado: {quantity}",
                    {"material_number": source.material_number, "on_hand": source.on_hand, "requested": quantity}
                )

            # El costo se congela desde el origen; un valor explícito solo confirma
            if unit_cost is not None and to_decimal(unit_cost) != source.unit_cost:
                raise ValidationError(
                    f"El costo unitario debe ser el costo actual de {source.material_number} "
                    f"({source.unit_cost})",
                    {
                        "material_number": source.material_number,
                        "unit_cost": str(unit_cost),
                        "source_unit_cost": str(source.unit_cost)
                    }
                )

            transfer = build_transfer(
                shared_group_id=group.id,
                from_material_number=source.material_number,
                to_material_number=destination.material_number,
                quantity=quantity,
                unit_cost=source.unit_cost,
                requested_by=_require_actor(requested_by, "requested_by"),
                notes=notes,
                from_department=source.department_code,
                to_department=destination.department_code,
                decimal_places=settings.currency_decimal_places,
                prefix=settings.reference_prefix
            )

            self.repository.add(transfer)
            self.db.commit()

        except IUTError as e:
            self.db.rollback()
            logger.warning(f"❌ Solicitud IUT rechazada: {e.message}")
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("❌ Error de BD creando transferencia")
            raise

        logger.info(
            f"✅ Transferencia creada: {transfer.reference_number} (ID #{transfer.id}) "
            f"valor={transfer.total_value}"
        )
        return self.repository.get_by_id(transfer.id)

    def _validate_group(self, group: SharedMaterialGroup):
        if group.status != 'active':
            raise ValidationError(
                f"El grupo '{group.name}' está inactivo",
                {"shared_group_id": group.id, "status": group.status}
            )
        if len(group.linked_materials) < 2:
            raise ValidationError(
                f"El grupo '{group.name}' necesita al menos dos materiales para transferir",
                {"shared_group_id": group.id, "linked_materials": len(group.linked_materials)}
            )

    # ==================== TRANSICIONES ====================

    def approve(self, transfer_id: int, approver_id: str) -> InterUnitTransfer:
        """pending → approved"""
        approver = _require_actor(approver_id, "approved_by")
        return self._transition(
            transfer_id,
            TransferAction.APPROVE,
            approver,
            approved_by=approver,
            approved_at=datetime.now()
        )

    def reject(self, transfer_id: int, rejector_id: str, reason: Optional[str] = None) -> InterUnitTransfer:
        """pending → rejected (terminal)"""
        rejector = _require_actor(rejector_id, "rejected_by")
        return self._transition(
            transfer_id,
            TransferAction.REJECT,
            rejector,
            rejected_by=rejector,
            rejected_at=datetime.now(),
            rejection_reason=reason
        )

    def cancel(self, transfer_id: int, actor_id: str, reason: Optional[str] = None) -> InterUnitTransfer:
        """pending|approved → cancelled (terminal)"""
        actor = _require_actor(actor_id, "cancelled_by")
        return self._transition(
            transfer_id,
            TransferAction.CANCEL,
            actor,
            cancelled_by=actor,
            cancelled_at=datetime.now(),
            cancellation_reason=reason
        )

    def complete(self, transfer_id: int, completer_id: str) -> InterUnitTransfer:
        """
        approved → completed, moviendo existencias en la misma transacción.

        Raises:
            InsufficientStockError: el origen ya no alcanza; la transferencia
                sigue 'approved' y ninguna existencia cambia
        """
        completer = _require_actor(completer_id, "completed_by")
        return self._transition(
            transfer_id,
            TransferAction.COMPLETE,
            completer,
            completed_by=completer,
            completed_at=datetime.now()
        )

    def _transition(
        self,
        transfer_id: int,
        action: TransferAction,
        actor: str,
        **fields: Any
    ) -> InterUnitTransfer:
        logger.info(f"🔄 {action.value} transferencia #{transfer_id} por {actor}")

        try:
            transfer = self.repository.get_by_id_for_update(transfer_id)
            current = transfer.status
            target = next_status(current, action.value, transfer_id)

            if not self.repository.compare_and_set_status(transfer.id, current, target.value, **fields):
                # Otra transacción cambió el estado entre la lectura y el UPDATE
                raise InvalidStateTransitionError(
                    self.repository.current_status(transfer_id) or current,
                    action.value,
                    transfer_id
                )

            if action is TransferAction.COMPLETE:
                self.ledger.apply_transfer(transfer, actor)

            self.db.commit()

        except IUTError as e:
            self.db.rollback()
            logger.warning(f"❌ {action.value} #{transfer_id} fallido: {e.message}")
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"❌ Error de BD en {action.value} #{transfer_id}")
            raise

        transfer = self.repository.get_by_id(transfer_id)
        logger.info(f"✅ {transfer.reference_number}: {current} → {transfer.status}")
        return transfer

    # ==================== CONSULTAS ====================

    def get_transfer(self, transfer_id: int) -> InterUnitTransfer:
        return self.repository.get_by_id(transfer_id)

    def list_transfers(
        self,
        status: Optional[str] = None,
        department: Optional[int] = None,
        search_text: Optional[str] = None,
        view: Optional[str] = None,
        shared_group_id: Optional[int] = None
    ) -> List[InterUnitTransfer]:
        """Transferencias filtradas, la solicitud más reciente primero"""
        if status and status not in {s.value for s in TransferStatus}:
            raise ValidationError(f"Estado desconocido: '{status}'", {"status": status})
        if view and view not in VIEW_STATUSES:
            raise ValidationError(f"Vista desconocida: '{view}'", {"view": view})

        return self.repository.list_transfers(
            status=status,
            department=department,
            search_text=search_text,
            view=view,
            shared_group_id=shared_group_id
        )

    def get_summary(self) -> Dict[str, Any]:
        summary = self.repository.get_summary()
        summary["completed_value"] = compute_total_value(
            1, summary["completed_value"], settings.currency_decimal_places
        )
        return summary
