# cmms_iut/modules/transfers/ledger.py
"""
Frontera de mutación del libro de inventario.

Cada ajuste es un UPDATE condicional (compare-and-set con piso en cero), así
dos completados que compiten por el mismo material se serializan en la BD y
nunca dejan on_hand negativo. Este módulo NUNCA hace commit: la unidad de
trabajo pertenece al motor de transferencias.
"""
from typing import List, Optional, Tuple
from sqlalchemy import select, update
from sqlalchemy.orm import Session
import logging

from cmms_iut.core.errors import InsufficientStockError, NotFoundError
from cmms_iut.shared.database.models import Material, InventoryChange, InterUnitTransfer

logger = logging.getLogger(__name__)


class InventoryLedger:
    def __init__(self, db: Session):
        self.db = db

    def adjust_on_hand(
        self,
        material_number: str,
        delta: int,
        *,
        performed_by: str,
        change_type: str = 'adjustment',
        transfer_id: Optional[int] = None,
        notes: Optional[str] = None
    ) -> InventoryChange:
        """Sumar `delta` (negativo = descuento) a on_hand de forma atómica"""
        result = self.db.execute(
            update(Material)
            .where(
                Material.material_number == material_number,
                Material.on_hand + delta >= 0
            )
            .values(on_hand=Material.on_hand + delta)
            .execution_options(synchronize_session=False)
        )

        # Releer el valor actual: la copia en sesión puede estar desactualizada
        material = self.db.query(Material).filter(
            Material.material_number == material_number
        ).populate_existing().first()

        if material is None:
            raise NotFoundError("Material", material_number)

        if result.rowcount == 0:
            logger.warning(
                f"❌ Stock insuficiente en {material_number}: "
                f"disponible={material.on_hand}, ajuste={delta}"
            )
            raise InsufficientStockError(material_number, abs(delta), material.on_hand)

        quantity_after = material.on_hand
        change = InventoryChange(
            material_id=material.id,
            material_number=material_number,
            change_type=change_type,
            quantity_before=quantity_after - delta,
            quantity_after=quantity_after,
            quantity_change=delta,
            transfer_id=transfer_id,
            performed_by=performed_by,
            notes=notes
        )
        self.db.add(change)

        logger.info(f"📦 {material_number}: {quantity_after - delta} → {quantity_after} ({change_type})")
        return change

    def lock_materials(self, *material_numbers: str) -> List[str]:
        """SELECT ... FOR UPDATE sobre los materiales, siempre en el mismo orden"""
        ordered = sorted(set(material_numbers))
        return list(self.db.execute(
            select(Material.material_number)
            .where(Material.material_number.in_(ordered))
            .order_by(Material.material_number)
            .with_for_update()
        ).scalars())

    def apply_transfer(self, transfer: InterUnitTransfer, performed_by: str) -> Tuple[InventoryChange, InventoryChange]:
        """
        Mover `quantity` del material origen al destino.

        Bloquea ambas filas en orden de número de material, así dos
        completados en sentidos opuestos no se bloquean mutuamente. Luego
        descuenta el origen: si no alcanza, el destino no se toca y el motor
        hace rollback de todo.
        """
        self.lock_materials(transfer.from_material_number, transfer.to_material_number)

        outgoing = self.adjust_on_hand(
            transfer.from_material_number,
            -transfer.quantity,
            performed_by=performed_by,
            change_type='transfer_out',
            transfer_id=transfer.id,
            notes=f"{transfer.reference_number} → {transfer.to_material_number}"
        )
        incoming = self.adjust_on_hand(
            transfer.to_material_number,
            transfer.quantity,
            performed_by=performed_by,
            change_type='transfer_in',
            transfer_id=transfer.id,
            notes=f"{transfer.reference_number} ← {transfer.from_material_number}"
        )
        return outgoing, incoming
