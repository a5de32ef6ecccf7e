# cmms_iut/modules/transfers/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_, desc, func, update
from typing import List, Dict, Any, Optional
from decimal import Decimal
import logging

from cmms_iut.core.errors import NotFoundError
from cmms_iut.shared.database.models import InterUnitTransfer, SharedMaterialGroup
from .workflow import TransferStatus, OPEN_STATUSES, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

VIEW_STATUSES = {
    'active': [s.value for s in OPEN_STATUSES],
    'history': [s.value for s in TERMINAL_STATUSES],
}

class TransfersRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, transfer: InterUnitTransfer) -> InterUnitTransfer:
        """Registrar transferencia nueva (sin commit)"""
        self.db.add(transfer)
        self.db.flush()
        return transfer

    def get_by_id(self, transfer_id: int) -> InterUnitTransfer:
        transfer = self.db.query(InterUnitTransfer).filter(
            InterUnitTransfer.id == transfer_id
        ).populate_existing().first()

        if not transfer:
            raise NotFoundError("InterUnitTransfer", transfer_id)
        return transfer

    def get_by_id_for_update(self, transfer_id: int) -> InterUnitTransfer:
        """Leer y bloquear la fila de la transferencia hasta el fin de la transacción"""
        transfer = self.db.query(InterUnitTransfer).filter(
            InterUnitTransfer.id == transfer_id
        ).populate_existing().with_for_update().first()  # ← LOCK: evita transiciones simultáneas

        if not transfer:
            raise NotFoundError("InterUnitTransfer", transfer_id)
        return transfer

    def compare_and_set_status(
        self,
        transfer_id: int,
        expected_status: str,
        new_status: str,
        **fields: Any
    ) -> bool:
        """
        Cambiar el estado solo si sigue siendo `expected_status`.

        Devuelve False si otra transacción ganó la carrera.
        """
        result = self.db.execute(
            update(InterUnitTransfer)
            .where(
                and_(
                    InterUnitTransfer.id == transfer_id,
                    InterUnitTransfer.status == expected_status
                )
            )
            .values(status=new_status, **fields)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def current_status(self, transfer_id: int) -> Optional[str]:
        return self.db.query(InterUnitTransfer.status).filter(
            InterUnitTransfer.id == transfer_id
        ).scalar()

    def list_transfers(
        self,
        status: Optional[str] = None,
        department: Optional[int] = None,
        search_text: Optional[str] = None,
        view: Optional[str] = None,
        shared_group_id: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[InterUnitTransfer]:
        """Transferencias filtradas, la solicitud más reciente primero"""
        query = self.db.query(InterUnitTransfer).outerjoin(
            SharedMaterialGroup,
            InterUnitTransfer.shared_group_id == SharedMaterialGroup.id
        )

        if view in VIEW_STATUSES:
            query = query.filter(InterUnitTransfer.status.in_(VIEW_STATUSES[view]))

        if status:
            query = query.filter(InterUnitTransfer.status == status)

        if department is not None:
            query = query.filter(
                or_(
                    InterUnitTransfer.from_department == department,
                    InterUnitTransfer.to_department == department
                )
            )

        if shared_group_id is not None:
            query = query.filter(InterUnitTransfer.shared_group_id == shared_group_id)

        if search_text and search_text.strip():
            needle = search_text.strip().lower()
            query = query.filter(
                or_(
                    func.lower(InterUnitTransfer.reference_number).contains(needle, autoescape=True),
                    func.lower(InterUnitTransfer.from_material_number).contains(needle, autoescape=True),
                    func.lower(InterUnitTransfer.to_material_number).contains(needle, autoescape=True),
                    func.lower(InterUnitTransfer.requested_by).contains(needle, autoescape=True),
                    func.lower(SharedMaterialGroup.name).contains(needle, autoescape=True)
                )
            )

        query = query.order_by(desc(InterUnitTransfer.requested_at), desc(InterUnitTransfer.id))

        if limit:
            query = query.limit(limit)

        return query.all()

    def get_summary(self) -> Dict[str, Any]:
        """Conteo por estado y valor total completado"""
        rows = self.db.query(
            InterUnitTransfer.status,
            func.count(InterUnitTransfer.id)
        ).group_by(InterUnitTransfer.status).all()

        counts = {s.value: 0 for s in TransferStatus}
        for status, count in rows:
            counts[status] = count

        completed_value = self.db.query(
            func.coalesce(func.sum(InterUnitTransfer.total_value), 0)
        ).filter(
            InterUnitTransfer.status == TransferStatus.COMPLETED.value
        ).scalar()

        return {
            "counts": counts,
            "open": counts['pending'] + counts['approved'],
            "total": sum(counts.values()),
            "completed_value": Decimal(str(completed_value or 0))
        }
