# cmms_iut/modules/shared_materials/repository.py
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from typing import List, Dict, Any, Optional
import logging

from cmms_iut.core.errors import NotFoundError
from cmms_iut.shared.database.models import (
    SharedMaterialGroup, Material, InterUnitTransfer
)

logger = logging.getLogger(__name__)

OPEN_TRANSFER_STATUSES = ('pending', 'approved')

class SharedMaterialsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_shared_material_group(self, group_id: int) -> SharedMaterialGroup:
        """Obtener grupo con sus materiales vinculados"""
        group = self.db.query(SharedMaterialGroup).options(
            selectinload(SharedMaterialGroup.linked_materials)
        ).filter(
            SharedMaterialGroup.id == group_id
        ).first()

        if not group:
            raise NotFoundError("SharedMaterialGroup", group_id)
        return group

    def get_material(self, material_number: str) -> Material:
        """
        Leer el material con su existencia ACTUAL.

        populate_existing() descarta la copia en caché de la sesión para que
        las validaciones del motor nunca usen un on_hand desactualizado.
        """
        query = self.db.query(Material).filter(
            Material.material_number == material_number
        ).populate_existing()

        material = query.first()
        if not material:
            raise NotFoundError("Material", material_number)
        return material

    def list_groups(self, status: Optional[str] = None) -> List[SharedMaterialGroup]:
        query = self.db.query(SharedMaterialGroup).options(
            selectinload(SharedMaterialGroup.linked_materials)
        )
        if status:
            query = query.filter(SharedMaterialGroup.status == status)
        return query.order_by(SharedMaterialGroup.oem_part_number).all()

    def create_group(self, group_data: Dict[str, Any], created_by: str) -> SharedMaterialGroup:
        """Crear grupo de material compartido"""
        group = SharedMaterialGroup(
            name=group_data['name'],
            oem_part_number=group_data['oem_part_number'],
            description=group_data.get('description'),
            manufacturer=group_data.get('manufacturer'),
            status=group_data.get('status', 'active'),
            created_by=created_by
        )

        self.db.add(group)
        self.db.commit()
        self.db.refresh(group)
        return group

    def add_material(self, group: SharedMaterialGroup, material_data: Dict[str, Any]) -> Material:
        """Crear material de departamento vinculado al grupo"""
        material = Material(
            material_number=material_data['material_number'],
            name=material_data['name'],
            department_code=material_data['department_code'],
            location=material_data.get('location') or 'N/A',
            on_hand=material_data.get('on_hand', 0),
            unit_cost=material_data.get('unit_cost', 0),
            shared_group_id=group.id
        )

        self.db.add(material)
        self.db.commit()
        self.db.refresh(material)
        return material

    def get_stats(self) -> Dict[str, Any]:
        """Resumen del registro de materiales compartidos"""
        groups = self.list_groups(status='active')

        open_transfers = self.db.query(func.count(InterUnitTransfer.id)).filter(
            InterUnitTransfer.status.in_(OPEN_TRANSFER_STATUSES)
        ).scalar() or 0

        return {
            "total_groups": len(groups),
            "total_linked_materials": sum(len(g.linked_materials) for g in groups),
            "total_value": sum((g.total_value for g in groups), 0),
            "open_transfers": open_transfers,
            "departments_involved": len({
                m.department_code for g in groups for m in g.linked_materials
            })
        }
