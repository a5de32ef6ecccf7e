# cmms_iut/modules/shared_materials/service.py
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging

from cmms_iut.core.errors import ValidationError
from cmms_iut.shared.database.models import SharedMaterialGroup, Material
from .repository import SharedMaterialsRepository
from .departments import get_department_name, summarize_departments
from .schemas import (
    SharedMaterialEntry, SharedMaterialGroupRead, SharedMaterialGroupCreate,
    SharedMaterialGroupResponse, SharedMaterialGroupListResponse,
    MaterialCreate, MaterialRead, MaterialResponse, SharedMaterialsStatsResponse
)

logger = logging.getLogger(__name__)


def to_group_read(group: SharedMaterialGroup) -> SharedMaterialGroupRead:
    entries = [
        SharedMaterialEntry(
            material_number=m.material_number,
            department_code=m.department_code,
            department_name=get_department_name(m.department_code),
            on_hand=m.on_hand,
            unit_cost=m.unit_cost,
            location=m.location,
            is_primary=index == 0
        )
        for index, m in enumerate(group.linked_materials)
    ]
    return SharedMaterialGroupRead(
        id=group.id,
        name=group.name,
        description=group.description,
        oem_part_number=group.oem_part_number,
        manufacturer=group.manufacturer,
        status=group.status,
        linked_materials=entries,
        total_on_hand=group.total_on_hand,
        total_value=group.total_value,
        departments=summarize_departments([m.department_code for m in group.linked_materials]),
        is_transfer_eligible=group.is_transfer_eligible
    )


def to_material_read(material: Material) -> MaterialRead:
    return MaterialRead(
        material_number=material.material_number,
        name=material.name,
        department_code=material.department_code,
        department_name=get_department_name(material.department_code),
        location=material.location,
        on_hand=material.on_hand,
        unit_cost=material.unit_cost,
        shared_group_id=material.shared_group_id
    )


class SharedMaterialsService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = SharedMaterialsRepository(db)

    def list_groups(self, status: Optional[str] = None) -> SharedMaterialGroupListResponse:
        groups = self.repository.list_groups(status)
        return SharedMaterialGroupListResponse(
            success=True,
            message=f"{len(groups)} grupo(s) de materiales compartidos",
            groups=[to_group_read(g) for g in groups],
            total=len(groups)
        )

    def get_group(self, group_id: int) -> SharedMaterialGroupResponse:
        group = self.repository.get_shared_material_group(group_id)
        return SharedMaterialGroupResponse(
            success=True,
            message="Grupo obtenido",
            group=to_group_read(group)
        )

    def get_material(self, material_number: str) -> MaterialResponse:
        material = self.repository.get_material(material_number)
        return MaterialResponse(
            success=True,
            message="Material obtenido",
            material=to_material_read(material)
        )

    def create_group(self, group_data: SharedMaterialGroupCreate, created_by: str) -> SharedMaterialGroupResponse:
        """Alta de grupo por administración de inventario"""
        try:
            group = self.repository.create_group(group_data.model_dump(), created_by)
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"❌ OEM# duplicado: {group_data.oem_part_number}")
            raise ValidationError(
                f"Ya existe un grupo con OEM# '{group_data.oem_part_number}'",
                {"oem_part_number": group_data.oem_part_number}
            )

        logger.info(f"✅ Grupo compartido creado: #{group.id} {group.oem_part_number} por {created_by}")
        return self.get_group(group.id)

    def link_material(self, group_id: int, material_data: MaterialCreate) -> SharedMaterialGroupResponse:
        """Crear material de un departamento dentro del grupo"""
        group = self.repository.get_shared_material_group(group_id)

        if any(m.department_code == material_data.department_code for m in group.linked_materials):
            raise ValidationError(
                f"El departamento {material_data.department_code} ya tiene material en este grupo",
                {"department_code": material_data.department_code, "shared_group_id": group_id}
            )

        try:
            material = self.repository.add_material(group, material_data.model_dump())
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"❌ Material duplicado: {material_data.material_number}")
            raise ValidationError(
                f"El material '{material_data.material_number}' ya existe",
                {"material_number": material_data.material_number}
            )

        logger.info(
            f"✅ Material {material.material_number} (dept {material.department_code}) "
            f"vinculado al grupo #{group_id}"
        )
        self.db.expire(group)
        return self.get_group(group_id)

    def get_stats(self) -> SharedMaterialsStatsResponse:
        stats = self.repository.get_stats()
        return SharedMaterialsStatsResponse(
            success=True,
            message="Estadísticas de materiales compartidos",
            **stats
        )
