# cmms_iut/modules/shared_materials/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from cmms_iut.config.database import get_db
from cmms_iut.core.auth.dependencies import get_current_actor, get_inventory_admin
from cmms_iut.core.auth.schemas import Actor
from .service import SharedMaterialsService
from .schemas import (
    SharedMaterialGroupCreate, SharedMaterialGroupResponse, SharedMaterialGroupListResponse,
    MaterialCreate, MaterialResponse, SharedMaterialsStatsResponse
)

router = APIRouter()

@router.get("/groups", response_model=SharedMaterialGroupListResponse)
def list_shared_groups(
    status: Optional[str] = Query(None, pattern="^(active|inactive)$", description="Filtrar por estado"),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Listar grupos de materiales compartidos
    
    **Incluye por grupo:**
    - Materiales vinculados por departamento (número, existencia, costo, ubicación)
    - Existencia total y valor total
    - Departamentos involucrados
    - Si el grupo es elegible para transferencias (activo y 2+ materiales)
    """
    service = SharedMaterialsService(db)
    return service.list_groups(status)

@router.get("/groups/{group_id}", response_model=SharedMaterialGroupResponse)
def get_shared_group(
    group_id: int,
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Obtener un grupo con sus materiales vinculados"""
    service = SharedMaterialsService(db)
    return service.get_group(group_id)

@router.post("/groups", response_model=SharedMaterialGroupResponse, status_code=201)
def create_shared_group(
    group_data: SharedMaterialGroupCreate,
    current_actor: Actor = Depends(get_inventory_admin),
    db: Session = Depends(get_db)
):
    """Crear grupo de material compartido (solo administración de inventario)"""
    service = SharedMaterialsService(db)
    return service.create_group(group_data, current_actor.name)

@router.post("/groups/{group_id}/materials", response_model=SharedMaterialGroupResponse, status_code=201)
def link_material(
    group_id: int,
    material_data: MaterialCreate,
    current_actor: Actor = Depends(get_inventory_admin),
    db: Session = Depends(get_db)
):
    """
    Vincular el material de un departamento al grupo
    
    **Validaciones:**
    - Un solo material por departamento dentro del grupo
    - Número de material único en toda la organización
    """
    service = SharedMaterialsService(db)
    return service.link_material(group_id, material_data)

@router.get("/materials/{material_number}", response_model=MaterialResponse)
def get_material(
    material_number: str,
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Consultar existencia y costo actuales de un material"""
    service = SharedMaterialsService(db)
    return service.get_material(material_number)

@router.get("/stats", response_model=SharedMaterialsStatsResponse)
def get_shared_materials_stats(
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Resumen: grupos, materiales vinculados, valor, transferencias abiertas y departamentos"""
    service = SharedMaterialsService(db)
    return service.get_stats()
