# cmms_iut/modules/shared_materials/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
from decimal import Decimal
from cmms_iut.shared.schemas.common import BaseResponse

class SharedMaterialEntry(BaseModel):
    material_number: str
    department_code: int
    department_name: str
    on_hand: int
    unit_cost: Decimal
    location: Optional[str] = None
    is_primary: bool = False

class SharedMaterialGroupRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    oem_part_number: str
    manufacturer: Optional[str] = None
    status: str
    linked_materials: List[SharedMaterialEntry]
    total_on_hand: int
    total_value: Decimal
    departments: List[Dict[str, Any]]
    is_transfer_eligible: bool

class SharedMaterialGroupCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255, description="Nombre de la parte")
    oem_part_number: str = Field(..., min_length=1, max_length=100, description="Número de parte del fabricante")
    description: Optional[str] = Field(None, max_length=1000)
    manufacturer: Optional[str] = Field(None, max_length=255)
    status: str = Field(default="active", pattern="^(active|inactive)$")
    
    @validator('oem_part_number')
    def validate_oem(cls, v):
        if not v.strip():
            raise ValueError('El OEM# no puede estar vacío')
        return v.strip()
    
    class Config:
        json_schema_extra = {
            "example": {
                "name": "Bearing X",
                "oem_part_number": "SKF-6205-2RS",
                "manufacturer": "SKF",
                "status": "active"
            }
        }

class MaterialCreate(BaseModel):
    material_number: str = Field(..., min_length=1, max_length=50, description="Número de material del departamento")
    name: str = Field(..., min_length=1, max_length=255)
    department_code: int = Field(..., ge=0, description="Código de departamento")
    location: Optional[str] = Field("N/A", max_length=255)
    on_hand: int = Field(0, ge=0, description="Existencia inicial")
    unit_cost: Decimal = Field(Decimal("0"), ge=0, description="Costo unitario")
    
    @validator('material_number')
    def validate_material_number(cls, v):
        if not v.strip():
            raise ValueError('El número de material no puede estar vacío')
        return v.strip()

class MaterialRead(BaseModel):
    material_number: str
    name: str
    department_code: int
    department_name: str
    location: Optional[str] = None
    on_hand: int
    unit_cost: Decimal
    shared_group_id: Optional[int] = None

class SharedMaterialGroupResponse(BaseResponse):
    group: SharedMaterialGroupRead

class SharedMaterialGroupListResponse(BaseResponse):
    groups: List[SharedMaterialGroupRead]
    total: int

class MaterialResponse(BaseResponse):
    material: MaterialRead

class SharedMaterialsStatsResponse(BaseResponse):
    total_groups: int
    total_linked_materials: int
    total_value: Decimal
    open_transfers: int
    departments_involved: int
