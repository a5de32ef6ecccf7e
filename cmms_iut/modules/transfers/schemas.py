# cmms_iut/modules/transfers/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any, List
from decimal import Decimal
from datetime import datetime
from cmms_iut.shared.schemas.common import BaseResponse

class TransferCreate(BaseModel):
    shared_group_id: int = Field(..., gt=0, description="ID del grupo de material compartido")
    from_material_number: str = Field(..., min_length=1, max_length=50, description="Material origen")
    to_material_number: str = Field(..., min_length=1, max_length=50, description="Material destino")
    quantity: int = Field(..., strict=True, description="Cantidad a transferir")
    unit_cost: Optional[Decimal] = Field(
        None,
        description="Costo unitario del origen; si se envía debe coincidir con el costo actual"
    )
    notes: Optional[str] = Field(None, max_length=500, description="Notas adicionales")

    @validator('from_material_number', 'to_material_number')
    def strip_material_number(cls, v):
        return v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "shared_group_id": 1,
                "from_material_number": "1000123",
                "to_material_number": "2000123",
                "quantity": 20,
                "unit_cost": "12.00",
                "notes": "Línea 3 sin rodamientos"
            }
        }

class TransferDecision(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Motivo (rechazo o cancelación)")

class TransferRead(BaseModel):
    id: int
    reference_number: str
    shared_group_id: int
    from_department: int
    to_department: int
    from_material_number: str
    to_material_number: str
    quantity: int
    unit_cost: Decimal
    total_value: Decimal
    status: str
    status_label: str
    allowed_actions: List[str]
    requested_by: str
    requested_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None

class TransferResponse(BaseResponse):
    transfer: TransferRead

class TransferListResponse(BaseResponse):
    transfers: List[TransferRead]
    total: int
    filters: Dict[str, Any]

class TransferSummaryResponse(BaseResponse):
    counts: Dict[str, int]
    open: int
    total: int
    completed_value: Decimal
