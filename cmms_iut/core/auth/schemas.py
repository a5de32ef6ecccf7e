# cmms_iut/core/auth/schemas.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class TokenPayload(BaseModel):
    """Schema para payload del token"""
    sub: str = Field(..., min_length=1, description="Nombre o ID del actor")
    role: str = Field(..., pattern="^(requester|approver|inventory_admin)$")
    department_code: Optional[int] = None
    exp: Optional[datetime] = None

class Actor(BaseModel):
    """Actor resuelto a partir del token"""
    name: str
    role: str
    department_code: Optional[int] = None
    
    class Config:
        json_schema_extra = {
            "example": {
                "name": "alice",
                "role": "requester",
                "department_code": 10
            }
        }
