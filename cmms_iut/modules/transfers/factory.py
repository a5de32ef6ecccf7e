# cmms_iut/modules/transfers/factory.py
"""
Construcción de una transferencia nueva en estado 'pending'.

Constructor puro: no consulta existencias ni toca la sesión. Quien llama
valida on_hand del origen ANTES de construir.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union
import secrets

from cmms_iut.core.errors import ValidationError
from cmms_iut.shared.database.models import InterUnitTransfer
from cmms_iut.modules.shared_materials.departments import get_department_from_material_number
from .workflow import TransferStatus


def generate_reference_number(
    from_department: int,
    to_department: int,
    now: Optional[datetime] = None,
    prefix: str = "IUT"
) -> str:
    """IUT-<origen><destino>-<epoch ms>-<4 hex aleatorios>"""
    now = now or datetime.now()
    millis = int(now.timestamp() * 1000)
    return f"{prefix}-{from_department}{to_department}-{millis}-{secrets.token_hex(2).upper()}"


def compute_total_value(quantity: int, unit_cost: Decimal, decimal_places: int = 2) -> Decimal:
    minor_unit = Decimal(1).scaleb(-decimal_places)
    return (Decimal(quantity) * unit_cost).quantize(minor_unit, rounding=ROUND_HALF_UP)


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Costo unitario inválido: {value!r}", {"unit_cost": str(value)})


def build_transfer(
    shared_group_id: int,
    from_material_number: str,
    to_material_number: str,
    quantity: int,
    unit_cost: Union[Decimal, int, float, str],
    requested_by: str,
    notes: Optional[str] = None,
    *,
    from_department: Optional[int] = None,
    to_department: Optional[int] = None,
    now: Optional[datetime] = None,
    decimal_places: int = 2,
    prefix: str = "IUT"
) -> InterUnitTransfer:
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

    cost = to_decimal(unit_cost)
    if not cost.is_finite() or cost < 0:
        raise ValidationError("El costo unitario no puede ser negativo", {"unit_cost": str(cost)})

    if not requested_by or not requested_by.strip():
        raise ValidationError("Se requiere el solicitante", {"requested_by": requested_by})

    # Sin departamento explícito se toma el primer dígito del número de material
    if from_department is None:
        from_department = get_department_from_material_number(from_material_number)
    if to_department is None:
        to_department = get_department_from_material_number(to_material_number)
    if from_department is None or to_department is None:
        raise ValidationError(
            "No se pudo determinar el departamento de origen/destino",
            {"from_material_number": from_material_number, "to_material_number": to_material_number}
        )

    now = now or datetime.now()

    return InterUnitTransfer(
        reference_number=generate_reference_number(from_department, to_department, now, prefix),
        shared_group_id=shared_group_id,
        from_department=from_department,
        to_department=to_department,
        from_material_number=from_material_number,
        to_material_number=to_material_number,
        quantity=quantity,
        unit_cost=cost,
        total_value=compute_total_value(quantity, cost, decimal_places),
        status=TransferStatus.PENDING.value,
        requested_by=requested_by.strip(),
        requested_at=now,
        notes=notes
    )
