# cmms_iut/modules/shared_materials/departments.py
"""Catálogo de departamentos de inventario (código → nombre)"""
from typing import Dict, List, Optional

INVENTORY_DEPARTMENTS: Dict[int, Dict[str, str]] = {
    0: {"name": "Projects / Offices", "short_name": "PROJ"},
    1: {"name": "Maintenance", "short_name": "MAINT"},
    2: {"name": "Sanitation", "short_name": "SANI"},
    3: {"name": "Production", "short_name": "PROD"},
    4: {"name": "Quality", "short_name": "QUAL"},
    5: {"name": "Safety", "short_name": "SAFE"},
    6: {"name": "HR", "short_name": "HR"},
    7: {"name": "Warehouse", "short_name": "WHSE"},
    8: {"name": "IT / Technology", "short_name": "IT"},
    9: {"name": "Facilities", "short_name": "FAC"},
}


def get_department_name(code: int) -> str:
    department = INVENTORY_DEPARTMENTS.get(code)
    return department["name"] if department else f"Dept {code}"


def get_department_from_material_number(material_number: str) -> Optional[int]:
    """Primer dígito del número de material = código de departamento"""
    if not material_number or not material_number[0].isdigit():
        return None
    return int(material_number[0])


def summarize_departments(codes: List[int]) -> List[Dict[str, object]]:
    return [
        {"code": code, "name": get_department_name(code)}
        for code in sorted(set(codes))
    ]
