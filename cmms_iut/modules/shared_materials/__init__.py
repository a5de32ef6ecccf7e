# cmms_iut/modules/shared_materials/__init__.py
"""
Módulo de Materiales Compartidos - Registro de grupos por OEM#

Una misma parte física se almacena con distinto número de material en cada
departamento. Este módulo agrupa esos registros y los expone al motor de
transferencias en modo solo lectura.

Arquitectura:
- router.py: Endpoints del registro
- service.py: Lógica de consulta y administración
- repository.py: Acceso a datos (lecturas con existencia actual)
- departments.py: Catálogo de departamentos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import SharedMaterialsService
from .repository import SharedMaterialsRepository

__all__ = [
    "router",
    "SharedMaterialsService",
    "SharedMaterialsRepository"
]
