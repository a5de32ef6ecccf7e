"""
Script para crear datos de prueba del flujo IUT

Crea las tablas si faltan, registra un grupo compartido de ejemplo con sus
materiales por departamento e imprime tokens de desarrollo por rol.
"""
from decimal import Decimal
from sqlalchemy.exc import SQLAlchemyError

from cmms_iut.config.settings import settings
from cmms_iut.config.database import init_db, session_scope
from cmms_iut.core.auth.service import AuthService
from cmms_iut.shared.database.models import SharedMaterialGroup, Material

SEED_GROUPS = [
    {
        "name": "Bearing X",
        "oem_part_number": "SKF-6205-2RS",
        "manufacturer": "SKF",
        "materials": [
            ("1000123", 10, "A-01", 50, "12.00"),
            ("2000123", 20, "B-07", 5, "12.50"),
            ("3000123", 30, "C-02", 8, "11.75"),
        ],
    },
    {
        "name": "V-Belt A42",
        "oem_part_number": "GATES-A42",
        "manufacturer": "Gates",
        "materials": [
            ("1000555", 10, "A-14", 12, "7.00"),
            ("7000555", 70, "W-03", 40, "6.80"),
        ],
    },
]

SEED_ACTORS = [
    ("alice", "requester", 10),
    ("bob", "approver", 20),
    ("carol", "inventory_admin", None),
]

def seed_shared_materials(bind=None, session_factory=None):
    """Crear grupos compartidos de prueba (idempotente por OEM#)"""

    init_db(bind)

    try:
        with session_scope(session_factory) as db:
            creados = 0

            for group_data in SEED_GROUPS:
                existing = db.query(SharedMaterialGroup).filter(
                    SharedMaterialGroup.oem_part_number == group_data["oem_part_number"]
                ).first()

                if existing:
                    print(f"⏭️  Grupo {group_data['oem_part_number']} ya existe (ID: {existing.id})")
                    continue

                group = SharedMaterialGroup(
                    name=group_data["name"],
                    oem_part_number=group_data["oem_part_number"],
                    manufacturer=group_data["manufacturer"],
                    status="active",
                    created_by="seed"
                )
                db.add(group)
                db.flush()

                for material_number, department_code, location, on_hand, unit_cost in group_data["materials"]:
                    db.add(Material(
                        material_number=material_number,
                        name=group_data["name"],
                        department_code=department_code,
                        location=location,
                        on_hand=on_hand,
                        unit_cost=Decimal(unit_cost),
                        shared_group_id=group.id
                    ))

                creados += 1
                print(f"✅ Grupo creado: {group.name} ({group.oem_part_number}) con {len(group_data['materials'])} materiales")

    except SQLAlchemyError as e:
        print(f"❌ Error de base de datos: {e}")
        return False

    if creados > 0:
        print(f"\n🎉 ¡{creados} grupos creados exitosamente!")
    else:
        print(f"\nℹ️  Todos los grupos ya existían")

    print(f"\n📋 Tokens de desarrollo ({settings.access_token_expire_minutes} min):")
    for name, role, department_code in SEED_ACTORS:
        token = AuthService.issue_actor_token(name, role, department_code)
        print(f"   👤 {role.upper():16} | {name:6} | {token}")

    return True

if __name__ == "__main__":
    success = seed_shared_materials()
    if not success:
        print(f"\n❌ Script falló. Revisar errores arriba.")
        exit(1)
    print(f"\n✅ Script completado exitosamente")
