import os
from decimal import Decimal

import pytest

# La app lee la configuración al importar: base en memoria y clave fija
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from cmms_iut.config.database import build_engine, get_db
from cmms_iut.core.auth.service import AuthService
from cmms_iut.main import app
from cmms_iut.modules.transfers.service import TransferWorkflowService
from cmms_iut.shared.database.models import Base, SharedMaterialGroup, Material

SOURCE = "1000123"
DESTINATION = "2000123"
THIRD = "3000123"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'iut.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def bearing_group(db):
    """Bearing X: dept 10 con 50 a 12.00, dept 20 con 5, dept 30 con 8"""
    group = SharedMaterialGroup(
        name="Bearing X",
        oem_part_number="SKF-6205-2RS",
        manufacturer="SKF",
        status="active",
        created_by="seed"
    )
    db.add(group)
    db.flush()
    db.add_all([
        Material(material_number=SOURCE, name="Bearing X (Maint)", department_code=10,
                 location="A-01", on_hand=50, unit_cost=Decimal("12.00"), shared_group_id=group.id),
        Material(material_number=DESTINATION, name="Bearing X (Sani)", department_code=20,
                 location="B-07", on_hand=5, unit_cost=Decimal("12.50"), shared_group_id=group.id),
        Material(material_number=THIRD, name="Bearing X (Prod)", department_code=30,
                 location="C-02", on_hand=8, unit_cost=Decimal("11.75"), shared_group_id=group.id),
    ])
    db.commit()
    return group


@pytest.fixture
def single_material_group(db):
    group = SharedMaterialGroup(name="Pump Seal", oem_part_number="GRF-96-511", status="active")
    db.add(group)
    db.flush()
    db.add(Material(material_number="1000999", name="Pump Seal", department_code=10,
                    on_hand=4, unit_cost=Decimal("30.00"), shared_group_id=group.id))
    db.commit()
    return group


@pytest.fixture
def inactive_group(db):
    group = SharedMaterialGroup(name="V-Belt", oem_part_number="GATES-A42", status="inactive")
    db.add(group)
    db.flush()
    db.add_all([
        Material(material_number="1000555", name="V-Belt", department_code=10,
                 on_hand=10, unit_cost=Decimal("7.00"), shared_group_id=group.id),
        Material(material_number="2000555", name="V-Belt", department_code=20,
                 on_hand=2, unit_cost=Decimal("7.00"), shared_group_id=group.id),
    ])
    db.commit()
    return group


@pytest.fixture
def service(db):
    return TransferWorkflowService(db)


@pytest.fixture
def on_hand(session_factory):
    """Existencia confirmada en BD, leída con una sesión nueva"""
    def _read(material_number):
        session = session_factory()
        try:
            return session.query(Material.on_hand).filter(
                Material.material_number == material_number
            ).scalar()
        finally:
            session.close()
    return _read


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(name, role, department_code=None):
        token = AuthService.issue_actor_token(name, role, department_code)
        return {"Authorization": f"Bearer {token}"}
    return _headers
