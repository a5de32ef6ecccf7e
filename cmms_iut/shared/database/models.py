# cmms_iut/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, DateTime, Text,
    Numeric, ForeignKey, UniqueConstraint, CheckConstraint,
    func
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


# =====================================================
# MATERIALES COMPARTIDOS
# =====================================================

class SharedMaterialGroup(Base, TimestampMixin):
    """Parte lógica (mismo OEM#) almacenada por varios departamentos"""
    __tablename__ = "shared_material_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    oem_part_number = Column(String(100), nullable=False, unique=True, index=True)
    manufacturer = Column(String(255))
    status = Column(String(20), nullable=False, default='active')
    created_by = Column(String(255))

    # Relationships
    linked_materials = relationship(
        "Material",
        back_populates="shared_group",
        order_by="Material.department_code"
    )

    @property
    def total_on_hand(self) -> int:
        return sum(m.on_hand for m in self.linked_materials)

    @property
    def total_value(self):
        return sum((m.on_hand * m.unit_cost for m in self.linked_materials), 0)

    @property
    def is_transfer_eligible(self) -> bool:
        return self.status == 'active' and len(self.linked_materials) >= 2


class Material(Base, TimestampMixin):
    """Registro de material local a un departamento"""
    __tablename__ = "materials"
    __table_args__ = (
        UniqueConstraint('shared_group_id', 'department_code', name='uq_materials_group_department'),
        CheckConstraint('on_hand >= 0', name='ck_materials_on_hand_non_negative'),
        CheckConstraint('unit_cost >= 0', name='ck_materials_unit_cost_non_negative'),
    )

    id = Column(Integer, primary_key=True, index=True)
    material_number = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    department_code = Column(Integer, nullable=False, index=True)
    location = Column(String(255), default='N/A')
    on_hand = Column(Integer, nullable=False, default=0)
    unit_cost = Column(Numeric(12, 4), nullable=False, default=0)
    shared_group_id = Column(Integer, ForeignKey("shared_material_groups.id"), index=True)

    # Relationships
    shared_group = relationship("SharedMaterialGroup", back_populates="linked_materials")
    inventory_changes = relationship("InventoryChange", back_populates="material")


# =====================================================
# TRANSFERENCIAS ENTRE UNIDADES (IUT)
# =====================================================

class InterUnitTransfer(Base):
    """Solicitud de transferencia entre departamentos"""
    __tablename__ = "inter_unit_transfers"
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_iut_quantity_positive'),
        CheckConstraint('from_material_number <> to_material_number', name='ck_iut_distinct_materials'),
    )

    id = Column(Integer, primary_key=True, index=True)
    reference_number = Column(String(50), nullable=False, unique=True, index=True)
    shared_group_id = Column(Integer, ForeignKey("shared_material_groups.id"), nullable=False, index=True)
    from_department = Column(Integer, nullable=False)
    to_department = Column(Integer, nullable=False)
    from_material_number = Column(String(50), nullable=False, index=True)
    to_material_number = Column(String(50), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(12, 4), nullable=False)
    total_value = Column(Numeric(14, 2), nullable=False)
    status = Column(String(20), nullable=False, default='pending', index=True)
    requested_by = Column(String(255), nullable=False)
    requested_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    approved_by = Column(String(255))
    approved_at = Column(DateTime)
    rejected_by = Column(String(255))
    rejected_at = Column(DateTime)
    rejection_reason = Column(Text)
    cancelled_by = Column(String(255))
    cancelled_at = Column(DateTime)
    cancellation_reason = Column(Text)
    completed_by = Column(String(255))
    completed_at = Column(DateTime)
    notes = Column(Text)

    # Relationships
    shared_group = relationship("SharedMaterialGroup")


class InventoryChange(Base):
    """Modelo de Cambios de Inventario"""
    __tablename__ = "inventory_changes"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False, index=True)
    material_number = Column(String(50), nullable=False)
    change_type = Column(String(50), nullable=False)
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    quantity_change = Column(Integer, nullable=False)
    transfer_id = Column(Integer, ForeignKey("inter_unit_transfers.id"), index=True)
    performed_by = Column(String(255), nullable=False)
    notes = Column(String(255))
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    # Relationships
    material = relationship("Material", back_populates="inventory_changes")
