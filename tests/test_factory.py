"""Construcción de transferencias: validaciones, valor total y referencia."""
import re
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from cmms_iut.core.errors import ValidationError
from cmms_iut.modules.transfers.factory import (
    build_transfer, compute_total_value, generate_reference_number
)

NOW = datetime(2026, 3, 4, 9, 30, 0)


def _build(**overrides):
    kwargs = dict(
        shared_group_id=1,
        from_material_number="1000123",
        to_material_number="2000123",
        quantity=20,
        unit_cost=Decimal("12.00"),
        requested_by="alice",
        from_department=10,
        to_department=20,
        now=NOW,
    )
    kwargs.update(overrides)
    return build_transfer(**kwargs)


class TestBuildTransfer:
    def test_new_transfer_is_pending(self):
        transfer = _build()
        assert transfer.status == "pending"
        assert transfer.requested_by == "alice"
        assert transfer.requested_at == NOW
        assert transfer.approved_by is None
        assert transfer.completed_at is None

    def test_total_value_is_quantity_times_cost(self):
        transfer = _build()
        assert transfer.total_value == Decimal("240.00")
        assert transfer.unit_cost == Decimal("12.00")

    def test_departments_are_kept(self):
        transfer = _build()
        assert (transfer.from_department, transfer.to_department) == (10, 20)

    def test_departments_fall_back_to_material_number(self):
        transfer = _build(from_department=None, to_department=None)
        assert (transfer.from_department, transfer.to_department) == (1, 2)

    def test_unknown_department_rejected(self):
        with pytest.raises(ValidationError, match="departamento"):
            _build(from_material_number="X-100", from_department=None)

    @pytest.mark.parametrize("quantity", [0, -1, -50])
    def test_non_positive_quantity_rejected(self, quantity):
        with pytest.raises(ValidationError, match="mayor que cero"):
            _build(quantity=quantity)

    @pytest.mark.parametrize("quantity", [1.5, "3", True])
    def test_non_integer_quantity_rejected(self, quantity):
        with pytest.raises(ValidationError):
            _build(quantity=quantity)

    @pytest.mark.parametrize("quantity,cost", [(1, "0"), (20, "12.00"), (999, "0.0001")])
    def test_same_material_always_rejected(self, quantity, cost):
        with pytest.raises(ValidationError, match="mismo material"):
            _build(to_material_number="1000123", quantity=quantity, unit_cost=Decimal(cost))

    def test_negative_cost_rejected(self):
        with pytest.raises(ValidationError, match="negativo"):
            _build(unit_cost=Decimal("-0.01"))

    def test_non_numeric_cost_rejected(self):
        with pytest.raises(ValidationError, match="inválido"):
            _build(unit_cost="twelve")

    def test_blank_requester_rejected(self):
        with pytest.raises(ValidationError, match="solicitante"):
            _build(requested_by="  ")

    def test_cost_given_as_string_or_int(self):
        assert _build(unit_cost="12.5").total_value == Decimal("250.00")
        assert _build(unit_cost=3).total_value == Decimal("60.00")


class TestComputeTotalValue:
    def test_rounds_half_up_to_minor_unit(self):
        assert compute_total_value(1, Decimal("0.005")) == Decimal("0.01")
        assert compute_total_value(3, Decimal("0.3333")) == Decimal("1.00")

    def test_respects_decimal_places(self):
        assert compute_total_value(2, Decimal("1.2345"), decimal_places=3) == Decimal("2.469")

    def test_zero_cost(self):
        assert compute_total_value(40, Decimal("0")) == Decimal("0.00")


class TestReferenceNumber:
    def test_format(self):
        reference = generate_reference_number(10, 20, NOW)
        millis = int(NOW.timestamp() * 1000)
        assert re.fullmatch(rf"IUT-1020-{millis}-[0-9A-F]{{4}}", reference)

    def test_custom_prefix(self):
        assert generate_reference_number(1, 2, NOW, prefix="XFER").startswith("XFER-12-")

    def test_same_instant_references_differ(self):
        references = {generate_reference_number(10, 20, NOW) for _ in range(20)}
        assert len(references) > 1

    def test_timestamp_part_keeps_growing(self):
        # 17 minutos superan 10^6 ms
        later = NOW + timedelta(minutes=17)
        stamps = [
            int(generate_reference_number(10, 20, moment).split("-")[2])
            for moment in (NOW, later)
        ]
        assert stamps[1] - stamps[0] == 17 * 60 * 1000
