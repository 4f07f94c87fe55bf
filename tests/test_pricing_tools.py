"""
Unit tests for freight totals, charge validation and bulk rate adjustments.
"""
import pytest

from lrdesk.errors import ValidationError
from lrdesk.tools.pricing_tools import (
    adjust_rate,
    adjusted_rate,
    compute_total,
    preview_bulk_adjustment,
    total_for,
    validate_charges,
)


class TestComputeTotal:
    """Test the booking total formula"""

    def test_total_is_freight_plus_charges(self):
        """quantity * rate plus every flat charge"""
        assert compute_total(3, 150, 50, 25, 10, 5) == 3 * 150 + 50 + 25 + 10 + 5

    def test_missing_values_count_as_zero(self):
        """None inputs never raise"""
        assert compute_total(None, 100) == 0
        assert compute_total(2, None, None, 40) == 40

    def test_total_is_deterministic(self):
        """Same inputs give the same total"""
        args = (7, 133.33, 12.5, 0, 3.75, 1)
        assert compute_total(*args) == compute_total(*args)

    def test_total_for_reads_booking_fields(self):
        fields = {"quantity": 4, "freight_per_qty": 25, "loading_charges": 10, "packaging_charge": 2}
        assert total_for(fields) == 112

    def test_no_rounding(self):
        """Full float precision is kept"""
        assert compute_total(3, 0.1) == pytest.approx(0.3)
        assert compute_total(1, 10.005) == 10.005


class TestValidateCharges:
    """Test form-level charge validation"""

    def test_accepts_zero_and_positive(self):
        validate_charges({"quantity": 1, "freight_per_qty": 0, "loading_charges": 0, "actual_weight": 0})

    @pytest.mark.parametrize("field", [
        "freight_per_qty", "loading_charges", "unloading_charges", "insurance_charge", "packaging_charge",
    ])
    def test_rejects_negative_charge(self, field):
        """Each charge names itself in the error"""
        with pytest.raises(ValidationError) as exc:
            validate_charges({field: -1})
        assert exc.value.field == field

    def test_rejects_zero_quantity(self):
        with pytest.raises(ValidationError) as exc:
            validate_charges({"quantity": 0})
        assert exc.value.field == "quantity"

    def test_rejects_negative_weight(self):
        with pytest.raises(ValidationError) as exc:
            validate_charges({"actual_weight": -0.5})
        assert exc.value.field == "actual_weight"


class TestAdjustRate:
    """Test percentage and fixed rate adjustments"""

    def test_percentage_increase(self):
        result = adjust_rate(200, "percentage", 10)
        assert result.new_rate == pytest.approx(220)
        assert result.change == pytest.approx(20)
        assert result.percent_change == pytest.approx(10)

    def test_fixed_decrease(self):
        result = adjust_rate(200, "fixed", -50)
        assert result.new_rate == 150
        assert result.change == -50
        assert result.percent_change == pytest.approx(-25)

    def test_zero_base_has_zero_percent_change(self):
        """No division by zero for free articles"""
        result = adjust_rate(0, "fixed", 30)
        assert result.new_rate == 30
        assert result.percent_change == 0

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            adjusted_rate(100, "multiply", 2)

    def test_accepts_enum_type(self):
        from lrdesk.schemas import AdjustmentType

        assert adjust_rate(100, AdjustmentType.PERCENTAGE, 50).new_rate == pytest.approx(150)


class TestBulkAdjustment:
    """Test the catalog-wide preview"""

    @pytest.mark.parametrize("adjustment_type,value", [
        ("percentage", -150),
        ("percentage", -100),
        ("fixed", -1000),
        ("fixed", -250),
    ])
    def test_new_rates_never_negative(self, adjustment_type, value):
        """Large decreases floor at zero"""
        catalog = [{"id": "a", "name": "A", "base_rate": 100}, {"id": "b", "name": "B", "base_rate": 240.5}]
        preview = preview_bulk_adjustment(catalog, adjustment_type, value)
        assert all(item.new_rate >= 0 for item in preview)
        assert preview[0].new_rate == 0

    def test_preview_keeps_order_and_ids(self):
        catalog = [{"id": "x", "name": "Cloth", "base_rate": 150}, {"id": "y", "name": "Steel", "base_rate": 90}]
        preview = preview_bulk_adjustment(catalog, "fixed", 10)
        assert [(p.article_id, p.new_rate) for p in preview] == [("x", 160), ("y", 100)]

    def test_preview_does_not_touch_input(self):
        catalog = [{"id": "x", "name": "Cloth", "base_rate": 150}]
        preview_bulk_adjustment(catalog, "percentage", 20)
        assert catalog[0]["base_rate"] == 150

    def test_reads_objects(self):
        from types import SimpleNamespace

        preview = preview_bulk_adjustment([SimpleNamespace(id="o", name="Obj", base_rate=80)], "fixed", 5)
        assert preview[0].to_dict()["new_rate"] == 85

    def test_floor_reports_actual_change(self):
        """50 minus 100 floors at 0; the change is the real -50"""
        result = adjust_rate(50, "fixed", -100)
        assert (result.new_rate, result.change, result.percent_change) == (0, -50, -100)
