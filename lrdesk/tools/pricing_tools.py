"""
Pricing Tools

Pure functions for freight totals and catalog-wide rate adjustments.
Values keep full float precision; rounding happens only when rendering.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional

from lrdesk.errors import ValidationError

CHARGE_FIELDS = (
    "freight_per_qty",
    "loading_charges",
    "unloading_charges",
    "insurance_charge",
    "packaging_charge",
)


def _num(value: Optional[float]) -> float:
    return 0 if value is None else value


def compute_total(
    quantity: Optional[float],
    freight_per_qty: Optional[float],
    loading_charges: Optional[float] = 0,
    unloading_charges: Optional[float] = 0,
    insurance_charge: Optional[float] = 0,
    packaging_charge: Optional[float] = 0,
) -> float:
    """
    Total charge for a booking.

    total = quantity * freight_per_qty + loading + unloading + insurance + packaging

    Missing values count as zero. Inputs are assumed non-negative; use
    ``validate_charges`` before calling with user input.
    """
    return (
        _num(quantity) * _num(freight_per_qty)
        + _num(loading_charges)
        + _num(unloading_charges)
        + _num(insurance_charge)
        + _num(packaging_charge)
    )


def total_for(fields: Dict[str, Any]) -> float:
    """``compute_total`` over a mapping of booking fields."""
    return compute_total(
        fields.get("quantity"),
        fields.get("freight_per_qty"),
        fields.get("loading_charges"),
        fields.get("unloading_charges"),
        fields.get("insurance_charge"),
        fields.get("packaging_charge"),
    )


def validate_charges(fields: Dict[str, Any]) -> None:
    """
    Reject negative charges, a non-positive quantity and a negative weight.

    Raises:
        ValidationError: naming the first offending field
    """
    for name in CHARGE_FIELDS:
        value = fields.get(name)
        if value is not None and value < 0:
            raise ValidationError(f"{name.replace('_', ' ').capitalize()} cannot be negative", field=name)

    quantity = fields.get("quantity")
    if quantity is not None and quantity < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity")

    weight = fields.get("actual_weight")
    if weight is not None and weight < 0:
        raise ValidationError("Actual weight cannot be negative", field="actual_weight")


@dataclass
class RateAdjustment:
    """Projected effect of a rate adjustment on one article."""
    article_id: Optional[str]
    name: Optional[str]
    base_rate: float
    new_rate: float
    change: float
    percent_change: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def adjusted_rate(base_rate: float, adjustment_type: str, value: float) -> float:
    """New rate after a percentage or fixed adjustment, floored at zero."""
    if adjustment_type == "percentage":
        new_rate = base_rate * (1 + value / 100)
    elif adjustment_type == "fixed":
        new_rate = base_rate + value
    else:
        raise ValueError(f"Unknown adjustment type: {adjustment_type}")
    return max(0, new_rate)


def adjust_rate(
    base_rate: float,
    adjustment_type: str,
    value: float,
    article_id: Optional[str] = None,
    name: Optional[str] = None,
) -> RateAdjustment:
    """
    Compute the rate change for one base rate.

    Args:
        base_rate: Current rate (>= 0)
        adjustment_type: "percentage" or "fixed"
        value: Percent (e.g. 10 or -5) or absolute delta (e.g. 50 or -20)

    Returns:
        RateAdjustment with ``percent_change`` 0 when the base rate is 0
    """
    base_rate = _num(base_rate)
    new_rate = adjusted_rate(base_rate, getattr(adjustment_type, "value", adjustment_type), value)
    change = new_rate - base_rate
    percent_change = (change / base_rate) * 100 if base_rate > 0 else 0
    return RateAdjustment(
        article_id=article_id,
        name=name,
        base_rate=base_rate,
        new_rate=new_rate,
        change=change,
        percent_change=percent_change,
    )


def preview_bulk_adjustment(
    articles: Iterable[Any],
    adjustment_type: str,
    value: float,
) -> List[RateAdjustment]:
    """Project ``adjust_rate`` over a catalog without touching it."""
    preview = []
    for article in articles:
        if isinstance(article, dict):
            article_id, name, base_rate = article.get("id"), article.get("name"), article.get("base_rate")
        else:
            article_id = getattr(article, "id", None)
            name = getattr(article, "name", None)
            base_rate = getattr(article, "base_rate", 0)
        preview.append(adjust_rate(base_rate, adjustment_type, value, article_id=article_id, name=name))
    return preview
