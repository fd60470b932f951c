"""
Price Rules - MRP / sale validation shared by the resolver and calculator.

The same floor/cap rule is applied per option when the catalog is built and
again to the aggregate order, because individually valid components can still
add up to a sale total above the MRP total.
"""
import math
from typing import Optional

from .blueprint import BlueprintComponent, BlueprintOption
from .metadata import read_numeric, to_finite_float
from .models import OverallTotals, PricePair


SALE_PRICE_METADATA_KEYS = (
    'sale_price',
    'salePrice',
    'offer_price',
    'offerPrice',
    'discounted_price',
    'discountedPrice',
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def _first_present(*values: Optional[float]) -> Optional[float]:
    for value in values:
        if value is not None:
            return value
    return None


def _non_negative(value: Optional[float]) -> float:
    number = to_finite_float(value)
    if number is None:
        return 0.0
    return max(0.0, number)


def read_sale_metadata(option: Optional[BlueprintOption]) -> Optional[float]:
    """Return the first sale-price metadata value that parses as a number."""
    if option is None:
        return None
    for key in SALE_PRICE_METADATA_KEYS:
        value = read_numeric(option.metadata, key)
        if value is not None:
            return value
    return None


def apply_price_floor(raw_mrp: float, raw_sale: float) -> PricePair:
    """
    Enforce MRP >= sale on a raw pair.

    - MRP 0 with a positive sale: the sale is the retail price (services)
    - sale above MRP: data entry error, cap sale at MRP
    - otherwise MRP is kept and sale is min(sale, MRP)
    """
    if raw_mrp == 0 and raw_sale > 0:
        return PricePair(mrp=raw_sale, sale=raw_sale)
    if raw_sale > raw_mrp:
        return PricePair(mrp=raw_mrp, sale=raw_mrp)
    return PricePair(mrp=raw_mrp, sale=min(raw_sale, raw_mrp))


def resolve_price_pair(
    option: Optional[BlueprintOption],
    component: Optional[BlueprintComponent],
    fallback_mrp: Optional[float],
    fallback_sale: Optional[float],
) -> PricePair:
    """
    Resolve the MRP / sale pair for a blueprint option.

    Sale comes from option metadata (see SALE_PRICE_METADATA_KEYS), else the
    fallback sale. MRP comes from the option unit price, the component unit
    price, the component base price, then the fallback MRP.
    """
    mrp_source = _first_present(
        option.unit_price if option else None,
        component.unit_price if component else None,
        component.base_price if component else None,
        fallback_mrp,
    )
    sale_source = _first_present(read_sale_metadata(option), fallback_sale, mrp_source)

    return apply_price_floor(_non_negative(mrp_source), _non_negative(sale_source))


def apply_mrp_floor(overall_mrp: float, overall_sale: float) -> tuple[float, float]:
    """Validate the aggregate pair: MRP never below sale, sale never above MRP."""
    validated_mrp = max(overall_mrp, overall_sale)
    validated_sale = min(overall_sale, validated_mrp)
    return validated_mrp, validated_sale


def summarize_overall(overall_mrp: float, overall_sale: float) -> OverallTotals:
    """Apply the aggregate floor and derive the discount amount and percentage."""
    validated_mrp, validated_sale = apply_mrp_floor(overall_mrp, overall_sale)
    discount_amount = max(0, round_half_up(validated_mrp - validated_sale))
    discount_percent = (discount_amount / validated_mrp) * 100 if validated_mrp > 0 else 0.0
    return OverallTotals(
        mrp=validated_mrp,
        sale=validated_sale,
        discount_amount=float(discount_amount),
        discount_percent=discount_percent,
    )


def format_inr(value: float) -> str:
    """Format rupees with Indian digit grouping and no decimals ("₹1,23,456")."""
    amount = round_half_up(value)
    sign = "-" if amount < 0 else ""
    digits = str(abs(amount))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}₹{digits}"


def format_discount_percent(percent: float) -> str:
    """Whole percent from 10% upwards, one decimal below."""
    if percent >= 10:
        return f"{percent:.0f}%"
    return f"{percent:.1f}%"
