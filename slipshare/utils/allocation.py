"""Bill-splitting allocation.

Turns a receipt's items and charge rates plus one participant's selection
into the amount that participant owes. This is the only implementation of the
arithmetic: selection saves, previews and anything that displays an amount go
through :func:`compute_allocation`, so the number shown always matches the
number stored.

Arithmetic is done in floats, visiting items in receipt order, so the same
inputs always produce bit-identical output.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Protocol, Sequence

MIN_SHARE_DIVISOR = 1
MAX_SHARE_DIVISOR = 99


class ItemLike(Protocol):
    id: object
    qty: object
    unit_price: object


class ChargeRatesLike(Protocol):
    subtotal: object
    tax_percent: object
    service_percent: object
    rounding: object
    total: object


@dataclass(frozen=True)
class AllocationItem:
    id: str
    qty: int
    unit_price: float


@dataclass(frozen=True)
class ChargeRates:
    subtotal: float
    tax_percent: float = 0.0
    service_percent: float = 0.0
    rounding: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class Allocation:
    selected_subtotal: float
    proportion: float
    tax_amount: float
    service_amount: float
    rounding_amount: float
    final_total: float

    def to_selection_fields(self) -> dict:
        """Column values cached on a UserSelection."""
        return {
            "calculated_total": self.final_total,
            "tax_amount": self.tax_amount,
            "service_amount": self.service_amount,
            "rounding_amount": self.rounding_amount,
        }


ZERO_ALLOCATION = Allocation(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


def _num(value) -> float:
    if value is None:
        return 0.0
    return float(value)


def share_divisor(raw) -> float:
    """
    How many ways an item is split.

    Missing, zero, negative and non-numeric values mean "not shared" (1).
    Values above the maximum are capped. Range checks on user input happen
    before this point; this only keeps the arithmetic well defined.
    """
    if isinstance(raw, bool) or not isinstance(raw, (int, float, Decimal)):
        return float(MIN_SHARE_DIVISOR)
    try:
        value = float(raw)
    except ValueError:  # signaling NaN Decimal
        return float(MIN_SHARE_DIVISOR)
    if value != value or value < MIN_SHARE_DIVISOR:  # NaN or below floor
        return float(MIN_SHARE_DIVISOR)
    if value > MAX_SHARE_DIVISOR:
        return float(MAX_SHARE_DIVISOR)
    return value


def item_share(item: ItemLike, item_shares: Mapping[str, object]) -> float:
    """The selecting user's part of one item's line total."""
    item_total = _num(item.qty) * _num(item.unit_price)
    return item_total / share_divisor(item_shares.get(str(item.id)))


def compute_allocation(
    items: Sequence[ItemLike],
    charge_rates: ChargeRatesLike,
    selected_item_ids: Iterable,
    item_shares: Mapping[str, object] | None = None,
) -> Allocation:
    """
    Compute what one participant owes for their selected items.

    Args:
        items: The full item list of one receipt, in receipt order.
        charge_rates: Receipt-level subtotal, tax/service percentages and rounding.
            A Receipt row can be passed directly.
        selected_item_ids: Ids of the items the participant consumed. Ids that
            are not on the receipt contribute nothing.
        item_shares: Item id -> number of people splitting that item.

    Returns:
        The Allocation. An empty selection gives all zeros.
    """
    selected = {str(i) for i in selected_item_ids}
    if not selected:
        return ZERO_ALLOCATION
    shares = item_shares or {}

    selected_subtotal = 0.0
    for item in items:
        if str(item.id) in selected:
            selected_subtotal += item_share(item, shares)

    subtotal = _num(charge_rates.subtotal)
    # Not capped at 1: a selection worth more than the receipt subtotal is
    # an upstream data problem and should stay visible.
    proportion = selected_subtotal / subtotal if subtotal > 0 else 0.0
    tax_amount = _num(charge_rates.tax_percent) / 100 * selected_subtotal
    service_amount = _num(charge_rates.service_percent) / 100 * selected_subtotal
    rounding_amount = _num(charge_rates.rounding) * proportion
    final_total = selected_subtotal + tax_amount + service_amount + rounding_amount

    return Allocation(
        selected_subtotal=selected_subtotal,
        proportion=proportion,
        tax_amount=tax_amount,
        service_amount=service_amount,
        rounding_amount=rounding_amount,
        final_total=final_total,
    )


def receipt_allocation(receipt, selected_item_ids: Iterable, item_shares: Mapping[str, object] | None = None) -> Allocation:
    """Run :func:`compute_allocation` over a Receipt row and its items."""
    items = sorted(receipt.items, key=lambda i: i.position)
    return compute_allocation(items, receipt, selected_item_ids, item_shares)
