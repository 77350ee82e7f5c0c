"""Cart pricing: subtotal, discount, GST-style tax, shipping and total.

Tax is charged on the subtotal only when the store is registered. An order
shipping inside the store's own state (or to an unknown state) is
intra-state and splits the tax evenly into CGST and SGST; any other state
is inter-state and pays it all as IGST.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError

from ordering.order.order import ShippingMethod, TaxType

SHIPPING_RATES = {
    ShippingMethod.STANDARD.value: 50.0,
    ShippingMethod.EXPRESS.value: 150.0,
    ShippingMethod.SCHEDULED.value: 100.0,
    ShippingMethod.PICKUP.value: 0.0,
}


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: float
    discount: float
    tax_amount: float
    tax_type: str
    shipping_cost: float
    total: float
    cgst: float = 0.0
    sgst: float = 0.0
    igst: float = 0.0


def _money(value: float) -> float:
    return round(value, 2)


def subtotal_of(lines) -> float:
    return _money(sum(line.unit_price * line.quantity for line in lines))


def discount_amount(discount, subtotal: float) -> float:
    """Value of ``discount`` against ``subtotal``, never more than the subtotal."""
    if discount is None:
        return 0.0
    if discount.type == "percentage":
        amount = subtotal * (discount.value / 100)
    else:
        amount = discount.value
    return _money(min(amount, subtotal))


def shipping_cost(method: str, subtotal: float, free_shipping_threshold: float) -> float:
    if method not in SHIPPING_RATES:
        raise ValidationError({"shipping_method": [f"Unknown shipping method '{method}'"]})
    if method == ShippingMethod.STANDARD.value and subtotal > free_shipping_threshold:
        return 0.0
    return SHIPPING_RATES[method]


def is_intra_state(shipping_state: str | None, store_state: str) -> bool:
    if not shipping_state:
        return True
    shipping_state = shipping_state.strip().lower()
    store_state = (store_state or "").strip().lower()
    return shipping_state == store_state or (shipping_state == "mh" and store_state == "maharashtra")


def price_cart(lines, settings, discount=None, shipping_method="standard", shipping_state=None) -> PriceBreakdown:
    subtotal = subtotal_of(lines)
    reduction = discount_amount(discount, subtotal)
    shipping = shipping_cost(shipping_method, subtotal, settings.free_shipping_threshold)

    cgst = sgst = igst = 0.0
    if settings.tax_registered:
        tax = _money(subtotal * settings.tax_rate)
        if is_intra_state(shipping_state, settings.store_state):
            tax_type = TaxType.INTRA.value
            cgst = sgst = _money(tax / 2)
        else:
            tax_type = TaxType.INTER.value
            igst = tax
    else:
        tax = 0.0
        tax_type = TaxType.UNREGISTERED.value

    total = _money(max(0.0, subtotal + tax + shipping - reduction))
    return PriceBreakdown(
        subtotal=subtotal,
        discount=reduction,
        tax_amount=tax,
        tax_type=tax_type,
        shipping_cost=shipping,
        total=total,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
    )
