"""
Calculs de prix HT/TTC, remises et totaux.

Toutes les fonctions sont pures. Les montants sont accumulés en float sans
arrondi intermédiaire; l'arrondi n'intervient qu'à l'affichage
(`round_money`, `format_price`).

Les lignes passées à `cart_totals` exposent `price_ht`, `price_ttc` et
`quantity`; celles passées à `quote_totals` exposent `unit_price_ht`,
`quantity` et `discount_rate` (objets ou dictionnaires).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from boom.config import settings
from boom.pricing.models import CartTotals, QuoteTotals, DisplayPrice


# Séparateurs fr-FR
THOUSANDS_SEPARATOR = "\u202f"
DECIMAL_SEPARATOR = ","
CURRENCY_SUFFIX = "\u00a0€"

def _tax_rate(tax_rate: Optional[float]) -> float:
    return settings.DEFAULT_TAX_RATE if tax_rate is None else tax_rate

def _field(line: Any, name: str, default: Any = None) -> Any:
    if isinstance(line, dict):
        return line.get(name, default)
    return getattr(line, name, default)

def cart_totals(items: Iterable[Any]) -> CartTotals:
    """Calcule les totaux du panier. La TVA est la différence TTC - HT."""
    item_count = 0
    subtotal_ht = 0.0
    subtotal_ttc = 0.0
    for item in items:
        quantity = _field(item, "quantity", 0)
        item_count += quantity
        subtotal_ht += _field(item, "price_ht", 0.0) * quantity
        subtotal_ttc += _field(item, "price_ttc", 0.0) * quantity

    return CartTotals(
        item_count=item_count,
        subtotal_ht=subtotal_ht,
        subtotal_ttc=subtotal_ttc,
        tax_amount=subtotal_ttc - subtotal_ht,
        total_ttc=subtotal_ttc,
    )

def quote_line_total(unit_price_ht: float, quantity: int, discount_rate: float = 0) -> float:
    """Total HT d'une ligne de devis après remise (en pourcentage)."""
    return unit_price_ht * quantity * (1 - (discount_rate or 0) / 100)

def quote_totals(lines: Iterable[Any], tax_rate: Optional[float] = None) -> QuoteTotals:
    """
    Calcule les totaux d'un devis.

    subtotal_ht = somme des lignes remisées, tax_amount = subtotal_ht * taux / 100.
    discount_amount est le montant brut moins le montant remisé.
    """
    gross_ht = 0.0
    subtotal_ht = 0.0
    for line in lines:
        unit_price_ht = _field(line, "unit_price_ht", 0.0)
        quantity = _field(line, "quantity", 0)
        discount_rate = _field(line, "discount_rate", 0) or 0
        gross_ht += unit_price_ht * quantity
        subtotal_ht += quote_line_total(unit_price_ht, quantity, discount_rate)

    tax_amount = subtotal_ht * _tax_rate(tax_rate) / 100
    return QuoteTotals(
        subtotal_ht=subtotal_ht,
        discount_amount=gross_ht - subtotal_ht,
        tax_amount=tax_amount,
        total_ht=subtotal_ht,
        total_ttc=subtotal_ht + tax_amount,
    )

def price_ht_from_ttc(price_ttc: float, tax_rate: Optional[float] = None) -> float:
    return price_ttc / (1 + _tax_rate(tax_rate) / 100)

def price_ttc_from_ht(price_ht: float, tax_rate: Optional[float] = None) -> float:
    return price_ht * (1 + _tax_rate(tax_rate) / 100)

def apply_discount(price_ht: float, discount_rate: Optional[float]) -> float:
    """Prix HT remisé d'un compte pro. Un taux nul ou absent laisse le prix inchangé."""
    if not discount_rate or discount_rate <= 0:
        return price_ht
    return price_ht * (1 - discount_rate / 100)

def display_price(
    price_ht: float,
    price_ttc: float,
    is_validated_pro: bool,
    discount_rate: Optional[float] = None,
) -> DisplayPrice:
    """Prix affiché: HT (éventuellement remisé) pour un pro validé, TTC sinon."""
    if not is_validated_pro:
        return DisplayPrice(price=price_ttc, is_ht=False)

    discounted = apply_discount(price_ht, discount_rate)
    has_discount = bool(discount_rate) and discounted < price_ht
    return DisplayPrice(
        price=price_ht,
        is_ht=True,
        discounted_price=discounted if has_discount else None,
        has_discount=has_discount,
    )

def round_money(value: float) -> Decimal:
    """Arrondi monétaire à 2 décimales (demi-supérieur), réservé à l'affichage."""
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def format_price(value: float, show_currency: bool = True) -> str:
    """Formate un montant à la française: '1 234,50 €' (espaces insécables)."""
    amount = round_money(value)
    sign = "-" if amount < 0 else ""
    integer_part, decimal_part = f"{abs(amount):.2f}".split(".")

    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)

    formatted = f"{sign}{THOUSANDS_SEPARATOR.join(groups)}{DECIMAL_SEPARATOR}{decimal_part}"
    if show_currency:
        formatted += CURRENCY_SUFFIX
    return formatted
