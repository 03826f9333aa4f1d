from boom.pricing.calculator import (
    cart_totals,
    quote_line_total,
    quote_totals,
    price_ht_from_ttc,
    price_ttc_from_ht,
    apply_discount,
    display_price,
    round_money,
    format_price,
)
from boom.pricing.models import CartTotals, QuoteTotals, DisplayPrice, OrderLine
