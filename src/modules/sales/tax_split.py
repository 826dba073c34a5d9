"""Derive tax-exclusive and tax-inclusive amounts.

Sources disagree on how tax is represented: some give a gross (tax-inclusive)
total, some give an amount plus the tax to subtract, and CSV exports give only
the net sale value, to which the default VAT rate applies.
"""

from dataclasses import dataclass
from typing import Optional

from src.utils.data_cleaning import round_currency

DEFAULT_TAX_RATE = 0.19


@dataclass
class TaxSplit:
    """Rounded tax-exclusive and tax-inclusive amounts."""

    excl_tax: int
    incl_tax: int


def split_tax(
    net_amount: Optional[float],
    tax_amount: Optional[float] = None,
    gross_amount: Optional[float] = None,
    rate: float = DEFAULT_TAX_RATE,
) -> TaxSplit:
    """Split an amount into excl./incl. tax figures.

    Precedence:
    1. Gross present: incl = gross, excl = net if supplied, otherwise gross
    2. Net and tax present: excl = net - tax, incl = net
    3. Net only: excl = net, incl = net * (1 + rate)
    4. Nothing: 0, 0

    Args:
        net_amount: Amount as given by the source, None if not supplied
        tax_amount: Explicit tax amount, None if not supplied
        gross_amount: Explicit tax-inclusive amount, None if not supplied
        rate: Tax rate applied when no tax figure is supplied

    Returns:
        TaxSplit with integer amounts
    """
    if gross_amount is not None:
        excl = net_amount if net_amount is not None else gross_amount
        return TaxSplit(round_currency(excl), round_currency(gross_amount))

    if net_amount is None:
        return TaxSplit(0, 0)

    if tax_amount is not None:
        return TaxSplit(
            round_currency(net_amount - tax_amount), round_currency(net_amount)
        )

    return TaxSplit(round_currency(net_amount), round_currency(net_amount * (1 + rate)))
