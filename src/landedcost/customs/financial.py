"""Bank charges for settling the supplier invoice.

Each payment mode is an ordered list of charges applied to the supplier total
(invoice amount converted to local currency).  A ``percent`` charge is the
rounded product of the supplier total and its rate; a ``fixed`` charge is taken
as configured.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from landedcost.customs.models import PaymentMode
from landedcost.customs.money import round_amount
from landedcost.customs.settings import Settings

logger = logging.getLogger(__name__)

PERCENT = "percent"
FIXED = "fixed"


@dataclass(frozen=True)
class Charge:
    name: str
    key: str
    kind: str  # percent | fixed


@dataclass(frozen=True)
class ChargeLine:
    name: str
    amount: float


@dataclass(frozen=True)
class FinancialQuote:
    payment_mode: PaymentMode
    supplier_total: float
    charges: Tuple[ChargeLine, ...]
    total: int

    def as_dict(self) -> Dict[str, object]:
        return {
            "payment_mode": self.payment_mode.value,
            "supplier_total": self.supplier_total,
            "charges": {charge.name: charge.amount for charge in self.charges},
            "total": self.total,
        }


CHARGE_SCHEDULES: Dict[PaymentMode, Tuple[Charge, ...]] = {
    PaymentMode.BANK_TRANSFER: (
        Charge("file_opening", "transfer_opening_rate", PERCENT),
        Charge("file_fee", "transfer_file_fee", FIXED),
        Charge("swift_transfer", "transfer_swift_fee", FIXED),
        Charge("photocopy", "transfer_photocopy_fee", FIXED),
    ),
    PaymentMode.DOCUMENTARY_COLLECTION: (
        Charge("file_opening", "collection_opening_rate", PERCENT),
        Charge("file_fee", "collection_file_rate", PERCENT),
        Charge("swift_transfer", "collection_swift_rate", PERCENT),
        Charge("photocopy", "collection_photocopy_fee", FIXED),
        Charge("unpaid_fee", "collection_unpaid_fee", FIXED),
        Charge("express_courier", "collection_courier_rate", PERCENT),
        Charge("extension_commission", "collection_extension_fee", FIXED),
        Charge("exchange_commission", "collection_exchange_commission_rate", PERCENT),
    ),
    PaymentMode.DOCUMENTARY_CREDIT: (
        Charge("file_opening", "credit_opening_rate", PERCENT),
        Charge("confirmation", "credit_confirmation_rate", PERCENT),
        Charge("file_fee", "credit_file_rate", PERCENT),
        Charge("swift_transfer", "credit_swift_rate", PERCENT),
        Charge("realisation", "credit_realisation_rate", PERCENT),
        Charge("photocopy", "credit_photocopy_fee", FIXED),
        Charge("acceptance", "credit_acceptance_rate", PERCENT),
        Charge("negotiation", "credit_negotiation_rate", PERCENT),
        Charge("payment_commission", "credit_payment_commission_rate", PERCENT),
        Charge("commission", "credit_commission_rate", PERCENT),
        Charge("bceao_tax", "credit_bceao_tax_rate", PERCENT),
    ),
}


def _charge_amount(charge: Charge, supplier_total: float, settings: Settings) -> float:
    value = settings.require(charge.key)
    if charge.kind == PERCENT:
        return round_amount(supplier_total * value)
    return value


def compute_financial_fees(
    invoice_total: float,
    exchange_rate: float,
    payment_mode: PaymentMode,
    settings: Settings,
) -> Optional[FinancialQuote]:
    """Return the bank-charge breakdown, or ``None`` for an unsupported mode."""
    schedule = CHARGE_SCHEDULES.get(payment_mode)
    if schedule is None:
        logger.debug("No charge schedule for payment mode %s", payment_mode.value)
        return None

    supplier_total = invoice_total * exchange_rate
    lines: List[ChargeLine] = [
        ChargeLine(charge.name, _charge_amount(charge, supplier_total, settings)) for charge in schedule
    ]
    if payment_mode is PaymentMode.DOCUMENTARY_COLLECTION:
        commission = supplier_total * settings.require("collection_commission_rate")
        floor = settings.require("collection_commission_floor")
        lines.append(ChargeLine("commission", max(commission, floor)))

    total = round_amount(sum(line.amount for line in lines))
    return FinancialQuote(
        payment_mode=payment_mode,
        supplier_total=supplier_total,
        charges=tuple(lines),
        total=total,
    )
