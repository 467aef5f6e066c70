"""Checks a pledge's option selection against a catalog snapshot.

All amounts are integer minor units; nothing here touches the database.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ledger.errors import (
    AmountOutOfRange,
    CrossPackageSelection,
    InvalidSelection,
    ReasonRequired,
    TotalTooLow,
)
from ledger.models.catalog import PackageOption
from ledger.schemas import PledgeInput

# Минимальная сумма любого взноса (1 франк)
MIN_PLEDGE_TOTAL = 100


@dataclass(frozen=True)
class PledgeLine:
    template_id: int
    amount: int
    price: int


@dataclass(frozen=True)
class ValidatedPledge:
    package_id: int
    total: int
    donation: int
    reason: Optional[str]
    lines: List[PledgeLine]


def validate_selection(
    pledge: PledgeInput, snapshot: Dict[int, PackageOption]
) -> ValidatedPledge:
    claimed = pledge.options
    if not claimed:
        raise InvalidSelection("a pledge needs at least one option")

    # check if all templateIds are (still) valid
    if len(snapshot) < len(claimed) or any(
        plo.template_id not in snapshot for plo in claimed
    ):
        raise InvalidSelection("one or more of the claimed templateIds are/became invalid")

    package_ids = {snapshot[plo.template_id].package_id for plo in claimed}
    if len(package_ids) > 1:
        raise CrossPackageSelection("options must all be part of the same package")
    package_id = package_ids.pop()

    for plo in claimed:
        option = snapshot[plo.template_id]
        if not option.min_amount <= plo.amount <= option.max_amount:
            raise AmountOutOfRange(
                f"amount in option (templateId: {plo.template_id}) out of range "
                f"[{option.min_amount}, {option.max_amount}]"
            )

    min_total = max(
        MIN_PLEDGE_TOTAL,
        sum(
            plo.amount
            * (
                snapshot[plo.template_id].min_user_price
                if snapshot[plo.template_id].user_price
                else snapshot[plo.template_id].price
            )
            for plo in claimed
        ),
    )
    if pledge.total < min_total:
        raise TotalTooLow(f"pledge.total ({pledge.total}) should be >= ({min_total})")

    regular_total = max(
        MIN_PLEDGE_TOTAL,
        sum(plo.amount * snapshot[plo.template_id].price for plo in claimed),
    )
    donation = pledge.total - regular_total
    if donation < 0 and not pledge.reason:
        raise ReasonRequired("you must provide a reason for reduced pledges")

    lines = [
        PledgeLine(
            template_id=plo.template_id,
            amount=plo.amount,
            price=snapshot[plo.template_id].price,
        )
        for plo in claimed
    ]
    return ValidatedPledge(
        package_id=package_id,
        total=pledge.total,
        donation=donation,
        reason=pledge.reason,
        lines=lines,
    )
