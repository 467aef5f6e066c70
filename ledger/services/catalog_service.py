"""Read-only access to crowdfundings, packages and their options."""

from typing import Dict, Iterable, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.catalog import Crowdfunding, Package, PackageOption
from ledger.models.pledge import Pledge, PledgeStatus


async def load_package_options(
    db: AsyncSession, template_ids: Iterable[int]
) -> Dict[int, PackageOption]:
    """Snapshot of the claimed options, keyed by id.

    Ids that no longer exist are simply absent from the result.
    """
    ids = set(template_ids)
    if not ids:
        return {}
    result = await db.execute(select(PackageOption).filter(PackageOption.id.in_(ids)))
    return {option.id: option for option in result.scalars().all()}


async def list_crowdfundings(db: AsyncSession) -> List[Crowdfunding]:
    result = await db.execute(select(Crowdfunding).order_by(Crowdfunding.id))
    return list(result.scalars().all())


async def get_crowdfunding(db: AsyncSession, crowdfunding_id: int):
    result = await db.execute(select(Crowdfunding).filter_by(id=crowdfunding_id))
    return result.scalars().first()


async def crowdfunding_status(db: AsyncSession, crowdfunding_id: int) -> Dict[str, int]:
    """Money raised and number of distinct supporters over successful pledges."""
    result = await db.execute(
        select(
            func.coalesce(func.sum(Pledge.total), 0),
            func.count(func.distinct(Pledge.user_id)),
        )
        .join(Package, Pledge.package_id == Package.id)
        .filter(
            Pledge.status == PledgeStatus.SUCCESSFUL,
            Package.crowdfunding_id == crowdfunding_id,
        )
    )
    money, people = result.one()
    return {"money": int(money), "people": int(people)}
