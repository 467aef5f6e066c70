from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.api.deps import get_db
from ledger.errors import NotFound
from ledger.services import catalog_service

router = APIRouter()


@router.get("/crowdfundings")
async def list_crowdfundings(db: AsyncSession = Depends(get_db)):
    crowdfundings = await catalog_service.list_crowdfundings(db)
    return [{"id": cf.id, "name": cf.name} for cf in crowdfundings]


@router.get("/crowdfundings/{crowdfunding_id}")
async def get_crowdfunding(crowdfunding_id: int, db: AsyncSession = Depends(get_db)):
    crowdfunding = await catalog_service.get_crowdfunding(db, crowdfunding_id)
    if crowdfunding is None:
        raise NotFound(f"crowdfunding ({crowdfunding_id}) not found")
    status = await catalog_service.crowdfunding_status(db, crowdfunding_id)
    return {
        "id": crowdfunding.id,
        "name": crowdfunding.name,
        "goal": {
            "money": crowdfunding.goal_money,
            "people": crowdfunding.goal_people,
        },
        "status": status,
        "packages": [
            {
                "id": package.id,
                "name": package.name,
                "options": [
                    {
                        "id": option.id,
                        "name": option.name,
                        "price": option.price,
                        "min_amount": option.min_amount,
                        "max_amount": option.max_amount,
                        "user_price": option.user_price,
                        "min_user_price": option.min_user_price,
                    }
                    for option in package.options
                ],
            }
            for package in crowdfunding.packages
        ],
    }
