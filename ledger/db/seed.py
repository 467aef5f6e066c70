"""Populate the database with a demo crowdfunding catalog asynchronously."""

import asyncio

from sqlalchemy import delete

from ledger.config import Settings
from ledger.db.session import create_session_factory, init_models
from ledger.models.catalog import Crowdfunding, Package, PackageOption


async def seed(session_factory) -> Crowdfunding:
    async with session_factory() as session:
        async with session.begin():
            print("🧹 Очищаю каталог...")
            await session.execute(delete(PackageOption))
            await session.execute(delete(Package))
            await session.execute(delete(Crowdfunding))

            print("➕ Добавляю краудфандинг и пакеты...")
            crowdfunding = Crowdfunding(
                name="REPUBLIK", goal_money=75000000, goal_people=3000
            )
            abo = Package(name="ABO", crowdfunding=crowdfunding)
            abo.options = [
                PackageOption(name="Jahresabo", min_amount=1, max_amount=1, price=24000)
            ]
            benefactor = Package(name="BENEFACTOR", crowdfunding=crowdfunding)
            benefactor.options = [
                PackageOption(
                    name="Gönner-Abo",
                    min_amount=1,
                    max_amount=1,
                    price=100000,
                    user_price=True,
                    min_user_price=100000,
                )
            ]
            donate = Package(name="DONATE", crowdfunding=crowdfunding)
            donate.options = [
                PackageOption(
                    name="Spende",
                    min_amount=1,
                    max_amount=1,
                    price=0,
                    user_price=True,
                    min_user_price=100,
                )
            ]
            session.add_all([crowdfunding, abo, benefactor, donate])

    print("✅ Каталог успешно заполнен.")
    return crowdfunding


async def main() -> None:
    settings = Settings.from_env()
    print(f"🗂 Используется база данных: {settings.database_url}")
    engine, session_factory = create_session_factory(settings.database_url)
    await init_models(engine)
    await seed(session_factory)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
