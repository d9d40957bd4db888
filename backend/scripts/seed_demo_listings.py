"""Seed two provider companies with a handful of listings for local development."""
from __future__ import annotations

import asyncio
from decimal import Decimal

from sqlalchemy import select

from app.db.session import get_sessionmaker
from app.models import Company, DriverListing, FuelType, ListingStatus, VehicleListing, VehicleType

COMPANIES = (
    ("Oslo Transport AS", "910000001", "Oslo", "Oslo", "Oslo", 59.9139, 10.7522),
    ("Bergen Logistikk AS", "910000002", "Bergen", "Vestland", "Bergen", 60.3913, 5.3221),
)


async def seed_listings() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        created = 0
        for name, org_number, city, fylke, kommune, latitude, longitude in COMPANIES:
            existing = await session.execute(
                select(Company).where(Company.organization_number == org_number)
            )
            if existing.scalar_one_or_none() is not None:
                continue
            company = Company(
                name=name,
                organization_number=org_number,
                city=city,
                fylke=fylke,
                kommune=kommune,
                verified=True,
            )
            session.add(company)
            await session.flush()
            session.add_all(
                [
                    VehicleListing(
                        company_id=company.id,
                        status=ListingStatus.ACTIVE,
                        title=f"18-pallet truck, {city}",
                        description="Tail lift, curtain sides",
                        vehicle_type=VehicleType.PALLET_18,
                        capacity=18,
                        fuel_type=FuelType.DIESEL,
                        city=city,
                        fylke=fylke,
                        kommune=kommune,
                        latitude=latitude,
                        longitude=longitude,
                        hourly_rate=Decimal("650.00"),
                        daily_rate=Decimal("4200.00"),
                        currency="NOK",
                        with_driver=True,
                        with_driver_cost=Decimal("2800.00"),
                        without_driver=True,
                        tags=["tail-lift"],
                    ),
                    VehicleListing(
                        company_id=company.id,
                        status=ListingStatus.ACTIVE,
                        title=f"Electric van, {city}",
                        description="City deliveries",
                        vehicle_type=VehicleType.VAN,
                        capacity=6,
                        fuel_type=FuelType.ELECTRIC,
                        city=city,
                        fylke=fylke,
                        kommune=kommune,
                        latitude=latitude,
                        longitude=longitude,
                        daily_rate=Decimal("1500.00"),
                        currency="NOK",
                        without_driver=True,
                    ),
                    DriverListing(
                        company_id=company.id,
                        status=ListingStatus.SUSPENDED,
                        name=f"Driver from {city}",
                        license_class="CE",
                        languages=["no", "en"],
                        hourly_rate=Decimal("480.00"),
                        currency="NOK",
                        verified=False,
                    ),
                ]
            )
            created += 1
        if created:
            await session.commit()
        print(f"Seeded {created} company(ies) with listings.")


def main() -> None:
    asyncio.run(seed_listings())


if __name__ == "__main__":
    main()
