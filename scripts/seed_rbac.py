"""
Seed RBAC permissions and system roles from the application's routes.

Same pipeline as POST /api/admin/seed-rbac, run offline against the
configured database.

Usage:
    python -m scripts.seed_rbac [--create-tables]
"""
import argparse
import asyncio
import json

from main import app
from src.application.services.rbac_seed_service import RbacSeedService
from src.application.services.route_catalog import openapi_routes
from src.domain.exceptions import UpstreamUnavailableException
from src.infrastructure.persistence import models  # noqa: F401  registers tables
from src.infrastructure.persistence.database import AsyncSessionLocal, Base, engine
from src.shared.telemetry.logging import setup_logging


async def seed(create_tables: bool = False) -> int:
    setup_logging()

    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        print("Tables created")

    try:
        async with AsyncSessionLocal() as db:
            seed_service = RbacSeedService(db, routes=lambda: openapi_routes(app))
            report = await seed_service.run(seeded_by="cli")
    except UpstreamUnavailableException as e:
        print(f"❌ RBAC seed failed at step '{e.step}': {e.message}")
        print(json.dumps(e.details, indent=2, default=str))
        return 1
    finally:
        await engine.dispose()

    print("✅ RBAC system seeded successfully")
    print(json.dumps(report.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "--create-tables", action="store_true", help="create missing tables before seeding"
    )
    args = parser.parse_args()
    raise SystemExit(asyncio.run(seed(args.create_tables)))
