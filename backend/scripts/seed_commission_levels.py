"""Seed platform commission settings and default commission levels."""
from __future__ import annotations

import asyncio

from marketplace.db.session import get_sessionmaker
from marketplace.models.commission import CommissionScope
from marketplace.services import commission_service


async def seed_commissions(scopes: tuple[CommissionScope, ...] = tuple(CommissionScope)) -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        await commission_service.get_commission_settings(session)
        created = 0
        for scope in scopes:
            created += await commission_service.ensure_default_levels(session, scope=scope)
        print(f"Seeded {created} commission level(s).")


def main() -> None:
    asyncio.run(seed_commissions())


if __name__ == "__main__":
    main()
