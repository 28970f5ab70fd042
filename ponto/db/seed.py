"""
Seed script: creates the default admin user and the report recipient setting.

Usage (inside container):
    python -m ponto.db.seed
"""

import asyncio
import os

from sqlalchemy import select

from ponto.core.security import hash_password
from ponto.db.models import Setting, User
from ponto.db.session import AsyncSessionLocal
from ponto.reports.orchestrator import REPORT_EMAIL_SETTING

ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@cleanmyhouse.com.br")
ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin123")


async def create_admin(session) -> User:
    result = await session.execute(select(User).where(User.email == ADMIN_EMAIL))
    admin = result.scalar_one_or_none()
    if admin:
        print("Admin user already exists, skipping.")
        return admin

    admin = User(
        email=ADMIN_EMAIL,
        password_hash=hash_password(ADMIN_PASSWORD),
        role="admin",
        first_name="Administrador",
        last_name=None,
        is_active=True,
    )
    session.add(admin)
    await session.flush()
    print(f"Created admin user: id={admin.id}")
    return admin


async def create_report_recipient(session, email: str) -> None:
    result = await session.execute(select(Setting).where(Setting.key == REPORT_EMAIL_SETTING))
    if result.scalar_one_or_none() is None:
        session.add(Setting(key=REPORT_EMAIL_SETTING, value=email))
        await session.flush()
        print(f"Report recipient set to {email}")


async def main():
    async with AsyncSessionLocal() as session:
        async with session.begin():
            await create_admin(session)
            await create_report_recipient(session, ADMIN_EMAIL)
            print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(main())
