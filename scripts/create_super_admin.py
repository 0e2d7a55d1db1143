"""Create the first back-office account.

Usage:
    python -m scripts.create_super_admin admin@example.com "Jane Admin" <password>
"""
import asyncio
import logging
import sys

from fastapi import HTTPException

from fincare.database.connection import init_db
from fincare.schemas import AdminCreate
from fincare.services.auth_service import auth_service

logger = logging.getLogger(__name__)


async def main(email: str, full_name: str, password: str) -> int:
    await init_db()
    try:
        admin = await auth_service.create_admin(
            AdminCreate(email=email, full_name=full_name, password=password, role="super_admin"),
            created_by="bootstrap",
        )
    except HTTPException as e:
        logger.error("Could not create super admin: %s", e.detail)
        return 1
    logger.info("Super admin %s created with id %s", admin["email"], admin["id"])
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(*sys.argv[1:4])))
