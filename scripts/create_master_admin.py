"""
Create the first master_admin account.

Only a master_admin can run the RBAC seed, so a fresh database needs one
before anything else.

Usage:
    python -m scripts.create_master_admin <username> <email> <password>
"""
import asyncio
import sys

from src.domain.enums import SystemRole
from src.infrastructure.persistence.database import AsyncSessionLocal
from src.infrastructure.persistence.repositories import RoleRepository, UserRepository


async def create_master_admin(username: str, email: str, password: str):
    async with AsyncSessionLocal() as db:
        user_repo = UserRepository(db)

        if await user_repo.get_by_username(username):
            print(f"User '{username}' already exists")
            return

        user = await user_repo.create_user(
            username=username,
            email=email,
            password=password,
            role=SystemRole.MASTER_ADMIN.value,
        )

        # Link the seeded role as well when the RBAC seed has already run
        role = await RoleRepository(db).get_by_name(SystemRole.MASTER_ADMIN.value)
        if role:
            await user_repo.assign_role(user.id, role.id)

        await db.commit()

        print("✅ Master admin created successfully!")
        print("\nLogin credentials:")
        print(f"  Username: {username}")
        print(f"  Password: {password}")
        print("\nThen seed RBAC:")
        print("""
TOKEN=$(curl -s -X POST http://localhost:8000/api/auth/token \\
  -H "Content-Type: application/json" \\
  -d '{"username": "<username>", "password": "<password>"}' | jq -r .access_token)
curl -X POST http://localhost:8000/api/admin/seed-rbac -H "Authorization: Bearer $TOKEN"
        """)


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print("Usage: python -m scripts.create_master_admin <username> <email> <password>")
        sys.exit(1)

    asyncio.run(create_master_admin(*sys.argv[1:]))
