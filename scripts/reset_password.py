"""Reset password for existing user"""
import asyncio
import sys

from src.infrastructure.persistence.database import AsyncSessionLocal
from src.infrastructure.persistence.repositories import UserRepository
from src.infrastructure.security.password import get_password_hash


async def reset_password(username: str, new_password: str):
    async with AsyncSessionLocal() as db:
        user = await UserRepository(db).get_by_username(username)
        if not user:
            print(f"❌ User '{username}' not found")
            return

        user.hashed_password = await asyncio.to_thread(get_password_hash, new_password)
        await db.commit()

        print("✅ Password reset successful!")
        print("\nLogin credentials:")
        print(f"  Username: {username}")
        print(f"  Password: {new_password}")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python -m scripts.reset_password <username> <new_password>")
        print("Example: python -m scripts.reset_password admin newpass123")
        sys.exit(1)

    username, new_password = sys.argv[1:]
    asyncio.run(reset_password(username, new_password))
