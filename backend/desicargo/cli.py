#!/usr/bin/env python
"""Operator commands for a DesiCargo deployment.

Usage:
    desicargo-admin create-admin --email ops@example.com --name "Ops Admin" --password secret123
    desicargo-admin list-branches
    desicargo-admin clear-cache
"""

import argparse
import asyncio
import sys

from sqlalchemy import func, select

from desicargo.auth.password import hash_password
from desicargo.database import async_session, engine
from desicargo.models.branch import Branch
from desicargo.models.user import User, UserRole
from desicargo.utils.cache import clear_all_cache, close_redis


async def create_admin(email: str, name: str, password: str, branch_code: str | None) -> int:
    async with async_session() as db:
        email = email.lower()
        existing = await db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            print(f"❌ A user with email {email} already exists")
            return 1

        branch_id = None
        if branch_code:
            branch = (
                await db.execute(select(Branch).where(func.upper(Branch.code) == branch_code.upper()))
            ).scalar_one_or_none()
            if not branch:
                print(f"❌ No branch with code {branch_code}")
                return 1
            branch_id = branch.id

        db.add(User(
            email=email,
            name=name,
            hashed_password=hash_password(password),
            role=UserRole.ADMIN,
            branch_id=branch_id,
            is_active=True,
            email_verified=True,
        ))
        await db.commit()

    print(f"✅ Admin created: {email}")
    return 0


async def list_branches() -> int:
    async with async_session() as db:
        result = await db.execute(select(Branch).order_by(Branch.name))
        branches = result.scalars().all()

    if not branches:
        print("No branches configured")
        return 0

    print(f"{'CODE':<10} {'NAME':<30} {'CITY':<20} HEAD OFFICE")
    for b in branches:
        print(f"{b.code:<10} {b.name:<30} {(b.city or ''):<20} {'yes' if b.is_head_office else ''}")
    return 0


async def clear_cache() -> int:
    await clear_all_cache()
    print("✅ Cache cleared")
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(description="DesiCargo operator commands")
    sub = parser.add_subparsers(dest="command", required=True)

    admin = sub.add_parser("create-admin", help="Create a verified administrator account")
    admin.add_argument("--email", required=True)
    admin.add_argument("--name", required=True)
    admin.add_argument("--password", required=True)
    admin.add_argument("--branch", help="Branch code to assign", default=None)

    sub.add_parser("list-branches", help="Print the branch directory")
    sub.add_parser("clear-cache", help="Flush all cached listings")

    args = parser.parse_args()

    try:
        if args.command == "create-admin":
            if len(args.password) < 6:
                print("❌ Password must be at least 6 characters")
                return 1
            return await create_admin(args.email, args.name, args.password, args.branch)
        if args.command == "list-branches":
            return await list_branches()
        return await clear_cache()
    finally:
        await close_redis()
        await engine.dispose()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
