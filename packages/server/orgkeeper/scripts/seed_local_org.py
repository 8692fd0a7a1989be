"""
Script to create a local user with an organization for manual testing.

Prints a session JWT for the user and the org's plaintext API key.

    python -m orgkeeper.scripts.seed_local_org --email admin@example.com --org "Acme"
"""

import argparse
import asyncio

from sqlmodel import select

from orgkeeper.core.auth import create_jwt
from orgkeeper.core.config import get_settings
from orgkeeper.core.database import get_session_context, init_db
from orgkeeper.models.integration import Integration
from orgkeeper.models.user import User
from orgkeeper.services import organizations as org_service

settings = get_settings()


async def seed(email: str, org_name: str, pages: list[str]):
    await init_db()

    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if not user:
            user = User(email=email, name=email.split("@")[0])
            session.add(user)
            await session.flush()
            print(f"Created user: {email}")
        else:
            print(f"User {email} already exists.")

        org = await org_service.create_org_for_user(
            user.id,
            org_name,
            settings.secret_key,
            session,
            api_key_length=settings.api_key_length,
        )
        print(f"Created organization {org_name!r} ({org.id}), {email} is SUPERADMIN.")

        for page in pages:
            integration = Integration(
                organization_id=org.id, name=page, provider_identifier="local"
            )
            session.add(integration)
            await session.flush()
            print(f"Added page {page!r} ({integration.id})")

        api_key = org_service.reveal_api_key(org, settings.secret_key)

    token, _ = create_jwt(user.id)
    print(f"API key: {api_key}")
    print(f"Session JWT: {token}")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Create a local user and organization.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--org", required=True, help="Organization name")
    parser.add_argument(
        "--page", action="append", default=[], help="Page (integration) name; repeatable"
    )

    args = parser.parse_args()

    asyncio.run(seed(args.email, args.org, args.page))


if __name__ == "__main__":
    main()
