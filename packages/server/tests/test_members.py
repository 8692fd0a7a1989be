"""
Service-level tests for memberships, grants, subscriptions and API keys.

Tests cover:
- Grant replacement: idempotence across transactions, duplicate collapse,
  clearing, and rejection of pages outside the org
- Membership snapshot resolution and current-org selection
- Org creation and joining
- Role changes and removal
- Manual subscription updates and member disabling
- API key rotation and lookup
"""

from __future__ import annotations

import pytest

from conftest import TEST_SECRET
from orgkeeper.core import cipher
from orgkeeper.core.errors import ForbiddenError, NotFoundError
from orgkeeper.services import members as member_service
from orgkeeper.services import organizations as org_service
from orgkeeper.services import subscriptions as subscription_service
from orgkeeper_shared.schemas.common import Role, SubscriptionTier


@pytest.fixture
async def owner(make_user):
    return await make_user("owner@acme.io")


@pytest.fixture
async def org(make_org, owner):
    return await make_org(owner)


@pytest.fixture
async def alice(make_user):
    return await make_user("alice@acme.io")


@pytest.fixture
async def alice_membership(add_member, alice, org):
    return await add_member(alice, org)


@pytest.fixture
async def pages(make_page, org):
    return [await make_page(org, "A"), await make_page(org, "B"), await make_page(org, "C")]


# ---------------------------------------------------------------------------
# Grant replacement
# ---------------------------------------------------------------------------


class TestSetMemberPermissions:
    async def test_idempotent_across_transactions(self, session_factory, org, alice_membership, pages):
        ids = [pages[0].id, pages[2].id]
        async with session_factory() as session:
            first = await member_service.set_member_permissions(org.id, alice_membership.id, ids, session)
            await session.commit()
        async with session_factory() as session:
            second = await member_service.set_member_permissions(org.id, alice_membership.id, ids, session)
            await session.commit()
        async with session_factory() as session:
            stored = await member_service.list_member_grants(alice_membership.id, session)

        assert first == second == stored == sorted(ids)

    async def test_duplicates_collapse(self, session_factory, org, alice_membership, pages):
        async with session_factory() as session:
            granted = await member_service.set_member_permissions(
                org.id, alice_membership.id, [pages[1].id, pages[1].id, pages[0].id], session
            )
            await session.commit()
        assert granted == sorted([pages[0].id, pages[1].id])

    async def test_replaces_previous_set(self, session_factory, org, alice_membership, pages):
        async with session_factory() as session:
            await member_service.set_member_permissions(
                org.id, alice_membership.id, [pages[0].id, pages[1].id], session
            )
            granted = await member_service.set_member_permissions(
                org.id, alice_membership.id, [pages[2].id], session
            )
            await session.commit()
        assert granted == [pages[2].id]

    async def test_empty_clears(self, session_factory, org, alice_membership, pages):
        async with session_factory() as session:
            await member_service.set_member_permissions(org.id, alice_membership.id, [pages[0].id], session)
            granted = await member_service.set_member_permissions(org.id, alice_membership.id, [], session)
            await session.commit()
        assert granted == []

    async def test_foreign_page_rejected_and_grants_kept(
        self, session_factory, org, alice_membership, pages, make_user, make_org, make_page
    ):
        other = await make_org(await make_user("mallory@evil.io"), "Evil")
        foreign = await make_page(other, "Evil")

        async with session_factory() as session:
            await member_service.set_member_permissions(org.id, alice_membership.id, [pages[0].id], session)
            await session.commit()

        async with session_factory() as session:
            with pytest.raises(ForbiddenError):
                await member_service.set_member_permissions(
                    org.id, alice_membership.id, [pages[1].id, foreign.id], session
                )
            await session.rollback()

        async with session_factory() as session:
            assert await member_service.list_member_grants(alice_membership.id, session) == [pages[0].id]

    async def test_member_of_other_org(self, session_factory, org, alice, make_org, pages):
        other = await make_org(alice, "Alice Co")
        async with session_factory() as session:
            ctx = await member_service.get_member_context(alice.id, other.id, session)
            with pytest.raises(NotFoundError):
                await member_service.set_member_permissions(org.id, ctx.id, [pages[0].id], session)


# ---------------------------------------------------------------------------
# Membership snapshot
# ---------------------------------------------------------------------------


class TestMemberContext:
    async def test_snapshot(self, session_factory, org, alice, alice_membership, pages):
        async with session_factory() as session:
            await member_service.set_member_permissions(org.id, alice_membership.id, [pages[1].id], session)
            await session.commit()
        async with session_factory() as session:
            ctx = await member_service.get_member_context(alice.id, org.id, session)

        assert ctx.id == alice_membership.id
        assert ctx.role == Role.USER
        assert ctx.grants == frozenset({pages[1].id})
        assert ctx.organization.id == org.id
        assert ctx.organization.name == "Acme"
        assert ctx.organization.subscription_tier is None

    async def test_no_membership(self, session_factory, org, alice):
        async with session_factory() as session:
            assert await member_service.get_member_context(alice.id, org.id, session) is None

    async def test_current_org_prefers_selection(self, session_factory, org, alice, alice_membership, make_org):
        own = await make_org(alice, "Alice Co")
        async with session_factory() as session:
            assert await member_service.resolve_current_org_id(alice.id, own.id, session) == own.id
            assert await member_service.resolve_current_org_id(alice.id, None, session) == org.id

    async def test_current_org_skips_disabled(self, session_factory, org, alice, alice_membership, make_org):
        own = await make_org(alice, "Alice Co")
        async with session_factory() as session:
            await member_service.set_non_superadmin_disabled(org.id, True, session)
            await session.commit()
        async with session_factory() as session:
            assert await member_service.resolve_current_org_id(alice.id, None, session) == own.id


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------


class TestOrganizations:
    async def test_creator_is_superadmin(self, session_factory, org, owner):
        async with session_factory() as session:
            ctx = await member_service.get_member_context(owner.id, org.id, session)
        assert ctx.role == Role.SUPERADMIN

    async def test_create_for_unknown_user(self, session_factory):
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await org_service.create_org_for_user("missing", "Ghost Co", TEST_SECRET, session)

    async def test_join_is_idempotent(self, session_factory, org, alice):
        async with session_factory() as session:
            first = await org_service.join_organization(alice.id, org.id, session)
            await session.commit()
        async with session_factory() as session:
            second = await org_service.join_organization(alice.id, org.id, session)
        assert first.id == second.id
        assert first.role == Role.USER

    async def test_join_unknown(self, session_factory, alice):
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await org_service.join_organization(alice.id, "missing", session)

    async def test_list_user_orgs(self, session_factory, org, alice, alice_membership, make_org):
        own = await make_org(alice, "Alice Co")
        async with session_factory() as session:
            items = await org_service.list_user_orgs(alice.id, session)
        assert [(i["id"], i["role"]) for i in items] == [(org.id, Role.USER), (own.id, Role.SUPERADMIN)]


# ---------------------------------------------------------------------------
# Roles and removal
# ---------------------------------------------------------------------------


class TestRolesAndRemoval:
    async def test_update_role(self, session_factory, org, alice_membership):
        async with session_factory() as session:
            result = await member_service.update_member_role(org.id, alice_membership.id, Role.ADMIN, session)
            await session.commit()
        assert result == {"id": alice_membership.id, "role": Role.ADMIN}

    async def test_superadmin_fixed(self, session_factory, org, owner):
        async with session_factory() as session:
            ctx = await member_service.get_member_context(owner.id, org.id, session)
            with pytest.raises(ForbiddenError):
                await member_service.update_member_role(org.id, ctx.id, Role.ADMIN, session)
            with pytest.raises(ForbiddenError):
                await member_service.remove_member(org.id, ctx.id, session)

    async def test_remove_drops_grants(self, session_factory, org, alice, alice_membership, pages):
        async with session_factory() as session:
            await member_service.set_member_permissions(org.id, alice_membership.id, [pages[0].id], session)
            await member_service.remove_member(org.id, alice_membership.id, session)
            await session.commit()
        async with session_factory() as session:
            assert await member_service.get_member_context(alice.id, org.id, session) is None
            assert await member_service.list_member_grants(alice_membership.id, session) == []


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------


class TestManualSubscription:
    async def test_creates_with_tier_default_channels(self, session_factory, org):
        async with session_factory() as session:
            sub = await subscription_service.manual_update_subscription(
                org.id, SubscriptionTier.PRO, None, None, session
            )
            await session.commit()
        assert sub.subscription_tier == SubscriptionTier.PRO
        assert sub.total_channels == 30
        assert sub.is_lifetime is False

    async def test_updates_in_place(self, session_factory, org):
        async with session_factory() as session:
            first = await subscription_service.manual_update_subscription(
                org.id, SubscriptionTier.PRO, 10, True, session
            )
            second = await subscription_service.manual_update_subscription(
                org.id, SubscriptionTier.TEAM, None, None, session
            )
            await session.commit()
        assert first.id == second.id
        assert second.total_channels == 100
        assert second.is_lifetime is True

    async def test_billing_toggles_members(self, session_factory, org, owner, alice, alice_membership):
        async with session_factory() as session:
            await subscription_service.manual_update_subscription(
                org.id, SubscriptionTier.STANDARD, None, None, session, billing_enabled=True
            )
            await session.commit()
        async with session_factory() as session:
            assert (await member_service.get_member_context(alice.id, org.id, session)).disabled is True
            assert (await member_service.get_member_context(owner.id, org.id, session)).disabled is False

        async with session_factory() as session:
            await subscription_service.manual_update_subscription(
                org.id, SubscriptionTier.PRO, None, None, session, billing_enabled=True
            )
            await session.commit()
        async with session_factory() as session:
            assert (await member_service.get_member_context(alice.id, org.id, session)).disabled is False

    async def test_no_billing_leaves_members(self, session_factory, org, alice, alice_membership):
        async with session_factory() as session:
            await subscription_service.manual_update_subscription(
                org.id, SubscriptionTier.STANDARD, None, None, session
            )
            await session.commit()
        async with session_factory() as session:
            assert (await member_service.get_member_context(alice.id, org.id, session)).disabled is False


# ---------------------------------------------------------------------------
# API keys
# ---------------------------------------------------------------------------


class TestApiKeys:
    async def test_rotate_and_lookup(self, session_factory, org):
        async with session_factory() as session:
            plaintext = await org_service.rotate_api_key(org.id, TEST_SECRET, session)
            await session.commit()
        async with session_factory() as session:
            found = await org_service.get_org_by_api_key(plaintext, TEST_SECRET, session)
        assert found is not None
        assert found.id == org.id
        assert found.api_key == cipher.encrypt(TEST_SECRET, plaintext)
        assert org_service.reveal_api_key(found, TEST_SECRET) == plaintext

    async def test_custom_length(self, session_factory, org):
        async with session_factory() as session:
            plaintext = await org_service.rotate_api_key(org.id, TEST_SECRET, session, api_key_length=32)
        assert len(plaintext) == 32

    async def test_unknown_key(self, session_factory, org):
        async with session_factory() as session:
            assert await org_service.get_org_by_api_key("nope", TEST_SECRET, session) is None

    async def test_rotate_unknown_org(self, session_factory):
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await org_service.rotate_api_key("missing", TEST_SECRET, session)
