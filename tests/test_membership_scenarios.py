"""End-to-end ledger scenarios and the memberCount invariant."""

import random

import pytest

from mindbridge.models import MembershipStatus, Role, Visibility
from mindbridge.services.circles.outcomes import Outcome

A, B, C, D = "user-a", "user-b", "user-c", "user-d"


class TestWalkthrough:
    @pytest.mark.asyncio
    async def test_circle_lifecycle(self, membership_service, content_service, ledger_counts):
        # A creates a public circle
        created = await membership_service.create_circle(
            A, "Mindfulness", "Daily practice", [], Visibility.PUBLIC
        )
        mindfulness = created.value
        own = await membership_service.get_membership(A, mindfulness.id)
        assert own.role == Role.ADMIN and own.status == MembershipStatus.ACTIVE
        assert ledger_counts(mindfulness.id) == (1, 1)

        # B joins the public circle directly
        joined = await membership_service.request_join(B, mindfulness.id)
        assert joined.value.role == Role.MEMBER
        assert joined.value.status == MembershipStatus.ACTIVE
        assert ledger_counts(mindfulness.id) == (2, 2)

        # A creates a private circle; C's request waits for approval
        inner = (
            await membership_service.create_circle(
                A, "Inner Circle", "Close friends", [], Visibility.PRIVATE
            )
        ).value
        pending = await membership_service.request_join(C, inner.id)
        assert pending.value.status == MembershipStatus.PENDING
        assert ledger_counts(inner.id) == (1, 1)

        approved = await membership_service.approve_join(A, inner.id, C)
        assert approved.ok
        assert await membership_service.is_member(C, inner.id)
        assert ledger_counts(inner.id) == (2, 2)

        # B is not an admin of Mindfulness
        denied = await membership_service.remove_member(B, mindfulness.id, C)
        assert denied.outcome is Outcome.NOT_AUTHORIZED
        assert await membership_service.is_member(B, mindfulness.id)
        assert ledger_counts(mindfulness.id) == (2, 2)

        # C posts in Inner Circle and edits it; D cannot; admin A deletes it
        post = (await content_service.create_post(C, inner.id, "Hello", "First post")).value
        edited = await content_service.edit_post(C, post.id, body="First post, edited")
        assert edited.ok and edited.value.author_id == C

        intruder = await content_service.edit_post(D, post.id, title="Hijacked")
        assert intruder.outcome is Outcome.NOT_AUTHORIZED

        removed = await content_service.delete_post(A, post.id)
        assert removed.ok
        assert await content_service.get_post(post.id) is None


class TestMemberCountInvariant:
    @pytest.mark.asyncio
    async def test_holds_after_random_operation_sequences(self, membership_service, ledger_counts):
        rng = random.Random(20240611)
        users = [f"user-{i}" for i in range(6)]

        for visibility in (Visibility.PUBLIC, Visibility.PRIVATE):
            circle = (
                await membership_service.create_circle(A, "Busy", "Lots going on", [], visibility)
            ).value

            for _ in range(120):
                user = rng.choice(users)
                action = rng.choice(["join", "leave", "approve", "reject", "remove"])
                if action == "join":
                    await membership_service.request_join(user, circle.id)
                elif action == "leave":
                    await membership_service.leave(user, circle.id)
                elif action == "approve":
                    await membership_service.approve_join(A, circle.id, user)
                elif action == "reject":
                    await membership_service.reject_join(A, circle.id, user)
                else:
                    await membership_service.remove_member(A, circle.id, user)

                stored, active = ledger_counts(circle.id)
                assert stored == active, f"after {action} by {user}"

    @pytest.mark.asyncio
    async def test_one_row_per_user_and_circle(self, membership_service, fake_db):
        circle = (await membership_service.create_circle(A, "Solo", "Only one row each")).value

        for _ in range(3):
            await membership_service.request_join(B, circle.id)
            await membership_service.request_join(A, circle.id)

        pairs = [(d["circleId"], d["userId"]) for d in fake_db["circlememberships"].docs]
        assert len(pairs) == len(set(pairs)) == 2
