"""Tests for comment commands through the App facade."""

import asyncio
from datetime import timedelta

import pytest
from factories import NOVEL_ID

from inkthread.core.modules.vote.models import VoteDirection, vote_key
from inkthread.errors import (
    AccessDeniedError,
    AuthenticationError,
    EditWindowExpiredError,
    EmailNotVerifiedError,
    NotFoundError,
    ValidationError,
)


class TestCreateComment:
    """Tests for App.create_comment."""

    async def test_anonymous_cannot_post(self, app):
        """Test that posting requires an actor."""
        with pytest.raises(AuthenticationError):
            await app.create_comment(None, NOVEL_ID, "Hi")

    async def test_unverified_cannot_post(self, app, unverified):
        """Test that posting requires a verified email."""
        with pytest.raises(EmailNotVerifiedError):
            await app.create_comment(unverified, NOVEL_ID, "Hi")

    @pytest.mark.parametrize("body", ["", "   ", "<p><br></p>", "&nbsp;"])
    async def test_empty_body_rejected(self, app, alice, body):
        """Test that bodies without text after stripping formatting are rejected."""
        with pytest.raises(ValidationError, match="cannot be empty"):
            await app.create_comment(alice, NOVEL_ID, body)

    async def test_body_stored_verbatim(self, app, alice):
        """Test that rich text is kept as given."""
        view = await app.create_comment(alice, NOVEL_ID, "<p>So <em>good</em></p>")
        assert view.body == "<p>So <em>good</em></p>"

    async def test_ids_are_sequential(self, app, alice):
        """Test that ids come from the counter."""
        first = await app.create_comment(alice, NOVEL_ID, "one")
        second = await app.create_comment(alice, NOVEL_ID, "two")
        assert second.id == first.id + 1

    async def test_unknown_content(self, app, alice):
        """Test that commenting on unknown content is not found."""
        with pytest.raises(NotFoundError, match="Content"):
            await app.create_comment(alice, 999, "Hi")

    async def test_unknown_chapter(self, app, alice):
        """Test that commenting on an unknown chapter is not found."""
        with pytest.raises(NotFoundError, match="Chapter"):
            await app.create_comment(alice, NOVEL_ID, "Hi", sub_scope_id=77)

    async def test_anchor_without_chapter(self, app, alice):
        """Test that a paragraph must come with its chapter."""
        with pytest.raises(ValidationError, match="chapter"):
            await app.create_comment(alice, NOVEL_ID, "Hi", anchor_id=5)

    async def test_unknown_parent(self, app, alice):
        """Test that replying to a missing comment is not found."""
        with pytest.raises(NotFoundError, match="Parent"):
            await app.create_comment(alice, NOVEL_ID, "Hi", parent_id=12345)

    async def test_parent_in_other_scope(self, app, alice, bob):
        """Test that a reply must live in its parent's scope."""
        root = await app.create_comment(alice, NOVEL_ID, "Chapter one thoughts", sub_scope_id=1)
        with pytest.raises(NotFoundError, match="not found in this discussion"):
            await app.create_comment(bob, NOVEL_ID, "Reply", sub_scope_id=2, parent_id=root.id)

    async def test_reply_inherits_anchor(self, app, alice, bob):
        """Test that a reply without anchor lands on its parent's paragraph."""
        root = await app.create_comment(alice, NOVEL_ID, "This line!", sub_scope_id=1, anchor_id=8)
        reply = await app.create_comment(bob, NOVEL_ID, "Right?", sub_scope_id=1, parent_id=root.id)
        assert reply.anchor_id == 8
        assert reply.parent_id == root.id
        assert reply.parent is not None
        assert reply.parent.author.id == "alice"


class TestEditComment:
    """Tests for App.edit_comment."""

    async def test_author_edits_inside_window(self, app, alice, clock):
        """Test that the author can edit at 9m59s."""
        comment = await app.create_comment(alice, NOVEL_ID, "Frist")
        clock.advance(9 * 60 + 59)
        edited = await app.edit_comment(alice, comment.id, "First")
        assert edited.body == "First"
        assert edited.edited_at == clock.current

    async def test_author_cannot_edit_after_window(self, app, alice, clock):
        """Test that the author cannot edit at 10m01s and the body is unchanged."""
        comment = await app.create_comment(alice, NOVEL_ID, "Frist")
        clock.advance(10 * 60 + 1)
        with pytest.raises(EditWindowExpiredError):
            await app.edit_comment(alice, comment.id, "First")
        assert (await app.get_comment(alice, comment.id)).body == "Frist"

    async def test_moderator_cannot_edit(self, app, alice, moderator):
        """Test that moderators may not rewrite someone else's words."""
        comment = await app.create_comment(alice, NOVEL_ID, "Mine")
        with pytest.raises(AccessDeniedError):
            await app.edit_comment(moderator, comment.id, "Theirs")

    async def test_edit_validates_body(self, app, alice):
        """Test that an edit cannot empty a comment."""
        comment = await app.create_comment(alice, NOVEL_ID, "Mine")
        with pytest.raises(ValidationError):
            await app.edit_comment(alice, comment.id, "<p> </p>")

    async def test_edit_missing_comment(self, app, alice):
        """Test that editing an unknown comment is not found."""
        with pytest.raises(NotFoundError):
            await app.edit_comment(alice, 404, "Hi")

    async def test_stored_update_rechecks_window(self, app, alice, clock):
        """Test that the write itself refuses a comment that aged out after the policy check."""
        comment = await app.create_comment(alice, NOVEL_ID, "Frist")
        service = app._core.services.comment
        window = timedelta(minutes=10)

        with pytest.raises(EditWindowExpiredError):
            await service.update_body(comment.id, alice.id, "First", clock.current + window, window)
        assert (await service.get_comment(comment.id)).body == "Frist"
        assert (await service.get_comment(comment.id)).edited_at is None

    async def test_stored_update_checks_author(self, app, alice, bob, clock):
        """Test that the write only matches the author's own comment."""
        comment = await app.create_comment(alice, NOVEL_ID, "Mine")
        service = app._core.services.comment
        with pytest.raises(NotFoundError):
            await service.update_body(comment.id, bob.id, "Theirs", clock.current, timedelta(minutes=10))


class TestDeleteComment:
    """Tests for App.delete_comment."""

    async def test_author_deletes(self, app, alice):
        """Test that authors delete their comments."""
        comment = await app.create_comment(alice, NOVEL_ID, "Oops")
        await app.delete_comment(alice, comment.id)
        with pytest.raises(NotFoundError):
            await app.get_comment(alice, comment.id)

    async def test_stranger_cannot_delete(self, app, alice, bob):
        """Test that other readers cannot delete."""
        comment = await app.create_comment(alice, NOVEL_ID, "Mine")
        with pytest.raises(AccessDeniedError):
            await app.delete_comment(bob, comment.id)
        assert (await app.get_comment(bob, comment.id)).id == comment.id

    async def test_owner_and_moderator_delete(self, app, alice, owner, moderator):
        """Test that the content owner and staff moderate."""
        first = await app.create_comment(alice, NOVEL_ID, "Spam")
        second = await app.create_comment(alice, NOVEL_ID, "More spam")
        await app.delete_comment(owner, first.id)
        await app.delete_comment(moderator, second.id)
        assert (await app.list_roots(None, NOVEL_ID)).total == 0

    async def test_anonymous_cannot_delete(self, app, alice):
        """Test that deleting requires an actor."""
        comment = await app.create_comment(alice, NOVEL_ID, "Mine")
        with pytest.raises(AuthenticationError):
            await app.delete_comment(None, comment.id)

    async def test_replies_of_deleted_comment_become_roots(self, app, alice, bob, owner, clock):
        """Test that deleting a parent promotes its direct replies instead of hiding them."""
        root = await app.create_comment(alice, NOVEL_ID, "Root")
        clock.advance(1)
        reply = await app.create_comment(bob, NOVEL_ID, "Reply", parent_id=root.id)
        clock.advance(1)
        nested = await app.create_comment(owner, NOVEL_ID, "Nested", parent_id=reply.id)

        await app.delete_comment(alice, root.id)

        page = await app.list_roots(None, NOVEL_ID)
        assert [view.id for view in page.items] == [reply.id]
        assert page.items[0].reply_count == 1
        assert [view.id for view in page.items[0].replies] == [nested.id]

    async def test_promoted_reply_counts_its_whole_thread(self, app, alice, bob, owner):
        """Test that a single reply whose parent was deleted reports replies at every level."""
        root = await app.create_comment(alice, NOVEL_ID, "Root")
        reply = await app.create_comment(bob, NOVEL_ID, "Reply", parent_id=root.id)
        nested = await app.create_comment(owner, NOVEL_ID, "Nested", parent_id=reply.id)
        await app.create_comment(alice, NOVEL_ID, "Deeper", parent_id=nested.id)

        assert (await app.get_comment(None, reply.id)).reply_count == 1
        await app.delete_comment(alice, root.id)
        assert (await app.get_comment(None, reply.id)).reply_count == 2

    async def test_delete_removes_votes(self, app, alice, bob):
        """Test that votes of a deleted comment do not linger."""
        comment = await app.create_comment(alice, NOVEL_ID, "Vote me")
        await app.vote_comment(bob, comment.id, "up")
        await app.delete_comment(alice, comment.id)
        assert await app._core.services.vote.get_score(comment.id) == 0


class TestVoteComment:
    """Tests for App.vote_comment."""

    async def test_anonymous_cannot_vote(self, app, alice):
        """Test that voting requires an actor."""
        comment = await app.create_comment(alice, NOVEL_ID, "Hi")
        with pytest.raises(AuthenticationError):
            await app.vote_comment(None, comment.id, "up")

    async def test_unknown_comment(self, app, bob):
        """Test that voting on a missing comment is not found."""
        with pytest.raises(NotFoundError):
            await app.vote_comment(bob, 404, "up")

    async def test_bad_direction(self, app, alice, bob):
        """Test that an unknown direction is rejected."""
        comment = await app.create_comment(alice, NOVEL_ID, "Hi")
        with pytest.raises(ValidationError):
            await app.vote_comment(bob, comment.id, "sideways")

    async def test_simultaneous_repeated_votes_toggle(self, app, alice, bob):
        """Test that two identical votes sent at once by one actor cancel out."""
        comment = await app.create_comment(alice, NOVEL_ID, "Hi")
        first, second = await asyncio.gather(
            app.vote_comment(bob, comment.id, "up"),
            app.vote_comment(bob, comment.id, "up"),
        )
        assert {first.actor_vote, second.actor_vote} == {VoteDirection.UP, None}

        view = await app.get_comment(bob, comment.id)
        assert view.score == 0
        assert view.actor_vote is None

    async def test_vote_read_before_a_concurrent_change_is_retried(self, app, alice, bob, monkeypatch):
        """Test that a toggle based on an outdated read is resolved again against the current vote."""
        comment = await app.create_comment(alice, NOVEL_ID, "Hi")
        collection = app._core.services.vote._collection
        await app.vote_comment(bob, comment.id, "up")
        outdated = await collection.find_one({"_id": vote_key(comment.id, bob.id)})
        await app.vote_comment(bob, comment.id, "down")

        real_find_one = collection.find_one
        pending = [outdated]

        async def find_one(*args, **kwargs):
            if pending:
                return pending.pop()
            return await real_find_one(*args, **kwargs)

        monkeypatch.setattr(collection, "find_one", find_one)
        result = await app.vote_comment(bob, comment.id, "down")

        # Applied to the stored DOWN vote, a second DOWN clears it
        assert result.actor_vote is None
        assert result.score == 0


class TestSetPinned:
    """Tests for App.set_pinned."""

    async def test_author_cannot_pin(self, app, alice):
        """Test that authorship grants no pin rights."""
        comment = await app.create_comment(alice, NOVEL_ID, "Pin me")
        with pytest.raises(AccessDeniedError):
            await app.set_pinned(alice, comment.id, True)
        assert (await app.get_comment(alice, comment.id)).pinned is False

    async def test_owner_pins_and_unpins(self, app, alice, owner):
        """Test that the content owner toggles pins and metadata follows."""
        comment = await app.create_comment(alice, NOVEL_ID, "Important")

        result = await app.set_pinned(owner, comment.id, True)
        assert result.pinned is True
        stored = await app._core.services.comment.get_comment(comment.id)
        assert stored.pinned_by == owner.id
        assert stored.pinned_at is not None

        result = await app.set_pinned(owner, comment.id, False)
        assert result.pinned is False
        stored = await app._core.services.comment.get_comment(comment.id)
        assert stored.pinned_by is None
        assert stored.pinned_at is None

    async def test_several_pins_allowed_by_default(self, app, alice, moderator):
        """Test that pinning a second comment does not unpin the first."""
        first = await app.create_comment(alice, NOVEL_ID, "One")
        second = await app.create_comment(alice, NOVEL_ID, "Two")
        await app.set_pinned(moderator, first.id, True)
        await app.set_pinned(moderator, second.id, True)
        page = await app.list_roots(None, NOVEL_ID)
        assert all(view.pinned for view in page.items)

    async def test_pinned_root_listed_first(self, app, alice, moderator, clock):
        """Test that a pinned old root beats newer roots."""
        old = await app.create_comment(alice, NOVEL_ID, "Old")
        clock.advance(60)
        new = await app.create_comment(alice, NOVEL_ID, "New")
        await app.set_pinned(moderator, old.id, True)
        for sort in ("newest", "votes", "replies"):
            page = await app.list_roots(None, NOVEL_ID, sort=sort)
            assert [view.id for view in page.items] == [old.id, new.id]
