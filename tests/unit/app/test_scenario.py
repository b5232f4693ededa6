"""End-to-end walk through a discussion: post, reply, list and vote."""

from factories import NOVEL_ID

from inkthread.core.modules.vote.models import VoteDirection


class TestDiscussionScenario:
    """Root comment, reply and votes as seen through the App facade."""

    async def test_reply_and_toggle_vote(self, app, alice, bob, clock):
        """Test the full read/write cycle of a small discussion."""
        hello = await app.create_comment(alice, NOVEL_ID, "Hello")

        page = await app.list_roots(alice, NOVEL_ID, page=1, sort="newest")
        assert [view.id for view in page.items] == [hello.id]
        assert page.items[0].score == 0
        assert page.items[0].reply_count == 0

        clock.advance(30)
        reply = await app.create_comment(bob, NOVEL_ID, "Hi A", parent_id=hello.id)

        page = await app.list_roots(alice, NOVEL_ID)
        assert [view.id for view in page.items] == [hello.id]
        assert page.items[0].reply_count == 1
        assert [view.id for view in page.items[0].replies] == [reply.id]

        replies = await app.list_replies(alice, hello.id)
        assert [view.id for view in replies.items] == [reply.id]
        assert replies.items[0].parent is not None
        assert replies.items[0].parent.id == hello.id
        assert replies.items[0].parent.excerpt == "Hello"

        result = await app.vote_comment(alice, reply.id, VoteDirection.UP)
        assert result.score == 1
        assert result.actor_vote is VoteDirection.UP

        result = await app.vote_comment(alice, reply.id, VoteDirection.UP)
        assert result.score == 0
        assert result.actor_vote is None

    async def test_switching_vote_moves_score_by_two(self, app, alice, bob):
        """Test that UP then DOWN ends two points below UP alone."""
        comment = await app.create_comment(alice, NOVEL_ID, "Vote on me")

        up = await app.vote_comment(bob, comment.id, "up")
        down = await app.vote_comment(bob, comment.id, "down")

        assert up.score == 1
        assert down.score == -1
        assert down.actor_vote is VoteDirection.DOWN

    async def test_score_counts_all_voters(self, app, alice, bob, owner):
        """Test that the score is upvotes minus downvotes across actors."""
        comment = await app.create_comment(alice, NOVEL_ID, "Popular")
        await app.vote_comment(bob, comment.id, "up")
        await app.vote_comment(owner, comment.id, "up")
        await app.vote_comment(alice, comment.id, "down")

        view = await app.get_comment(bob, comment.id)
        assert view.score == 1
        assert view.actor_vote is VoteDirection.UP

        anonymous_view = await app.get_comment(None, comment.id)
        assert anonymous_view.actor_vote is None
