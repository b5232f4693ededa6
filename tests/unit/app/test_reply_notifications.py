"""Tests for reply notifications."""

from factories import NOVEL_ID

from inkthread.core.modules.notification.models import NotificationType


async def notifications_for(app, recipient_id):
    await app._core.services.notification.wait_pending()
    return await app._core.services.notification.get_notifications(recipient_id)


class TestReplyNotifications:
    """Tests for notify-on-reply behaviour."""

    async def test_reply_notifies_parent_author(self, app, alice, bob):
        """Test that the parent's author is told about a reply."""
        root = await app.create_comment(alice, NOVEL_ID, "Root")
        reply = await app.create_comment(bob, NOVEL_ID, "Reply", parent_id=root.id)

        notifications = await notifications_for(app, "alice")
        assert len(notifications) == 1
        assert notifications[0].actor_id == "bob"
        assert notifications[0].type is NotificationType.REPLY_COMMENT
        assert notifications[0].resource_id == str(reply.id)

    async def test_nested_reply_notifies_immediate_parent(self, app, alice, bob, owner):
        """Test that the notification goes to the immediate parent, not the thread root."""
        root = await app.create_comment(alice, NOVEL_ID, "Root")
        reply = await app.create_comment(bob, NOVEL_ID, "Reply", parent_id=root.id)
        await app.create_comment(owner, NOVEL_ID, "Nested", parent_id=reply.id)

        assert [n.actor_id for n in await notifications_for(app, "bob")] == [owner.id]
        assert [n.actor_id for n in await notifications_for(app, "alice")] == ["bob"]

    async def test_self_reply_is_silent(self, app, alice):
        """Test that replying to yourself notifies nobody."""
        root = await app.create_comment(alice, NOVEL_ID, "Root")
        await app.create_comment(alice, NOVEL_ID, "Also me", parent_id=root.id)
        assert await notifications_for(app, "alice") == []

    async def test_root_comment_is_silent(self, app, alice):
        """Test that root comments notify nobody."""
        await app.create_comment(alice, NOVEL_ID, "Root")
        assert await notifications_for(app, "owner-1") == []

    async def test_notification_failure_does_not_fail_reply(self, app, alice, bob, monkeypatch):
        """Test that a broken notification store is logged and swallowed."""
        root = await app.create_comment(alice, NOVEL_ID, "Root")
        service = app._core.services.notification

        async def broken_insert(*args, **kwargs):
            raise RuntimeError("notification store is down")

        monkeypatch.setattr(service._collection, "insert_one", broken_insert)
        reply = await app.create_comment(bob, NOVEL_ID, "Reply", parent_id=root.id)
        await service.wait_pending()

        assert (await app.get_comment(bob, reply.id)).parent_id == root.id
