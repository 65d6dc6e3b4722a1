"""
Tests for acceptance notifications: the mail queue notifier and failure
isolation in the engine.
"""

import asyncio

import pytest

from artspace.core.config import Settings
from artspace.services.assignment_service import AssignmentService
from artspace.services.interfaces.notification import AcceptanceNotification, NotificationHook
from artspace.services.interfaces.null_notifier import NullNotifier
from artspace.services.notification_service import MailQueueNotifier, build_notifier
from artspace.services.relationships import ARTISTS

from conftest import fetch


class ExplodingNotifier(NotificationHook):
    async def notify(self, event: AcceptanceNotification) -> None:
        raise RuntimeError("mail extension down")


class SlowNotifier(NotificationHook):
    async def notify(self, event: AcceptanceNotification) -> None:
        await asyncio.sleep(1)


EVENT = AcceptanceNotification(artist_id="a1", show_id="s1", location_id="l1", selected_artwork_count=2)


@pytest.mark.asyncio
async def test_mail_document_is_queued(store):
    notifier = MailQueueNotifier(store, Settings(ENVIRONMENT="production"))

    await notifier.notify(EVENT)

    mails = await store.query("mail")
    assert len(mails) == 1
    mail = mails[0]
    assert mail["toUids"] == ["a1"]
    assert mail["message"]["subject"] == "You've been accepted into Spring Salon"
    assert "Main Hall" in mail["message"]["html"]
    assert "2 pieces" in mail["message"]["html"]


@pytest.mark.asyncio
async def test_dev_recipients_override(store):
    settings = Settings(ENVIRONMENT="development", MAIL_DEV_TO_UIDS=["dev-1"], MAIL_DEV_BCC=["qa"])
    notifier = MailQueueNotifier(store, settings)

    await notifier.notify(EVENT)

    mail = (await store.query("mail"))[0]
    assert mail["toUids"] == ["dev-1"]
    assert mail["bcc"] == ["qa"]


@pytest.mark.asyncio
async def test_artist_names_are_escaped(store):
    await store.update(ARTISTS, "a1", {"name": "<script>x</script>"})
    notifier = MailQueueNotifier(store, Settings(ENVIRONMENT="production"))

    await notifier.notify(EVENT)

    html = (await store.query("mail"))[0]["message"]["html"]
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


@pytest.mark.asyncio
async def test_disabled_notifications_use_null_notifier(store):
    assert isinstance(build_notifier(store, Settings(NOTIFICATIONS_ENABLED=False)), NullNotifier)
    assert isinstance(build_notifier(store, Settings()), MailQueueNotifier)


@pytest.mark.asyncio
async def test_notification_failure_keeps_acceptance(store, settings):
    engine = AssignmentService(store, notifier=ExplodingNotifier(), settings=settings)

    result = await engine.accept_artist_into_show("a1", "s1", "l1", ["A1"])

    assert result.notified is False
    assert (await fetch(store, ARTISTS, "a1"))["status"] == "showing"


@pytest.mark.asyncio
async def test_slow_notification_times_out(store):
    settings = Settings(REDIS_ENABLED=False, NOTIFICATION_TIMEOUT_SECONDS=0.05)
    engine = AssignmentService(store, notifier=SlowNotifier(), settings=settings)

    result = await engine.accept_artist_into_show("a1", "s1", "l1", ["A1"])

    assert result.notified is False
    assert [a.id for a in result.accepted] == ["A1"]


@pytest.mark.asyncio
async def test_engine_queues_mail_end_to_end(store, settings):
    engine = AssignmentService(store, notifier=MailQueueNotifier(store, settings), settings=settings)

    result = await engine.accept_artist_into_show("a1", "s1", "l1", ["A1"])

    assert result.notified is True
    mails = await store.query("mail")
    assert len(mails) == 1
    assert "1 piece " in mails[0]["message"]["html"]
