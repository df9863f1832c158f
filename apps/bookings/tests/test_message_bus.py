"""Message bus and unit of work tests."""

import logging

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from apps.bookings.domain.errors import NotificationDispatchError
from apps.bookings.domain.events import NotifyGuest, UpdatePayout
from apps.bookings.tests.factories import NOW, make_booking


def test_failing_handler_does_not_stop_the_others(caplog):
    bus = MessageBus()
    delivered = []

    def notify_guest(effect):
        raise NotificationDispatchError("smtp down")

    def audit(effect):
        delivered.append(effect)

    bus.register_event_handler(NotifyGuest, notify_guest)
    bus.register_event_handler(NotifyGuest, audit)
    bus.register_event_handler(NotifyGuest, audit)
    effects = make_booking().confirm(NOW)

    with caplog.at_level(logging.WARNING):
        failures = bus.publish_events(effects)

    assert failures == 1
    assert delivered == [effects[0]]
    assert "Side effect notify_guest failed for NotifyGuest" in caplog.text
    assert "No handlers registered for effect UpdatePayout" in caplog.text


def test_command_has_a_single_handler():
    bus = MessageBus()
    bus.register_command_handler(dict, lambda command: 'handled')

    assert bus.handle_command({}) == 'handled'
    with pytest.raises(ValueError):
        bus.register_command_handler(dict, lambda command: None)
    with pytest.raises(ValueError):
        bus.handle_command([])


@pytest.mark.django_db
def test_unit_of_work_publishes_after_commit(django_capture_on_commit_callbacks):
    bus = MessageBus()
    published = []
    bus.register_event_handler(UpdatePayout, published.append)
    booking = make_booking()
    booking.confirm(NOW)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with DjangoUnitOfWork(bus=bus) as uow:
            uow.collect_events(booking)
            assert published == []

    assert len(callbacks) == 1
    assert [type(effect) for effect in published] == [UpdatePayout]
    assert booking.events == []


@pytest.mark.django_db
def test_unit_of_work_drops_effects_on_rollback(django_capture_on_commit_callbacks):
    bus = MessageBus()
    published = []
    bus.register_event_handler(UpdatePayout, published.append)
    booking = make_booking()
    booking.confirm(NOW)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(RuntimeError):
            with DjangoUnitOfWork(bus=bus) as uow:
                uow.collect_events(booking)
                raise RuntimeError("write failed")

    assert callbacks == []
    assert published == []
