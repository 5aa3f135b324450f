"""
Shared pytest fixtures for the order notification tests.

These fixtures provide consistent test data and fresh components per test.
"""

import shutil
from pathlib import Path

import pytest

from notifications.aggregator import NotificationAggregator
from notifications.presenters import Toaster
from notifications.roles import RoleResolver
from notifications.sound import SoundPlayer
from notifications.store import NotificationStore
from realtime.change_feed import ChangeFeed
from realtime.orders import OrdersTable
from shared.data_store import DataStore
from shared.models import OrderNotification, UserAccount


class RecordingOutput:
    """Audio output that keeps what it was asked to play."""

    def __init__(self):
        self.plays: list[tuple[bytes, int]] = []
        self.closed = False

    def play(self, pcm: bytes, sample_rate: int) -> None:
        self.plays.append((pcm, sample_rate))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """
    Copy of the fixture directory.

    Preference writes land in the copy, never in the repository.
    """
    source = Path(__file__).parent.parent / "data"
    target = tmp_path / "data"
    shutil.copytree(source, target)
    return target


@pytest.fixture
def data_store(data_dir: Path) -> DataStore:
    return DataStore(data_dir=data_dir)


@pytest.fixture
def feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def orders(feed: ChangeFeed) -> OrdersTable:
    return OrdersTable(feed)


@pytest.fixture
def store() -> NotificationStore:
    return NotificationStore()


@pytest.fixture
def toaster() -> Toaster:
    return Toaster()


@pytest.fixture
def audio_output() -> RecordingOutput:
    return RecordingOutput()


@pytest.fixture
def sound_player(audio_output: RecordingOutput) -> SoundPlayer:
    return SoundPlayer(output_factory=lambda: audio_output, sample_rate=8000)


@pytest.fixture
def aggregator(store, feed, toaster, sound_player, data_store) -> NotificationAggregator:
    """Aggregator wired to fresh components; stopped after the test."""
    aggregator = NotificationAggregator(
        store=store,
        feed=feed,
        toaster=toaster,
        sound_player=sound_player,
        preferences=data_store,
        resolver=RoleResolver(data_store),
    )
    yield aggregator
    aggregator.stop()


@pytest.fixture
def make_notification():
    """Factory for OrderNotification snapshots."""
    def factory(order_id: str = "ord-001", **overrides) -> OrderNotification:
        fields = {
            "id": order_id,
            "customer_name": "Maria Silva",
            "total_amount": "42.50",
            "status": "pending",
            "created_at": "2024-05-10T18:30:00+00:00",
        }
        fields.update(overrides)
        return OrderNotification(**fields)
    return factory


# =============================================================================
# Users (see data/users.json)
# =============================================================================

@pytest.fixture
def owner_user() -> UserAccount:
    """Owner of biz-001 (Pizzaria Bella Napoli), sound and toasts enabled."""
    return UserAccount(id="user-owner-1", email="delivery4@teste.com", metadata={"role": "dono_delivery"})


@pytest.fixture
def quiet_owner_user() -> UserAccount:
    """Owner of biz-002 with sound disabled and no role hint."""
    return UserAccount(id="user-owner-2", email="sushi@teste.com")


@pytest.fixture
def customer_user() -> UserAccount:
    """Customer cust-001 (Maria), default preferences."""
    return UserAccount(id="user-cust-1", email="maria@teste.com", metadata={"role": "cliente"})


@pytest.fixture
def muted_customer_user() -> UserAccount:
    """Customer cust-002 (João) with toasts disabled."""
    return UserAccount(id="user-cust-2", email="joao@teste.com")


@pytest.fixture
def stranger_user() -> UserAccount:
    """Signed-in user with neither a business nor a customer profile."""
    return UserAccount(id="user-new", email="novo@teste.com")
