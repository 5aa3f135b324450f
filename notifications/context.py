"""
Application-lifetime notification context.

Built once when the application starts and handed to whatever needs it
(API routes, demos, tests). It owns the single notification store, the
realtime feed connection, the toaster and the sound player, and closes them
on shutdown.

Example:
    with NotificationContext(settings) as ctx:
        aggregator = ctx.start_session(user)
        bell = ctx.bell()
        ...
"""

import logging
import threading
from typing import Callable, Optional

from notifications.aggregator import NotificationAggregator
from notifications.presenters import NotificationBell, NotificationProvider, Toaster
from notifications.roles import Role, RoleResolver
from notifications.sound import AudioOutput, SoundPlayer, output_factory_for
from notifications.store import NotificationStore
from realtime.change_feed import ChangeFeed
from shared.config import Settings, get_settings
from shared.data_store import DataStore
from shared.models import UserAccount

logger = logging.getLogger("notification_context")


class NotificationContext:
    """Container for the process-wide notification components."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        data_store: Optional[DataStore] = None,
        feed: Optional[ChangeFeed] = None,
        output_factory: Optional[Callable[[], AudioOutput]] = None,
    ):
        self.settings = settings or get_settings()
        self.data_store = data_store or DataStore(self.settings.data_dir)
        self.feed = feed or ChangeFeed()
        self.store = NotificationStore(capacity=self.settings.notification_capacity)
        self.toaster = Toaster()
        self.sound_player = SoundPlayer(
            output_factory=output_factory or output_factory_for(self.settings.sound_output_dir),
            sample_rate=self.settings.sound_sample_rate,
        )
        self.resolver = RoleResolver(self.data_store)
        self.aggregator: Optional[NotificationAggregator] = None
        self._closed = False
        # held across end -> create -> start of a session swap
        self._session_lock = threading.Lock()
        logger.info("Notification context created")

    def create_aggregator(self) -> NotificationAggregator:
        """A new aggregator wired to this context's components."""
        return NotificationAggregator(
            store=self.store,
            feed=self.feed,
            toaster=self.toaster,
            sound_player=self.sound_player,
            preferences=self.data_store,
            resolver=self.resolver,
        )

    def start_session(self, user: UserAccount) -> NotificationAggregator:
        """Start listening for a signed-in user, ending any previous session."""
        with self._session_lock:
            if self._closed:
                raise RuntimeError("Notification context is closed")
            self._end_session()
            aggregator = self.create_aggregator()
            aggregator.start(user)
            self.aggregator = aggregator
            return aggregator

    def end_session(self) -> None:
        """Stop the current session's listeners (logout, navigation away)."""
        with self._session_lock:
            self._end_session()

    def _end_session(self) -> None:
        if self.aggregator is not None:
            self.aggregator.stop()
            self.aggregator = None

    @property
    def role(self) -> Optional[Role]:
        return self.aggregator.role if self.aggregator else None

    def bell(self, navigate=None) -> NotificationBell:
        return NotificationBell(self.store, navigate=navigate)

    def provider(self) -> NotificationProvider:
        if self.aggregator is None:
            raise RuntimeError("No active session")
        return NotificationProvider(self.aggregator)

    def close(self) -> None:
        """Shut down: end the session and release the audio output."""
        with self._session_lock:
            if self._closed:
                return
            self._end_session()
            self._closed = True
        self.sound_player.close()
        logger.info("Notification context closed")

    def __enter__(self) -> "NotificationContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
