# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Ownership map from video sources to their detection sessions."""

import logging
from typing import Callable, Dict, Hashable, List, Optional

from flash_guardian.configuration import Configuration
from flash_guardian.detection_session import DetectionSession
from flash_guardian.result import FlashWarning, SourceWarning
from flash_guardian.statistics import StatisticsAggregator

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Maps each monitored source to the DetectionSession it exclusively owns.

    Sessions are created when a source is attached and stopped and
    dropped when it is detached. Warnings from every session are
    counted by the optional aggregator and forwarded to ``on_warning``
    tagged with their source id.
    """

    def __init__(
        self,
        config: Optional[Configuration] = None,
        statistics: Optional[StatisticsAggregator] = None,
        on_warning: Optional[Callable[[SourceWarning], None]] = None,
    ):
        self.config = config or Configuration()
        self.statistics = statistics
        self.on_warning = on_warning
        self._sessions: Dict[Hashable, DetectionSession] = {}

    def attach(self, source_id: Hashable) -> DetectionSession:
        """
        Return the session for a source, creating it on first discovery.

        Args:
            source_id: Identifier of the video source

        Returns:
            The session exclusively owned by this source
        """
        session = self._sessions.get(source_id)
        if session is not None:
            return session

        session = DetectionSession(
            self.config,
            sink=self._make_sink(source_id),
            name=str(source_id),
        )
        self._sessions[source_id] = session
        if self.statistics is not None:
            self.statistics.record_video_monitored()
        logger.info(f"Initialized detector for source: {source_id}")
        return session

    def detach(self, source_id: Hashable) -> bool:
        """Stop and remove the session of a torn-down source."""
        session = self._sessions.pop(source_id, None)
        if session is None:
            return False
        session.stop()
        logger.info(f"Removed detector for source: {source_id}")
        return True

    def get(self, source_id: Hashable) -> Optional[DetectionSession]:
        return self._sessions.get(source_id)

    def sources(self) -> List[Hashable]:
        return list(self._sessions)

    def dismiss_all(self) -> int:
        """
        Apply "continue anyway" to every warned session.

        Returns:
            Number of sessions re-armed
        """
        count = 0
        for session in self._sessions.values():
            if session.warning_active:
                session.dismiss_warning()
                count += 1
        return count

    def _make_sink(self, source_id: Hashable) -> Callable[[FlashWarning], None]:
        def sink(warning: FlashWarning) -> None:
            if self.statistics is not None:
                self.statistics.record_warning(warning)
            if self.on_warning is not None:
                self.on_warning(SourceWarning(source_id=str(source_id), warning=warning))

        return sink

    def __contains__(self, source_id: Hashable) -> bool:
        return source_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
