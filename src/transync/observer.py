"""Telemetry hooks for matching and insertion decisions.

The matcher pipeline, locator and applier report what they try and what
they decide through a MatchObserver instead of logging inline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import Change, Mapping, Unit

logger = logging.getLogger(__name__)

LOW_CONFIDENCE = 0.5


def setup_logging(log_level: str = "INFO") -> None:
    """Set the minimum level for every transync logger.

    Handlers and formatting stay with the application.
    """
    logging.getLogger("transync").setLevel(log_level.upper())


def _describe(unit: Unit | None) -> str:
    if unit is None:
        return "<none>"
    first_line = unit.text.split("\n", 1)[0]
    return f"{unit.kind.value}#{unit.index} {first_line[:60]!r}"


class MatchObserver:
    """No-op observer. Subclass and override the events you care about."""

    def match_attempted(self, strategy: str, probe: Unit) -> None:
        pass

    def match_succeeded(
        self, strategy: str, probe: Unit, found: Unit, score: float
    ) -> None:
        pass

    def match_failed(self, probe: Unit) -> None:
        pass

    def insertion_resolved(self, mapping: Mapping) -> None:
        pass

    def mapping_dropped(self, change: Change, reason: str) -> None:
        pass


class LoggingObserver(MatchObserver):
    """Forwards events to the standard logging module."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def match_attempted(self, strategy: str, probe: Unit) -> None:
        self._log.debug("trying %s match for %s", strategy, _describe(probe))

    def match_succeeded(
        self, strategy: str, probe: Unit, found: Unit, score: float
    ) -> None:
        self._log.debug(
            "%s match: %s -> %s (score %.2f)",
            strategy,
            _describe(probe),
            _describe(found),
            score,
        )

    def match_failed(self, probe: Unit) -> None:
        self._log.debug("no match for %s", _describe(probe))

    def insertion_resolved(self, mapping: Mapping) -> None:
        level = logging.WARNING if mapping.confidence < LOW_CONFIDENCE else logging.DEBUG
        where = "start" if mapping.at_start else _describe(mapping.insert_after)
        self._log.log(
            level,
            "insert %s after %s (confidence %.2f)",
            _describe(mapping.change.new_unit),
            where,
            mapping.confidence,
        )

    def mapping_dropped(self, change: Change, reason: str) -> None:
        self._log.debug(
            "dropped %s change for %s: %s",
            change.kind.value,
            _describe(change.old_unit or change.new_unit),
            reason,
        )


@dataclass
class RecordingObserver(MatchObserver):
    """Keeps every event in memory as (event, payload) tuples."""

    events: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def match_attempted(self, strategy: str, probe: Unit) -> None:
        self.events.append(("attempted", {"strategy": strategy, "probe": probe}))

    def match_succeeded(
        self, strategy: str, probe: Unit, found: Unit, score: float
    ) -> None:
        self.events.append(
            (
                "succeeded",
                {"strategy": strategy, "probe": probe, "found": found, "score": score},
            )
        )

    def match_failed(self, probe: Unit) -> None:
        self.events.append(("failed", {"probe": probe}))

    def insertion_resolved(self, mapping: Mapping) -> None:
        self.events.append(("inserted", {"mapping": mapping}))

    def mapping_dropped(self, change: Change, reason: str) -> None:
        self.events.append(("dropped", {"change": change, "reason": reason}))

    def named(self, event: str) -> list[dict[str, Any]]:
        """Payloads of all events with the given name."""
        return [payload for name, payload in self.events if name == event]
