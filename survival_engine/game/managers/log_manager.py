"""
Log management for rules-engine messages.

Components never write to a logger directly. They publish LogMessage and
DebugMessage events and this manager collects them into a bounded buffer
that a presentation layer can filter, display or save. When a combat ends it
adds a one-line summary built from the event bus tally.
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from ...core.events import DebugMessage, EventType, GameEvent, LogMessage as LogEvent

if TYPE_CHECKING:
    from ...core.event_manager import EventManager


class LogCategory(Enum):
    """Categories for log messages."""
    SYSTEM = auto()     # Loading, configuration, persistence
    COMBAT = auto()     # Combat flow and actions
    DICE = auto()       # Individual rolls and pushes
    SWARM = auto()      # Swarm rounds and consequences
    INJURY = auto()     # Critical injuries
    DEBUG = auto()
    WARNING = auto()
    ERROR = auto()


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.COMBAT: "CBT",
    LogCategory.DICE: "DIE",
    LogCategory.SWARM: "SWM",
    LogCategory.INJURY: "INJ",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
}


class LogLevel(Enum):
    """Log levels for filtering."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass
class LogEntry:
    """A single log message with metadata."""
    text: str
    category: LogCategory
    level: LogLevel = LogLevel.INFO
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self, include_timestamp: bool = False, include_category: bool = True) -> str:
        parts = []
        if include_timestamp:
            parts.append(f"[{self.timestamp.strftime('%H:%M:%S')}]")
        if include_category:
            parts.append(f"[{CATEGORY_TAGS.get(self.category, '???')}]")
        parts.append(self.text)
        return " ".join(parts)


class LogManager:
    """Collects engine log events with categorization and filtering."""

    def __init__(
        self,
        event_manager: "EventManager",
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO,
    ):
        """Initialize the log manager.

        Args:
            event_manager: Event manager to collect log events from
            max_messages: Maximum number of messages kept in the buffer
            default_level: Minimum level returned by get_messages
        """
        self.messages: deque[LogEntry] = deque(maxlen=max_messages)
        self.log_level = default_level
        self.enabled_categories = set(LogCategory)
        self.event_manager = event_manager

        # Levels a category is shown at regardless of the event's own level
        self.category_levels = {
            LogCategory.DEBUG: LogLevel.DEBUG,
            LogCategory.WARNING: LogLevel.WARNING,
            LogCategory.ERROR: LogLevel.ERROR,
        }

        self._setup_event_subscriptions()

    def _setup_event_subscriptions(self) -> None:
        self.event_manager.subscribe(
            EventType.LOG_MESSAGE,
            self._handle_log_message_event,
        )
        self.event_manager.subscribe(
            EventType.DEBUG_MESSAGE,
            self._handle_debug_message_event,
        )
        self.event_manager.subscribe(
            EventType.COMBAT_ENDED,
            self._handle_combat_ended_event,
        )

    def _handle_log_message_event(self, event: GameEvent) -> None:
        if not isinstance(event, LogEvent):
            return
        try:
            category = LogCategory[event.category.upper()]
        except KeyError:
            category = LogCategory.SYSTEM
        try:
            level = LogLevel[event.level.upper()]
        except KeyError:
            level = LogLevel.INFO
        self.log(event.message, category, level)

    def _handle_debug_message_event(self, event: GameEvent) -> None:
        if isinstance(event, DebugMessage):
            self.log(f"[{event.source}] {event.message}", LogCategory.DEBUG, LogLevel.DEBUG)

    def _handle_combat_ended_event(self, event: GameEvent) -> None:
        """Summarize the finished combat from the bus tally."""
        self.combat(f"Combat summary: {self.event_manager.tally.summary()}")

    def log(self, text: str, category: LogCategory = LogCategory.SYSTEM,
            level: Optional[LogLevel] = None) -> None:
        """Add a message to the log.

        The stored level is the higher of the given level and the category's
        own level.
        """
        category_level = self.category_levels.get(category, LogLevel.INFO)
        if level is None or level.value < category_level.value:
            level = category_level
        self.messages.append(LogEntry(text=text, category=category, level=level))

    def system(self, text: str) -> None:
        self.log(text, LogCategory.SYSTEM)

    def combat(self, text: str) -> None:
        self.log(text, LogCategory.COMBAT)

    def debug(self, text: str) -> None:
        self.log(text, LogCategory.DEBUG)

    def warning(self, text: str) -> None:
        self.log(text, LogCategory.WARNING)

    def error(self, text: str) -> None:
        self.log(text, LogCategory.ERROR)

    def get_messages(self, count: Optional[int] = None,
                     categories: Optional[set[LogCategory]] = None) -> list[LogEntry]:
        """Get recent messages, optionally filtered by category.

        Args:
            count: Maximum number of messages to return (None for all)
            categories: Categories to include (None for all enabled, subject to the log level)

        Returns:
            Messages oldest first
        """
        if categories:
            filtered = [msg for msg in self.messages
                        if msg.category in categories and msg.category in self.enabled_categories]
        else:
            filtered = [msg for msg in self.messages
                        if msg.category in self.enabled_categories
                        and msg.level.value >= self.log_level.value]

        if count is not None and count < len(filtered):
            return filtered[-count:]
        return filtered

    def snapshot(self) -> dict:
        """Formatted log data for a presentation layer."""
        return {
            "messages": [msg.format() for msg in self.get_messages()],
            "debug_enabled": self.is_debug_enabled(),
            "total_messages": len(self.messages),
        }

    def clear(self) -> None:
        self.messages.clear()

    def enable_category(self, category: LogCategory) -> None:
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        self.enabled_categories.discard(category)

    def set_log_level(self, level: LogLevel) -> None:
        self.log_level = level

    def is_debug_enabled(self) -> bool:
        return LogCategory.DEBUG in self.enabled_categories and self.log_level == LogLevel.DEBUG

    def toggle_debug(self) -> None:
        """Toggle debug message visibility."""
        if self.is_debug_enabled():
            self.disable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.INFO)
        else:
            self.enable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.DEBUG)

    def save_log_to_file(self, log_dir: str = "logs") -> Optional[Path]:
        """Save every buffered message, ignoring filters, to a timestamped file.

        Returns:
            Path of the written file, or None if it could not be written
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = Path(log_dir) / f"log_{timestamp}.log"
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(filepath, "w", encoding="utf-8") as f:
                f.write("Survival Engine - Rules Log\n")
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write("=" * 60 + "\n\n")
                if not self.messages:
                    f.write("No messages to save.\n")
                for msg in self.messages:
                    stamp = msg.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
                    f.write(f"[{stamp}] [{msg.category.name}] [{msg.level.name}] {msg.text}\n")
        except OSError as e:
            self.error(f"Failed to save log file: {e}")
            return None

        self.system(f"Rules log saved to {filepath}")
        return filepath
