# =============================================================================
# CONTROLS: Display Range State and Commands
# =============================================================================
"""
The display range is the divisor that normalizes field values into the color
mapper's [-1, 1] domain. It is the only mutable state shared between input
handling and rendering, so every read and write goes through a lock.

    DisplayRange: lock-guarded float, never below MIN_RANGE
    RangeCommand: discrete adjustments coming from key presses
    RangeController: sole writer of a DisplayRange
"""

import logging
import threading
from enum import Enum

from .constants import COARSE_STEP, FINE_STEP, MIN_RANGE, COLOR_RANGE_DEFAULT

logger = logging.getLogger(__name__)


class DisplayRange:
    """Thread-safe positive float with a floor of ``MIN_RANGE``."""

    def __init__(self, value: float = COLOR_RANGE_DEFAULT):
        self._lock = threading.Lock()
        self._value = max(MIN_RANGE, float(value))

    def get(self) -> float:
        with self._lock:
            return self._value

    def set(self, value: float) -> float:
        """Store ``value`` (raised to MIN_RANGE if below it) and return what was stored."""
        with self._lock:
            self._value = max(MIN_RANGE, float(value))
            return self._value

    def adjust(self, delta: float) -> float:
        """Add ``delta`` and apply the floor in one locked step; return the new value."""
        with self._lock:
            self._value = max(MIN_RANGE, self._value + float(delta))
            return self._value

    def __float__(self):
        return self.get()

    def __repr__(self):
        return f"DisplayRange({self.get():.2f})"


class RangeCommand(Enum):
    INCREASE_COARSE = 'increase_coarse'
    DECREASE_COARSE = 'decrease_coarse'
    INCREASE_FINE = 'increase_fine'
    DECREASE_FINE = 'decrease_fine'
    RESET_TO_DEFAULT = 'reset_to_default'


# Key names as reported by matplotlib key_press events
DEFAULT_KEY_BINDINGS = {
    'up': RangeCommand.INCREASE_COARSE,
    'down': RangeCommand.DECREASE_COARSE,
    'right': RangeCommand.INCREASE_FINE,
    'left': RangeCommand.DECREASE_FINE,
    'r': RangeCommand.RESET_TO_DEFAULT,
}


class RangeController:
    """
    Applies bounded adjustments to a DisplayRange.

    Coarse steps are ±COARSE_STEP, fine steps ±FINE_STEP. Decrements stop at
    MIN_RANGE; increments are unbounded. Reset restores the value the
    controller was created with (normally the configured color range).
    """

    def __init__(self, display_range: DisplayRange = None, default: float = None):
        """
        Args:
            display_range: Range to control (a new one is created if None)
            default: Reset target; defaults to the range's current value
        """
        if display_range is None:
            display_range = DisplayRange(COLOR_RANGE_DEFAULT if default is None else default)
        self.display_range = display_range
        self.default = display_range.get() if default is None else max(MIN_RANGE, float(default))

    def get_range(self) -> float:
        return self.display_range.get()

    def set_range(self, value: float) -> float:
        new_value = self.display_range.set(value)
        logger.debug("Color range updated to: %.2f", new_value)
        return new_value

    def _step(self, delta: float) -> float:
        new_value = self.display_range.adjust(delta)
        logger.debug("Color range updated to: %.2f", new_value)
        return new_value

    def increase_coarse(self) -> float:
        return self._step(COARSE_STEP)

    def decrease_coarse(self) -> float:
        return self._step(-COARSE_STEP)

    def increase_fine(self) -> float:
        return self._step(FINE_STEP)

    def decrease_fine(self) -> float:
        return self._step(-FINE_STEP)

    def reset_to_default(self) -> float:
        value = self.set_range(self.default)
        logger.info("Color range reset to default: %.2f", value)
        return value

    def apply(self, command: RangeCommand) -> float:
        """Dispatch a RangeCommand and return the new range."""
        handlers = {
            RangeCommand.INCREASE_COARSE: self.increase_coarse,
            RangeCommand.DECREASE_COARSE: self.decrease_coarse,
            RangeCommand.INCREASE_FINE: self.increase_fine,
            RangeCommand.DECREASE_FINE: self.decrease_fine,
            RangeCommand.RESET_TO_DEFAULT: self.reset_to_default,
        }
        return handlers[command]()

    def handle_key(self, key: str, bindings: dict = None) -> bool:
        """
        Apply the command bound to ``key``.

        Returns:
            True if the key was bound (and the range possibly changed)
        """
        bindings = DEFAULT_KEY_BINDINGS if bindings is None else bindings
        command = bindings.get(key)
        if command is None:
            return False
        self.apply(command)
        return True


__all__ = [
    'DisplayRange',
    'RangeCommand',
    'DEFAULT_KEY_BINDINGS',
    'RangeController',
]
