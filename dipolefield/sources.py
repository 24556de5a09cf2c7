# =============================================================================
# SOURCES: Dipoles, Wave Sources and Material Blocks
# =============================================================================
"""
Immutable source descriptions consumed by the simulation.

    DipoleSource: point dipole (position, 2D moment, strength, label)
    SourceConfig: waveform description for a point excitation
    WaveSource: evaluates a SourceConfig at an integer step index
    MaterialBlock: rectangular region of constant relative permittivity
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

logger = logging.getLogger(__name__)

WAVEFORM_KINDS = ('gaussian', 'cw', 'static')


@dataclass(frozen=True)
class DipoleSource:
    """
    One point dipole.

    Attributes:
        position: Grid cell (x, y) of the dipole centre
        moment: Moment vector (mx, my); +y is "north"
        strength: Scalar multiplier applied to every contribution
        label: Name used in logs and legends
    """
    position: Tuple[int, int]
    moment: Tuple[float, float] = (0.0, 1.0)
    strength: float = 1.0
    label: str = 'magnet'

    @property
    def x(self) -> int:
        return self.position[0]

    @property
    def y(self) -> int:
        return self.position[1]

    @property
    def moment_x(self) -> float:
        return self.moment[0]

    @property
    def moment_y(self) -> float:
        return self.moment[1]

    def __str__(self):
        return (f"{self.label} at ({self.x},{self.y}) "
                f"moment=({self.moment_x},{self.moment_y}) strength={self.strength}")


@dataclass(frozen=True)
class SourceConfig:
    """Waveform and placement of one wave source."""
    type: str = 'gaussian'
    x: int = 0
    y: int = 0
    amplitude: float = 1.0
    t0: float = 50.0
    spread: float = 20.0
    freq_hz: float = 1e8


class WaveSource:
    """
    Point excitation whose value is a pure function of the step index.

    Supported waveforms:
        gaussian: amplitude * exp(-((n - t0) / spread)²)
        cw:       amplitude * sin(2π * freq_hz * n)
        static:   amplitude

    Any other type evaluates to 0.0.
    """

    def __init__(self, config: SourceConfig):
        self.config = config
        if config.type not in WAVEFORM_KINDS:
            logger.warning("Unknown waveform type '%s' for source at (%d,%d); it will emit 0.0",
                           config.type, config.x, config.y)
        logger.debug("Source created: type=%s at (%d,%d) amplitude=%s",
                     config.type, config.x, config.y, config.amplitude)

    @property
    def position(self) -> Tuple[int, int]:
        return self.config.x, self.config.y

    def value(self, step_index: int) -> float:
        conf = self.config
        if conf.type == 'gaussian':
            arg = (step_index - conf.t0) / conf.spread
            return conf.amplitude * math.exp(-arg * arg)
        if conf.type == 'cw':
            # The step index stands in for time; there is no dt scaling here.
            return conf.amplitude * math.sin(2.0 * math.pi * conf.freq_hz * step_index)
        if conf.type == 'static':
            return conf.amplitude
        return 0.0

    def reset(self):
        """No-op; a wave source holds no state between steps."""

    def __repr__(self):
        return f"WaveSource({self.config!r})"


@dataclass(frozen=True)
class MaterialBlock:
    """Axis-aligned block of relative permittivity ``eps_r``."""
    x0: int = 0
    y0: int = 0
    w: int = 10
    h: int = 10
    eps_r: float = 1.0


__all__ = [
    'WAVEFORM_KINDS',
    'DipoleSource',
    'SourceConfig',
    'WaveSource',
    'MaterialBlock',
]
