# =============================================================================
# COLORMAP: Scalar-to-Color Transfer Function
# =============================================================================
"""
Piecewise-linear mapping from field values to RGBA pixels.

A value is first normalized by the display range and clamped to [-1, 1]. Its
magnitude selects a band; its sign selects the south (negative) or north
(positive) palette of that band. Within a band the color is linearly
interpolated between the band's two anchor colors.

Bands are data (ColorScheme). A scheme is validated on construction: bands
must cover [0, 1] in order with no gaps or overlaps, and neighbouring bands
must share their boundary colors exactly so the gradient has no seams.

Main entry points:
    ScalarColorMapper.map: one value -> (r, g, b, a)
    ScalarColorMapper.map_cells_to_pixels: grid -> ny × nx × 4 uint8 buffer
    ScalarColorMapper.render_legend: gradient bar using the same function
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

import numpy as np

from .controls import DisplayRange

RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]

OPAQUE = 255
MIN_BANDS = 6


@dataclass(frozen=True)
class ColorBand:
    """
    One linear segment of the transfer function over |n| in [start, end].

    South colors are used for negative values, north colors for positive ones.
    """
    name: str
    start: float
    end: float
    south_start: RGB
    south_end: RGB
    north_start: RGB
    north_end: RGB

    def color_at(self, magnitude: float, south: bool = False) -> RGB:
        """Interpolated (unrounded) color at ``magnitude`` inside this band."""
        t = (magnitude - self.start) / (self.end - self.start)
        c0, c1 = (self.south_start, self.south_end) if south else (self.north_start, self.north_end)
        return tuple(a + (b - a) * t for a, b in zip(c0, c1))


@dataclass(frozen=True)
class ColorScheme:
    name: str
    bands: Tuple[ColorBand, ...]

    def __post_init__(self):
        bands = self.bands
        if len(bands) < MIN_BANDS:
            raise ValueError(f"Color scheme '{self.name}' needs at least {MIN_BANDS} bands, got {len(bands)}")
        if bands[0].start != 0.0 or bands[-1].end != 1.0:
            raise ValueError(f"Color scheme '{self.name}' must cover [0, 1]")
        if bands[0].south_start != bands[0].north_start:
            raise ValueError(f"Color scheme '{self.name}': south and north must share the zero color")
        for band in bands:
            if not band.start < band.end:
                raise ValueError(f"Band '{band.name}' is empty or reversed")
            for color in (band.south_start, band.south_end, band.north_start, band.north_end):
                if len(color) != 3 or not all(0 <= c <= 255 for c in color):
                    raise ValueError(f"Band '{band.name}' has an invalid RGB color {color}")
        for lower, upper in zip(bands[:-1], bands[1:]):
            if lower.end != upper.start:
                raise ValueError(f"Bands '{lower.name}' and '{upper.name}' leave a gap or overlap")
            if lower.south_end != upper.south_start or lower.north_end != upper.north_start:
                raise ValueError(f"Bands '{lower.name}' and '{upper.name}' do not meet at the same color")

    @property
    def zero_color(self) -> RGBA:
        return (*self.bands[0].north_start, OPAQUE)

    @property
    def north_color(self) -> RGBA:
        return (*self.bands[-1].north_end, OPAQUE)

    @property
    def south_color(self) -> RGBA:
        return (*self.bands[-1].south_end, OPAQUE)

    @property
    def boundaries(self) -> Tuple[float, ...]:
        return tuple(band.end for band in self.bands[:-1])


# =============================================================================
# Color Schemes
# =============================================================================

# FEMM-like palette: dark teal at zero, green/yellow/orange/red towards north,
# cyan/blue/violet towards south.
ZERO_TEAL = (0, 48, 64)

FEMM_SCHEME = ColorScheme('femm', (
    #         name        start  end    south_start    south_end      north_start    north_end
    ColorBand('near_zero', 0.00, 0.01, ZERO_TEAL,     ZERO_TEAL,     ZERO_TEAL,     ZERO_TEAL),
    ColorBand('low',       0.01, 0.10, ZERO_TEAL,     (0, 96, 160),  ZERO_TEAL,     (0, 160, 64)),
    ColorBand('low_mid',   0.10, 0.40, (0, 96, 160),  (0, 192, 255), (0, 160, 64),  (128, 255, 0)),
    ColorBand('mid',       0.40, 0.60, (0, 192, 255), (0, 64, 255),  (128, 255, 0), (255, 230, 0)),
    ColorBand('mid_high',  0.60, 0.80, (0, 64, 255),  (0, 0, 192),   (255, 230, 0), (255, 140, 0)),
    ColorBand('high',      0.80, 1.00, (0, 0, 192),   (64, 0, 255),  (255, 140, 0), (255, 0, 32)),
))

COLOR_SCHEMES: Dict[str, ColorScheme] = {
    'femm': FEMM_SCHEME,
}
DEFAULT_SCHEME = 'femm'


def get_color_scheme(name: str) -> ColorScheme:
    if name not in COLOR_SCHEMES:
        raise ValueError(f"Unknown color scheme '{name}'. Available: {list(COLOR_SCHEMES.keys())}")
    return COLOR_SCHEMES[name]


# =============================================================================
# Mapper
# =============================================================================

class ScalarColorMapper:
    """
    Maps field values to RGBA using a ColorScheme and a display range.

    The mapper reads its DisplayRange on every call that does not pass an
    explicit range; it never writes it.
    """

    def __init__(self, display_range: Union[DisplayRange, float, None] = None,
                 scheme: Union[str, ColorScheme] = DEFAULT_SCHEME):
        if display_range is None or isinstance(display_range, (int, float)):
            display_range = DisplayRange() if display_range is None else DisplayRange(display_range)
        self.display_range = display_range
        self.scheme = get_color_scheme(scheme) if isinstance(scheme, str) else scheme

        bands = self.scheme.bands
        self._starts = np.array([b.start for b in bands])
        self._widths = np.array([b.end - b.start for b in bands])
        self._south = np.array([[b.south_start, b.south_end] for b in bands], dtype=np.float64)
        self._north = np.array([[b.north_start, b.north_end] for b in bands], dtype=np.float64)

    def _resolve_range(self, color_range: Optional[float]) -> float:
        if color_range is None:
            return self.display_range.get()
        if color_range <= 0:
            raise ValueError(f"Color range must be positive, got {color_range}")
        return float(color_range)

    def transfer(self, normalized: np.ndarray) -> np.ndarray:
        """
        Apply the band table to values already normalized to [-1, 1].

        Returns:
            Array of shape normalized.shape + (4,), dtype uint8
        """
        normalized = np.asarray(normalized, dtype=np.float64)
        magnitude = np.abs(normalized)
        is_south = normalized < 0

        band_idx = np.searchsorted(self._starts, magnitude, side='right') - 1
        band_idx = np.clip(band_idx, 0, len(self._starts) - 1)
        t = np.clip((magnitude - self._starts[band_idx]) / self._widths[band_idx], 0.0, 1.0)

        anchors = np.where(is_south[..., np.newaxis, np.newaxis], self._south[band_idx], self._north[band_idx])
        c0 = anchors[..., 0, :]
        c1 = anchors[..., 1, :]
        rgb = np.rint(c0 + (c1 - c0) * t[..., np.newaxis])

        rgba = np.empty(normalized.shape + (4,), dtype=np.uint8)
        rgba[..., :3] = rgb.astype(np.uint8)
        rgba[..., 3] = OPAQUE
        return rgba

    def map_array(self, values, color_range: Optional[float] = None) -> np.ndarray:
        """Normalize ``values`` by the range, clamp to [-1, 1] and transfer."""
        rng = self._resolve_range(color_range)
        normalized = np.clip(np.asarray(values, dtype=np.float64) / rng, -1.0, 1.0)
        return self.transfer(normalized)

    def map(self, value: float, color_range: Optional[float] = None) -> RGBA:
        r, g, b, a = self.map_array(np.array([value]), color_range)[0]
        return int(r), int(g), int(b), int(a)

    def map_cells_to_pixels(self, grid: np.ndarray, color_range: Optional[float] = None) -> np.ndarray:
        """
        Convert a ny × nx scalar grid to a ny × nx × 4 uint8 pixel buffer.

        The range is read once for the whole frame.
        """
        return self.map_array(grid, self._resolve_range(color_range))

    def render_legend(self, color_range: Optional[float] = None, width: int = 400) -> np.ndarray:
        """
        Gradient bar from -range to +range.

        Returns:
            width × 4 uint8 array; sample k is map(t_k * range) with t_k
            evenly spaced over [-1, 1]
        """
        rng = self._resolve_range(color_range)
        t = np.linspace(-1.0, 1.0, width)
        return self.map_array(t * rng, rng)


__all__ = [
    'ColorBand',
    'ColorScheme',
    'FEMM_SCHEME',
    'COLOR_SCHEMES',
    'DEFAULT_SCHEME',
    'get_color_scheme',
    'ScalarColorMapper',
]
