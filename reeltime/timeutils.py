"""Pixel/millisecond conversion, zoom math and time formatting.

The input layer turns pointer coordinates into timeline positions with these
before calling the store, and the ruler formats labels with them.
"""

from reeltime.intervals import round_ms

# Scale at zoom 1.0; also the default ViewConfig.pixels_per_second.
DEFAULT_PIXELS_PER_SECOND = 50
MIN_ZOOM = 0.1
MAX_ZOOM = 10.0
MIN_CLIP_WIDTH_PX = 10


def ms_to_pixels(ms: float, pixels_per_second: float = DEFAULT_PIXELS_PER_SECOND) -> float:
    return ms / 1000 * pixels_per_second


def pixels_to_ms(pixels: float, pixels_per_second: float = DEFAULT_PIXELS_PER_SECOND) -> int:
    """Timeline position under ``pixels``, rounded to a whole millisecond."""
    return round_ms(pixels / pixels_per_second * 1000)


def clip_rect(
    start_ms: int,
    duration_ms: int,
    pixels_per_second: float = DEFAULT_PIXELS_PER_SECOND,
) -> tuple[float, float]:
    """(x, width) of a clip in pixels; very short clips stay grabbable."""
    width = max(ms_to_pixels(duration_ms, pixels_per_second), MIN_CLIP_WIDTH_PX)
    return ms_to_pixels(start_ms, pixels_per_second), width


def pixels_per_second(zoom_level: float, base_pixels_per_second: float = DEFAULT_PIXELS_PER_SECOND) -> float:
    return base_pixels_per_second * zoom_level


def visible_duration(
    container_width: float,
    zoom_level: float,
    base_pixels_per_second: float = DEFAULT_PIXELS_PER_SECOND,
) -> int:
    return round_ms(container_width / pixels_per_second(zoom_level, base_pixels_per_second) * 1000)


def clamp_zoom(level: float, low: float = MIN_ZOOM, high: float = MAX_ZOOM) -> float:
    return max(low, min(high, level))


def ruler_interval(zoom_level: float) -> int:
    """Spacing of ruler labels in ms for a zoom level."""
    if zoom_level < 0.5:
        return 60000
    if zoom_level < 2.0:
        return 10000
    if zoom_level < 5.0:
        return 1000
    return 100


def playhead_scroll(
    scroll_px: float,
    old_zoom: float,
    new_zoom: float,
    playhead_ms: int,
    container_width: float,
    base_pixels_per_second: float = DEFAULT_PIXELS_PER_SECOND,
) -> float:
    """Scroll offset that keeps a visible playhead centred across a zoom change.

    If the playhead was off-screen before zooming the scroll is left alone.
    """
    old_x = ms_to_pixels(playhead_ms, pixels_per_second(old_zoom, base_pixels_per_second))
    if not scroll_px <= old_x <= scroll_px + container_width:
        return scroll_px
    new_x = ms_to_pixels(playhead_ms, pixels_per_second(new_zoom, base_pixels_per_second))
    return max(0.0, new_x - container_width / 2)


def format_timeline_time(ms: int) -> str:
    """``MM:SS.mmm``"""
    total_seconds, millis = divmod(int(ms), 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


def format_time_simple(ms: int) -> str:
    """``MM:SS``"""
    minutes, seconds = divmod(int(ms) // 1000, 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_timestamp(ms: int) -> str:
    """``HH:MM:SS.mmm``, the form ffmpeg accepts for seek and duration arguments."""
    total_seconds, millis = divmod(int(ms), 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"
