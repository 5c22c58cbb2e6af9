"""reeltime: timeline engine for a multi-track video editor.

Clips, tracks and the composition store, plus the queries the player and the
editor UI run against them: gap analysis, playback lookups and snapping.
"""

__version__ = "0.1.0"
