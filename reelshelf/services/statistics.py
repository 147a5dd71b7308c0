"""Published / unpublished counts per theme."""
from __future__ import annotations

from ..core.models import Theme, ThemeStatistics
from .resolver import VideoStatusResolver


class StatisticsAggregator:
    """Counts a theme's videos by publish state from a fresh resolution."""

    def __init__(self, resolver: VideoStatusResolver):
        self._resolver = resolver

    def statistics(self, theme: Theme) -> ThemeStatistics:
        videos = self._resolver.resolve(theme)
        published = sum(1 for v in videos if v.is_published)
        return ThemeStatistics(published=published, unpublished=len(videos) - published)
