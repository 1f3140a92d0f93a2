"""
Resolver Component - Visualization Intent Detection.

Decides from the user's own words whether a chart or a tree was asked for.
Model answers sometimes volunteer charts nobody requested, so the pipeline
only keeps visualizations that match the detected intent.
"""

import re
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VisualizationIntent:
    """Visualizations requested in a message."""

    wants_chart: bool = False
    wants_tree: bool = False


class Resolver:
    """Keyword based intent detection for Korean and English messages."""

    # Hangul has no word boundaries worth matching on, so plain substrings
    CHART_TERMS = ("차트", "그래프", "시각화", "도표")
    TREE_TERMS = ("마인드맵", "트리", "계층", "구조도")

    CHART_PATTERN = re.compile(
        r"\b(chart|graph|plot|visuali[sz]e|visuali[sz]ation)s?\b", re.IGNORECASE
    )
    TREE_PATTERN = re.compile(
        r"\b(mind\s*map|tree|hierarchy|hierarchical)s?\b", re.IGNORECASE
    )

    def resolve(self, message: str) -> VisualizationIntent:
        """
        Detect requested visualizations.

        Args:
            message: The user's original message

        Returns:
            VisualizationIntent
        """
        intent = VisualizationIntent(
            wants_chart=self._matches(message, self.CHART_TERMS, self.CHART_PATTERN),
            wants_tree=self._matches(message, self.TREE_TERMS, self.TREE_PATTERN),
        )
        logger.debug(
            "intent_resolved",
            wants_chart=intent.wants_chart,
            wants_tree=intent.wants_tree,
        )
        return intent

    @staticmethod
    def _matches(message: str, terms: tuple[str, ...], pattern: re.Pattern) -> bool:
        return any(t in message for t in terms) or bool(pattern.search(message))
