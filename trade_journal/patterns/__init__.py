"""Patterns: heuristic chart-pattern detection."""

from trade_journal.patterns.detector import PatternDetector, PatternThresholds

__all__ = ["PatternDetector", "PatternThresholds"]
