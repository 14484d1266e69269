"""
Detection of visits that share a time window.

Visits are grouped by their exact ``(start_time, end_time)`` pair. Windows
that merely intersect (9:00-10:00 and 9:15-9:45) are NOT grouped; this is a
known gap kept on purpose until the product decides how partial overlaps
should be presented to the model.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from ..models import OverlappingTimeWindow, Visit


def detect_overlapping_windows(visits: Sequence[Visit]) -> List[OverlappingTimeWindow]:
    """
    Group visits with identical time windows.

    Groups are returned in order of first appearance, and visits keep their
    input order inside each group, so the result is deterministic.
    """
    groups: Dict[Tuple[datetime, datetime], List[Visit]] = {}
    for visit in visits:
        groups.setdefault((visit.start_time, visit.end_time), []).append(visit)

    return [
        OverlappingTimeWindow(start_time=start, end_time=end, visits=members)
        for (start, end), members in groups.items()
        if len(members) > 1
    ]


def detect_tight_windows(visits: Sequence[Visit]) -> List[Visit]:
    """Visits whose window is shorter than their service duration."""
    return [visit for visit in visits if visit.has_tight_window]
