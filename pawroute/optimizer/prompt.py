"""
Prompt rendering for the external route optimization model.

The rendered text is deterministic for a given input. Visits are numbered
from 1 and the model is asked to answer with the same 1-based numbers in
``optimizedOrder``; the response interpreter relies on that numbering.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..models import HomeBase, OverlappingTimeWindow, Visit, format_clock
from ..routing.overlap import detect_overlapping_windows, detect_tight_windows

DEFAULT_TIMEZONE_LABEL = "Central Time (Austin, TX)"

INTRO = """You are a professional route optimization assistant for dog walkers and pet sitters.
I need you to calculate the most optimal route considering time windows, travel time, and efficiency.

Please analyze the following information and provide the BEST possible route order:
"""

REQUIREMENTS = """CRITICAL REQUIREMENTS:
1. TIME WINDOW FLEXIBILITY: Each visit has a time window (e.g., 7:00-8:00 AM) and a duration (e.g., 30 mins)
   - The visit can START anytime within the window
   - The visit must FINISH before the window closes
   - Example: 7:00-8:00 AM window with 30-min duration = can start between 7:00-7:30 AM
   - This flexibility allows for optimal routing and scheduling
2. MULTIPLE VISITS with overlapping time windows must be sequenced - they cannot happen simultaneously
3. Account for realistic travel time between locations (typically 10-20 minutes between locations in town)
4. When visits share the same time window, sequence them optimally considering:
   - Travel distance between locations
   - Service duration for each visit
   - Buffer time for travel within the shared window
   - Use the time window flexibility to fit both visits optimally
5. Minimize total travel distance and time across the entire day
6. Consider the service duration for each visit
7. Start from the home base if provided

ROUTE EFFICIENCY RULES:
- START at home base (if provided)
- Go DIRECTLY from visit to visit for maximum efficiency
- DO NOT return to home base after each visit
- When time windows overlap, choose the CLOSEST next visit
- Only return to home base at the END of the route (or during long breaks)
- Optimize the path like a delivery driver - minimize backtracking
- Use time window flexibility to optimize route efficiency

EXAMPLE 1: Single visit flexibility
- Time window: 7:00-8:00 AM, Duration: 30 minutes
- Can start anytime between 7:00-7:30 AM (must finish by 8:00 AM)
- Flexible start times: 7:00 AM, 7:15 AM, 7:30 AM, etc.

EXAMPLE 2: Two 30-minute visits both in 7:00-8:00 AM window:
- With 10-minute travel time between visits
- Option A: Visit A 7:00-7:30, Travel 7:30-7:40, Visit B 7:40-8:10 (INVALID - B exceeds window)
- Option B: Visit A 7:00-7:20, Travel 7:20-7:30, Visit B 7:30-8:00 (VALID - both fit in window)
- Option C: Recognize if window is too tight, recommend scheduling in different windows

KEY INSIGHT: Use time window flexibility to optimize routes and fit multiple visits efficiently!
"""

OUTPUT_FORMAT = """Please respond in the following JSON format ONLY (no additional text):
{
  "optimizedOrder": [1, 3, 2],
  "estimatedTotalDistance": 25.5,
  "estimatedTotalTime": 145,
  "efficiency": 85,
  "feasibleRoute": true,
  "reasoning": "Brief explanation of the optimization logic including how overlapping time windows were handled"
}

Where:
- optimizedOrder: Array of visit numbers (1-based, as listed above) in the optimal order
- estimatedTotalDistance: Total driving distance in miles
- estimatedTotalTime: Total elapsed time in minutes, covering travel AND service time
- efficiency: Efficiency score from 1-100
- feasibleRoute: false if any visit cannot be scheduled within its window; leave those visits out of optimizedOrder and name them in reasoning
- reasoning: Brief explanation of why this order is optimal, especially how overlapping windows were sequenced
"""


def _home_base_section(home_base: Optional[HomeBase]) -> str:
    if home_base is not None and home_base.is_ready:
        return (
            "HOME BASE (Starting Point):\n"
            f"- Name: {home_base.name}\n"
            f"- Address: {home_base.display_address}\n"
        )
    return "HOME BASE: Not set (no specific starting point)\n"


def _overlap_section(overlaps: Sequence[OverlappingTimeWindow]) -> str:
    if not overlaps:
        return ""
    lines = ["IMPORTANT - OVERLAPPING TIME WINDOWS DETECTED:"]
    for overlap in overlaps:
        lines.append(f"- Time window {overlap.label} has multiple visits: {', '.join(overlap.pet_names)}")
    lines.append("These visits CANNOT be done simultaneously and must be sequenced within their shared time window.")
    return "\n".join(lines) + "\n"


def _tight_window_section(visits: Sequence[Visit]) -> str:
    tight = detect_tight_windows(visits)
    if not tight:
        return ""
    lines = ["IMPORTANT - TIGHT TIME WINDOWS DETECTED:"]
    for visit in tight:
        lines.append(
            f"- {visit.pet_name}: window {visit.time_window_label} is shorter than "
            f"the {int(visit.duration_minutes)} minute service"
        )
    lines.append("These visits cannot finish inside their windows; set feasibleRoute accordingly.")
    return "\n".join(lines) + "\n"


def _visit_entry(number: int, visit: Visit) -> str:
    return (
        f"{number}. {visit.pet_name} ({visit.client_name})\n"
        f"   - Address: {visit.address}\n"
        f"   - Service: {visit.service_type.value}\n"
        f"   - Time Window: {format_clock(visit.start_time)} - {format_clock(visit.end_time)}\n"
        f"   - Duration: {int(visit.duration_minutes)} minutes\n"
        f"   - Notes: {visit.notes or 'None'}\n"
    )


def build_route_prompt(
    visits: Sequence[Visit],
    home_base: Optional[HomeBase] = None,
    overlaps: Optional[Sequence[OverlappingTimeWindow]] = None,
    timezone_label: str = DEFAULT_TIMEZONE_LABEL,
) -> str:
    """
    Render the optimization request for the model.

    Args:
        visits: Visits in input order; their position + 1 is the number the
            model must answer with
        home_base: Optional start point, used only when ready
        overlaps: Pre-computed overlap groups; detected here when omitted
        timezone_label: Fixed label for the times listed in the prompt

    Returns:
        Prompt text
    """
    if overlaps is None:
        overlaps = detect_overlapping_windows(visits)

    sections: List[str] = [
        INTRO,
        _home_base_section(home_base),
        f"TIME ZONE: All times are {timezone_label}\n",
    ]

    overlap_text = _overlap_section(overlaps)
    if overlap_text:
        sections.append(overlap_text)

    tight_text = _tight_window_section(visits)
    if tight_text:
        sections.append(tight_text)

    visit_lines = ["VISITS TO SCHEDULE:"]
    visit_lines.extend(_visit_entry(index + 1, visit) for index, visit in enumerate(visits))
    sections.append("\n".join(visit_lines))

    sections.append(REQUIREMENTS)
    sections.append(OUTPUT_FORMAT)
    return "\n".join(sections)
