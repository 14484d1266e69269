"""
Interpretation of the optimization model's raw reply.

The reply is free text that usually, but not always, contains a JSON
object. Interpretation degrades through three tiers, each a function that
either returns a complete ordering or ``None``:

1. Structured: decode a JSON object (fenced ```json block, any fenced
   block, a bare ``{...}`` span, then the first decodable object) and map its 1-based
   ``optimizedOrder`` onto the input visits. Accepted only when every visit
   is placed, or when the model explicitly reports ``feasibleRoute: false``.
2. Text: scan lines for pet or client names and order visits by first
   mention.
3. Time: sort visits by start time. Always succeeds.

The first tier that returns a result wins.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..models import Visit

logger = logging.getLogger(__name__)

# Defaults for fields missing from a structured reply
DEFAULT_DISTANCE_MILES = 25.0
DEFAULT_TIME_MINUTES = 90.0
DEFAULT_EFFICIENCY_PCT = 85.0

DEFAULT_JSON_REASONING = "AI optimization completed"
GENERIC_REASONING = (
    "AI optimized route based on time windows, location proximity, and travel efficiency."
)

MAX_REASONING_CHARS = 200
TRUNCATE_AT = 197

JSON_PATTERNS = [
    re.compile(r"```json\s*([\s\S]*?)\s*```"),
    re.compile(r"```\s*([\s\S]*?)\s*```"),
    re.compile(r"\{[\s\S]*\}"),
]

HEADER_WORDS = ("optimal", "route", "schedule")
REASONING_MARKERS = ("reason", "explanation", "analysis", "optimized")


@dataclass
class ReplyFields:
    """Range-checked view of a decoded reply object."""

    order: Optional[List[int]]
    distance_miles: float
    time_minutes: float
    efficiency_pct: float
    feasible: bool
    reasoning: Optional[str]


@dataclass
class InterpretedRoute:
    """Ordering and metrics recovered from a reply."""

    visits: List[Visit]
    total_distance: float
    """Miles."""

    total_travel_time: float
    """Seconds of elapsed time, travel plus service, as estimated by the model."""

    efficiency: float
    """Fraction in [0, 1]."""

    feasible: bool
    reasoning: str
    method: str
    """Which tier produced the ordering: structured, text or time."""


# -----------------------------
# Reasoning helpers
# -----------------------------

def clean_reasoning(reasoning: str) -> str:
    """
    Tidy reasoning text for display.

    Literal ``\\n`` escapes become spaces, runs of spaces collapse, and text
    over 200 characters is cut at the last whitespace before character 197
    with an ellipsis appended.
    """
    cleaned = reasoning.strip().replace("\\n", " ")
    cleaned = re.sub(r" {2,}", " ", cleaned)

    if len(cleaned) > MAX_REASONING_CHARS:
        truncated = cleaned[:TRUNCATE_AT]
        last_space = max(truncated.rfind(" "), truncated.rfind("\n"), truncated.rfind("\t"))
        if last_space > 0:
            return truncated[:last_space] + "..."
        return truncated + "..."

    return cleaned


def extract_reasoning(text: str) -> str:
    """Return text from the first line that looks like an explanation onwards."""
    collected: List[str] = []
    in_section = False

    for line in text.splitlines():
        stripped = line.strip()
        if not in_section and any(marker in stripped.lower() for marker in REASONING_MARKERS):
            in_section = True
        if in_section:
            collected.append(stripped)

    reasoning = " ".join(collected).strip()
    return reasoning or GENERIC_REASONING


# -----------------------------
# Structured decoding
# -----------------------------

def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Find and decode the first JSON object embedded in ``text``."""
    for pattern in JSON_PATTERNS:
        for match in pattern.finditer(text):
            candidate = match.group(1) if match.groups() else match.group(0)
            try:
                decoded = json.loads(candidate)
            except (ValueError, RecursionError):
                continue
            if isinstance(decoded, dict):
                return decoded

    # A broken object ahead of a good one defeats the greedy pattern
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            decoded, _ = decoder.raw_decode(text, match.start())
        except (ValueError, RecursionError):
            continue
        if isinstance(decoded, dict):
            return decoded
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def _as_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _decode_order(value: Any) -> Optional[List[int]]:
    if not isinstance(value, list):
        return None
    indices = [_as_index(item) for item in value]
    if any(index is None for index in indices):
        return None
    return indices


def decode_reply_fields(document: Dict[str, Any]) -> ReplyFields:
    """
    Decode a reply object without trusting its shape.

    Missing or wrongly typed fields fall back to defaults; only
    ``optimizedOrder`` is left as ``None`` so the caller can reject it.
    """
    distance = _as_number(document.get("estimatedTotalDistance"))
    minutes = _as_number(document.get("estimatedTotalTime"))
    efficiency = _as_number(document.get("efficiency"))
    feasible = document.get("feasibleRoute")
    reasoning = document.get("reasoning")

    return ReplyFields(
        order=_decode_order(document.get("optimizedOrder")),
        distance_miles=DEFAULT_DISTANCE_MILES if distance is None else distance,
        time_minutes=DEFAULT_TIME_MINUTES if minutes is None else minutes,
        efficiency_pct=DEFAULT_EFFICIENCY_PCT if efficiency is None else efficiency,
        feasible=feasible if isinstance(feasible, bool) else True,
        reasoning=reasoning if isinstance(reasoning, str) and reasoning.strip() else None,
    )


def reorder_by_indices(visits: Sequence[Visit], order: Sequence[int]) -> Tuple[List[Visit], List[Visit]]:
    """
    Map 1-based indices onto visits.

    Out-of-range and repeated indices are ignored. Returns the placed visits
    in order and the visits that were never referenced, in input order.
    """
    placed: List[Visit] = []
    seen = set()
    for number in order:
        index = number - 1
        if 0 <= index < len(visits) and index not in seen:
            seen.add(index)
            placed.append(visits[index])
    missing = [visit for i, visit in enumerate(visits) if i not in seen]
    return placed, missing


def _describe_excluded(excluded: Sequence[Visit]) -> str:
    return "Excluded visits: " + ", ".join(visit.display_name for visit in excluded) + "."


def _structured_tier(text: str, visits: Sequence[Visit]) -> Optional[InterpretedRoute]:
    document = extract_json_object(text)
    if document is None:
        logger.info("No JSON object found in reply")
        return None

    fields = decode_reply_fields(document)
    if fields.order is None:
        logger.warning("Reply has no usable optimizedOrder")
        return None

    placed, missing = reorder_by_indices(visits, fields.order)
    reasoning = clean_reasoning(fields.reasoning or DEFAULT_JSON_REASONING)
    feasible = fields.feasible

    if missing:
        if fields.feasible or not placed:
            logger.warning(
                "optimizedOrder covers %d of %d visits; rejecting structured reply",
                len(placed), len(visits),
            )
            return None
        logger.info("Model reported an infeasible route excluding %d visit(s)", len(missing))
        reasoning = f"{reasoning} {_describe_excluded(missing)}"
    elif not feasible:
        logger.warning("Model flagged the route infeasible but placed every visit; keeping it as feasible")
        feasible = True

    return InterpretedRoute(
        visits=placed,
        total_distance=fields.distance_miles,
        total_travel_time=fields.time_minutes * 60,
        efficiency=max(0.0, min(1.0, fields.efficiency_pct / 100.0)),
        feasible=feasible,
        reasoning=reasoning,
        method="structured",
    )


# -----------------------------
# Heuristic text parsing
# -----------------------------

def _mentions(line: str, name: str) -> bool:
    name = name.strip().casefold()
    return bool(name) and name in line


def extract_visit_order(text: str, visits: Sequence[Visit]) -> Optional[List[Visit]]:
    """
    Order visits by the first line mentioning their pet or client name.

    Each line places at most one visit. Visits never mentioned are appended
    in input order. Returns ``None`` when no line mentions any visit.
    """
    ordered: List[Visit] = []
    placed_ids = set()

    for line in text.splitlines():
        folded = line.strip().casefold()
        if not folded or any(word in folded for word in HEADER_WORDS):
            continue
        for visit in visits:
            if visit.id in placed_ids:
                continue
            if _mentions(folded, visit.pet_name) or _mentions(folded, visit.client_name):
                ordered.append(visit)
                placed_ids.add(visit.id)
                break

    if not ordered:
        return None

    ordered.extend(visit for visit in visits if visit.id not in placed_ids)
    if len(ordered) != len(visits):
        logger.warning("Text order has %d entries for %d visits; discarding", len(ordered), len(visits))
        return None
    return ordered


def _text_tier(text: str, visits: Sequence[Visit]) -> Optional[InterpretedRoute]:
    ordered = extract_visit_order(text, visits)
    if ordered is None:
        return None
    return InterpretedRoute(
        visits=ordered,
        total_distance=DEFAULT_DISTANCE_MILES,
        total_travel_time=DEFAULT_TIME_MINUTES * 60,
        efficiency=DEFAULT_EFFICIENCY_PCT / 100.0,
        feasible=True,
        reasoning=clean_reasoning(extract_reasoning(text)),
        method="text",
    )


def _time_tier(text: str, visits: Sequence[Visit]) -> Optional[InterpretedRoute]:
    return InterpretedRoute(
        visits=sorted(visits, key=lambda visit: visit.start_time),
        total_distance=DEFAULT_DISTANCE_MILES,
        total_travel_time=DEFAULT_TIME_MINUTES * 60,
        efficiency=DEFAULT_EFFICIENCY_PCT / 100.0,
        feasible=True,
        reasoning=clean_reasoning(extract_reasoning(text)),
        method="time",
    )


TIERS: List[Callable[[str, Sequence[Visit]], Optional[InterpretedRoute]]] = [
    _structured_tier,
    _text_tier,
    _time_tier,
]


def interpret_reply(text: str, visits: Sequence[Visit]) -> InterpretedRoute:
    """
    Resolve an ordering and metrics from a raw model reply.

    Never raises for malformed replies; the time-based tier is the last
    resort and always produces a full ordering.
    """
    visits = list(visits)
    for tier in TIERS:
        result = tier(text, visits)
        if result is not None:
            logger.info("Reply interpreted by %s tier", result.method)
            return result
    raise RuntimeError("Time-based ordering returned no result")
