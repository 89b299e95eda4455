"""Driver behaviour reporting over normalized events."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from src.config.constants import HIGH_RISK_EVENT_COUNT
from src.events.normalizer import NormalizedEvent


@dataclass
class DriverRisk:
    driver_name: str
    event_count: int
    severe_count: int    # high + critical
    points: int


@dataclass
class BehaviorSummary:
    total_events: int = 0
    critical_events: int = 0
    high_severity_events: int = 0
    unresolved_events: int = 0
    top_event_types: List[Tuple[str, int]] = field(default_factory=list)
    points_by_driver: Dict[str, int] = field(default_factory=dict)
    high_risk_drivers: List[DriverRisk] = field(default_factory=list)


def behavior_summary(events: Iterable[NormalizedEvent], top_n: int = 3) -> BehaviorSummary:
    """Summarize events and flag high-risk drivers.

    A driver is high risk with more than HIGH_RISK_EVENT_COUNT events or any
    high/critical event. High-risk drivers are sorted by event count, most first.
    """
    events = list(events)
    summary = BehaviorSummary(total_events=len(events))

    by_type: Counter = Counter()
    by_driver: Counter = Counter()
    severe_by_driver: Counter = Counter()
    points: Dict[str, int] = {}

    for event in events:
        if event.severity == "critical":
            summary.critical_events += 1
        elif event.severity == "high":
            summary.high_severity_events += 1
        if event.status != "resolved":
            summary.unresolved_events += 1
        by_type[event.event_type] += 1
        by_driver[event.driver_name] += 1
        if event.severity in ("high", "critical"):
            severe_by_driver[event.driver_name] += 1
        points[event.driver_name] = points.get(event.driver_name, 0) + event.points

    summary.top_event_types = by_type.most_common(top_n)
    summary.points_by_driver = points
    summary.high_risk_drivers = [
        DriverRisk(driver, count, severe_by_driver[driver], points[driver])
        for driver, count in sorted(by_driver.items(), key=lambda kv: (-kv[1], kv[0]))
        if count > HIGH_RISK_EVENT_COUNT or severe_by_driver[driver] > 0
    ]
    return summary
