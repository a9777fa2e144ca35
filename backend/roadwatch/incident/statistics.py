"""
Incident Statistics

Counts over the retained incident log, recomputed on every request.
"""

from collections import Counter
from typing import Any, Dict, Iterable, Sequence

from roadwatch.models.incident import Incident


# Dashboard counters for the kinds the mobile client reports
KIND_COUNTERS = {
    "accident": "accidents",
    "lane_departure": "laneDepartures",
    "abnormal_stopping": "abnormalStopping",
    "distracted_driving": "distractedDriving",
    "drowsy_driving": "drowsyDriving",
}


def compute_stats(incidents: Sequence[Incident], devices: Iterable[Any]) -> Dict[str, Any]:
    """
    Aggregate incidents by kind and severity

    Args:
        incidents: Output of `IncidentStore.list()`
        devices: Output of `DeviceRegistry.snapshot()`
    """
    by_type = Counter(i.type for i in incidents if i.type)
    by_severity = Counter(i.severity for i in incidents)

    stats: Dict[str, Any] = {
        "total": len(incidents),
        "activeDevices": sum(1 for _ in devices),
        "byType": dict(by_type),
    }
    for kind, key in KIND_COUNTERS.items():
        stats[key] = by_type.get(kind, 0)
    stats["critical"] = by_severity.get("critical", 0)
    stats["warning"] = by_severity.get("warning", 0)

    return stats
