# location_relay/services/formatting.py
from ..models import HEALTH_METRICS, LocationRecord

NO_DATA_TEXT = "No location data available yet"


def render_text(record: LocationRecord) -> str:
    if record.is_empty:
        return NO_DATA_TEXT

    lines = [
        f"Location: {record.latitude:.4f}, {record.longitude:.4f}",
        f"Device: {record.device}",
        f"Timestamp: {record.timestamp}",
        f"Received: {record.receivedAt}",
    ]
    if record.health:
        lines.append("Health:")
        for metric in HEALTH_METRICS:
            if metric in record.health:
                lines.append(f"  {metric}: {record.health[metric]}")
        workouts = record.health.get("workouts")
        if workouts:
            lines.append(f"  workouts: {len(workouts)}")
    if record.userId:
        lines.append(f"User: {record.userId}")
    return "\n".join(lines)
