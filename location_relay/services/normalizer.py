# location_relay/services/normalizer.py
import json
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..models import HEALTH_METRICS, ErrorKind, HealthMetrics, LocationRecord, SubmissionError, SyncSettings
from ..utils.validators import (
    decode_json_object,
    first_present,
    is_present,
    parse_float,
    parse_number_text,
    preview,
)

EXPECTED = dict(
    {metric: "non-negative number" for metric in HEALTH_METRICS},
    workouts="array",
    location_poll_interval_minutes="non-negative number",
    healthkit_sync_interval_hours="non-negative number",
    sync_on_app_open="boolean",
    notifications_enabled="boolean",
)


class _Rejected(Exception):
    def __init__(self, error: SubmissionError):
        super().__init__(error.message)
        self.error = error


# --- helpers ---
def iso_utc(dt: Optional[datetime] = None) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    dt = dt or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _type_failure(field: str, expected: str, value: Any) -> _Rejected:
    return _Rejected(SubmissionError(
        kind=ErrorKind.TYPE_VALIDATION_FAILURE,
        field=field,
        message=f"Invalid value for '{field}': expected {expected}, got {preview(value)}",
    ))


def _from_validation_error(exc: ValidationError) -> _Rejected:
    first = exc.errors()[0]
    field = str(first["loc"][0]) if first["loc"] else "payload"
    return _type_failure(field, EXPECTED.get(field, first["msg"]), first.get("input"))


def _decode_encoded(field: str, raw: Any) -> Optional[dict]:
    # objects pass through, strings are treated as JSON-encoded objects
    if not is_present(raw):
        return None
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise _type_failure(field, "object", raw)
    try:
        return decode_json_object(raw)
    except ValueError as e:
        raise _Rejected(SubmissionError(
            kind=ErrorKind.MALFORMED_ENCODED_PAYLOAD,
            field=field,
            message=f"Could not parse '{field}' as a JSON object: {e}",
            hint=f"Received: {preview(raw)}",
        ))


def _coordinate(field: str, body: Optional[Mapping], query: Optional[Mapping]) -> float:
    raw = first_present(field, body, query)
    try:
        return parse_float(raw)
    except (TypeError, ValueError):
        raise _type_failure(field, "number", raw)


def _optional_float(field: str, body: Optional[Mapping], query: Optional[Mapping]) -> Optional[float]:
    raw = first_present(field, body, query)
    if raw is None:
        return None
    try:
        return parse_float(raw)
    except (TypeError, ValueError):
        raise _type_failure(field, "number", raw)


def _optional_text(field: str, body: Optional[Mapping], query: Optional[Mapping], default=None) -> Optional[str]:
    raw = first_present(field, body, query)
    return str(raw) if raw is not None else default


def _query_number(value):
    # plain query parameters are always text; unparseable text is left for the model to reject
    try:
        return parse_number_text(value)
    except ValueError:
        return value


def _workouts(raw):
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError as e:
        raise _Rejected(SubmissionError(
            kind=ErrorKind.MALFORMED_ENCODED_PAYLOAD,
            field="workouts",
            message=f"Could not parse 'workouts' as a JSON array: {e}",
            hint=f"Received: {preview(raw)}",
        ))


def build_health(body: Optional[Mapping], query: Optional[Mapping]) -> Optional[Dict[str, Any]]:
    body_health = _decode_encoded("health", body.get("health")) if body else None
    query_health = _decode_encoded("health", query.get("health")) if query else None

    candidate: Dict[str, Any] = {}
    for metric in HEALTH_METRICS:
        value = first_present(metric, body_health, body, query_health)
        if value is None and query:
            value = first_present(metric, query)
            if isinstance(value, str):
                value = _query_number(value)
        if value is not None:
            candidate[metric] = value

    workouts = first_present("workouts", body_health, body, query_health, query)
    if workouts is not None:
        candidate["workouts"] = _workouts(workouts)

    try:
        health = HealthMetrics.model_validate(candidate).model_dump(exclude_none=True)
    except ValidationError as e:
        raise _from_validation_error(e)
    if not health.get("workouts"):
        health.pop("workouts", None)
    return health or None


def build_settings(body: Optional[Mapping], query: Optional[Mapping]) -> SyncSettings:
    raw = _decode_encoded("settings", body.get("settings")) if body else None
    if raw is None and query:
        raw = _decode_encoded("settings", query.get("settings"))
    # null means "use the default"; unknown keys are ignored by the model
    values = {k: v for k, v in (raw or {}).items() if v is not None}
    try:
        return SyncSettings.model_validate(values)
    except ValidationError as e:
        raise _from_validation_error(e)


# --- entry point ---
def normalize_submission(
    body: Optional[Mapping] = None,
    query: Optional[Mapping] = None,
    now: Optional[datetime] = None,
) -> Tuple[Optional[LocationRecord], Optional[SubmissionError]]:
    """
    Merge a JSON body and a query-parameter mapping into a LocationRecord.

    Body values win over query values. Returns (record, None) on success and
    (None, error) on a validation failure; nothing is stored here.
    """
    try:
        missing = [f for f in ("latitude", "longitude") if first_present(f, body, query) is None]
        if missing:
            return None, SubmissionError(
                kind=ErrorKind.MISSING_REQUIRED_FIELD,
                field=missing[0],
                message="Missing required fields: latitude and longitude",
                hint="Send latitude and longitude in the JSON body or as query parameters",
            )

        latitude = _coordinate("latitude", body, query)
        longitude = _coordinate("longitude", body, query)
        health = build_health(body, query)
        settings = build_settings(body, query)
        received_at = iso_utc(now)

        record = LocationRecord(
            latitude=latitude,
            longitude=longitude,
            timestamp=_optional_text("timestamp", body, query, default=received_at),
            device=_optional_text("device", body, query, default="unknown"),
            deviceModel=_optional_text("deviceModel", body, query),
            userId=_optional_text("userId", body, query),
            altitude=_optional_float("altitude", body, query),
            speed=_optional_float("speed", body, query),
            health=health,
            settings=settings,
            receivedAt=received_at,
        )
        return record, None
    except _Rejected as r:
        return None, r.error
