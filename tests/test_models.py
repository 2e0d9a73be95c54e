import pytest
from pydantic import ValidationError

from location_relay.models import HealthMetrics, SyncSettings


def test_health_metrics_keep_ints_and_floats():
    health = HealthMetrics.model_validate({"steps": 10, "sleepDuration": 6.5})
    assert health.model_dump(exclude_none=True) == {"steps": 10, "sleepDuration": 6.5}
    assert isinstance(health.steps, int)


@pytest.mark.parametrize("bad", ["72", True, -1, -0.5, float("inf")])
def test_health_metrics_reject(bad):
    with pytest.raises(ValidationError) as exc:
        HealthMetrics.model_validate({"heartRate": bad})
    assert exc.value.errors()[0]["loc"][0] == "heartRate"


def test_workouts_must_be_a_list():
    with pytest.raises(ValidationError):
        HealthMetrics.model_validate({"workouts": {"type": "run"}})


def test_sync_settings_are_strict():
    with pytest.raises(ValidationError):
        SyncSettings.model_validate({"notifications_enabled": "true"})
    with pytest.raises(ValidationError):
        SyncSettings.model_validate({"location_poll_interval_minutes": "10"})
    with pytest.raises(ValidationError):
        SyncSettings.model_validate({"location_poll_interval_minutes": -5})


def test_sync_settings_defaults():
    assert SyncSettings().model_dump() == {
        "location_poll_interval_minutes": 5,
        "healthkit_sync_interval_hours": 3,
        "sync_on_app_open": True,
        "notifications_enabled": True,
    }
