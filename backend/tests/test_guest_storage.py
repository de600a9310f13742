from __future__ import annotations

import json

import pytest

from app.client import guest_storage
from app.client.guest_storage import (
    BODY_PROFILE_DRAFT_KEY,
    BODY_PROFILE_KEY,
    LOCAL_EVENTS_KEY,
    ONBOARDING_DRAFT_KEY,
    GuestStorage,
    JsonFileStorage,
    MemoryStorage,
)
from app.client.records import BodyPhoto, BodyProfile, ChatMessage, LocalEvent, Measurements, OnboardingData


class _Clock:
    def __init__(self, start: int = 1_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


def _storage(backend=None) -> GuestStorage:
    return GuestStorage(backend or MemoryStorage(), clock=_Clock())


def test_body_profile_is_stored_with_camel_case_keys() -> None:
    backend = MemoryStorage()
    storage = _storage(backend)
    profile = BodyProfile(
        current_state="Tired",
        body_goal="tone",
        focus_areas=["Arms"],
        measurements=Measurements(height_cm=178, weight_kg=70),
        energy_level="low",
        photos=[BodyPhoto(pose="front", image="data:image/jpeg;base64,AA==", captured_at=5)],
        updated_at=42,
    )

    storage.save_body_profile(profile)

    raw = json.loads(backend.get(BODY_PROFILE_KEY))
    assert raw["bodyGoal"] == "tone"
    assert raw["measurements"] == {"heightCm": 178, "weightKg": 70}
    assert raw["updatedAt"] == 42
    assert storage.get_body_profile() == profile


def test_draft_is_stamped_with_the_clock() -> None:
    storage = _storage()

    draft = storage.write_body_profile_draft(BodyProfile(notes="half done"))

    assert draft.saved_at == 1_001
    loaded = storage.get_body_profile_draft()
    assert loaded.saved_at == 1_001
    assert loaded.profile.notes == "half done"

    storage.clear_body_profile_draft()
    assert storage.get_body_profile_draft() is None


def test_unreadable_entries_read_as_missing() -> None:
    backend = MemoryStorage(
        {
            BODY_PROFILE_KEY: "{not json",
            BODY_PROFILE_DRAFT_KEY: json.dumps({"profile": {}}),
            ONBOARDING_DRAFT_KEY: json.dumps(["wrong", "shape"]),
        }
    )
    storage = _storage(backend)

    assert storage.get_body_profile() is None
    assert storage.get_body_profile_draft() is None
    assert storage.get_onboarding_draft() is None


def test_onboarding_draft_keeps_data_messages_and_step() -> None:
    storage = _storage()
    data = OnboardingData(responsibilities=["work"], free_time_hours="1-2", system_name="Calm Weeks")

    storage.write_onboarding_draft(data, [ChatMessage(role="assistant", content="Hi"), ChatMessage(role="user", content="Hello")], 3)

    draft = storage.get_onboarding_draft()
    assert draft.step == 3
    assert draft.data == data
    assert [message.content for message in draft.messages] == ["Hi", "Hello"]


def test_exclusions_dedupe_case_insensitively() -> None:
    storage = _storage()

    storage.add_exclusion("Peanuts")
    storage.add_exclusion(" peanuts ")
    storage.add_exclusion("Shellfish")

    assert storage.get_exclusions() == ["Peanuts", "Shellfish"]
    assert storage.remove_exclusion("PEANUTS") == ["Shellfish"]


def test_resources_filter_by_type_and_delete() -> None:
    storage = _storage()
    workout = storage.save_user_resource("workout", "file", "Leg day", tags=["workout", "imported"])
    storage.save_user_resource("meal_plan", "file", "Prep Sunday")

    assert [resource.title for resource in storage.get_user_resources("workout")] == ["Leg day"]
    assert len(storage.get_user_resources()) == 2

    assert storage.delete_user_resource(workout.id) is True
    assert storage.delete_user_resource(workout.id) is False
    assert [resource.title for resource in storage.get_user_resources()] == ["Prep Sunday"]


def test_mood_tracker_and_routines_accumulate() -> None:
    storage = _storage()

    storage.add_mood_checkin("calm", energy=3)
    storage.add_mood_checkin("tired", note="long day")
    settings = storage.update_tracker_settings(reminders=True)
    storage.update_tracker_settings(reminder_time="20:00")
    storage.save_routine("Evening", ["Stretch", "Journal"])

    assert [checkin.mood for checkin in storage.get_mood_checkins()] == ["calm", "tired"]
    assert settings == {"reminders": True}
    assert storage.get_tracker_settings() == {"reminders": True, "reminder_time": "20:00"}
    assert storage.get_saved_routines()[0].steps == ["Stretch", "Journal"]


def test_local_events_get_ids_and_can_be_removed() -> None:
    storage = _storage()

    event = storage.add_local_event(LocalEvent(id="", title="Walk", event_date="2026-10-20"))

    assert event.id
    assert event.created_at > 0
    assert storage.remove_local_event(event.id) is True
    assert storage.get_local_events() == []


def test_clear_all_removes_every_key() -> None:
    backend = MemoryStorage()
    storage = _storage(backend)
    storage.save_body_profile(BodyProfile())
    storage.add_exclusion("Dairy")

    storage.clear_all()

    assert storage.get_body_profile() is None
    assert storage.get_exclusions() == []


def test_json_file_backend_persists_between_instances(tmp_path) -> None:
    path = tmp_path / "guest" / "storage.json"
    first = GuestStorage(JsonFileStorage(path))
    first.add_exclusion("Gluten")

    second = GuestStorage(JsonFileStorage(path))
    assert second.get_exclusions() == ["Gluten"]


def test_json_file_backend_starts_empty_when_corrupt(tmp_path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("not json", encoding="utf-8")

    storage = GuestStorage(JsonFileStorage(path))

    assert storage.get_exclusions() == []
    storage.add_exclusion("Soy")
    assert json.loads(path.read_text(encoding="utf-8"))


def test_records_with_wrong_field_types_read_as_missing() -> None:
    backend = MemoryStorage(
        {
            BODY_PROFILE_KEY: json.dumps({"measurements": "tall"}),
            BODY_PROFILE_DRAFT_KEY: json.dumps({"profile": {}, "savedAt": "yesterday"}),
            ONBOARDING_DRAFT_KEY: json.dumps({"data": {}, "messages": [{"content": "no role"}], "savedAt": 5}),
        }
    )
    storage = _storage(backend)

    assert storage.get_body_profile() is None
    assert storage.get_body_profile_draft() is None
    assert storage.get_onboarding_draft() is None


def test_unknown_choices_are_cleared_on_read() -> None:
    backend = MemoryStorage(
        {
            BODY_PROFILE_KEY: json.dumps({"bodyGoal": "get huge", "measurements": {"heightCm": 180.6, "weightKg": True}}),
            ONBOARDING_DRAFT_KEY: json.dumps({"data": {"freeTimeHours": "lots"}, "savedAt": 5}),
        }
    )
    storage = _storage(backend)

    profile = storage.get_body_profile()
    assert profile.body_goal is None
    assert profile.measurements.height_cm == 180
    assert profile.measurements.weight_kg is None
    assert storage.get_onboarding_draft().data.free_time_hours == ""


def test_malformed_list_entries_are_skipped() -> None:
    backend = MemoryStorage(
        {
            LOCAL_EVENTS_KEY: json.dumps(
                [
                    {"id": "e-1", "title": "Yoga", "eventDate": "2026-10-21"},
                    {"id": "e-2", "eventDate": "2026-10-22"},
                    "not an event",
                ]
            )
        }
    )

    events = _storage(backend).get_local_events()

    assert [event.id for event in events] == ["e-1"]


def test_failed_write_leaves_no_temp_file(tmp_path, monkeypatch) -> None:
    path = tmp_path / "storage.json"
    storage = GuestStorage(JsonFileStorage(path))
    storage.add_exclusion("Gluten")

    def _broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(guest_storage.os, "replace", _broken_replace)
    with pytest.raises(OSError):
        storage.add_exclusion("Soy")

    assert sorted(entry.name for entry in tmp_path.iterdir()) == ["storage.json"]
    monkeypatch.undo()
    assert GuestStorage(JsonFileStorage(path)).get_exclusions() == ["Gluten"]
