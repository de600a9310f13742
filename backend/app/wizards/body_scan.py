"""Body scan wizard: feelings, goal, focus areas, measurements and photos."""
from __future__ import annotations

import copy
from enum import IntEnum
import logging
from typing import Callable, Dict, Optional

from app.client.api import ApiClient, ApiError
from app.client.debounce import Debouncer
from app.client.guest_storage import GuestStorage
from app.client.notifier import LoggingNotifier, Notifier
from app.client.records import BODY_GOALS, ENERGY_LEVELS, PHOTO_POSES, BodyPhoto, BodyProfile
from app.client import units
from app.wizards.camera import CameraProvider, CameraSession
from app.wizards.machine import StepMachine

logger = logging.getLogger(__name__)

FOCUS_AREAS = (
    "Core & Abs",
    "Upper Body",
    "Lower Body",
    "Full Body",
    "Back & Posture",
    "Arms",
    "Flexibility",
    "Cardio Health",
)

ENERGY_LEVEL_LABELS: Dict[str, str] = {
    "low": "Low energy lately",
    "fluctuating": "Up and down",
    "stable": "Pretty steady",
    "high": "Energized",
}


class BodyScanStep(IntEnum):
    INTRO = 0
    FEELING = 1
    GOAL = 2
    FOCUS = 3
    MEASUREMENTS = 4
    PHOTOS = 5
    COMPLETE = 6


class BodyScanWizard:
    """Every step is optional, so no step has a guard."""

    def __init__(
        self,
        storage: GuestStorage,
        *,
        api: Optional[ApiClient] = None,
        camera: Optional[CameraProvider] = None,
        notifier: Optional[Notifier] = None,
        debouncer: Optional[Debouncer] = None,
        on_complete: Optional[Callable[[BodyProfile], None]] = None,
        use_metric: bool = False,
    ) -> None:
        self.storage = storage
        self.api = api
        self.camera = CameraSession(camera)
        self.notifier = notifier or LoggingNotifier()
        self.debouncer = debouncer or Debouncer()
        self.on_complete = on_complete
        self.use_metric = use_metric
        self.profile = BodyProfile()
        self.error: Optional[str] = None
        self.machine: StepMachine[BodyScanStep] = StepMachine(list(BodyScanStep), terminal=BodyScanStep.COMPLETE)
        self.machine.on_leave(BodyScanStep.PHOTOS, self.camera.release)

    @property
    def step(self) -> BodyScanStep:
        return self.machine.step

    @property
    def show_navigation(self) -> bool:
        return BodyScanStep.INTRO < self.step < BodyScanStep.COMPLETE

    # Lifecycle ---------------------------------------------------------------

    def open(self) -> BodyProfile:
        """Start at INTRO with the draft if it is newer than the saved profile."""
        saved = self.storage.get_body_profile()
        draft = self.storage.get_body_profile_draft()
        if draft is not None and (saved is None or draft.saved_at > saved.updated_at):
            self.profile = draft.profile
        elif saved is not None:
            self.profile = saved
        else:
            self.profile = BodyProfile()
        self.error = None
        self.machine.reset()
        return self.profile

    def close(self) -> None:
        self.debouncer.flush()
        self.camera.release()

    # Navigation --------------------------------------------------------------

    def next(self) -> BodyScanStep:
        return self.machine.next()

    def back(self) -> BodyScanStep:
        return self.machine.back()

    def skip_all(self) -> BodyScanStep:
        self._persist()
        return self.machine.skip_to_terminal()

    def finish(self) -> bool:
        """Sync to the server when signed in, then save locally and complete."""
        self.error = None
        if self.api is not None and self.api.user_id is not None:
            try:
                self.api.api_request("POST", "/api/body-scans", json=self._scan_payload())
            except ApiError as exc:
                logger.warning("Body scan sync failed", extra={"code": exc.code})
                self.error = exc.user_message
                self.notifier.toast("Couldn't save your body scan", exc.user_message, variant="destructive")
                self.machine.go_to(BodyScanStep.PHOTOS)
                return False
        self._persist()
        self.machine.go_to(BodyScanStep.COMPLETE)
        if self.on_complete:
            self.on_complete(self.profile)
        return True

    def _persist(self) -> None:
        self.profile.updated_at = self.storage.clock()
        self.debouncer.cancel()
        self.storage.save_body_profile(self.profile)
        self.storage.clear_body_profile_draft()
        self.camera.release()

    # Field edits -------------------------------------------------------------

    def set_current_state(self, text: str) -> None:
        self.profile.current_state = text
        self._changed()

    def set_body_goal(self, goal: Optional[str]) -> None:
        if goal is not None and goal not in BODY_GOALS:
            raise ValueError(f"unknown body goal {goal!r}")
        self.profile.body_goal = goal
        self._changed()

    def toggle_focus_area(self, area: str) -> None:
        if area in self.profile.focus_areas:
            self.profile.focus_areas.remove(area)
        else:
            self.profile.focus_areas.append(area)
        self._changed()

    def set_energy_level(self, level: str) -> None:
        if level and level not in ENERGY_LEVELS:
            raise ValueError(f"unknown energy level {level!r}")
        self.profile.energy_level = level
        self._changed()

    def set_notes(self, notes: str) -> None:
        self.profile.notes = notes
        self._changed()

    def set_height(self, value: Optional[float]) -> None:
        self.profile.measurements.height_cm = units.canonical_height(value, self.use_metric)
        self._changed()

    def set_weight(self, value: Optional[float]) -> None:
        self.profile.measurements.weight_kg = units.canonical_weight(value, self.use_metric)
        self._changed()

    @property
    def height_display(self) -> Optional[int]:
        return units.display_height(self.profile.measurements.height_cm, self.use_metric)

    @property
    def weight_display(self) -> Optional[int]:
        return units.display_weight(self.profile.measurements.weight_kg, self.use_metric)

    def set_use_metric(self, use_metric: bool) -> None:
        self.use_metric = use_metric

    # Photos ------------------------------------------------------------------

    def start_camera(self) -> bool:
        started = self.camera.start()
        self.error = self.camera.error
        return started

    def capture_photo(self, pose: str) -> BodyPhoto:
        return self.add_photo(pose, self.camera.capture())

    def add_photo(self, pose: str, image: str) -> BodyPhoto:
        """Store a photo for ``pose``, replacing any earlier one."""
        if pose not in PHOTO_POSES:
            raise ValueError(f"unknown pose {pose!r}")
        photo = BodyPhoto(pose=pose, image=image, captured_at=self.storage.clock())
        self.profile.photos = [existing for existing in self.profile.photos if existing.pose != pose]
        self.profile.photos.append(photo)
        self._changed()
        return photo

    def remove_photo(self, pose: str) -> None:
        self.profile.photos = [photo for photo in self.profile.photos if photo.pose != pose]
        self._changed()

    def stop_camera(self) -> None:
        self.camera.release()

    # Internals ---------------------------------------------------------------

    def _changed(self) -> None:
        self.debouncer.schedule(self.storage.write_body_profile_draft, copy.deepcopy(self.profile))

    def _scan_payload(self) -> dict:
        return {
            "userId": str(self.api.user_id),
            "currentState": self.profile.current_state or None,
            "bodyGoal": self.profile.body_goal,
            "focusAreas": list(self.profile.focus_areas),
            "energyLevel": self.profile.energy_level or None,
            "heightCm": self.profile.measurements.height_cm,
            "weightKg": self.profile.measurements.weight_kg,
            "notes": self.profile.notes or None,
            "photoPoses": [photo.pose for photo in self.profile.photos],
        }
