"""Onboarding wizard, driven by forms or by the chat transcript."""
from __future__ import annotations

from enum import IntEnum
import logging
from typing import Any, Callable, Dict, List, Optional

from app.client.api import ApiClient, ApiError
from app.client.debounce import Debouncer
from app.client.guest_storage import GuestStorage
from app.client.notifier import LoggingNotifier, Notifier
from app.client.records import FREE_TIME_BUCKETS, ChatMessage, OnboardingData
from app.wizards.extraction import extract_data_from_response
from app.wizards.machine import StepBlocked, StepMachine

logger = logging.getLogger(__name__)

MAX_WELLNESS_FOCUS = 3
DEFAULT_SYSTEM_NAME = "My Life System"

STEP_PROMPTS = {
    0: "Hi! I'm here to help you build a life system that fits you. Ready to start?",
    1: "What takes up most of your time and energy right now? Work, family, school, caregiving?",
    2: "Outside of those responsibilities, what matters most to you personally?",
    3: "Roughly how much free time do you get on a typical day?",
    4: "Which areas of wellness would you like to focus on? Pick up to three.",
    5: "Last one: what would you like to call your life system?",
}

FOCUS_KEYWORDS: Dict[str, tuple] = {
    "energy": ("energy", "tired", "exhausted"),
    "emotional": ("emotion", "mood", "anxious", "anxiety", "stress"),
    "sleep": ("sleep", "insomnia", "rest"),
    "focus": ("focus", "concentrat", "distract"),
    "purpose": ("purpose", "meaning", "direction"),
    "financial": ("money", "financ", "budget", "debt"),
    "creative": ("creativ", "art", "music", "writing"),
    "connection": ("friend", "family", "connect", "lonely"),
    "myself": ("myself", "self-care", "me time"),
}


class OnboardingStep(IntEnum):
    WELCOME = 0
    RESPONSIBILITIES = 1
    PRIORITIES = 2
    FREE_TIME = 3
    WELLNESS_FOCUS = 4
    SYSTEM_NAME = 5


def detect_focus_areas(text: str) -> List[str]:
    lowered = text.lower()
    found = [focus for focus, words in FOCUS_KEYWORDS.items() if any(word in lowered for word in words)]
    return found[:MAX_WELLNESS_FOCUS]


class OnboardingWizard:
    def __init__(
        self,
        storage: GuestStorage,
        api: ApiClient,
        *,
        notifier: Optional[Notifier] = None,
        debouncer: Optional[Debouncer] = None,
        on_complete: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        self.storage = storage
        self.api = api
        self.notifier = notifier or LoggingNotifier()
        self.debouncer = debouncer or Debouncer()
        self.on_complete = on_complete
        self.data = OnboardingData()
        self.messages: List[ChatMessage] = []
        self.error: Optional[str] = None
        self.submitting = False
        self.result: Optional[Dict[str, Any]] = None

        self.machine: StepMachine[OnboardingStep] = StepMachine(list(OnboardingStep))
        self.machine.guard(OnboardingStep.RESPONSIBILITIES, self._check_responsibilities)
        self.machine.guard(OnboardingStep.PRIORITIES, self._check_priorities)
        self.machine.guard(OnboardingStep.FREE_TIME, self._check_free_time)
        self.machine.guard(OnboardingStep.WELLNESS_FOCUS, self._check_wellness_focus)

    @property
    def step(self) -> OnboardingStep:
        return self.machine.step

    # Guards ------------------------------------------------------------------

    def _check_responsibilities(self) -> Optional[str]:
        if self.data.responsibilities or self.data.other_responsibility.strip():
            return None
        return "Choose at least one responsibility or describe your own."

    def _check_priorities(self) -> Optional[str]:
        if self.data.priorities or self.data.other_priority.strip():
            return None
        return "Choose at least one priority or describe your own."

    def _check_free_time(self) -> Optional[str]:
        return None if self.data.free_time_hours else "Pick how much free time you usually have."

    def _check_wellness_focus(self) -> Optional[str]:
        if 1 <= len(self.data.wellness_focus) <= MAX_WELLNESS_FOCUS:
            return None
        return f"Choose between 1 and {MAX_WELLNESS_FOCUS} areas to focus on."

    # Lifecycle ---------------------------------------------------------------

    def open(self) -> OnboardingStep:
        draft = self.storage.get_onboarding_draft()
        self.error = None
        self.machine.reset()
        if draft is not None:
            self.data = draft.data
            self.messages = list(draft.messages)
            if 0 <= draft.step < len(OnboardingStep):
                self.machine.go_to(OnboardingStep(draft.step))
        else:
            self.data = OnboardingData()
            self.messages = [ChatMessage(role="assistant", content=STEP_PROMPTS[OnboardingStep.WELCOME])]
        return self.step

    def close(self) -> None:
        self.debouncer.flush()

    def save_draft(self) -> None:
        self.debouncer.schedule(
            self.storage.write_onboarding_draft,
            self.data.model_copy(deep=True),
            list(self.messages),
            int(self.step),
        )

    # Navigation --------------------------------------------------------------

    def next(self) -> OnboardingStep:
        if self.step == OnboardingStep.SYSTEM_NAME:
            self.submit()
            return self.step
        step = self.machine.next()
        self.save_draft()
        return step

    def back(self) -> OnboardingStep:
        step = self.machine.back()
        self.save_draft()
        return step

    def skip_all(self) -> OnboardingStep:
        step = self.machine.skip_to_terminal()
        self.save_draft()
        return step

    # Form edits --------------------------------------------------------------

    def toggle_responsibility(self, value: str) -> None:
        _toggle(self.data.responsibilities, value)
        self.save_draft()

    def set_other_responsibility(self, text: str) -> None:
        self.data.other_responsibility = text
        self.save_draft()

    def toggle_priority(self, value: str) -> None:
        _toggle(self.data.priorities, value)
        self.save_draft()

    def set_other_priority(self, text: str) -> None:
        self.data.other_priority = text
        self.save_draft()

    def set_free_time(self, bucket: str) -> None:
        if bucket not in FREE_TIME_BUCKETS:
            raise ValueError(f"unknown free time bucket {bucket!r}")
        self.data.free_time_hours = bucket
        self.save_draft()

    def set_peak_motivation_time(self, value: str) -> None:
        self.data.peak_motivation_time = value
        self.save_draft()

    def toggle_wellness_focus(self, focus: str) -> bool:
        """Toggle a focus area; adding a fourth is refused."""
        if focus in self.data.wellness_focus:
            self.data.wellness_focus.remove(focus)
        elif len(self.data.wellness_focus) >= MAX_WELLNESS_FOCUS:
            return False
        else:
            self.data.wellness_focus.append(focus)
        self.save_draft()
        return True

    def set_system_name(self, name: str) -> None:
        self.data.system_name = name
        self.save_draft()

    # Chat --------------------------------------------------------------------

    def answer(self, text: str) -> OnboardingStep:
        """Record a chat reply, fill what it reveals and move on when allowed."""
        self.messages.append(ChatMessage(role="user", content=text))
        self._apply_answer(text)

        if self.step == OnboardingStep.SYSTEM_NAME:
            self.save_draft()
            self.submit()
            return self.step

        try:
            self.machine.next()
        except StepBlocked as blocked:
            self.messages.append(ChatMessage(role="assistant", content=blocked.reason))
        else:
            self.messages.append(ChatMessage(role="assistant", content=STEP_PROMPTS[self.step]))
        self.save_draft()
        return self.step

    def _apply_answer(self, text: str) -> None:
        extracted = extract_data_from_response(text)
        if extracted.wake_time:
            self.data.wake_time = extracted.wake_time
        if extracted.sleep_time:
            self.data.sleep_time = extracted.sleep_time
        if extracted.free_time_hours:
            self.data.free_time_hours = extracted.free_time_hours

        cleaned = text.strip()
        if self.step == OnboardingStep.RESPONSIBILITIES and cleaned:
            self.data.other_responsibility = cleaned
        elif self.step == OnboardingStep.PRIORITIES and cleaned:
            self.data.other_priority = cleaned
        elif self.step == OnboardingStep.WELLNESS_FOCUS:
            for focus in detect_focus_areas(cleaned):
                if focus not in self.data.wellness_focus and len(self.data.wellness_focus) < MAX_WELLNESS_FOCUS:
                    self.data.wellness_focus.append(focus)
        elif self.step == OnboardingStep.SYSTEM_NAME and cleaned:
            self.data.system_name = cleaned[:120]

    # Submit ------------------------------------------------------------------

    def submit(self) -> bool:
        if self.submitting:
            return False
        self.submitting = True
        self.error = None
        try:
            response = self.api.api_request("POST", "/api/onboarding/complete", json=self._payload())
        except ApiError as exc:
            logger.warning("Onboarding submit failed", extra={"code": exc.code})
            self.error = exc.user_message
            self.notifier.toast("Something went wrong", exc.user_message, variant="destructive")
            self.machine.go_to(OnboardingStep.SYSTEM_NAME)
            return False
        finally:
            self.submitting = False

        self.result = response
        self.debouncer.cancel()
        self.storage.clear_onboarding_draft()
        name = (response or {}).get("systemName") or self.data.system_name.strip() or DEFAULT_SYSTEM_NAME
        self.notifier.toast("Welcome to your wellness journey!", f"{name} is ready.")
        if self.on_complete:
            self.on_complete(response)
        return True

    def _payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"userId": str(self.api.user_id), **self.data.to_storage()}
        if self.messages:
            payload["messages"] = [message.to_storage() for message in self.messages]
        return payload


def _toggle(values: List[str], value: str) -> None:
    if value in values:
        values.remove(value)
    else:
        values.append(value)
