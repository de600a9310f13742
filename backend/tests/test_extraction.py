from __future__ import annotations

import pytest

from app.wizards.extraction import extract_data_from_response, format_clock, free_time_bucket


def test_unmatched_text_leaves_every_field_blank() -> None:
    fields = extract_data_from_response("I like long walks with my dog.")

    assert fields.wake_time == ""
    assert fields.sleep_time == ""
    assert fields.free_time_hours == ""


def test_empty_text_is_not_an_error() -> None:
    fields = extract_data_from_response("")

    assert (fields.wake_time, fields.sleep_time, fields.free_time_hours) == ("", "", "")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("I'm an early bird", "6:00 AM"),
        ("Up with the sunrise most days", "6:00 AM"),
        ("I love to sleep in", "9:00 AM"),
        ("Total late riser", "9:00 AM"),
        ("I wake up at 7", "7:00 AM"),
        ("I usually wake around 6:30am", "6:30 AM"),
        ("alarm goes off at 12", "12:00 PM"),
    ],
)
def test_wake_time_branches(text: str, expected: str) -> None:
    assert extract_data_from_response(text).wake_time == expected


def test_explicit_wake_time_beats_keyword() -> None:
    fields = extract_data_from_response("Early bird, I wake at 5:45")

    assert fields.wake_time == "5:45 AM"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("I'm a night owl", "12:00 AM"),
        ("Usually asleep after midnight", "12:00 AM"),
        ("I'm early to bed", "9:30 PM"),
        ("I go to bed at 11", "11:00 PM"),
        ("bedtime is 10:30 pm", "10:30 PM"),
        ("lights out at 1", "1:00 AM"),
    ],
)
def test_sleep_time_branches(text: str, expected: str) -> None:
    assert extract_data_from_response(text).sleep_time == expected


def test_sleep_in_does_not_set_a_bedtime() -> None:
    fields = extract_data_from_response("On weekends I sleep in")

    assert fields.sleep_time == ""
    assert fields.wake_time == "9:00 AM"


def test_hours_of_sleep_are_not_a_bedtime() -> None:
    fields = extract_data_from_response("I get about 7 hours of sleep")

    assert fields.sleep_time == ""


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Honestly I have no time", "less-1"),
        ("barely a moment to myself", "less-1"),
        ("maybe an hour or two", "1-2"),
        ("a couple of hours after dinner", "1-2"),
        ("a few hours in the evening", "2-4"),
        ("plenty, I'm retired", "4-plus"),
        ("about 30 minutes", "less-1"),
        ("1.5 hours", "1-2"),
        ("3 hrs on a good day", "2-4"),
        ("5+ hours", "4-plus"),
    ],
)
def test_free_time_branches(text: str, expected: str) -> None:
    assert extract_data_from_response(text).free_time_hours == expected


def test_explicit_amount_beats_vague_phrase() -> None:
    fields = extract_data_from_response("Not much, maybe 3 hours")

    assert fields.free_time_hours == "2-4"


def test_free_time_bucket_edges() -> None:
    assert free_time_bucket(0.5) == "less-1"
    assert free_time_bucket(1) == "1-2"
    assert free_time_bucket(2) == "1-2"
    assert free_time_bucket(3.99) == "2-4"
    assert free_time_bucket(4) == "4-plus"


def test_format_clock_handles_24_hour_and_midnight() -> None:
    assert format_clock(18, 5, None) == "6:05 PM"
    assert format_clock(0, 30, None) == "12:30 AM"
    assert format_clock(7, 0, "p.m.") == "7:00 PM"
    assert format_clock(25, 0, None) is None
