from datetime import datetime, timedelta

import pytest

from taskflow.lib.parsing import parse_fragment, validate_title

NOW = datetime(2025, 3, 12, 10, 30)


def test_today_tag_and_priority():
    f = parse_fragment("Call doctor today #health !high", now=NOW)
    assert f.title == "Call doctor"
    assert f.priority == "high"
    assert f.tags == ["health"]
    assert f.due_at == datetime(2025, 3, 12, 23, 59)


def test_tomorrow_with_time():
    f = parse_fragment("Meeting tomorrow 9am", now=NOW)
    assert f.title == "Meeting"
    assert f.due_at == datetime(2025, 3, 13, 9, 0)


def test_next_week_keeps_time_of_day():
    f = parse_fragment("Review report next week #work", now=NOW)
    assert f.title == "Review report"
    assert f.tags == ["work"]
    assert f.due_at == NOW + timedelta(days=7)


def test_plain_text_untouched():
    f = parse_fragment("Buy milk", now=NOW)
    assert f.title == "Buy milk"
    assert f.due_at is None
    assert f.priority == "medium"
    assert f.tags == []


def test_time_without_day_is_left_in_title():
    f = parse_fragment("Standup 9am", now=NOW)
    assert f.title == "Standup 9am"
    assert f.due_at is None


def test_pm_and_minutes():
    f = parse_fragment("Dentist today 2:30pm", now=NOW)
    assert f.due_at == datetime(2025, 3, 12, 14, 30)
    assert f.title == "Dentist"


def test_twelve_am_is_midnight():
    f = parse_fragment("Deploy tomorrow 12am", now=NOW)
    assert f.due_at == datetime(2025, 3, 13, 0, 0)


def test_twelve_pm_is_noon():
    f = parse_fragment("Lunch today 12pm", now=NOW)
    assert f.due_at == datetime(2025, 3, 12, 12, 0)


def test_out_of_range_hour_rolls_over():
    f = parse_fragment("Odd today 13pm", now=NOW)
    assert f.due_at == datetime(2025, 3, 13, 1, 0)


def test_only_first_time_is_stripped():
    f = parse_fragment("Call today 9am or 10am", now=NOW)
    assert f.due_at == datetime(2025, 3, 12, 9, 0)
    assert f.title == "Call or 10am"


def test_priority_last_check_wins():
    f = parse_fragment("Thing !low !high", now=NOW)
    assert f.priority == "low"
    assert f.title == "Thing"


def test_priority_case_insensitive_and_medium_alias():
    assert parse_fragment("a !HIGH", now=NOW).priority == "high"
    assert parse_fragment("a !med", now=NOW).priority == "medium"
    assert parse_fragment("a !Medium", now=NOW).priority == "medium"


def test_priority_marker_without_word_boundary():
    f = parse_fragment("fix!highbug", now=NOW)
    assert f.priority == "high"
    assert f.title == "fixbug"


def test_multiple_tags_keep_order_and_case():
    f = parse_fragment("Plan #Work #home #work", now=NOW)
    assert f.tags == ["Work", "home", "work"]
    assert f.title == "Plan"


def test_tag_stops_at_non_ascii():
    f = parse_fragment("Read #café", now=NOW)
    assert f.tags == ["caf"]


def test_today_wins_over_tomorrow():
    f = parse_fragment("a tomorrow today", now=NOW)
    assert f.due_at == datetime(2025, 3, 12, 23, 59)
    assert "tomorrow" in f.title


def test_day_keyword_needs_word_boundary():
    f = parse_fragment("todays news", now=NOW)
    assert f.due_at is None
    assert f.title == "todays news"


def test_whitespace_collapsed():
    f = parse_fragment("  write   #a   report  !low ", now=NOW)
    assert f.title == "write report"


def test_only_markers_gives_empty_title():
    f = parse_fragment("#a !high", now=NOW)
    assert f.title == ""
    assert f.tags == ["a"]


@pytest.mark.parametrize(
    "text",
    [
        "Call doctor today #health !high",
        "Meeting tomorrow 9am",
        "Review report next week #work",
        "",
        "   ",
        "!!!###",
        "12:99pm today tomorrow",
        "naïve café ☕ #x",
    ],
)
def test_title_is_stable_under_reparse(text):
    first = parse_fragment(text, now=NOW)
    again = parse_fragment(first.title, now=NOW)
    if again.due_at is None and again.tags == [] and again.priority == "medium":
        assert again.title == first.title


def test_uses_clock_when_now_omitted(monkeypatch):
    from taskflow.lib import clock

    monkeypatch.setattr(clock, "now", lambda: NOW)
    assert parse_fragment("x today").due_at == datetime(2025, 3, 12, 23, 59)


def test_validate_title_rejects_blank():
    with pytest.raises(ValueError):
        validate_title("   ")
    validate_title("ok")
