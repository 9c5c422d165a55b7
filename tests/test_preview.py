"""Unit tests for the parsed event preview."""
from datetime import datetime, timedelta

from planner.models import ParsedEvent
from planner.preview import build_preview, event_to_dict, format_event


def make_events(count):
    """Create ``count`` consecutive one-hour events."""
    start = datetime(2024, 1, 1, 8, 0)
    return [
        ParsedEvent(
            title=f"Занятие {i}",
            start=start + timedelta(hours=i),
            end=start + timedelta(hours=i + 1),
            subject=f"Занятие {i}"
        )
        for i in range(count)
    ]


def test_build_preview_truncates_to_limit():
    """Test that only the first 20 events are shown."""
    events = make_events(25)

    preview = build_preview(events)

    assert preview['total'] == 25
    assert len(preview['events']) == 20
    assert preview['remaining'] == 5
    assert preview['events'][0]['title'] == "Занятие 0"
    assert preview['events'][-1]['title'] == "Занятие 19"


def test_build_preview_short_list():
    """Test a preview with fewer events than the limit."""
    preview = build_preview(make_events(3), limit=20)

    assert preview['total'] == 3
    assert len(preview['events']) == 3
    assert len(preview['lines']) == 3
    assert preview['remaining'] == 0


def test_build_preview_empty():
    """Test the preview of an empty result."""
    assert build_preview([]) == {'total': 0, 'events': [], 'lines': [], 'remaining': 0}


def test_build_preview_custom_limit():
    """Test a custom preview limit."""
    preview = build_preview(make_events(4), limit=1)

    assert len(preview['events']) == 1
    assert preview['remaining'] == 3


def test_event_to_dict_uses_iso_timestamps():
    """Test event serialization."""
    event = make_events(1)[0]

    assert event_to_dict(event) == {
        'title': "Занятие 0",
        'subject': "Занятие 0",
        'start': "2024-01-01T08:00:00",
        'end': "2024-01-01T09:00:00"
    }


def test_format_event():
    """Test the preview line of one event."""
    event = ParsedEvent(
        title="Анатомия",
        start=datetime(2024, 1, 2, 9, 0),
        end=datetime(2024, 1, 2, 10, 30),
        subject="Анатомия"
    )

    assert format_event(event) == "Анатомия — 2024-01-02 09:00 – 10:30"
