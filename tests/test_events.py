import pytest

from shrine.ui.events import Event, EventStatus, format_fields, quote


def test_format_fields_empty():
    assert format_fields({}) == ""
    assert format_fields(None) == ""


def test_format_fields_sorted_by_key():
    result = format_fields({"zeta": "1", "alpha": "2"})
    assert result.index("alpha") < result.index("zeta")
    assert result.startswith(" alpha=")


def test_format_fields_single_pair():
    assert format_fields({"name": "web"}) == ' name="web"'


@pytest.mark.parametrize("text", ["plain", "with space", "ünïcode"])
def test_quote_keeps_printable_text(text):
    assert quote(text) == f'"{text}"'


def test_quote_escapes_quotes_and_backslashes():
    assert quote('a"b\\c') == '"a\\"b\\\\c"'


def test_quote_escapes_control_characters():
    quoted = quote("line\nnext\x01")
    assert "\n" not in quoted
    assert "\\n" in quoted
    assert "\\x01" in quoted


def test_event_field_defaults_to_empty():
    event = Event("container.create", EventStatus.STARTED, {"team": "a"})
    assert event.field("team") == "a"
    assert event.field("missing") == ""


def test_status_formats_as_its_value():
    event = Event("image.pull", EventStatus.FINISHED, {})
    assert format_fields({"status": str(event.status)}) == f' status="{EventStatus.FINISHED.value}"'