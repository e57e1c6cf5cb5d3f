import pytest
from app.core.text_utils import strip_text, normalize_email


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  VIP ", "VIP"),
        ("", None),
        ("   ", None),
        ("\t \n", None),
        (None, None),
        ("  Early   Bird  ", "Early   Bird"),
        (" Regular ", "Regular")
    ]
)
def test_strip_text(value, expected):
    assert strip_text(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Organizer@Example.com", "organizer@example.com"),
        ("  staff@example.com ", "staff@example.com"),
    ]
)
def test_normalize_email(value, expected):
    assert normalize_email(value) == expected
