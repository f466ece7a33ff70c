"""Message code table."""

from src.api.core.messages import DEFAULT_MESSAGES, MessageCode, get_default_message


def test_every_code_has_exactly_one_default_message():
    assert set(DEFAULT_MESSAGES) == set(MessageCode)


def test_default_message_lookup():
    assert get_default_message(MessageCode.INSUFFICIENT_CREDITS) == (
        "Insufficient credits"
    )
