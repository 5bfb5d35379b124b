from __future__ import annotations

from brandfeed._redact import redact_for_log


def test_redact_for_log_masks_credentials_in_headers() -> None:
    headers = {
        "accept": "application/json",
        "x-api-key": "live-key",
        "Authorization": "Bearer abc",
        "Cookie": "session=1",
    }

    redacted = redact_for_log(headers)
    assert redacted == {
        "accept": "application/json",
        "x-api-key": "<redacted>",
        "Authorization": "<redacted>",
        "Cookie": "<redacted>",
    }


def test_redact_for_log_keeps_query_params() -> None:
    params = {"blockchain": "ethereum", "limit": "100", "api_key": "k"}

    assert redact_for_log(params) == {"blockchain": "ethereum", "limit": "100", "api_key": "<redacted>"}


def test_redact_for_log_clips_long_values() -> None:
    redacted = redact_for_log({"brand": "x" * 600}, max_length=10)
    assert redacted["brand"].startswith("x" * 10)
    assert redacted["brand"].endswith("(600 chars)")


def test_redact_for_log_does_not_mutate_input() -> None:
    headers = {"x-api-key": "live-key"}
    redact_for_log(headers)
    assert headers["x-api-key"] == "live-key"
