"""Tests for server error message extraction."""

import httpx
import pytest

from sharefare.clients.errors import (
    extract_error_message,
    parse_error_body,
    status_error_message,
)


def json_response(status: int, body: object) -> httpx.Response:
    return httpx.Response(status, json=body)


class TestExtractErrorMessage:
    """Tests for extract_error_message."""

    @pytest.mark.parametrize(
        "body, expected",
        [
            ({"message": "Group not found"}, "Group not found"),
            ({"error": "Not a member"}, "Not a member"),
            ({"error": {"message": "Nested failure"}}, "Nested failure"),
            ({"errors": ["Name is blank", "Members missing"]}, "Name is blank, Members missing"),
            (
                {"errors": {"name": ["can't be blank"], "amount": ["must be > 0", "bad"]}},
                "can't be blank, must be > 0, bad",
            ),
            ({"errors": {"base": "Something off"}}, "Something off"),
            ({"status": {"message": "Rejected"}}, "Rejected"),
        ],
    )
    def test_known_shapes(self, body, expected):
        """Should flatten every known body shape."""
        assert extract_error_message(json_response(422, body)) == expected

    def test_message_takes_priority(self):
        """Should prefer message over error and errors."""
        body = {"message": "first", "error": "second", "errors": ["third"]}
        assert extract_error_message(json_response(422, body)) == "first"

    def test_empty_message_falls_through(self):
        """Should skip an empty message and use the next shape."""
        body = {"message": "", "error": "real reason"}
        assert extract_error_message(json_response(422, body)) == "real reason"

    def test_unknown_shape_falls_back_to_reason(self):
        """Should use the reason phrase for an unrecognised body."""
        response = json_response(404, {"detail": "nope"})
        assert extract_error_message(response) == "Not Found"

    def test_non_json_falls_back_to_reason(self):
        """Should ignore plain-text bodies."""
        response = httpx.Response(500, text="<html>boom</html>")
        assert extract_error_message(response) == "Internal Server Error"

    def test_invalid_json_falls_back(self):
        """Should survive a JSON content type with a broken body."""
        response = httpx.Response(
            502, content=b"{oops", headers={"content-type": "application/json"}
        )
        assert extract_error_message(response) == "Bad Gateway"

    def test_unknown_status_without_reason(self):
        """Should fall back to the numeric status."""
        response = httpx.Response(599, text="")
        assert extract_error_message(response) == "Error 599"


class TestParseErrorBody:
    """Tests for parse_error_body."""

    def test_non_object_is_none(self):
        """Should not match lists or scalars."""
        assert parse_error_body(["a"]) is None
        assert parse_error_body("boom") is None

    def test_mixed_errors_list_is_none(self):
        """Should not match an errors list containing non-strings."""
        assert parse_error_body({"errors": [1, 2]}) is None


class TestStatusErrorMessage:
    """Tests for status_error_message."""

    def test_known_status(self):
        """Should map common statuses."""
        assert "session has expired" in status_error_message(401)

    def test_unknown_status(self):
        """Should return the generic text."""
        assert status_error_message(418) == "Something went wrong. Please try again."
