"""
Unit tests for the status code table.
"""

import pytest

from tinyhttpd.errors import UnknownStatus
from tinyhttpd.http.status_codes import HTTPStatus, reason_phrase


class TestReasonPhrase:

    @pytest.mark.parametrize("status, phrase", [
        (200, "OK"),
        (201, "Created"),
        (204, "No Content"),
        (301, "Moved Permanently"),
        (400, "Bad Request"),
        (403, "Forbidden"),
        (404, "Not Found"),
        (500, "Internal Server Error"),
    ])
    def test_known(self, status, phrase):
        assert reason_phrase(status) == phrase

    def test_enum_member(self):
        assert reason_phrase(HTTPStatus.NOT_FOUND) == "Not Found"

    @pytest.mark.parametrize("status", [0, 99, 299, 418, 600, 2000])
    def test_unknown(self, status):
        with pytest.raises(UnknownStatus) as exc_info:
            reason_phrase(status)

        assert exc_info.value.status == status


class TestHTTPStatus:

    def test_compares_to_int(self):
        assert HTTPStatus.OK == 200

    def test_every_member_has_phrase(self):
        """A member without a phrase could never be written."""
        for status in HTTPStatus:
            assert status.phrase
