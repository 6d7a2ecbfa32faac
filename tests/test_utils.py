"""Tests for shared utility functions."""

from rental_request.utils import (
    REQUEST_ID_ALPHABET,
    digits_only,
    generate_request_id,
)


class TestDigitsOnly:
    def test_drops_non_digits(self):
        assert digits_only("17601-1234") == "176011234"

    def test_limit_truncates(self):
        assert digits_only("123456789012", limit=10) == "1234567890"

    def test_empty(self):
        assert digits_only("") == ""
        assert digits_only(None) == ""


class TestRequestId:
    STAMP = 1712345678901

    def test_length(self):
        assert len(generate_request_id(self.STAMP)) == 132

    def test_timestamp_interleaved_reversed(self):
        stamp = str(self.STAMP)[::-1]
        rid = generate_request_id(self.STAMP)
        # one stamp character after every six-character chunk
        assert [rid[6 + i * 7] for i in range(len(stamp))] == list(stamp)

    def test_random_part_uses_alphabet(self):
        rid = generate_request_id(self.STAMP)
        stamp_positions = {6 + i * 7 for i in range(13)}
        assert all(
            ch in REQUEST_ID_ALPHABET for i, ch in enumerate(rid) if i not in stamp_positions
        )

    def test_ids_differ_for_same_timestamp(self):
        assert generate_request_id(self.STAMP) != generate_request_id(self.STAMP)

    def test_defaults_to_current_time(self):
        assert len(generate_request_id()) == 132
