"""Unit tests for TID record keys."""

from __future__ import annotations

from sporesite.records import TID_ALPHABET, TID_LENGTH, TidGenerator, encode_tid


class TestEncodeTid:
    """Tests for encode_tid."""

    def test_length_and_alphabet(self) -> None:
        tid = encode_tid(1_700_000_000_000_000, 5)
        assert len(tid) == TID_LENGTH
        assert set(tid) <= set(TID_ALPHABET)

    def test_zero(self) -> None:
        assert encode_tid(0, 0) == "2" * TID_LENGTH

    def test_sorts_by_timestamp(self) -> None:
        assert encode_tid(1_000, 900) < encode_tid(1_001, 0)


class TestTidGenerator:
    """Tests for TidGenerator."""

    def test_strictly_increasing(self) -> None:
        gen = TidGenerator(clock_id=1)
        tids = [gen.next() for _ in range(50)]
        assert tids == sorted(tids)
        assert len(set(tids)) == len(tids)

    def test_random_clock_id_in_range(self) -> None:
        gen = TidGenerator()
        assert len(gen.next()) == TID_LENGTH
