"""
날짜별 최적 시간대 계산 테스트
"""

import copy
from datetime import date, time

import pytest

from analyze import (
    time_to_minutes,
    minutes_to_time,
    group_by_date,
    find_best_slot,
    find_best_time_slots,
    sort_by_date,
    generate_date_range,
    format_slot,
)

D = "2025-01-05"


def make_record(user_id, start=None, end=None, record_date=D):
    return {
        "group_id": "g1",
        "date_id": f"d-{record_date}",
        "user_id": user_id,
        "date": record_date,
        "start_time": start,
        "end_time": end,
    }


class TestTimeConversion:
    """시간 변환 테스트"""

    @pytest.mark.parametrize("value, expected", [
        ("09:00", 540),
        ("9:05", 545),
        ("00:00", 0),
        ("23:59:00", 1439),
        (time(14, 30), 870),
    ])
    def test_valid(self, value, expected):
        assert time_to_minutes(value) == expected

    @pytest.mark.parametrize("value", [None, "", "0900", "9am", "24:00", "12:60", 900])
    def test_invalid_returns_none(self, value):
        assert time_to_minutes(value) is None

    def test_minutes_to_time_zero_padded(self):
        assert minutes_to_time(0) == "00:00"
        assert minutes_to_time(545) == "09:05"
        assert minutes_to_time(1439) == "23:59"


class TestGroupByDate:
    """날짜별 그룹핑 테스트"""

    def test_first_appearance_order(self):
        records = [
            make_record("a", record_date="2025-01-07"),
            make_record("b", record_date="2025-01-05"),
            make_record("c", record_date="2025-01-07"),
        ]
        grouped = group_by_date(records)
        assert list(grouped) == ["2025-01-07", "2025-01-05"]
        assert [r["user_id"] for r in grouped["2025-01-07"]] == ["a", "c"]

    def test_missing_date_dropped(self):
        records = [make_record("a", record_date=None), make_record("b")]
        grouped = group_by_date(records)
        assert list(grouped) == [D]
        assert len(grouped[D]) == 1


class TestEveryone:
    """전원 가능 시간 테스트"""

    def test_two_users_overlap(self):
        records = [make_record("a", "09:00", "12:00"), make_record("b", "10:00", "13:00")]
        assert find_best_time_slots(records) == {
            D: {"start_time": "10:00", "end_time": "12:00", "overlap_type": "everyone", "approx_users": 2}
        }

    def test_single_user(self):
        result = find_best_time_slots([make_record("a", "14:00", "15:00")])
        assert result[D]["start_time"] == "14:00"
        assert result[D]["end_time"] == "15:00"
        assert result[D]["overlap_type"] == "everyone"

    def test_exactly_one_hour(self):
        records = [make_record("a", "09:00", "10:00"), make_record("b", "09:00", "11:00")]
        assert find_best_slot(records)["overlap_type"] == "everyone"

    def test_superset_user_keeps_bounds(self):
        records = [make_record("a", "09:00", "12:00"), make_record("b", "10:00", "13:00")]
        before = find_best_slot(records)
        after = find_best_slot(records + [make_record("c", "08:00", "18:00")])
        assert (after["start_time"], after["end_time"]) == (before["start_time"], before["end_time"])
        assert after["overlap_type"] == "everyone"

    def test_narrower_user_cannot_widen(self):
        records = [make_record("a", "09:00", "12:00"), make_record("b", "10:00", "13:00")]
        after = find_best_slot(records + [make_record("c", "10:30", "12:00")])
        assert after["start_time"] == "10:30"
        assert after["end_time"] == "12:00"


class TestMost:
    """부분 겹침 테스트"""

    def test_unavailable_user_blocks_everyone(self):
        records = [
            make_record("a", "09:00", "12:00"),
            make_record("b", "10:00", "13:00"),
            make_record("c"),
        ]
        assert find_best_slot(records) == {
            "start_time": "10:00", "end_time": "12:00", "overlap_type": "most", "approx_users": 2,
        }

    def test_chained_ranges_without_long_pair_overlap(self):
        # 두 명씩 겹치는 구간이 30분씩뿐
        records = [
            make_record("a", "09:00", "10:30"),
            make_record("b", "10:00", "12:00"),
            make_record("c", "11:30", "13:00"),
        ]
        assert find_best_time_slots(records) == {D: None}

    def test_equal_length_keeps_earliest(self):
        records = [
            make_record("a", "14:00", "16:00"),
            make_record("b", "14:00", "16:00"),
            make_record("c", "08:00", "10:00"),
            make_record("d", "08:00", "10:00"),
            make_record("e"),
        ]
        slot = find_best_slot(records)
        assert (slot["start_time"], slot["end_time"]) == ("08:00", "10:00")

    def test_longer_beats_more_users(self):
        records = [
            make_record("a", "09:00", "10:00"),
            make_record("b", "09:00", "10:00"),
            make_record("c", "09:00", "10:00"),
            make_record("d", "13:00", "15:00"),
            make_record("e", "13:00", "15:00"),
            make_record("f"),
        ]
        slot = find_best_slot(records)
        assert (slot["start_time"], slot["end_time"], slot["approx_users"]) == ("13:00", "15:00", 2)

    def test_approx_users_is_minimum_in_run(self):
        records = [
            make_record("a", "09:00", "12:00"),
            make_record("b", "09:00", "12:00"),
            make_record("c", "10:00", "11:00"),
            make_record("d"),
        ]
        slot = find_best_slot(records)
        assert (slot["start_time"], slot["end_time"]) == ("09:00", "12:00")
        assert slot["approx_users"] == 2

    def test_malformed_time_counts_as_user(self):
        records = [
            make_record("a", "09:00", "12:00"),
            make_record("b", "09:00", "12:00"),
            make_record("c", "9am", "noon"),
        ]
        assert find_best_slot(records)["overlap_type"] == "most"

    def test_custom_min_duration(self):
        records = [make_record("a", "09:00", "09:30"), make_record("b", "09:00", "09:30")]
        assert find_best_slot(records) is None
        assert find_best_slot(records, min_duration_minutes=30)["overlap_type"] == "everyone"

    def test_min_users_passed_through_entry_point(self):
        records = [
            make_record("a", "09:00", "12:00"),
            make_record("b", "10:00", "13:00"),
            make_record("c", "10:00", "11:30"),
            make_record("d"),
        ]
        assert find_best_time_slots(records)[D]["end_time"] == "12:00"

        slot = find_best_time_slots(records, min_users=3)[D]
        assert (slot["start_time"], slot["end_time"], slot["approx_users"]) == ("10:00", "11:30", 3)

        assert find_best_time_slots(records, min_users=4) == {D: None}


class TestNoSlot:
    """좋은 시간이 없는 경우"""

    def test_one_range_one_unavailable(self):
        records = [make_record("a"), make_record("b", "09:00", "10:00")]
        assert find_best_time_slots(records) == {D: None}

    def test_all_unavailable(self):
        assert find_best_slot([make_record("a"), make_record("b")]) is None

    def test_short_intersection(self):
        records = [make_record("a", "09:00", "10:30"), make_record("b", "10:00", "12:00")]
        assert find_best_slot(records) is None

    def test_inverted_range(self):
        assert find_best_slot([make_record("a", "12:00", "09:00")]) is None

    def test_missing_counterpart(self):
        assert find_best_slot([make_record("a", "09:00", None)]) is None

    def test_empty_input(self):
        assert find_best_time_slots([]) == {}


class TestEngineProperties:
    """엔진 성질 테스트"""

    def test_keys_and_idempotence(self):
        records = [
            make_record("a", "09:00", "12:00", "2025-01-06"),
            make_record("b", "10:00", "13:00", "2025-01-06"),
            make_record("a", record_date="2025-01-05"),
            make_record("x", "10:00", "11:00", None),
        ]
        snapshot = copy.deepcopy(records)

        first = find_best_time_slots(records)
        second = find_best_time_slots(records)

        assert list(first) == ["2025-01-06", "2025-01-05"]
        assert first == second
        assert records == snapshot

    def test_sort_by_date(self):
        results = {"2025-01-07": None, "2025-01-05": None, date(2025, 1, 6): None}
        assert list(sort_by_date(results)) == ["2025-01-05", date(2025, 1, 6), "2025-01-07"]


class TestDateRange:
    """날짜 범위 생성 테스트"""

    def test_inclusive(self):
        assert generate_date_range("2025-01-01", "2025-01-03") == ["2025-01-01", "2025-01-02", "2025-01-03"]

    def test_single_day(self):
        assert generate_date_range(date(2025, 1, 1), date(2025, 1, 1)) == ["2025-01-01"]

    def test_seven_days_allowed(self):
        assert len(generate_date_range("2025-01-01", "2025-01-07")) == 7

    def test_too_long(self):
        with pytest.raises(ValueError, match="cannot exceed 7 days"):
            generate_date_range("2025-01-01", "2025-01-08")

    def test_start_after_end(self):
        with pytest.raises(ValueError, match="Start date must be before end date"):
            generate_date_range("2025-01-03", "2025-01-01")


class TestFormatSlot:
    """출력 포맷 테스트"""

    def test_everyone(self):
        slot = {"start_time": "10:00", "end_time": "12:00", "overlap_type": "everyone", "approx_users": 2}
        assert format_slot(slot) == "10:00 ~ 12:00 (2시간) · 전원 가능"

    def test_most(self):
        slot = {"start_time": "10:00", "end_time": "11:30", "overlap_type": "most", "approx_users": 3}
        assert format_slot(slot) == "10:00 ~ 11:30 (1시간 30분) · 3명 이상 가능"

    def test_none(self):
        assert format_slot(None) == "가능한 시간 없음"
