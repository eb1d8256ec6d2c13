import logging
import re
from datetime import date, datetime, time, timedelta
from schemas import AvailabilityRecord, SlotRecommendation, BestSlots, TimeValue, DateKey

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?$")


# =============================================================================
# 기본 함수 (시간 변환)
# =============================================================================

def time_to_minutes(value: TimeValue) -> int | None:
    """
    시각을 자정 기준 분(0~1439)으로 변환합니다.
    형식이 잘못되었거나 값이 없으면 None을 반환합니다 (예외 없음).
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        return None

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour >= 24 or minute >= 60:
        return None
    return hour * 60 + minute


def minutes_to_time(minutes: int) -> str:
    """분을 "HH:MM" 문자열로 변환합니다."""
    hour, minute = divmod(minutes, 60)
    return f"{hour:02d}:{minute:02d}"


# =============================================================================
# 1. 날짜별 그룹핑
# =============================================================================

def group_by_date(records: list[AvailabilityRecord]) -> dict[DateKey, list[AvailabilityRecord]]:
    """
    응답들을 날짜별로 묶습니다. 날짜가 없는 응답은 버립니다.

    Returns:
        {"2025-01-05": [record, ...], ...} (처음 등장한 순서)
    """
    grouped: dict[DateKey, list[AvailabilityRecord]] = {}

    for record in records:
        record_date = record.get("date")
        if not record_date:
            logger.debug("date 없는 응답 제외: user=%s", record.get("user_id"))
            continue
        grouped.setdefault(record_date, []).append(record)

    return grouped


def _to_ranges(records: list[AvailabilityRecord]) -> list[tuple[int, int]]:
    """시작/종료가 모두 변환되는 응답만 [start, end) 구간으로 바꿉니다."""
    ranges = []
    for record in records:
        start = time_to_minutes(record.get("start_time"))
        end = time_to_minutes(record.get("end_time"))
        if start is not None and end is not None:
            ranges.append((start, end))
    return ranges


# =============================================================================
# 2. 날짜별 최적 시간대
# =============================================================================

def _find_partial_overlap(
    ranges: list[tuple[int, int]],
    min_duration_minutes: int,
    min_users: int,
) -> tuple[int, int, int] | None:
    """
    min_users명 이상 겹치는 가장 긴 연속 구간을 찾습니다.
    길이가 같으면 먼저 나온 구간을 유지합니다.

    Returns:
        (시작 분, 종료 분, 구간 내 최소 인원) 또는 None
    """
    coverage = [0] * MINUTES_PER_DAY
    for start, end in ranges:
        for minute in range(max(start, 0), min(end, MINUTES_PER_DAY)):
            coverage[minute] += 1

    best_start, best_end, best_users = 0, 0, 0
    run_start = None
    run_users = 0

    # 마지막 구간을 닫기 위해 1440까지 훑습니다
    for minute in range(MINUTES_PER_DAY + 1):
        users = coverage[minute] if minute < MINUTES_PER_DAY else 0

        if users >= min_users:
            if run_start is None:
                run_start = minute
                run_users = users
            else:
                run_users = min(run_users, users)
            continue

        if run_start is not None:
            length = minute - run_start
            if length >= min_duration_minutes and length > best_end - best_start:
                best_start, best_end, best_users = run_start, minute, run_users
        run_start = None
        run_users = 0

    if best_end > best_start:
        return best_start, best_end, best_users
    return None


def find_best_slot(
    records: list[AvailabilityRecord],
    min_duration_minutes: int = 60,
    min_users: int = 2,
) -> SlotRecommendation | None:
    """
    한 날짜의 응답들로 최적 시간대를 하나 고릅니다.

    1. 시간을 낸 사람이 없으면 None
    2. 전원이 시간을 냈고 공통 구간이 min_duration_minutes 이상이면 "everyone"
    3. 아니면 min_users명 이상 겹치는 가장 긴 구간 (min_duration_minutes 이상) → "most"

    Args:
        records: 같은 날짜의 응답 리스트 (시간 없는 응답 포함)
        min_duration_minutes: 최소 연속 시간 (분). 기본값 60분 (1시간)
        min_users: 부분 겹침으로 인정할 최소 인원

    Returns:
        SlotRecommendation 또는 None
    """
    total_users = len(records)
    ranges = _to_ranges(records)

    if not ranges:
        return None

    max_start = max(start for start, _ in ranges)
    min_end = min(end for _, end in ranges)

    # 전원이 시간을 제출한 경우에만 "everyone"
    if (
        len(ranges) == total_users
        and max_start < min_end
        and min_end - max_start >= min_duration_minutes
    ):
        return {
            "start_time": minutes_to_time(max_start),
            "end_time": minutes_to_time(min_end),
            "overlap_type": "everyone",
            "approx_users": len(ranges),
        }

    block = _find_partial_overlap(ranges, min_duration_minutes, min_users)
    if block is None:
        return None

    start, end, users = block
    return {
        "start_time": minutes_to_time(start),
        "end_time": minutes_to_time(end),
        "overlap_type": "most",
        "approx_users": users,
    }


def find_best_time_slots(
    records: list[AvailabilityRecord],
    min_duration_minutes: int = 60,
    min_users: int = 2,
) -> BestSlots:
    """
    그룹 전체 응답에서 날짜별 최적 시간대를 계산합니다.
    입력을 바꾸지 않으며 같은 입력에는 항상 같은 결과를 냅니다.

    Args:
        records: 그룹 전체 응답 스냅샷
        min_duration_minutes: 최소 연속 시간 (분)
        min_users: 부분 겹침으로 인정할 최소 인원

    Returns:
        {"2025-01-05": SlotRecommendation | None, ...} (날짜 첫 등장 순서)
    """
    results: BestSlots = {}

    for record_date, date_records in group_by_date(records).items():
        results[record_date] = find_best_slot(date_records, min_duration_minutes, min_users)
        logger.debug("%s: %d명 → %s", record_date, len(date_records), results[record_date])

    return results


def sort_by_date(results: BestSlots) -> BestSlots:
    """결과를 날짜순으로 정렬합니다."""
    return dict(sorted(results.items(), key=lambda item: _as_date(item[0])))


def _as_date(value: DateKey) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


# =============================================================================
# 3. 날짜 범위 / 출력
# =============================================================================

def generate_date_range(start_date: DateKey, end_date: DateKey, max_days: int = 7) -> list[str]:
    """
    시작일부터 종료일까지(포함) ISO 날짜 문자열 리스트를 만듭니다.

    Raises:
        ValueError: 시작일이 종료일보다 늦거나 기간이 max_days일을 넘을 때
    """
    start = _as_date(start_date)
    end = _as_date(end_date)

    if start > end:
        raise ValueError("Start date must be before end date.")
    if (end - start).days > max_days - 1:
        raise ValueError(f"The date range cannot exceed {max_days} days.")

    return [(start + timedelta(days=i)).isoformat() for i in range((end - start).days + 1)]


def format_slot(slot: SlotRecommendation | None) -> str:
    """추천 시간대를 보기 좋게 포맷팅합니다."""
    if slot is None:
        return "가능한 시간 없음"

    duration = time_to_minutes(slot["end_time"]) - time_to_minutes(slot["start_time"])
    hours, minutes = divmod(duration, 60)

    duration_str = ""
    if hours > 0:
        duration_str += f"{hours}시간"
    if minutes > 0:
        duration_str += f" {minutes}분" if hours > 0 else f"{minutes}분"

    if slot["overlap_type"] == "everyone":
        label = "전원 가능"
    else:
        label = f"{slot['approx_users']}명 이상 가능"

    return f"{slot['start_time']} ~ {slot['end_time']} ({duration_str.strip()}) · {label}"
