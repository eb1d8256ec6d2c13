from datetime import date, time
from typing import TypedDict, Literal, Dict, Optional, Union

TimeValue = Union[str, time, None]             # "HH:MM" | "HH:MM:SS" | time | None
DateKey = Union[str, date]                     # "2025-01-05" | date


class AvailabilityRecord(TypedDict):
    group_id: str
    date_id: str
    user_id: str
    date: Optional[DateKey]                    # group_dates.date
    start_time: TimeValue                      # None = 해당 날짜 불가능
    end_time: TimeValue


class SlotRecommendation(TypedDict):
    start_time: str                            # "HH:MM"
    end_time: str                              # "HH:MM"
    overlap_type: Literal["everyone", "most"]
    approx_users: int                          # 표시용 인원 수 (선택에는 사용 안 함)


class Group(TypedDict):
    group_id: str
    name: str
    owner_id: str
    start_date: str
    end_date: str


BestSlots = Dict[DateKey, Optional[SlotRecommendation]]
