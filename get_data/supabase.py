"""
Supabase 데이터 모듈

그룹 / 날짜 / 가능 시간 응답을 Supabase REST API(PostgREST)로 읽고 씁니다.
"""

import logging
import requests
from analyze import generate_date_range
from config import AppConfig, load_config
from schemas import AvailabilityRecord, Group, DateKey, TimeValue

logger = logging.getLogger(__name__)


def _get_api_url(config: AppConfig, table: str) -> str:
    """테이블 이름으로 REST URL을 만듭니다."""
    return f"{config.supabase_url}/rest/v1/{table}"


def _headers(config: AppConfig, access_token: str | None = None) -> dict[str, str]:
    return {
        "apikey": config.supabase_key,
        "Authorization": f"Bearer {access_token or config.supabase_key}",
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def _request(
    method: str,
    config: AppConfig,
    table: str,
    params: dict | None = None,
    json: list | dict | None = None,
    access_token: str | None = None,
    prefer: str | None = None,
):
    """API 요청을 보내고 JSON 응답을 돌려줍니다 (본문이 없으면 None)."""
    headers = _headers(config, access_token)
    if prefer:
        headers["Prefer"] = prefer

    logger.debug("%s %s params=%s", method, table, params)
    response = requests.request(
        method,
        _get_api_url(config, table),
        headers=headers,
        params=params,
        json=json,
        timeout=config.request_timeout,
    )
    response.raise_for_status()

    if not response.content:
        return None
    return response.json()


def _format_time(value: TimeValue) -> str | None:
    """time 객체는 "HH:MM"으로, 문자열은 그대로, 없으면 None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    return value.strftime("%H:%M")


def _parse_record(row: dict) -> AvailabilityRecord:
    """
    availability 행을 정규화합니다.

    Args:
        row: {"groupID", "dateID", "userID", "startTime", "endTime",
              "group_dates": {"date": "2025-01-05"}}
    """
    group_date = row.get("group_dates") or {}
    return {
        "group_id": row.get("groupID"),
        "date_id": row.get("dateID"),
        "user_id": row.get("userID"),
        "date": group_date.get("date"),
        "start_time": row.get("startTime"),
        "end_time": row.get("endTime"),
    }


def _parse_group(row: dict) -> Group:
    return {
        "group_id": row["groupId"],
        "name": row.get("name", ""),
        "owner_id": row.get("uuid", ""),
        "start_date": row.get("startDate", ""),
        "end_date": row.get("endDate", ""),
    }


# =============================================================================
# 읽기
# =============================================================================

def get_availability_data(
    group_id: str,
    config: AppConfig | None = None,
    access_token: str | None = None,
) -> list[AvailabilityRecord]:
    """
    그룹의 전체 가능 시간 응답(스냅샷)을 가져옵니다.

    Returns:
        [AvailabilityRecord, ...]
    """
    config = config or load_config()
    rows = _request(
        "GET",
        config,
        "availability",
        params={"select": "*,group_dates(date)", "groupID": f"eq.{group_id}"},
        access_token=access_token,
    ) or []

    records = [_parse_record(row) for row in rows]
    logger.info("그룹 %s 응답 %d건 로드", group_id, len(records))
    return records


def get_group(
    group_id: str,
    config: AppConfig | None = None,
    access_token: str | None = None,
) -> Group | None:
    """그룹 정보를 가져옵니다. 없으면 None."""
    config = config or load_config()
    rows = _request(
        "GET",
        config,
        "groups",
        params={"select": "*", "groupId": f"eq.{group_id}"},
        access_token=access_token,
    ) or []

    if not rows:
        logger.info("그룹 %s 없음", group_id)
        return None
    return _parse_group(rows[0])


def get_user_groups(
    user_id: str,
    config: AppConfig | None = None,
    access_token: str | None = None,
) -> list[Group]:
    """
    사용자가 속한 그룹 목록을 가져옵니다 (group_members → groups).

    Returns:
        [Group, ...] (시작일순). 속한 그룹이 없으면 []
    """
    config = config or load_config()
    memberships = _request(
        "GET",
        config,
        "group_members",
        params={"select": "groupID", "userID": f"eq.{user_id}"},
        access_token=access_token,
    ) or []

    group_ids = [m["groupID"] for m in memberships]
    if not group_ids:
        return []

    rows = _request(
        "GET",
        config,
        "groups",
        params={
            "select": "*",
            "groupId": f"in.({','.join(str(g) for g in group_ids)})",
            "order": "startDate.asc",
        },
        access_token=access_token,
    ) or []

    groups = [_parse_group(row) for row in rows]
    logger.info("사용자 %s 그룹 %d개 로드", user_id, len(groups))
    return groups


def get_group_dates(
    group_id: str,
    config: AppConfig | None = None,
    access_token: str | None = None,
) -> list[dict[str, str]]:
    """
    그룹의 날짜 목록을 가져옵니다.

    Returns:
        [{"date_id": ..., "date": "2025-01-05"}, ...] (날짜순)
    """
    config = config or load_config()
    rows = _request(
        "GET",
        config,
        "group_dates",
        params={"select": "*", "groupID": f"eq.{group_id}", "order": "date.asc"},
        access_token=access_token,
    ) or []
    return [{"date_id": row["dateID"], "date": row["date"]} for row in rows]


# =============================================================================
# 쓰기
# =============================================================================

def submit_availability(
    group_id: str,
    user_id: str,
    entries: dict[str, tuple[TimeValue, TimeValue]],
    config: AppConfig | None = None,
    access_token: str | None = None,
) -> None:
    """
    사용자의 응답을 통째로 교체합니다 (기존 응답 삭제 후 새로 저장).

    Args:
        entries: {date_id: (시작, 종료)}. (None, None)은 그 날짜 불가능
    """
    config = config or load_config()

    _request(
        "DELETE",
        config,
        "availability",
        params={"groupID": f"eq.{group_id}", "userID": f"eq.{user_id}"},
        access_token=access_token,
    )

    rows = [
        {
            "groupID": group_id,
            "dateID": date_id,
            "userID": user_id,
            "startTime": _format_time(start),
            "endTime": _format_time(end),
        }
        for date_id, (start, end) in entries.items()
    ]
    if rows:
        _request("POST", config, "availability", json=rows, access_token=access_token)

    logger.info("그룹 %s / 사용자 %s 응답 %d건 저장", group_id, user_id, len(rows))


def create_group(
    name: str,
    owner_id: str,
    start_date: DateKey,
    end_date: DateKey,
    config: AppConfig | None = None,
    access_token: str | None = None,
) -> Group:
    """
    그룹을 만들고 생성자를 멤버로, 기간의 날짜들을 group_dates로 추가합니다.

    Raises:
        ValueError: 날짜 범위가 잘못되었을 때 (저장 전에 검사)
    """
    dates = generate_date_range(start_date, end_date)
    config = config or load_config()

    rows = _request(
        "POST",
        config,
        "groups",
        json=[{"name": name, "uuid": owner_id, "startDate": dates[0], "endDate": dates[-1]}],
        access_token=access_token,
        prefer="return=representation",
    )
    if not rows:
        raise ValueError("Group creation failed: empty response.")
    group = _parse_group(rows[0])

    _request(
        "POST",
        config,
        "group_members",
        json=[{"groupID": group["group_id"], "userID": owner_id}],
        access_token=access_token,
    )
    _request(
        "POST",
        config,
        "group_dates",
        json=[{"groupID": group["group_id"], "date": d} for d in dates],
        access_token=access_token,
    )

    logger.info("그룹 %s 생성 (%s ~ %s)", group["group_id"], dates[0], dates[-1])
    return group
