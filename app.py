import logging
from datetime import time
import streamlit as st
from config import load_config, setup_logging
from get_data.supabase import (
    create_group,
    get_availability_data,
    get_group,
    get_group_dates,
    get_user_groups,
    submit_availability,
)
from analyze import find_best_time_slots, sort_by_date, format_slot

st.set_page_config(page_title="모임 시간 찾기", page_icon="📅", layout="wide")

setup_logging(load_config(require_store=False).log_level)
logger = logging.getLogger(__name__)


# =============================================================================
# 텍스트 출력 생성 함수
# =============================================================================
def generate_text_output(group_name: str, results: dict) -> str:
    """날짜별 추천 시간을 보기 좋은 텍스트로 변환합니다."""
    lines = []
    lines.append(f"📅 {group_name} 추천 시간표")
    lines.append("=" * 40)
    lines.append("")

    for date, slot in results.items():
        lines.append(f"{date}  {format_slot(slot)}")

    return "\n".join(lines)


# =============================================================================
# 데이터 로드 함수 (응답이 바뀔 수 있으니 캐시 안 함)
# =============================================================================
def load_group(group_id: str) -> dict:
    config = load_config()
    group = get_group(group_id, config)
    if group is None:
        raise ValueError(f"그룹을 찾을 수 없습니다: {group_id}")
    return {
        "group": group,
        "dates": get_group_dates(group_id, config),
        "records": get_availability_data(group_id, config),
    }


st.title("📅 모임 시간 찾기")

if "data" not in st.session_state:
    st.session_state.data = None

if "groups" not in st.session_state:
    st.session_state.groups = []

# =============================================================================
# 상단: 사용자 ID 입력 → 내 그룹 목록
# =============================================================================
col1, col2 = st.columns([4, 1])
with col1:
    user_id = st.text_input(
        "👤 사용자 ID",
        placeholder="사용자 ID를 입력하세요",
        label_visibility="collapsed",
        key="user_id",
    ).strip()
with col2:
    groups_button = st.button("내 그룹", type="primary", use_container_width=True)

if groups_button and user_id:
    with st.spinner("그룹 목록 불러오는 중..."):
        try:
            st.session_state.groups = get_user_groups(user_id, load_config())
            if not st.session_state.groups:
                st.info("속한 그룹이 없습니다. 아래에서 새 그룹을 만들어보세요!")
        except Exception as e:
            logger.exception("그룹 목록 로드 실패: %s", user_id)
            st.error(f"❌ 오류: {e}")

if st.session_state.groups:
    col1, col2 = st.columns([4, 1])
    with col1:
        selected_group = st.selectbox(
            "📂 그룹 선택",
            options=st.session_state.groups,
            format_func=lambda g: f"{g['name']} ({g['start_date']} ~ {g['end_date']})",
            label_visibility="collapsed",
        )
    with col2:
        load_button = st.button("불러오기", use_container_width=True)

    if load_button and selected_group:
        with st.spinner("데이터 불러오는 중..."):
            try:
                st.session_state.data = load_group(selected_group["group_id"])
                st.success(f"✅ '{st.session_state.data['group']['name']}' 로드 완료!")
            except Exception as e:
                logger.exception("그룹 로드 실패: %s", selected_group["group_id"])
                st.error(f"❌ 오류: {e}")

# =============================================================================
# 새 그룹 만들기
# =============================================================================
with st.expander("➕ 새 그룹 만들기"):
    with st.form("create_group", clear_on_submit=True):
        new_name = st.text_input("그룹 이름", placeholder="예: 정기 합주")
        c1, c2 = st.columns(2)
        with c1:
            new_start = st.date_input("시작일")
        with c2:
            new_end = st.date_input("종료일 (최대 7일)")
        create_button = st.form_submit_button("만들기", type="primary")

    if create_button:
        if not user_id:
            st.warning("사용자 ID를 먼저 입력해주세요!")
        elif not new_name.strip():
            st.warning("그룹 이름을 입력해주세요!")
        else:
            try:
                group = create_group(new_name.strip(), user_id, new_start, new_end, load_config())
                st.session_state.groups = get_user_groups(user_id, load_config())
                st.session_state.data = load_group(group["group_id"])
                st.success(f"✅ '{group['name']}' 그룹 생성 완료!")
            except ValueError as e:
                st.error(f"❌ {e}")
            except Exception as e:
                logger.exception("그룹 생성 실패: %s", new_name)
                st.error(f"❌ 오류: {e}")

# =============================================================================
# 메인 UI
# =============================================================================
if st.session_state.data:
    data = st.session_state.data
    group = data["group"]

    st.divider()

    # 응답이 바뀔 때마다 다시 계산
    results = sort_by_date(find_best_time_slots(data["records"]))

    st.subheader("🕐 날짜별 추천 시간")
    if not results:
        st.info("아직 제출된 응답이 없습니다.")

    for date, slot in results.items():
        with st.expander(f"📅 {date}", expanded=True):
            if slot is None:
                st.write("😢 좋은 시간이 없습니다")
            elif slot["overlap_type"] == "everyone":
                st.success(f"✅ {format_slot(slot)}")
            else:
                st.warning(f"⚠️ {format_slot(slot)}")

    # =========================================================================
    # 내 가능 시간 제출
    # =========================================================================
    st.divider()
    st.subheader("✍️ 내 가능 시간 제출")

    st.caption(f"👤 {user_id or '사용자 ID를 위에 입력하세요'}")
    entries = {}
    for group_date in data["dates"]:
        date_id, date = group_date["date_id"], group_date["date"]
        c1, c2, c3 = st.columns([1, 2, 2])
        with c1:
            unavailable = st.checkbox(f"{date} 불가능", key=f"off_{date_id}")
        with c2:
            start = st.time_input("시작", value=time(9, 0), key=f"start_{date_id}", disabled=unavailable)
        with c3:
            end = st.time_input("종료", value=time(18, 0), key=f"end_{date_id}", disabled=unavailable)
        entries[date_id] = (None, None) if unavailable else (start, end)

    if st.button("💾 제출", type="primary"):
        invalid = [d["date"] for d in data["dates"] if entries[d["date_id"]][0] is not None
                   and entries[d["date_id"]][0] >= entries[d["date_id"]][1]]
        if not user_id:
            st.warning("사용자 ID를 입력해주세요!")
        elif invalid:
            st.warning(f"종료 시간이 시작 시간보다 늦어야 합니다: {', '.join(invalid)}")
        else:
            try:
                submit_availability(group["group_id"], user_id, entries)
                st.session_state.data = load_group(group["group_id"])
                st.success("✅ 제출 완료!")
                st.rerun()
            except Exception as e:
                logger.exception("제출 실패: group=%s", group["group_id"])
                st.error(f"❌ 오류: {e}")

    st.divider()

    # 텍스트로 복사 버튼
    if st.button("📝 전체 결과 텍스트로 보기", use_container_width=True):
        st.code(generate_text_output(group["name"], results), language=None)

else:
    st.info("사용자 ID를 입력하고 내 그룹을 불러오거나 새 그룹을 만들어주세요~")
