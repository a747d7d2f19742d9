"""
新鮮度判斷模組

計算更新時間距今的小時數，並與門檻比較。
"""

from datetime import datetime

from .errors import NegativeAge
from .models import FreshnessResult, ParsedInstant

MS_PER_HOUR = 3_600_000


def evaluate_freshness(
    parsed: ParsedInstant,
    now: datetime,
    threshold_hours: float,
    timezone_offset_hours: float = 0.0,
) -> FreshnessResult:
    """
    判斷是否為近期更新

    age_hours = (now - parsed) / 1 小時；當且僅當
    age_hours - timezone_offset_hours < threshold_hours 時視為近期更新。

    Args:
        parsed: 解析後的更新時間
        now: 評估時間
        threshold_hours: 新鮮度門檻（小時）
        timezone_offset_hours: 執行環境與來源顯示時區的差異修正（小時）

    Returns:
        FreshnessResult

    Raises:
        NegativeAge: 更新時間晚於 now
    """
    age_ms = (now - parsed.instant).total_seconds() * 1000
    if age_ms < 0:
        raise NegativeAge(
            f"Update time {parsed.instant.isoformat()} is after {now.isoformat()}"
        )

    age_hours = age_ms / MS_PER_HOUR
    reported_age_hours = age_hours - timezone_offset_hours
    return FreshnessResult(
        age_hours=age_hours,
        is_recent=reported_age_hours < threshold_hours,
        reported_age_hours=reported_age_hours,
    )
