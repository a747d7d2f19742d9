"""
時間字串解析模組

將 Steam Workshop 變更記錄上的時間文字轉換為 datetime，支援：
- "Updated: Jun 3 @ 2:15pm"（省略年份，代表一年內的更新）
- "Jun 3, 2023 @ 2:15pm"（含年份）

省略年份時先假設為今年；若得到的時間晚於現在，代表實際是去年。
"""

import re
from datetime import datetime
from typing import List, Optional

from .errors import FutureTimestamp, MalformedTimestamp
from .models import ParsedInstant


# 開頭的標籤，例如 "Updated:"
LABEL_PATTERN = re.compile(r"^[A-Za-z]+:\s*")

DATE_PATTERN = re.compile(
    r"^([A-Za-z]{3})\s+(\d{1,2})(?:,\s*(\d{4}))?\s*@\s*(\d{1,2}:\d{2})\s*([ap]m)$",
    re.IGNORECASE,
)

# 依序嘗試的格式（%d 與 %I 同時接受一位數與兩位數）
DATE_FORMATS = [
    "%b %d, %Y %I:%M %p",
    "%b %d %Y %I:%M %p",
    "%b %d, %Y %I:%M%p",
    "%b %d, %Y %H:%M",
]


def _parse_canonical(month: str, day: str, year: int, time_part: str, period: str) -> Optional[datetime]:
    """
    組合標準格式字串並依序嘗試 DATE_FORMATS

    Returns:
        第一個成功解析的 datetime，全部失敗則返回 None
    """
    full_date_str = f"{month.title()} {int(day)}, {year} {time_part} {period.upper()}"
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(full_date_str, fmt)
        except ValueError:
            continue
    return None


def _candidate_years(explicit_year: Optional[str], now: datetime) -> List[int]:
    if explicit_year:
        return [int(explicit_year)]
    return [now.year, now.year - 1]


def parse_timestamp(raw_date_text: str, now: Optional[datetime] = None) -> ParsedInstant:
    """
    解析時間文字

    Args:
        raw_date_text: 頁面上的原始時間文字
        now: 評估時間，預設為 datetime.now()

    Returns:
        ParsedInstant

    Raises:
        MalformedTimestamp: 無法辨識的格式
        FutureTimestamp: 解析結果晚於 now
    """
    if now is None:
        now = datetime.now()

    cleaned = LABEL_PATTERN.sub("", (raw_date_text or "").strip())
    match = DATE_PATTERN.match(cleaned)
    if not match:
        raise MalformedTimestamp(f'Failed to extract date components from "{raw_date_text}"')

    month, day, year, time_part, period = match.groups()

    parsed = None
    for candidate_year in _candidate_years(year, now):
        parsed = _parse_canonical(month, day, candidate_year, time_part, period)
        # 省略年份時，未來的時間代表實際是去年
        if parsed is not None and (year or parsed <= now):
            break

    if parsed is None:
        raise MalformedTimestamp(f'Could not parse date: "{raw_date_text}"')

    if parsed > now:
        raise FutureTimestamp(
            f'Invalid date: "{raw_date_text}" resolves to {parsed.isoformat()}, '
            f"later than {now.isoformat()}"
        )

    return ParsedInstant(instant=parsed, source_text=raw_date_text)
