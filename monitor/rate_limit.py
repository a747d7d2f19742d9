"""
限流判斷模組

狀態碼 429 或頁面文字包含任一限流字句，即視為限流。
"""

import re
from typing import Optional

TOO_MANY_REQUESTS = 429

# 前後不是數字的 429
STATUS_CODE_PATTERN = re.compile(rf"(?<!\d){TOO_MANY_REQUESTS}(?!\d)")

RATE_LIMIT_PHRASES = (
    "too many requests",
    "rate limit",
    "please wait",
    "unusual activity",
    "temporarily unavailable",
)


def _contains_rate_limit_phrase(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in RATE_LIMIT_PHRASES)


def is_rate_limited(status_code: Optional[int] = None, body_text: Optional[str] = None) -> bool:
    """
    判斷單次抓取結果是否為限流

    Args:
        status_code: HTTP 狀態碼（可選）
        body_text: 回應內容（可選）

    Returns:
        是否為限流
    """
    if status_code == TOO_MANY_REQUESTS:
        return True
    if body_text:
        return _contains_rate_limit_phrase(body_text)
    return False


def classify_error(error: BaseException) -> bool:
    """判斷例外訊息是否代表限流（例如傳輸層在 429 時直接拋出例外）"""
    message = str(error)
    return bool(STATUS_CODE_PATTERN.search(message)) or _contains_rate_limit_phrase(message)
