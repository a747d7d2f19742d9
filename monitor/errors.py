"""
錯誤類型模組

監控流程中所有可預期的錯誤。依處理方式分為三類：
- 致命錯誤（資料品質問題，不重試）：MalformedTimestamp、FutureTimestamp、
  NegativeAge、MissingContent
- 可恢復錯誤（退避後重試）：RateLimited、TransportTimeout、TransportError
- 終止錯誤：RetryExhausted（僅影響單一項目）、NotificationDeliveryFailed
  （記錄後忽略，不影響新鮮度檢查結果）
"""

from enum import Enum


class ErrorKind(Enum):
    """錯誤分類，用於 RetryState 與 ItemOutcome"""
    NONE = "none"
    RATE_LIMITED = "rate_limited"
    TRANSPORT_TIMEOUT = "transport_timeout"
    TRANSPORT_ERROR = "transport_error"
    MALFORMED_TIMESTAMP = "malformed_timestamp"
    FUTURE_TIMESTAMP = "future_timestamp"
    NEGATIVE_AGE = "negative_age"
    MISSING_CONTENT = "missing_content"
    RETRY_EXHAUSTED = "retry_exhausted"
    UNEXPECTED = "unexpected"


class MonitorError(Exception):
    """所有監控錯誤的基礎類別"""
    kind = ErrorKind.UNEXPECTED
    retriable = False


class MalformedTimestamp(MonitorError):
    """時間字串不符合任何已知格式"""
    kind = ErrorKind.MALFORMED_TIMESTAMP


class FutureTimestamp(MonitorError):
    """解析後的時間晚於評估時間"""
    kind = ErrorKind.FUTURE_TIMESTAMP


class NegativeAge(MonitorError):
    """計算出的經過時間為負值"""
    kind = ErrorKind.NEGATIVE_AGE


class MissingContent(MonitorError):
    """頁面缺少預期的內容（例如找不到日期節點）"""
    kind = ErrorKind.MISSING_CONTENT


class RateLimited(MonitorError):
    """來源回應限流"""
    kind = ErrorKind.RATE_LIMITED
    retriable = True


class TransportTimeout(MonitorError):
    """單次抓取逾時"""
    kind = ErrorKind.TRANSPORT_TIMEOUT
    retriable = True


class TransportError(MonitorError):
    """網路或瀏覽器層級的暫時性錯誤"""
    kind = ErrorKind.TRANSPORT_ERROR
    retriable = True


class RetryExhausted(MonitorError):
    """重試次數用盡"""
    kind = ErrorKind.RETRY_EXHAUSTED

    def __init__(self, message: str, last_error_kind: ErrorKind = ErrorKind.NONE):
        super().__init__(message)
        self.last_error_kind = last_error_kind


class NotificationDeliveryFailed(MonitorError):
    """通知發送失敗"""
    pass
