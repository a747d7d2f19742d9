"""
重試排程模組

針對單一項目執行有上限的重試迴圈：
- 限流或暫時性傳輸錯誤：指數退避後重試
- 其他錯誤（時間格式錯誤、未來時間、缺少內容）：不重試，直接拋出
- 重試次數用盡：拋出 RetryExhausted，由呼叫端標記為略過
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from .errors import MissingContent, MonitorError, RateLimited, RetryExhausted
from .models import FetchPhase, FetchResult, RetryState, TrackedItem
from .rate_limit import classify_error, is_rate_limited

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryScheduler:
    """
    單一項目的重試排程器

    狀態轉換：Pending -> Fetching -> {Succeeded, Backoff, Fatal, Exhausted}
    RetryState 由呼叫端為每個項目各自建立，不在項目之間共用。
    """

    DEFAULT_MAX_ATTEMPTS = 3
    DEFAULT_BASE_DELAY = 15 * 60  # 秒

    def __init__(
        self,
        fetch: Callable[[str], FetchResult],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            fetch: 抓取函式，輸入項目 ID，返回 FetchResult
            max_attempts: 第一次抓取之後最多重試幾次
            base_delay: 退避基準秒數
            sleep: 等待函式（測試時可替換）
        """
        if max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        self.fetch = fetch
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """
        計算退避時間（指數退避）

        Args:
            attempt: 當前嘗試次數（從 0 開始）

        Returns:
            延遲秒數 = base_delay * 2^attempt
        """
        return self.base_delay * (2 ** attempt)

    def new_state(self) -> RetryState:
        return RetryState(max_attempts=self.max_attempts)

    def _fetch_once(self, item: TrackedItem) -> FetchResult:
        try:
            result = self.fetch(item.id)
        except MonitorError:
            raise
        except Exception as e:
            # 部分傳輸層在 429 時直接拋出例外
            if classify_error(e):
                raise RateLimited(str(e)) from e
            raise

        if is_rate_limited(result.status_code, result.body_text):
            raise RateLimited(f"Rate limited (status {result.status_code})")
        if result.observation is None:
            raise MissingContent(f"No content extracted for item {item.id}")
        return result

    def run(
        self,
        item: TrackedItem,
        evaluate: Callable[[FetchResult], T],
        state: Optional[RetryState] = None,
    ) -> T:
        """
        執行重試迴圈

        Args:
            item: 追蹤項目
            evaluate: 抓取成功後的解析與判斷（可拋出致命錯誤）
            state: 此項目的 RetryState，若為 None 則新建

        Returns:
            evaluate 的返回值

        Raises:
            RetryExhausted: 限流或暫時性錯誤超過重試上限
            MonitorError: 致命錯誤，不重試
        """
        if state is None:
            state = self.new_state()

        while True:
            state.phase = FetchPhase.FETCHING
            try:
                result = self._fetch_once(item)
                value = evaluate(result)
            except MonitorError as e:
                state.last_error_kind = e.kind
                if not e.retriable:
                    state.phase = FetchPhase.FATAL
                    raise
                error = e
            except Exception:
                state.phase = FetchPhase.FATAL
                raise
            else:
                state.phase = FetchPhase.SUCCEEDED
                return value

            if not state.can_retry:
                state.phase = FetchPhase.EXHAUSTED
                logger.warning(
                    "Max backoff attempts reached for %s (%s), skipping",
                    item.display_name, error.kind.value,
                )
                raise RetryExhausted(
                    f"Gave up on {item.id} after {state.attempt + 1} attempts: {error}",
                    last_error_kind=error.kind,
                ) from error

            delay = self.backoff_delay(state.attempt)
            state.phase = FetchPhase.BACKOFF
            logger.warning(
                "%s for %s (attempt %d), waiting %.1f minutes before retrying",
                error.kind.value, item.display_name, state.attempt + 1, delay / 60,
            )
            self.sleep(delay)
            state.attempt += 1
            state.phase = FetchPhase.PENDING
