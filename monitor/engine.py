"""
監控引擎模組

執行一次完整檢查：先將項目排入錯開的批次，再由固定數量的 worker 執行緒處理。
每個項目等待批次延遲加上隨機延遲後，執行各自的重試迴圈；
單一項目失敗或重試用盡不影響其他項目。
"""

import logging
import queue
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from .batching import plan_batches
from .config import MonitorConfig
from .errors import ErrorKind, MonitorError, NotificationDeliveryFailed, RetryExhausted
from .freshness import evaluate_freshness
from .models import (
    BatchPlan,
    FetchResult,
    FreshnessResult,
    ItemOutcome,
    ItemStatus,
    ParsedInstant,
    RawObservation,
    RetryState,
    RunSummary,
    TrackedItem,
)
from .retry import RetryScheduler
from .timestamps import parse_timestamp

logger = logging.getLogger(__name__)

Evaluation = Tuple[RawObservation, ParsedInstant, FreshnessResult]


class MonitorEngine:
    """
    參數化的新鮮度監控引擎

    Args:
        config: 監控設定
        fetcher_factory: 建立抓取器的函式，每個 worker 執行緒呼叫一次；
            抓取器需提供 `fetch(item_id) -> FetchResult` 與 `close()`
        notifier: 提供 `notify_update(...)` 的通知服務，None 表示只記錄
        rng: 打亂順序與隨機延遲使用的隨機來源（指定 seed 可重現）
        sleep: 等待函式（啟動延遲與退避）
        clock: 測量啟動延遲用的單調時鐘
        now: 評估時間
    """

    def __init__(
        self,
        config: MonitorConfig,
        fetcher_factory: Callable[[], object],
        notifier=None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.fetcher_factory = fetcher_factory
        self.notifier = notifier
        self.rng = rng if rng is not None else random.Random()
        self.sleep = sleep
        self.clock = clock
        self.now = now

        # Playwright sync API 綁定建立它的執行緒，抓取器只能在同一執行緒使用與關閉
        self._local = threading.local()

    def plan(self, items: Sequence[TrackedItem]) -> BatchPlan:
        return plan_batches(
            items,
            batch_size=self.config.batch_size,
            stagger_interval=self.config.stagger_interval_seconds,
            jitter_max=self.config.jitter_max_seconds,
            shuffle=self.config.shuffle,
            rng=self.rng,
        )

    def _thread_fetcher(self):
        fetcher = getattr(self._local, "fetcher", None)
        if fetcher is None:
            fetcher = self.fetcher_factory()
            self._local.fetcher = fetcher
        return fetcher

    def close_thread_fetcher(self) -> None:
        """
        關閉目前執行緒的抓取器

        必須在建立抓取器的同一執行緒呼叫。關閉失敗只記錄警告。
        """
        fetcher = getattr(self._local, "fetcher", None)
        self._local.fetcher = None
        if fetcher is None:
            return
        try:
            fetcher.close()
        except Exception as e:
            logger.warning("Error closing fetcher: %s", e)

    def evaluate(self, result: FetchResult) -> Evaluation:
        """解析時間並判斷是否為近期更新；致命錯誤直接拋出"""
        observation = result.observation
        now = self.now()
        parsed = parse_timestamp(observation.raw_date_text, now=now)
        freshness = evaluate_freshness(
            parsed,
            now,
            threshold_hours=self.config.threshold_hours,
            timezone_offset_hours=self.config.timezone_offset_hours,
        )
        return observation, parsed, freshness

    def _wait_for_start(self, delay: float, run_started: float) -> None:
        remaining = delay - (self.clock() - run_started)
        if remaining > 0:
            self.sleep(remaining)

    def _notify(self, outcome: ItemOutcome) -> None:
        observation = outcome.observation
        name = observation.display_name_observed or outcome.item.display_name
        logger.warning(
            "Recent update: %s | Date: %s | Hours ago: %.1f | Threshold: %s",
            name, observation.raw_date_text,
            outcome.freshness.reported_age_hours, self.config.threshold_hours,
        )
        if self.notifier is None:
            return
        try:
            self.notifier.notify_update(
                name=name,
                raw_date_text=observation.raw_date_text,
                age_hours=outcome.freshness.reported_age_hours,
                change_text=observation.raw_change_text,
            )
            outcome.notified = True
        except NotificationDeliveryFailed as e:
            logger.error("Error sending notification for %s: %s", name, e)

    def process_item(self, item: TrackedItem, start_delay: float = 0.0, run_started: Optional[float] = None) -> ItemOutcome:
        """
        處理單一項目並返回結果

        單一項目的錯誤不會拋出，而是轉為 SKIPPED 或 FATAL 結果。
        抓取器屬於目前執行緒，直接呼叫時需自行呼叫 close_thread_fetcher()。
        """
        if run_started is None:
            run_started = self.clock()
        self._wait_for_start(start_delay, run_started)

        state = RetryState(max_attempts=self.config.max_retry_attempts)
        outcome = ItemOutcome(item=item, status=ItemStatus.SUCCESS)

        try:
            scheduler = RetryScheduler(
                self._thread_fetcher().fetch,
                max_attempts=self.config.max_retry_attempts,
                base_delay=self.config.base_backoff_seconds,
                sleep=self.sleep,
            )
            outcome.observation, outcome.parsed, outcome.freshness = scheduler.run(
                item, self.evaluate, state
            )
        except RetryExhausted as e:
            outcome.status = ItemStatus.SKIPPED
            outcome.error = str(e)
            outcome.error_kind = ErrorKind.RETRY_EXHAUSTED
        except MonitorError as e:
            outcome.status = ItemStatus.FATAL
            outcome.error = str(e)
            outcome.error_kind = e.kind
            logger.error("Error checking %s: %s", item.display_name, e)
        except Exception as e:
            outcome.status = ItemStatus.FATAL
            outcome.error = f"{e.__class__.__name__}: {e}"
            outcome.error_kind = ErrorKind.UNEXPECTED
            logger.exception("Unexpected error checking %s", item.display_name)
        finally:
            outcome.attempts = state.attempt + 1

        if outcome.freshness is not None and outcome.freshness.should_notify:
            self._notify(outcome)

        return outcome

    def _worker(
        self,
        tasks: "queue.Queue[Tuple[int, TrackedItem]]",
        plan: BatchPlan,
        outcomes: List[Optional[ItemOutcome]],
        run_started: float,
    ) -> None:
        """
        從佇列依序取出項目處理，直到佇列清空

        結束時在同一執行緒關閉此 worker 的抓取器。
        """
        try:
            while True:
                try:
                    position, item = tasks.get_nowait()
                except queue.Empty:
                    return
                outcomes[position] = self.process_item(item, plan.start_delay_for(item), run_started)
        finally:
            self.close_thread_fetcher()

    def run(self, items: Sequence[TrackedItem]) -> RunSummary:
        """
        執行一次完整檢查

        Returns:
            RunSummary，每個項目一筆結果，依計畫順序排列
        """
        plan = self.plan(items)
        planned = plan.items
        worker_count = min(self.config.max_workers, len(planned))
        logger.info(
            "Checking %d items in %d batches with %d workers",
            len(planned), len(plan.batches), worker_count,
        )

        tasks: "queue.Queue[Tuple[int, TrackedItem]]" = queue.Queue()
        for position, item in enumerate(planned):
            tasks.put((position, item))
        outcomes: List[Optional[ItemOutcome]] = [None] * len(planned)

        run_started = self.clock()
        if worker_count:
            with ThreadPoolExecutor(max_workers=worker_count) as executor:
                workers = [
                    executor.submit(self._worker, tasks, plan, outcomes, run_started)
                    for _ in range(worker_count)
                ]
                for worker in workers:
                    worker.result()

        summary = RunSummary(outcomes=outcomes)
        logger.info(
            "Run finished: %d succeeded, %d skipped, %d failed, %d recent",
            summary.succeeded, summary.skipped, summary.failed, len(summary.recent),
        )
        return summary
