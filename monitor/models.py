"""
資料模型模組

所有資料只存在於單次執行期間，不寫入儲存。
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from .errors import ErrorKind


@dataclass(frozen=True)
class TrackedItem:
    """被監控的 Workshop 項目"""
    id: str
    display_name: str
    batch_index: int = 0


@dataclass(frozen=True)
class RawObservation:
    """從變更記錄頁面讀取的原始文字"""
    raw_date_text: str
    raw_change_text: str
    display_name_observed: str


@dataclass(frozen=True)
class FetchResult:
    """
    單次抓取結果

    頁面為限流頁面（例如 429 回應）時不讀取 DOM 欄位，observation 為 None。
    """
    status_code: Optional[int]
    body_text: str
    observation: Optional[RawObservation] = None


@dataclass(frozen=True)
class ParsedInstant:
    instant: datetime
    source_text: str


@dataclass(frozen=True)
class FreshnessResult:
    age_hours: float
    is_recent: bool
    reported_age_hours: float

    @property
    def should_notify(self) -> bool:
        """近期更新，且時區修正後的小時數不為負值"""
        return self.is_recent and self.reported_age_hours >= 0


class FetchPhase(Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    FATAL = "fatal"
    EXHAUSTED = "exhausted"


@dataclass
class RetryState:
    """重試狀態，只屬於單一項目的重試迴圈"""
    attempt: int = 0
    max_attempts: int = 3
    last_error_kind: ErrorKind = ErrorKind.NONE
    phase: FetchPhase = FetchPhase.PENDING

    @property
    def can_retry(self) -> bool:
        return self.attempt < self.max_attempts


@dataclass(frozen=True)
class Batch:
    start_delay: float
    members: List[TrackedItem]


@dataclass(frozen=True)
class BatchPlan:
    """批次編號 -> Batch，以及每個項目的隨機延遲（秒）"""
    batches: Dict[int, Batch]
    jitter: Dict[str, float] = field(default_factory=dict)

    @property
    def items(self) -> List[TrackedItem]:
        return [
            item
            for index in sorted(self.batches)
            for item in self.batches[index].members
        ]

    def start_delay_for(self, item: TrackedItem) -> float:
        return self.batches[item.batch_index].start_delay + self.jitter.get(item.id, 0.0)


class ItemStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FATAL = "fatal"


@dataclass
class ItemOutcome:
    """單一項目的處理結果"""
    item: TrackedItem
    status: ItemStatus
    attempts: int = 0
    observation: Optional[RawObservation] = None
    parsed: Optional[ParsedInstant] = None
    freshness: Optional[FreshnessResult] = None
    error: Optional[str] = None
    error_kind: ErrorKind = ErrorKind.NONE
    notified: bool = False

    @property
    def is_recent(self) -> bool:
        return self.freshness is not None and self.freshness.should_notify


@dataclass
class RunSummary:
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(ItemStatus.SUCCESS)

    @property
    def skipped(self) -> int:
        return self._count(ItemStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(ItemStatus.FATAL)

    @property
    def recent(self) -> List[ItemOutcome]:
        return [outcome for outcome in self.outcomes if outcome.is_recent]
