# Monitor module - polling and freshness evaluation for workshop items
# Contains: timestamps, freshness, rate_limit, retry, batching, chunker, engine, notifier, config

from .config import load_monitor_config, build_config, MonitorConfig
from .engine import MonitorEngine
from .errors import (
    ErrorKind,
    MonitorError,
    MalformedTimestamp,
    FutureTimestamp,
    NegativeAge,
    MissingContent,
    RateLimited,
    TransportTimeout,
    TransportError,
    RetryExhausted,
    NotificationDeliveryFailed,
)
from .models import TrackedItem, ItemStatus, ItemOutcome, RunSummary
from .timestamps import parse_timestamp
from .freshness import evaluate_freshness
from .rate_limit import is_rate_limited
from .retry import RetryScheduler
from .batching import plan_batches
from .chunker import chunk_text

__all__ = [
    'load_monitor_config',
    'build_config',
    'MonitorConfig',
    'MonitorEngine',
    'ErrorKind',
    'MonitorError',
    'MalformedTimestamp',
    'FutureTimestamp',
    'NegativeAge',
    'MissingContent',
    'RateLimited',
    'TransportTimeout',
    'TransportError',
    'RetryExhausted',
    'NotificationDeliveryFailed',
    'TrackedItem',
    'ItemStatus',
    'ItemOutcome',
    'RunSummary',
    'parse_timestamp',
    'evaluate_freshness',
    'is_rate_limited',
    'RetryScheduler',
    'plan_batches',
    'chunk_text',
]
