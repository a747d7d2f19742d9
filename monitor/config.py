"""
設定檔載入模組

所有監控參數集中在單一設定檔（config/monitor.json），缺少的欄位以預設值填充。
門檻、時區修正、重試等參數都由設定決定，不需要為不同情境複製程式碼。
"""

import json
import os
from dataclasses import dataclass, fields, asdict
from typing import Dict, Any, Optional


DEFAULT_CONFIG_PATH = "config/monitor.json"

# 預設值定義
DEFAULT_CONFIG = {
    "threshold_hours": 7.0,
    "timezone_offset_hours": 0.0,
    "batch_size": 4,
    "stagger_interval_seconds": 5.0,
    "jitter_max_seconds": 2.0,
    "shuffle": True,
    "max_workers": 4,
    "max_retry_attempts": 3,
    "base_backoff_seconds": 15 * 60.0,
    "fetch_timeout_seconds": 30.0,
    "content_timeout_seconds": 20.0,
    "max_chunk_length": 1024,
    "inter_message_delay_seconds": 1.0,
    "data_dir": "data",
    "notification_title": "Arma 3 mod update",
    "notification_footer": "Arma 3 Steam Workshop Monitor",
    "notification_username": "Steam Workshop Monitor",
    "notification_mention": "",
    "date_suffix": "pst",
}


@dataclass
class MonitorConfig:
    """監控設定"""
    threshold_hours: float
    timezone_offset_hours: float
    batch_size: int
    stagger_interval_seconds: float
    jitter_max_seconds: float
    shuffle: bool
    max_workers: int
    max_retry_attempts: int
    base_backoff_seconds: float
    fetch_timeout_seconds: float
    content_timeout_seconds: float
    max_chunk_length: int
    inter_message_delay_seconds: float
    data_dir: str
    notification_title: str
    notification_footer: str
    notification_username: str
    notification_mention: str
    date_suffix: str

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        驗證設定值

        Raises:
            ValueError: 當設定值不合法時
        """
        self._check_types()

        if self.threshold_hours <= 0:
            raise ValueError("threshold_hours must be > 0")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.max_retry_attempts < 0:
            raise ValueError("max_retry_attempts must be >= 0")
        if self.max_chunk_length < 4:
            raise ValueError("max_chunk_length must be >= 4")
        for name in (
            "stagger_interval_seconds",
            "jitter_max_seconds",
            "base_backoff_seconds",
            "inter_message_delay_seconds",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        for name in ("fetch_timeout_seconds", "content_timeout_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")

    def _check_types(self) -> None:
        """檢查每個欄位的型別（float 欄位接受整數，bool 不視為數字）"""
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is bool:
                valid = isinstance(value, bool)
            elif f.type is int:
                valid = isinstance(value, int) and not isinstance(value, bool)
            elif f.type is float:
                valid = isinstance(value, (int, float)) and not isinstance(value, bool)
            else:
                valid = isinstance(value, f.type)
            if not valid:
                raise ValueError(
                    f"{f.name} must be {f.type.__name__}, got {type(value).__name__} ({value!r})"
                )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_config(overrides: Optional[Dict[str, Any]] = None) -> MonitorConfig:
    """
    以預設值加上覆寫值建立設定

    Args:
        overrides: 覆寫的設定值

    Returns:
        MonitorConfig

    Raises:
        ValueError: 當包含未知欄位或設定值不合法時
    """
    overrides = overrides or {}
    known = {f.name for f in fields(MonitorConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}. Valid keys: {sorted(known)}")

    return MonitorConfig(**{**DEFAULT_CONFIG, **overrides})


def load_monitor_config(config_path: str = DEFAULT_CONFIG_PATH) -> MonitorConfig:
    """
    載入監控設定檔

    設定檔不存在時使用預設值。

    Args:
        config_path: 設定檔路徑

    Returns:
        MonitorConfig: 合併預設值後的設定物件

    Raises:
        ValueError: 當設定檔內容不合法時
    """
    if os.path.exists(config_path):
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
        if not isinstance(config_data, dict):
            raise ValueError(f"{config_path} must contain a JSON object")
    else:
        config_data = {}

    return build_config(config_data)
