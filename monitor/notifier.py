"""
通知服務模組

透過 Discord webhook 發送更新通知。變更說明過長時切割成多則訊息，
第一則包含完整項目資訊，後續訊息只帶「continued」標記與該段文字。
"""

import logging
import os
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import requests

from .chunker import DEFAULT_MAX_CHUNK_LENGTH, chunk_text, empty_placeholder
from .errors import NotificationDeliveryFailed

logger = logging.getLogger(__name__)


class DiscordNotifier:
    """Discord webhook 通知服務"""

    DEFAULT_COLOR = 0xFF0000

    def __init__(
        self,
        webhook_url: str = None,
        title: str = "Arma 3 mod update",
        footer: str = "Arma 3 Steam Workshop Monitor",
        username: str = "Steam Workshop Monitor",
        mention: str = "",
        date_suffix: str = "pst",
        max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH,
        inter_message_delay: float = 1.0,
        timeout: float = 10,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.webhook_url = webhook_url or os.getenv("DISCORD_WEBHOOK_URL")
        if not self.webhook_url:
            raise ValueError("DISCORD_WEBHOOK_URL must be set")
        self.title = title
        self.footer = footer
        self.username = username
        self.mention = mention
        self.date_suffix = date_suffix
        self.max_chunk_length = max_chunk_length
        self.inter_message_delay = inter_message_delay
        self.timeout = timeout
        self.sleep = sleep

    @classmethod
    def from_config(cls, config, webhook_url: str = None) -> "DiscordNotifier":
        """由 MonitorConfig 建立通知服務"""
        return cls(
            webhook_url=webhook_url,
            title=config.notification_title,
            footer=config.notification_footer,
            username=config.notification_username,
            mention=config.notification_mention,
            date_suffix=config.date_suffix,
            max_chunk_length=config.max_chunk_length,
            inter_message_delay=config.inter_message_delay_seconds,
        )

    def send_embed(self, embed: Dict) -> bool:
        """
        發送單一 embed

        Returns:
            True

        Raises:
            NotificationDeliveryFailed: webhook 回應非 2xx 或連線失敗
        """
        payload = {"username": self.username, "embeds": [embed]}
        if self.mention:
            payload["content"] = self.mention

        try:
            response = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationDeliveryFailed(f"Discord webhook failed: {e}") from e
        return True

    def build_embed(
        self,
        change_value: str,
        message_number: int = 1,
        name: str = "",
        raw_date_text: str = "",
        age_hours: Optional[float] = None,
    ) -> Dict:
        """
        組出 embed

        Args:
            change_value: 此則訊息的變更說明
            message_number: 第幾則訊息（從 1 開始）；第一則包含項目資訊
            name: 項目名稱
            raw_date_text: 頁面上的原始時間文字
            age_hours: 距今小時數

        Returns:
            Discord embed 字典
        """
        is_first = message_number == 1
        embed = {
            "title": self.title if is_first else f"{self.title} (continued {message_number})",
            "fields": [],
            "color": self.DEFAULT_COLOR,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "footer": {"text": self.footer},
        }

        # 只有第一則訊息包含項目資訊
        if is_first:
            date_value = f"{raw_date_text} {self.date_suffix}".strip()
            age_value = f"{age_hours:.1f} hours ago" if age_hours is not None else "unknown"
            embed["fields"].extend([
                {"name": "Mod:", "value": name, "inline": False},
                {"name": "Date:", "value": date_value, "inline": True},
                {"name": "When:", "value": age_value, "inline": True},
            ])

        embed["fields"].append({
            "name": "Change:" if is_first else "Change (continued):",
            "value": change_value,
            "inline": False,
        })
        return embed

    def split_change_text(self, change_text: str) -> List[str]:
        # Discord 不接受空白的欄位值
        chunks = [chunk for chunk in chunk_text(change_text, self.max_chunk_length) if chunk.strip()]
        return chunks or [empty_placeholder(self.max_chunk_length)]

    def notify_update(
        self,
        name: str,
        raw_date_text: str,
        age_hours: float,
        change_text: str,
    ) -> int:
        """
        通知項目更新

        多則訊息之間等待 inter_message_delay 秒（最後一則之後不等待）。

        Returns:
            已發送的訊息數

        Raises:
            NotificationDeliveryFailed: 任一則發送失敗（後續訊息不再發送）
        """
        chunks = self.split_change_text(change_text)

        for index, chunk in enumerate(chunks):
            embed = self.build_embed(
                chunk,
                message_number=index + 1,
                name=name,
                raw_date_text=raw_date_text,
                age_hours=age_hours,
            )
            self.send_embed(embed)

            if index < len(chunks) - 1:
                self.sleep(self.inter_message_delay)

        logger.info("Discord notification sent for %s (%d messages)", name, len(chunks))
        return len(chunks)
