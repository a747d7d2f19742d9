"""
Steam Workshop 變更記錄抓取模組

繼承 BaseFetcher，讀取 changelog 頁面的：
- 項目標題（.workshopItemTitle）
- 第一則變更的時間（changelog headline）
- 第一則變更的說明文字
"""

import logging
from typing import Optional
from playwright.sync_api import Page, TimeoutError as PlaywrightTimeoutError

from monitor.base_fetcher import BaseFetcher
from monitor.errors import MissingContent
from monitor.models import FetchResult, RawObservation
from monitor.rate_limit import is_rate_limited

logger = logging.getLogger(__name__)


class SteamWorkshopFetcher(BaseFetcher):
    """
    Steam Workshop changelog 抓取器

    頁面若為限流頁面，只返回狀態碼與頁面文字，不讀取 DOM 欄位，
    交由 RetryScheduler 判斷是否退避重試。
    """

    CHANGELOG_URL = "https://steamcommunity.com/sharedfiles/filedetails/changelog/{item_id}"

    DATE_SELECTOR = "xpath=(//div[@class='changelog headline'])[1]"
    CHANGE_SELECTOR = "xpath=(//div[contains(@class,'detailBox workshopAnnouncement')]//p)[1]"
    TITLE_SELECTOR = ".workshopItemTitle"

    def __init__(
        self,
        headless: bool = True,
        timeout_seconds: float = 30.0,
        content_timeout_seconds: float = 20.0,
    ):
        """
        初始化 Steam Workshop 抓取器

        Args:
            headless: 是否以無頭模式運行瀏覽器
            timeout_seconds: 頁面載入逾時秒數
            content_timeout_seconds: 等待日期節點出現的秒數
        """
        super().__init__(headless=headless, timeout_seconds=timeout_seconds)
        self.content_timeout_seconds = content_timeout_seconds

    @property
    def source_name(self) -> str:
        """返回來源名稱"""
        return "steam_workshop"

    def build_url(self, item_id: str) -> str:
        return self.CHANGELOG_URL.format(item_id=item_id)

    def _optional_text(self, page: Page, selector: str) -> str:
        """讀取可能不存在的節點文字，不存在時返回空字串"""
        locator = page.locator(selector).first
        if locator.count() == 0:
            return ""
        return (locator.inner_text() or "").strip()

    def read_page(self, page: Page, item_id: str, status_code: Optional[int]) -> FetchResult:
        """
        讀取 changelog 頁面

        Raises:
            MissingContent: 頁面上找不到日期節點或日期為空
        """
        body_text = page.inner_text("body")
        if is_rate_limited(status_code, body_text):
            logger.debug("Rate limit page for %s (status %s)", item_id, status_code)
            return FetchResult(status_code=status_code, body_text=body_text)

        date_locator = page.locator(self.DATE_SELECTOR)
        try:
            date_locator.wait_for(timeout=self.content_timeout_seconds * 1000)
        except PlaywrightTimeoutError as e:
            raise MissingContent(f"No changelog date found for item {item_id}") from e

        raw_date_text = (date_locator.inner_text() or "").strip()
        if not raw_date_text:
            raise MissingContent(f"Empty changelog date for item {item_id}")

        observation = RawObservation(
            raw_date_text=raw_date_text,
            raw_change_text=self._optional_text(page, self.CHANGE_SELECTOR),
            display_name_observed=self._optional_text(page, self.TITLE_SELECTOR),
        )
        return FetchResult(status_code=status_code, body_text=body_text, observation=observation)
