"""
頁面抓取基礎類別模組

定義所有頁面抓取器的共用介面和行為，包括：
- 抽象方法定義 (source_name, build_url, fetch)
- 瀏覽器初始化和關閉邏輯
- User-Agent 輪換
- Playwright 錯誤轉換為 TransportTimeout / TransportError
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import List, Optional
from playwright.sync_api import sync_playwright, Page, Browser, BrowserContext, Playwright
from playwright.sync_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from .errors import TransportError, TransportTimeout
from .models import FetchResult

logger = logging.getLogger(__name__)


class BaseFetcher(ABC):
    """
    頁面抓取基礎類別

    每個實例綁定一個執行緒（Playwright sync API 不可跨執行緒使用）。
    瀏覽器在第一次抓取時才啟動。
    """

    # 預設 User-Agent 列表，用於輪換以避免被封鎖
    DEFAULT_USER_AGENTS = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    ]

    def __init__(
        self,
        headless: bool = True,
        timeout_seconds: float = 30.0,
        user_agents: Optional[List[str]] = None,
    ):
        """
        初始化抓取器

        Args:
            headless: 是否以無頭模式運行瀏覽器
            timeout_seconds: 頁面載入逾時秒數
            user_agents: 自訂 User-Agent 列表，若為 None 則使用預設列表
        """
        self.headless = headless
        self.timeout_seconds = timeout_seconds
        self.user_agents = user_agents or self.DEFAULT_USER_AGENTS.copy()

        # 瀏覽器相關實例（延遲初始化）
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

        self._current_user_agent: Optional[str] = None

    @property
    @abstractmethod
    def source_name(self) -> str:
        """來源名稱，例如 'steam_workshop'"""
        pass

    @abstractmethod
    def build_url(self, item_id: str) -> str:
        """由項目 ID 組出要載入的頁面 URL"""
        pass

    @abstractmethod
    def read_page(self, page: Page, item_id: str, status_code: Optional[int]) -> FetchResult:
        """
        讀取已載入的頁面

        子類別實作網站特定的 DOM 讀取邏輯。

        Args:
            page: 已完成載入的頁面
            item_id: 項目 ID
            status_code: HTTP 狀態碼（可能為 None）

        Returns:
            FetchResult
        """
        pass

    @property
    def page(self) -> Optional[Page]:
        """取得當前頁面實例"""
        return self._page

    @property
    def timeout_ms(self) -> float:
        return self.timeout_seconds * 1000

    def _get_user_agent(self) -> str:
        """隨機選擇一個 User-Agent"""
        self._current_user_agent = random.choice(self.user_agents)
        return self._current_user_agent

    def _init_browser(self) -> None:
        """
        初始化瀏覽器

        啟動 Playwright 和 Chromium 瀏覽器，建立新的瀏覽器上下文和頁面。
        """
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless)
        self._context = self._browser.new_context(
            user_agent=self._get_user_agent()
        )
        self._page = self._context.new_page()

    def _ensure_browser(self) -> Page:
        if self._page is None:
            self._init_browser()
        return self._page

    def close(self) -> None:
        """
        關閉瀏覽器

        依序關閉頁面、上下文、瀏覽器和 Playwright 實例。
        """
        for name in ("_page", "_context", "_browser"):
            resource = getattr(self, name)
            if resource is not None:
                try:
                    resource.close()
                except PlaywrightError as e:
                    logger.debug("Error closing %s: %s", name.strip("_"), e)
                setattr(self, name, None)

        if self._playwright is not None:
            try:
                self._playwright.stop()
            except PlaywrightError as e:
                logger.debug("Error stopping playwright: %s", e)
            self._playwright = None

    def fetch(self, item_id: str) -> FetchResult:
        """
        載入並讀取項目頁面

        Args:
            item_id: 項目 ID

        Returns:
            FetchResult

        Raises:
            TransportTimeout: 載入或等待內容逾時
            TransportError: 其他瀏覽器或網路錯誤
        """
        url = self.build_url(item_id)
        try:
            page = self._ensure_browser()
            logger.debug("Loading %s", url)
            response = page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            status_code = response.status if response is not None else None
            return self.read_page(page, item_id, status_code)
        except PlaywrightTimeoutError as e:
            raise TransportTimeout(f"Timed out loading {url}: {e}") from e
        except PlaywrightError as e:
            raise TransportError(f"Error loading {url}: {e}") from e

    def __enter__(self):
        """支援 context manager 用法"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """支援 context manager 用法"""
        self.close()
        return False
