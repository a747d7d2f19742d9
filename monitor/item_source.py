"""
追蹤項目來源模組

從 Arma 3 Launcher 匯出的 preset HTML 檔案讀取模組清單。
每個 tr[data-type="ModContainer"] 列包含顯示名稱與 Workshop 連結。
"""

import logging
import os
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from .models import TrackedItem

logger = logging.getLogger(__name__)

WORKSHOP_ID_PATTERN = re.compile(r"[?&]id=(\d+)")


def extract_workshop_id(href: str) -> Optional[str]:
    """
    從 Workshop 連結提取項目 ID

    例如 https://steamcommunity.com/sharedfiles/filedetails/?id=450814997
    """
    match = WORKSHOP_ID_PATTERN.search(href or "")
    return match.group(1) if match else None


def parse_preset_html(html: str) -> List[Tuple[str, str]]:
    """
    解析單一 preset HTML

    Returns:
        (id, 顯示名稱) 列表，缺少 ID 或名稱的列會被略過
    """
    soup = BeautifulSoup(html, "html.parser")
    entries = []
    for row in soup.select('tr[data-type="ModContainer"]'):
        name_cell = row.select_one('td[data-type="DisplayName"]')
        link = row.select_one('a[data-type="Link"]')
        name = name_cell.get_text(strip=True) if name_cell else ""
        item_id = extract_workshop_id(link.get("href", "") if link else "")
        if item_id and name:
            entries.append((item_id, name))
    return entries


def load_tracked_items(data_dir: str = "data") -> List[TrackedItem]:
    """
    讀取目錄下所有 .html preset 檔案

    無法讀取的檔案會記錄錯誤後略過，不中斷整體流程。
    重複的 ID 只保留第一次出現的項目。

    Args:
        data_dir: preset 檔案目錄

    Returns:
        TrackedItem 列表（依檔名與檔案內順序）

    Raises:
        FileNotFoundError: 目錄不存在時
    """
    if not os.path.isdir(data_dir):
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    html_files = sorted(
        name for name in os.listdir(data_dir)
        if os.path.splitext(name)[1].lower() == ".html"
    )

    items: List[TrackedItem] = []
    seen_ids = set()
    for file_name in html_files:
        file_path = os.path.join(data_dir, file_name)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                entries = parse_preset_html(f.read())
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error processing file %s: %s", file_name, e)
            continue

        for item_id, name in entries:
            if item_id in seen_ids:
                continue
            seen_ids.add(item_id)
            items.append(TrackedItem(id=item_id, display_name=name))

    logger.info("Loaded %d tracked items from %d preset files", len(items), len(html_files))
    return items
