#!/usr/bin/env python3
"""
Workshop 更新監控執行腳本

讀取 data/ 下的 preset 檔案，檢查每個模組的最新變更時間，
在門檻內有更新時發送 Discord 通知。用於排程系統或手動執行。
"""
import argparse
import logging
import random
import sys
from typing import Optional
from dotenv import load_dotenv

from monitor.config import load_monitor_config, DEFAULT_CONFIG_PATH
from monitor.engine import MonitorEngine
from monitor.item_source import load_tracked_items
from monitor.models import ItemStatus, RunSummary
from monitor.notifier import DiscordNotifier

# 載入 .env 檔案
load_dotenv()


def build_fetcher_factory(config, headless: bool = True):
    """
    建立抓取器工廠（每個 worker 執行緒各自呼叫一次）

    Args:
        config: MonitorConfig
        headless: 是否以無頭模式運行瀏覽器
    """
    from scrapers.steam_workshop.fetcher import SteamWorkshopFetcher

    def factory():
        return SteamWorkshopFetcher(
            headless=headless,
            timeout_seconds=config.fetch_timeout_seconds,
            content_timeout_seconds=config.content_timeout_seconds,
        )

    return factory


def print_summary(summary: RunSummary) -> None:
    """輸出執行結果"""
    print(f"\n{'='*60}")
    print("Summary")
    print(f"{'='*60}")
    for outcome in summary.outcomes:
        label = outcome.status.value.upper()
        line = f"[{label:<7}] {outcome.item.display_name} ({outcome.item.id})"
        if outcome.freshness is not None:
            line += f" - {outcome.freshness.reported_age_hours:.1f} hours ago"
            if outcome.is_recent:
                line += " RECENT"
                if outcome.notified:
                    line += " (notified)"
        if outcome.status != ItemStatus.SUCCESS:
            line += f" - {outcome.error}"
        print(line)

    print(
        f"\nSucceeded: {summary.succeeded}  Skipped: {summary.skipped}  "
        f"Failed: {summary.failed}  Recent: {len(summary.recent)}"
    )


def run_monitor(
    config_path: str = DEFAULT_CONFIG_PATH,
    data_dir: Optional[str] = None,
    headless: bool = True,
    dry_run: bool = False,
    seed: Optional[int] = None,
    shuffle: Optional[bool] = None,
    fail_on_recent: bool = False,
) -> int:
    """
    執行一次完整檢查

    Args:
        config_path: 設定檔路徑
        data_dir: preset 目錄（覆寫設定檔）
        headless: 是否以無頭模式運行
        dry_run: 是否為測試模式（不發送通知）
        seed: 隨機來源的 seed（排列順序與延遲可重現）
        shuffle: 是否打亂順序（覆寫設定檔）
        fail_on_recent: 有近期更新時是否以非零狀態結束

    Returns:
        結束代碼
    """
    # 載入設定
    try:
        config = load_monitor_config(config_path)
    except ValueError as e:
        print(f"Error loading config {config_path}: {e}")
        return 1

    if data_dir is not None:
        config.data_dir = data_dir
    if shuffle is not None:
        config.shuffle = shuffle

    try:
        items = load_tracked_items(config.data_dir)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1

    if not items:
        print(f"No tracked items found in {config.data_dir}")
        return 1

    print(f"\n{'='*60}")
    print("Running workshop monitor")
    print(f"Tracked items: {len(items)}")
    print(f"Threshold: {config.threshold_hours} hours (offset {config.timezone_offset_hours})")
    print(f"Batches of {config.batch_size}, {config.max_workers} workers")
    if dry_run:
        print("Mode: DRY RUN (no notifications)")
    print(f"{'='*60}\n")

    notifier = None
    if not dry_run:
        try:
            notifier = DiscordNotifier.from_config(config)
        except ValueError as e:
            print(f"Warning: Discord notifier not configured: {e}")

    engine = MonitorEngine(
        config,
        fetcher_factory=build_fetcher_factory(config, headless=headless),
        notifier=notifier,
        rng=random.Random(seed),
    )
    summary = engine.run(items)
    print_summary(summary)

    if summary.failed:
        return 1
    if fail_on_recent and summary.recent:
        return 1
    return 0


def list_items(config_path: str, data_dir: Optional[str]) -> int:
    """列出所有追蹤項目"""
    try:
        config = load_monitor_config(config_path)
    except ValueError as e:
        print(f"Error loading config {config_path}: {e}")
        return 1

    try:
        items = load_tracked_items(data_dir or config.data_dir)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1
    print(f"Tracked items ({len(items)}):")
    for item in items:
        print(f"  - {item.display_name} ({item.id})")
    return 0


def main(argv=None):
    """主程式"""
    parser = argparse.ArgumentParser(
        description="Steam Workshop 模組更新監控",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
範例:
  %(prog)s                      # 檢查所有模組並發送通知
  %(prog)s --dry-run            # 測試模式（不發送通知）
  %(prog)s --seed 42            # 固定排列順序與延遲
  %(prog)s --list               # 列出所有追蹤項目
        """
    )

    parser.add_argument(
        "--config", "-c",
        default=DEFAULT_CONFIG_PATH,
        help="設定檔路徑"
    )
    parser.add_argument(
        "--data-dir",
        help="preset HTML 目錄（覆寫設定檔）"
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="以有頭模式運行瀏覽器（用於除錯）"
    )
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="測試模式，不發送通知"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="隨機來源的 seed"
    )
    parser.add_argument(
        "--no-shuffle",
        action="store_true",
        help="依 preset 順序檢查，不打亂"
    )
    parser.add_argument(
        "--fail-on-recent",
        action="store_true",
        help="有近期更新時以非零狀態結束"
    )
    parser.add_argument(
        "--list", "-l",
        action="store_true",
        help="列出所有追蹤項目"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="顯示除錯訊息"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.list:
        return list_items(args.config, args.data_dir)

    return run_monitor(
        config_path=args.config,
        data_dir=args.data_dir,
        headless=not args.headed,
        dry_run=args.dry_run,
        seed=args.seed,
        shuffle=False if args.no_shuffle else None,
        fail_on_recent=args.fail_on_recent,
    )


if __name__ == "__main__":
    sys.exit(main())
