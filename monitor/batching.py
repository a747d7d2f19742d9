"""
批次排程模組

將追蹤項目分成固定大小的批次，第 k 批延遲 k * stagger_interval 秒開始，
每個項目再加上 [0, jitter_max) 的隨機延遲。
"""

import math
import random
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from .models import Batch, BatchPlan, TrackedItem


def shuffle_items(items: Sequence[TrackedItem], rng: random.Random) -> List[TrackedItem]:
    """
    隨機排列項目（Random.shuffle 即 Fisher-Yates，每種排列機率相同）

    Args:
        items: 原始項目
        rng: 隨機來源（可指定 seed 以便重現）

    Returns:
        新的項目列表，不修改輸入
    """
    shuffled = list(items)
    rng.shuffle(shuffled)
    return shuffled


def batch_count(item_count: int, batch_size: int) -> int:
    return math.ceil(item_count / batch_size)


def plan_batches(
    items: Sequence[TrackedItem],
    batch_size: int,
    stagger_interval: float,
    jitter_max: float = 0.0,
    shuffle: bool = False,
    rng: Optional[random.Random] = None,
) -> BatchPlan:
    """
    建立批次計畫

    打亂順序必須在分批之前進行，批次成員才會在每次執行時不同。

    Args:
        items: 追蹤項目（依輸入順序）
        batch_size: 每批項目數
        stagger_interval: 批次間隔秒數
        jitter_max: 每個項目隨機延遲的上限（秒，不含）
        shuffle: 是否在分批前隨機排列
        rng: 隨機來源，預設為以時間為 seed 的 random.Random()

    Returns:
        BatchPlan
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    if stagger_interval < 0 or jitter_max < 0:
        raise ValueError("stagger_interval and jitter_max must be >= 0")

    if rng is None:
        rng = random.Random()

    ordered = shuffle_items(items, rng) if shuffle else list(items)

    members: Dict[int, List[TrackedItem]] = {}
    jitter: Dict[str, float] = {}
    for index, item in enumerate(ordered):
        batch_index = index // batch_size
        members.setdefault(batch_index, []).append(replace(item, batch_index=batch_index))
        # random() 的範圍為 [0, 1)
        jitter[item.id] = rng.random() * jitter_max

    batches = {
        batch_index: Batch(start_delay=batch_index * stagger_interval, members=batch_members)
        for batch_index, batch_members in members.items()
    }
    return BatchPlan(batches=batches, jitter=jitter)
