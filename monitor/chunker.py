"""
訊息切割模組

Discord embed 欄位長度上限為 1024 字元。過長的變更說明依行切割成多段，
每段都不超過上限；單行本身超過上限時截斷並加上 "..."。
"""

from typing import List, Optional

DEFAULT_MAX_CHUNK_LENGTH = 1024
TRUNCATION_MARKER = "..."
EMPTY_PLACEHOLDER = "No change description available"


def truncate_line(line: str, max_chunk_length: int) -> str:
    return line[: max_chunk_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def empty_placeholder(max_chunk_length: int) -> str:
    """空白內容的替代文字，超過上限時同樣截斷"""
    if len(EMPTY_PLACEHOLDER) <= max_chunk_length:
        return EMPTY_PLACEHOLDER
    return truncate_line(EMPTY_PLACEHOLDER, max_chunk_length)


def chunk_text(text: Optional[str], max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH) -> List[str]:
    """
    將文字切割成多段

    逐行累積到目前段落，加入下一行會超過上限時開始新段落。
    以換行符號串接所有段落即可還原原文（截斷的行除外）。

    Args:
        text: 原始文字
        max_chunk_length: 每段長度上限

    Returns:
        段落列表；空白輸入返回只含替代文字的列表（不超過上限）
    """
    if max_chunk_length <= len(TRUNCATION_MARKER):
        raise ValueError(f"max_chunk_length must be > {len(TRUNCATION_MARKER)}")

    if not text or not text.strip():
        return [empty_placeholder(max_chunk_length)]

    chunks: List[str] = []
    # None 表示目前沒有段落（空字串是合法的空白行）
    current: Optional[str] = None

    for line in text.split("\n"):
        if len(line) > max_chunk_length:
            if current is not None:
                chunks.append(current)
                current = None
            chunks.append(truncate_line(line, max_chunk_length))
            continue

        candidate = line if current is None else f"{current}\n{line}"
        if len(candidate) > max_chunk_length:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current is not None:
        chunks.append(current)

    return chunks
