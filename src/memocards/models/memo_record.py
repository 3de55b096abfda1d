# src/memocards/models/memo_record.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from memocards.models.tag import Tag


@dataclass(frozen=True)
class MemoRecord:
    """
    スプレッドシート1行分のカード。

    - memo: 表示する本文（必須・空にはならない）
    - sub_memo: 補足メモ。区切り記号を含んだまま保持する
    - freq: 頻度 1〜5。不明なら None
    - tags: タグ（行内の出現順）
    - source_url: 出典URL（列が無ければ空文字）
    """
    memo: str
    sub_memo: str = ""
    freq: Optional[int] = None
    tags: Tuple[Tag, ...] = field(default_factory=tuple)
    source_url: str = ""

    @property
    def tag_keys(self) -> frozenset[str]:
        return frozenset(t.key for t in self.tags)
