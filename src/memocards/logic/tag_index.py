# src/memocards/logic/tag_index.py

from __future__ import annotations

from enum import Enum
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional

from PySide6.QtCore import QCollator, QLocale

from memocards.models.memo_record import MemoRecord
from memocards.models.tag import Tag

DEFAULT_SUGGEST_LIMIT = 12


class MatchMode(str, Enum):
    SUBSTRING = "substring"
    PREFIX = "prefix"

    @classmethod
    def parse(cls, value: str | None) -> "MatchMode":
        """不明な値は SUBSTRING として扱う。"""
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.SUBSTRING


def tag_matches(tag: Tag, query_fold: str, mode: MatchMode) -> bool:
    if mode is MatchMode.PREFIX:
        return tag.matches_prefix(query_fold)
    return tag.matches_substring(query_fold)


def _japanese_collator() -> QCollator:
    collator = QCollator(QLocale(QLocale.Language.Japanese, QLocale.Country.Japan))
    collator.setNumericMode(True)
    return collator


def sort_tags(tags: Iterable[Tag]) -> List[Tag]:
    """ラベルを日本語の照合順で並べる。同順位はキーで安定させる。"""
    collator = _japanese_collator()

    def compare(a: Tag, b: Tag) -> int:
        c = collator.compare(a.label, b.label)
        if c:
            return c
        return (a.key > b.key) - (a.key < b.key)

    return sorted(tags, key=cmp_to_key(compare))


class TagIndex:
    """
    データセット全体のタグ一覧。

    - 同じ key のタグはレコードの並び順で最初に現れたものを代表とする
    - tags は日本語照合順で並べたもの
    - 読み込みのたびに build() で作り直す（差分更新はしない）
    """

    def __init__(self, by_key: Dict[str, Tag]) -> None:
        self._by_key = by_key
        self._sorted = sort_tags(by_key.values())

    @classmethod
    def build(cls, records: Iterable[MemoRecord]) -> "TagIndex":
        by_key: Dict[str, Tag] = {}
        for rec in records:
            for tag in rec.tags:
                if tag.key not in by_key:
                    by_key[tag.key] = tag
        return cls(by_key)

    @classmethod
    def empty(cls) -> "TagIndex":
        return cls({})

    @property
    def tags(self) -> List[Tag]:
        return list(self._sorted)

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> Optional[Tag]:
        return self._by_key.get(key)

    def find_exact(self, query_fold: str) -> Optional[Tag]:
        """畳み込み済み文字列と、ラベルか読みが完全一致するタグ（並び順で最初）。"""
        if not query_fold:
            return None
        for tag in self._sorted:
            if tag.matches_exact(query_fold):
                return tag
        return None

    def candidates(
        self,
        query_fold: str,
        limit: int = DEFAULT_SUGGEST_LIMIT,
        mode: MatchMode = MatchMode.SUBSTRING,
    ) -> List[Tag]:
        """入力候補。ラベルか読みに query_fold を含む（PREFIX なら前方一致）タグ。"""
        if not query_fold or limit <= 0:
            return []
        hits: List[Tag] = []
        for tag in self._sorted:
            if tag_matches(tag, query_fold, mode):
                hits.append(tag)
                if len(hits) >= limit:
                    break
        return hits
