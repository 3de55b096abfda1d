# src/memocards/logic/reading_resolver.py

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from memocards.logic.kana import contains_kanji, is_ascii, is_kana, normalize, to_hiragana
from memocards.logic.morph_analyzer import (
    UNKNOWN_SENTINEL,
    AnalyzerProvider,
    MorphAnalyzer,
    MorphUnit,
)
from memocards.models.memo_record import MemoRecord
from memocards.models.tag import Tag
from memocards.reading_table import longest_key_at, lookup_reading

logger = logging.getLogger(__name__)


def needs_reading(tag: Tag) -> bool:
    """漢字を含み、まだ読みが無いタグだけが読み解決の対象。"""
    return not tag.reading and contains_kanji(tag.label)


def segment_reading(label: str) -> str:
    """
    対応表の最長一致で複合語を区切り、読みを連結する。

    - 各位置で一番長く一致するキーを採用
    - かな・ASCII はそのまま通す（カタカナはひらがな化）
    - どれにも当てはまらない文字が1つでもあれば空文字（推測の読みは出さない）
    """
    parts: List[str] = []
    pos = 0
    while pos < len(label):
        key = longest_key_at(label, pos)
        if key is not None:
            parts.append(lookup_reading(key) or "")
            pos += len(key)
            continue

        ch = label[pos]
        if is_kana(ch) or is_ascii(ch):
            parts.append(to_hiragana(ch) if ch.strip() else ch)
            pos += 1
            continue

        return ""
    return "".join(parts)


def unit_reading(unit: MorphUnit) -> str:
    yomi = normalize(unit.reading)
    if not yomi or yomi == UNKNOWN_SENTINEL:
        return ""
    return to_hiragana(yomi)


def analyze_reading(analyzer: MorphAnalyzer, text: str) -> str:
    """形態素ごとの読み（無ければ表層形）を連結してひらがなにする。"""
    if not text:
        return ""
    units = analyzer.tokenize(text)
    if not units:
        return ""
    return to_hiragana("".join(unit_reading(u) or normalize(u.surface) for u in units))


def cheap_reading(label: str) -> str:
    """対応表の完全一致 → 複合語分割 の順に読みを探す（同期・安価な段）。"""
    exact = lookup_reading(label)
    if exact:
        return exact
    return segment_reading(label)


class ReadingResolver:
    """
    タグの読みを段階的に補完する。

    1. 括弧書きの読みがあれば何もしない
    2. 対応表の完全一致
    3. 対応表による複合語分割
    4. 形態素解析器（非同期・まとめて実行）

    先の段で決まった読みは上書きしない。解析器が使えなくても例外は出さず、
    1〜3 の結果のまま終わる。
    """

    def __init__(self, provider: Optional[AnalyzerProvider] = None) -> None:
        self._provider = provider

    def resolve_cheap(self, tags: Iterable[Tag]) -> List[Tag]:
        """段 1〜3 を適用し、まだ読みが決まらないタグを返す。"""
        pending: List[Tag] = []
        for tag in tags:
            if not needs_reading(tag):
                continue
            if tag.fill_reading(cheap_reading(tag.label)):
                continue
            pending.append(tag)
        return pending

    async def resolve_with_analyzer(self, tags: List[Tag]) -> int:
        """段 4。埋めたタグ数を返す。"""
        if not tags or self._provider is None:
            return 0

        analyzer = await self._provider.get()
        if analyzer is None:
            return 0

        reading_by_label: Dict[str, str] = {}
        filled = 0
        for tag in tags:
            if not needs_reading(tag):
                continue
            if tag.label not in reading_by_label:
                try:
                    reading_by_label[tag.label] = analyze_reading(analyzer, tag.label)
                except Exception as e:
                    logger.warning("読みの解析に失敗しました (%s): %s", tag.label, e)
                    reading_by_label[tag.label] = ""
            if tag.fill_reading(reading_by_label[tag.label]):
                filled += 1
        return filled

    async def resolve_records(self, records: Iterable[MemoRecord]) -> None:
        """データ読み込み1回分、全レコードの全タグを解決する。"""
        all_tags = [tag for rec in records for tag in rec.tags]
        pending = self.resolve_cheap(all_tags)
        filled = await self.resolve_with_analyzer(pending)
        logger.info(
            "読み補完: 対象 %d 件のうち解析器で %d 件を補完", len(pending), filled
        )
