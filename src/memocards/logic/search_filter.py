# src/memocards/logic/search_filter.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List

from memocards.logic.kana import kana_fold
from memocards.logic.tag_index import MatchMode, TagIndex, tag_matches
from memocards.models.memo_record import MemoRecord

FREQ_MIN = 1
FREQ_MAX = 5


@dataclass(frozen=True)
class SearchCondition:
    """
    カード絞り込みの条件。

    - freq_a / freq_b: 頻度の範囲。どちらが下限でもよい（内部で並べ替える）
    - selected_keys: 明示的に選んだタグ（すべて含むレコードだけ通す）
    - query: 自由入力。selected_keys が空のときだけ使う
    """
    freq_a: int = FREQ_MIN
    freq_b: int = FREQ_MAX
    selected_keys: FrozenSet[str] = field(default_factory=frozenset)
    query: str = ""
    mode: MatchMode = MatchMode.SUBSTRING

    @property
    def freq_range(self) -> tuple[int, int]:
        return min(self.freq_a, self.freq_b), max(self.freq_a, self.freq_b)

    @property
    def query_fold(self) -> str:
        return kana_fold(self.query)


def build_predicate(cond: SearchCondition) -> Callable[[MemoRecord], bool]:
    """
    SearchCondition からレコード判定関数を作る。

    頻度が不明なレコードは頻度条件を常に満たす。
    タグ選択と自由入力は排他で、選択があれば自由入力は無視する。
    """
    lo, hi = cond.freq_range
    selected = frozenset(cond.selected_keys)
    query_fold = "" if selected else cond.query_fold
    mode = cond.mode

    def predicate(rec: MemoRecord) -> bool:
        if rec.freq is not None and not (lo <= rec.freq <= hi):
            return False
        if selected:
            return selected <= rec.tag_keys
        if query_fold:
            return any(tag_matches(t, query_fold, mode) for t in rec.tags)
        return True

    return predicate


def filter_records(records: Iterable[MemoRecord], cond: SearchCondition) -> List[MemoRecord]:
    """条件に合うレコードを元の並び順のまま返す。"""
    predicate = build_predicate(cond)
    return [rec for rec in records if predicate(rec)]


def commit_query(index: TagIndex, text: str) -> str:
    """
    入力欄の文字列を特定のタグに確定する。

    畳み込み形がラベルか読みと完全一致するタグがあればそのキー、無ければ空文字。
    """
    tag = index.find_exact(kana_fold(text))
    return tag.key if tag is not None else ""
