# src/memocards/models/tag.py

from __future__ import annotations

from dataclasses import dataclass, field

from memocards.logic.kana import kana_fold


@dataclass
class Tag:
    """
    タグ1件分。

    - key: 同一性判定用のキー（正規化済みラベルと同じ）
    - label: 表示用ラベル
    - reading: 読み（ひらがな）。空文字は「読み不明」
    - folded_label / folded_reading: 検索比較用の畳み込み形

    folded_* は常に現在の label / reading から導出される。
    読みを後から埋めるときは fill_reading() を使うこと。
    """
    key: str
    label: str
    reading: str = ""
    folded_label: str = field(init=False)
    folded_reading: str = field(init=False)

    def __post_init__(self) -> None:
        self.folded_label = kana_fold(self.label)
        self.folded_reading = kana_fold(self.reading)

    def fill_reading(self, reading: str) -> bool:
        """
        読みが未確定のときだけ reading を埋め、畳み込み形も作り直す。

        既に読みがある場合は何もしない（先に決まった読みを優先）。
        埋めた場合 True を返す。
        """
        if self.reading or not reading:
            return False
        self.reading = reading
        self.folded_reading = kana_fold(reading)
        return True

    def matches_exact(self, query_fold: str) -> bool:
        return bool(query_fold) and (
            self.folded_label == query_fold or self.folded_reading == query_fold
        )

    def matches_prefix(self, query_fold: str) -> bool:
        return self.folded_label.startswith(query_fold) or self.folded_reading.startswith(query_fold)

    def matches_substring(self, query_fold: str) -> bool:
        return query_fold in self.folded_label or query_fold in self.folded_reading
