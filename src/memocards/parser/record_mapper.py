# src/memocards/parser/record_mapper.py

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

from memocards.logic.kana import normalize, normalize_header
from memocards.models.memo_record import MemoRecord
from memocards.models.tag import Tag
from memocards.parser.tag_parser import parse_tag_token

# 論理フィールド -> (見出しの同義語, 見出しが無いときの列位置)
HEADER_SYNONYMS: Dict[str, tuple[tuple[str, ...], Optional[int]]] = {
    "memo":     (("メモ", "memo", "答え", "answer"), 0),
    "sub_memo": (("サブメモ", "submemo", "sub memo"), 1),
    "freq":     (("頻度", "freq", "frequency"), 2),
    "tags":     (("タグ", "tag", "tags"), 3),
    # 出典URLは任意列。位置での代用はしない
    "source_url": (("url", "link", "リンク", "出典"), None),
}

RE_FREQ = re.compile(r"^[1-5]$")
RE_TAG_SEPARATOR = re.compile(r"[,、]")


def header_index(headers: Sequence[str], candidates: Sequence[str]) -> int:
    """
    見出し行から候補名のいずれかに一致する列番号を返す。無ければ -1。

    候補は並び順に優先される。見出しは NFKC + 小文字化して比較する。
    """
    index_by_name: Dict[str, int] = {}
    for i, h in enumerate(headers):
        index_by_name.setdefault(normalize_header(h), i)

    for c in candidates:
        idx = index_by_name.get(normalize_header(c))
        if idx is not None:
            return idx
    return -1


def resolve_columns(headers: Sequence[str]) -> Dict[str, Optional[int]]:
    """各論理フィールドの列番号を決める。任意列で見つからなければ None。"""
    columns: Dict[str, Optional[int]] = {}
    for name, (synonyms, fallback) in HEADER_SYNONYMS.items():
        idx = header_index(headers, synonyms)
        columns[name] = idx if idx >= 0 else fallback
    return columns


def parse_frequency(raw: str | None) -> Optional[int]:
    """
    頻度セルを 1〜5 の整数に変換する。

    半角数字1文字の 1〜5 以外（空・複数桁・範囲外・文字）は None（不明）。
    丸めや補正はしない。
    """
    s = normalize(raw)
    if RE_FREQ.match(s):
        return int(s)
    return None


def parse_tags(raw: str | None) -> List[Tag]:
    """タグセルを「,」「、」で分割し、空トークンを除いた Tag の一覧にする。"""
    tags: List[Tag] = []
    for token in RE_TAG_SEPARATOR.split(normalize(raw)):
        tag = parse_tag_token(token)
        if tag is not None:
            tags.append(tag)
    return tags


def rows_to_records(csv_rows: Sequence[Sequence[str]]) -> List[MemoRecord]:
    """
    parse_csv() の結果（先頭行は見出し）を MemoRecord の一覧に変換する。

    本文（メモ）が空の行は捨てる。
    """
    if not csv_rows:
        return []

    columns = resolve_columns(csv_rows[0])

    def cell(row: Sequence[str], name: str) -> str:
        idx = columns[name]
        if idx is None or idx >= len(row):
            return ""
        return row[idx] or ""

    records: List[MemoRecord] = []
    for row in csv_rows[1:]:
        memo = normalize(cell(row, "memo"))
        if not memo:
            continue

        records.append(
            MemoRecord(
                memo=memo,
                sub_memo=cell(row, "sub_memo"),
                freq=parse_frequency(cell(row, "freq")),
                tags=tuple(parse_tags(cell(row, "tags"))),
                source_url=normalize(cell(row, "source_url")),
            )
        )

    return records
