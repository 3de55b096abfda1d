# src/memocards/reading_table.py

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Dict, Optional, Tuple

from memocards.logic.kana import normalize, to_hiragana

_TABLE_FILE = "reading_table.json"


@lru_cache(maxsize=None)
def load_reading_table() -> Dict[str, str]:
    """
    既知の「ラベル→読み」対応表を読み込む。

    - JSON は memocards/data/ 以下に配置
    - キー・値とも NFKC 正規化し、読みはひらがなに寄せる
    """
    with resources.files("memocards.data").joinpath(_TABLE_FILE).open(
        "r", encoding="utf-8"
    ) as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Unsupported JSON format in {_TABLE_FILE}")

    table: Dict[str, str] = {}
    for label, reading in raw.items():
        key = normalize(label)
        value = to_hiragana(reading)
        if key and value:
            table[key] = value
    return table


@lru_cache(maxsize=None)
def keys_by_length() -> Tuple[str, ...]:
    """最長一致用に、キーを長い順に並べたもの。"""
    return tuple(sorted(load_reading_table(), key=lambda k: (-len(k), k)))


def lookup_reading(label: str) -> Optional[str]:
    return load_reading_table().get(label)


def longest_key_at(text: str, pos: int) -> Optional[str]:
    """text[pos:] の先頭に一致する最長のキーを返す。無ければ None。"""
    for key in keys_by_length():
        if text.startswith(key, pos):
            return key
    return None
