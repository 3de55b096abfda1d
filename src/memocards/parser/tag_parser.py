# src/memocards/parser/tag_parser.py

from __future__ import annotations

import re
from typing import Optional, Tuple

from memocards.logic.kana import normalize
from memocards.models.tag import Tag

# 「ラベル(読み)」形式。括弧は半角・全角どちらも可。
# ラベル側は最短一致なので、末尾の括弧グループが読みとして扱われる。
TAG_GRAMMAR = re.compile(r"^(?P<label>.+?)[(（](?P<reading>[^)）]+)[)）]$")


def split_label_reading(token: str) -> Tuple[str, str]:
    """
    正規化済みトークンを (label, reading) に分ける。

    文法に合わなければトークン全体をラベルとし、読みは空文字。
    """
    m = TAG_GRAMMAR.match(token)
    if m is None:
        return token, ""
    return normalize(m.group("label")), normalize(m.group("reading"))


def parse_tag_token(token: str | None) -> Optional[Tag]:
    """
    タグ文字列1件を Tag に変換する。空トークンなら None。

    例:
        "花(はな)" -> Tag(key="花", label="花", reading="はな")
        "犬"       -> Tag(key="犬", label="犬", reading="")
    """
    t = normalize(token)
    if not t:
        return None

    label, reading = split_label_reading(t)
    if not label:
        return None
    return Tag(key=label, label=label, reading=reading)
