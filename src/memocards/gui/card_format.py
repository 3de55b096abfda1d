# src/memocards/gui/card_format.py

from __future__ import annotations

import html
import re
from typing import List, Optional
from urllib.parse import quote

from memocards.logic.kana import normalize
from memocards.models.memo_record import MemoRecord

# サブメモの改行表現（「\\」「¥¥」「￥￥」）
RE_SUBMEMO_BREAK = re.compile(r"(?:\\\\|¥¥|￥￥)")

TAG_LINK_SCHEME = "tag"


def freq_stars(n: Optional[int]) -> str:
    """頻度を ★ で表す。不明・1未満は「-」。"""
    if n is None or n < 1:
        return "-"
    return "★" * max(1, min(5, n))


def split_sub_memo_lines(text: str) -> List[str]:
    raw = normalize(text)
    if not raw:
        return []
    return [line for line in (normalize(x) for x in RE_SUBMEMO_BREAK.split(raw)) if line]


def tag_href(key: str) -> str:
    return f"{TAG_LINK_SCHEME}:{quote(key, safe='')}"


def card_html(rec: MemoRecord, thumbnail_url: Optional[str] = None) -> str:
    """カード1枚分の HTML（QTextBrowser 表示用）。"""
    esc = html.escape

    lines = split_sub_memo_lines(rec.sub_memo)
    if len(lines) <= 1:
        sub_html = f'<div class="submemo">{esc(lines[0])}</div>' if lines else ""
    else:
        sub_html = "<ul>" + "".join(f"<li>{esc(line)}</li>" for line in lines) + "</ul>"

    if rec.tags:
        tags_html = " ".join(
            f'<a href="{esc(tag_href(t.key))}">{esc(t.label)}</a>' for t in rec.tags
        )
    else:
        tags_html = '<span class="empty">タグなし</span>'

    thumb_html = f'<img src="{esc(thumbnail_url)}" width="96">' if thumbnail_url else ""

    return (
        '<table width="100%" cellpadding="6" style="border-bottom:1px solid #ccc;"><tr><td>'
        f'<div style="float:right;">{esc(freq_stars(rec.freq))}</div>'
        f'<div style="font-size:large;"><b>{esc(rec.memo)}</b></div>'
        f"{sub_html}"
        f"{thumb_html}"
        f'<div style="color:#555;">{tags_html}</div>'
        "</td></tr></table>"
    )
