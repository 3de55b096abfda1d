# src/memocards/logic/kana.py

from __future__ import annotations

import re
import unicodedata

KANJI_PATTERN = re.compile(r"[一-龯]")

# カタカナ ァ(U+30A1)〜ヶ(U+30F6) はひらがなと 0x60 ずれで対応する
_KATAKANA_START = 0x30A1
_KATAKANA_END = 0x30F6
_KANA_OFFSET = 0x60


def normalize(s: str | None) -> str:
    """NFKC 正規化して前後の空白を落とす。None は空文字扱い。"""
    return unicodedata.normalize("NFKC", str(s or "")).strip()


def normalize_header(s: str | None) -> str:
    return normalize(s).lower()


def to_hiragana(s: str | None) -> str:
    """
    カタカナをひらがなに寄せる。

    ヷ〜ヺや長音「ー」など、対応するひらがなが無い文字はそのまま残す。
    """
    out: list[str] = []
    for ch in normalize(s):
        code = ord(ch)
        if _KATAKANA_START <= code <= _KATAKANA_END:
            out.append(chr(code - _KANA_OFFSET))
        else:
            out.append(ch)
    return "".join(out)


def kana_fold(s: str | None) -> str:
    """
    比較用の畳み込み形。

    ひらがな化 → 小文字化。漢字やひらがなは lower() の影響を受けない。
    fold(fold(s)) == fold(s) が成り立つ。
    """
    return to_hiragana(normalize(s)).lower()


def contains_kanji(s: str | None) -> bool:
    return bool(KANJI_PATTERN.search(str(s or "")))


def is_kana(ch: str) -> bool:
    """ひらがな・カタカナ（長音記号を含む）なら True。"""
    return "ぁ" <= ch <= "ゟ" or "゠" <= ch <= "ヿ"


def is_ascii(ch: str) -> bool:
    return ord(ch) < 0x80
