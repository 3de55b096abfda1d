# src/memocards/sheet_loader.py

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Union

import chardet
import requests

logger = logging.getLogger(__name__)

Source = Union[str, Path]


class SheetFetchError(RuntimeError):
    """シートの取得に失敗したときの、ユーザー向けメッセージ付き例外。"""


def _japanese_score(text: str) -> int:
    """日本語らしさの簡易スコア（かな・漢字の数から置換文字・制御文字を減点）。"""
    num_jp = sum(1 for ch in text if "\u3040" <= ch <= "\u30ff" or "\u4e00" <= ch <= "\u9fff")
    num_replacement = text.count("\ufffd")
    num_ctrl = sum(1 for ch in text if ord(ch) < 0x20 and ch not in "\r\n\t")
    return num_jp - (num_replacement * 10 + num_ctrl * 2)


def decode_bytes(raw: bytes) -> str:
    """
    バイト列をテキスト化する。

    UTF-8 (BOM 付きも) で読めればそれを使う。
    読めなければ chardet の推定と cp932 / euc_jp を試し、一番日本語らしいものを採用。
    """
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    candidates = ["cp932", "euc_jp"]
    guess = (chardet.detect(raw) or {}).get("encoding")
    if guess:
        candidates.insert(0, guess)

    best_text: str | None = None
    best_score = float("-inf")
    for enc in candidates:
        try:
            text = raw.decode(enc)
        except (UnicodeDecodeError, LookupError):
            continue
        score = _japanese_score(text)
        if score > best_score:
            best_text, best_score = text, score

    if best_text is None:
        logger.debug("どのエンコーディングでも読めなかったため cp932 で置換読み込みします")
        return raw.decode("cp932", errors="replace")
    return best_text


def _is_url(source: Source) -> bool:
    return isinstance(source, str) and source.startswith(("http://", "https://"))


def fetch_text(source: Source, timeout: float = 15.0) -> str:
    """
    URL もしくはローカルファイルから CSV テキストを取得する（ブロッキング）。

    失敗時は SheetFetchError を投げる。リトライはしない。
    """
    if _is_url(source):
        try:
            res = requests.get(str(source), timeout=timeout)
        except requests.RequestException as e:
            raise SheetFetchError(f"シートを取得できませんでした: {e}") from e
        if not res.ok:
            raise SheetFetchError("シートを取得できませんでした。共有設定を確認してください。")
        return decode_bytes(res.content)

    path = Path(source)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise SheetFetchError(f"ファイル読み込みエラー: {e}") from e
    return decode_bytes(raw)


async def fetch_text_async(source: Source, timeout: float = 15.0) -> str:
    return await asyncio.to_thread(fetch_text, source, timeout)
