# src/memocards/parser/csv_parser.py

from __future__ import annotations

from typing import List

from memocards.logic.kana import normalize


def _is_blank_row(row: List[str]) -> bool:
    return all(normalize(cell) == "" for cell in row)


def parse_csv(text: str) -> List[List[str]]:
    """
    スプレッドシートの CSV エクスポートを行ごとのセル配列に変換する。

    - '"' は位置に関係なく引用モードを反転する（セル途中でも）
    - 引用中の '""' はリテラルの '"' 1文字
    - 引用外の ',' でセル区切り、CR / LF / CRLF で行区切り
    - 全セルが空白だけの行は捨てる
    - 末尾に改行が無くても最終行は出力する

    どんな入力でも例外は投げない。
    """
    rows: List[List[str]] = []
    row: List[str] = []
    cell: List[str] = []
    in_quotes = False

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if ch == '"':
            if in_quotes and nxt == '"':
                cell.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
            i += 1
            continue

        if not in_quotes and ch == ",":
            row.append("".join(cell))
            cell = []
            i += 1
            continue

        if not in_quotes and ch in "\r\n":
            # CRLF は1つの改行として扱う
            if ch == "\r" and nxt == "\n":
                i += 1
            row.append("".join(cell))
            if not _is_blank_row(row):
                rows.append(row)
            row = []
            cell = []
            i += 1
            continue

        cell.append(ch)
        i += 1

    row.append("".join(cell))
    if not _is_blank_row(row):
        rows.append(row)

    return rows
