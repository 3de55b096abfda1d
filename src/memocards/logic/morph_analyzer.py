# src/memocards/logic/morph_analyzer.py

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)

# 形態素解析器が「読み不明」を表すときの値
UNKNOWN_SENTINEL = "*"


@dataclass(frozen=True)
class MorphUnit:
    """形態素1つ分。reading は解析器が読みを返さなければ空文字。"""
    surface: str
    reading: str = ""


class MorphAnalyzer(Protocol):
    def tokenize(self, text: str) -> List[MorphUnit]:
        ...


def _feature_get(word: Any, keys: List[str]) -> str:
    feat = getattr(word, "feature", None)
    if feat is None:
        return ""
    for k in keys:
        v = getattr(feat, k, None)
        if v:
            return str(v)
    return ""


class FugashiAnalyzer:
    """
    fugashi (MeCab + unidic-lite) を MorphAnalyzer として包むアダプタ。

    読みは kana → reading → pron の順で探す。
    """

    _READING_KEYS = ["kana", "reading", "pron", "kanaBase", "pronBase"]

    def __init__(self, tagger: Any) -> None:
        self._tagger = tagger

    @classmethod
    def create(cls) -> "FugashiAnalyzer":
        from fugashi import Tagger

        return cls(Tagger())

    def tokenize(self, text: str) -> List[MorphUnit]:
        units: List[MorphUnit] = []
        for w in self._tagger(text):
            surface = str(getattr(w, "surface", "") or "")
            if not surface:
                continue
            units.append(
                MorphUnit(surface=surface, reading=_feature_get(w, self._READING_KEYS))
            )
        return units


class AnalyzerProvider:
    """
    形態素解析器の共有ハンドル。

    初回の get() で factory をワーカースレッド上で1度だけ実行し、
    以降は（初期化中でも完了後でも）同じ結果を返す。
    初期化に失敗した場合は None を返し続ける。例外は外へ出さない。
    """

    def __init__(self, factory: Callable[[], MorphAnalyzer]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._future: Optional[Future] = None

    def _start(self) -> Future:
        with self._lock:
            if self._future is None:
                fut: Future = Future()
                self._future = fut
                threading.Thread(
                    target=self._build, args=(fut,), name="morph-analyzer-init", daemon=True
                ).start()
            return self._future

    def _build(self, fut: Future) -> None:
        try:
            analyzer = self._factory()
        except Exception as e:
            logger.warning("形態素解析器の初期化に失敗しました: %s", e)
            analyzer = None
        fut.set_result(analyzer)

    async def get(self) -> Optional[MorphAnalyzer]:
        return await asyncio.wrap_future(self._start())

    def get_blocking(self) -> Optional[MorphAnalyzer]:
        return self._start().result()


_default_provider: Optional[AnalyzerProvider] = None
_default_lock = threading.Lock()


def default_provider() -> AnalyzerProvider:
    """プロセス共通の fugashi プロバイダ（初回呼び出し時に生成）。"""
    global _default_provider
    with _default_lock:
        if _default_provider is None:
            _default_provider = AnalyzerProvider(FugashiAnalyzer.create)
        return _default_provider
