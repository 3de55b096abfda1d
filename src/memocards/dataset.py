# src/memocards/dataset.py

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple

from memocards.logic.reading_resolver import ReadingResolver
from memocards.logic.tag_index import TagIndex
from memocards.models.memo_record import MemoRecord
from memocards.parser.csv_parser import parse_csv
from memocards.parser.record_mapper import rows_to_records
from memocards.sheet_loader import Source, fetch_text_async

logger = logging.getLogger(__name__)

AsyncFetch = Callable[[Source], Awaitable[str]]


@dataclass(frozen=True)
class Dataset:
    """1回の読み込みで作られたレコードとタグ一覧のまとまり。"""
    generation: int = 0
    records: Tuple[MemoRecord, ...] = field(default_factory=tuple)
    tag_index: TagIndex = field(default_factory=TagIndex.empty)
    source: str = ""

    @property
    def is_loaded(self) -> bool:
        return self.generation > 0


def build_records(text: str) -> List[MemoRecord]:
    return rows_to_records(parse_csv(text))


class DatasetStore:
    """
    読み込み → 読み補完 → タグ一覧構築 をまとめて実行し、結果を差し替える。

    読み込みごとに世代番号を振り、公開済みより古い世代の結果は捨てる
    （後から始めた読み込みが先に終わった場合など）。
    """

    def __init__(
        self,
        resolver: ReadingResolver,
        fetch: AsyncFetch = fetch_text_async,
    ) -> None:
        self._resolver = resolver
        self._fetch = fetch
        self._lock = threading.Lock()
        self._last_generation = 0
        self._current = Dataset()

    @property
    def current(self) -> Dataset:
        with self._lock:
            return self._current

    def _next_generation(self) -> int:
        with self._lock:
            self._last_generation += 1
            return self._last_generation

    async def reload(self, source: Source) -> Optional[Dataset]:
        """
        source を読み直して公開する。

        取得失敗（SheetFetchError）はそのまま呼び出し側へ伝える。
        古い世代として捨てられた場合は None を返す。
        """
        generation = self._next_generation()
        logger.info("読み込み開始 (世代 %d): %s", generation, source)

        text = await self._fetch(source)
        records = build_records(text)
        await self._resolver.resolve_records(records)
        index = TagIndex.build(records)

        dataset = Dataset(
            generation=generation,
            records=tuple(records),
            tag_index=index,
            source=str(source),
        )
        return self._publish(dataset)

    def _publish(self, dataset: Dataset) -> Optional[Dataset]:
        with self._lock:
            if dataset.generation <= self._current.generation:
                logger.info(
                    "世代 %d の結果は公開済み世代 %d より古いため破棄します",
                    dataset.generation,
                    self._current.generation,
                )
                return None
            self._current = dataset
        logger.info(
            "読み込み完了 (世代 %d): %d 件, タグ %d 種",
            dataset.generation,
            len(dataset.records),
            len(dataset.tag_index),
        )
        return dataset
