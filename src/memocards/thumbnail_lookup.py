# src/memocards/thumbnail_lookup.py

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

FetchJson = Callable[[str], Any]


class ThumbnailLookup:
    """
    出典URL → サムネイル画像URL の補助的な引き当て。

    - 同じURLは1度しか問い合わせない（失敗も None としてキャッシュ）
    - 問い合わせ中のURLを別の呼び出しが求めた場合は、その結果を待つ
    - 固定数のワーカーが共有カーソルから順に URL を取り出して処理する
    - 絞り込みやタグ一覧はこの結果に依存しない
    """

    def __init__(
        self,
        endpoint: str,
        workers: int = 4,
        timeout: float = 10.0,
        fetch_json: Optional[FetchJson] = None,
    ) -> None:
        self._endpoint = endpoint
        self._workers = max(1, workers)
        self._timeout = timeout
        self._fetch_json = fetch_json or self._request_json
        self._lock = threading.Lock()
        # URL -> 問い合わせ中または完了済みの Future
        self._futures: Dict[str, Future] = {}

    @property
    def enabled(self) -> bool:
        return bool(self._endpoint)

    def cached(self, url: str) -> Optional[str]:
        fut = self._futures.get(url)
        if fut is None or not fut.done() or fut.exception() is not None:
            return None
        return fut.result()

    def _claim(self, url: str) -> Tuple[Future, bool]:
        """URL の Future を返す。この呼び出しで新しく作った場合は True。"""
        with self._lock:
            fut = self._futures.get(url)
            if fut is not None:
                return fut, False
            fut = Future()
            self._futures[url] = fut
            return fut, True

    def _request_json(self, url: str) -> Any:
        res = requests.get(self._endpoint, params={"url": url}, timeout=self._timeout)
        res.raise_for_status()
        return res.json()

    def _lookup_one(self, url: str) -> Optional[str]:
        try:
            data = self._fetch_json(url)
        except (requests.RequestException, ValueError) as e:
            logger.warning("サムネイル取得に失敗しました (%s): %s", url, e)
            return None
        if not isinstance(data, dict):
            return None
        thumb = data.get("thumbnail_url") or data.get("thumbnail")
        return str(thumb) if thumb else None

    async def lookup_many(self, urls: Iterable[str]) -> Dict[str, Optional[str]]:
        """URL 群のサムネイルを引き当てる。まだ誰も問い合わせていないものだけ取得する。"""
        wanted = [u for u in dict.fromkeys(urls) if u]
        if not self.enabled:
            return {u: None for u in wanted}

        owned: List[Tuple[str, Future]] = []
        for url in wanted:
            fut, is_new = self._claim(url)
            if is_new:
                owned.append((url, fut))

        cursor = 0

        async def worker() -> None:
            nonlocal cursor
            while cursor < len(owned):
                url, fut = owned[cursor]
                cursor += 1
                try:
                    thumb = await asyncio.to_thread(self._lookup_one, url)
                except Exception as e:
                    fut.set_exception(e)
                    raise
                fut.set_result(thumb)

        if owned:
            await asyncio.gather(*(worker() for _ in range(min(self._workers, len(owned)))))

        results: Dict[str, Optional[str]] = {}
        for url in wanted:
            results[url] = await asyncio.wrap_future(self._futures[url])
        return results
