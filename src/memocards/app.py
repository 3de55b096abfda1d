# src/memocards/app.py

from __future__ import annotations

import logging
import sys

from PySide6.QtWidgets import QApplication

from memocards.config import load_config
from memocards.dataset import DatasetStore
from memocards.gui.main_window import MainWindow
from memocards.logic.morph_analyzer import default_provider
from memocards.logic.reading_resolver import ReadingResolver
from memocards.sheet_loader import fetch_text_async
from memocards.thumbnail_lookup import ThumbnailLookup


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    store = DatasetStore(
        ReadingResolver(default_provider()),
        fetch=lambda source: fetch_text_async(source, config.request_timeout),
    )
    thumbnails = ThumbnailLookup(
        config.thumbnail_endpoint,
        workers=config.thumbnail_workers,
        timeout=config.request_timeout,
    )

    app = QApplication(sys.argv)
    win = MainWindow(store, config, thumbnails)
    win.show()
    # 引数があればそのファイル（またはURL）を、無ければ設定のシートを読む
    if len(sys.argv) > 1:
        win.load_source(sys.argv[1])
    else:
        win.reload_sheet()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
