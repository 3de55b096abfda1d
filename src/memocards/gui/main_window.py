# src/memocards/gui/main_window.py

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QUrl, Qt, Signal
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QSpinBox,
    QStatusBar,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)

from memocards.config import AppConfig
from memocards.dataset import Dataset, DatasetStore
from memocards.gui.card_format import TAG_LINK_SCHEME, card_html, freq_stars
from memocards.logic.kana import kana_fold, normalize
from memocards.logic.search_filter import FREQ_MAX, FREQ_MIN, SearchCondition, commit_query, filter_records
from memocards.sheet_loader import SheetFetchError, Source
from memocards.thumbnail_lookup import ThumbnailLookup

logger = logging.getLogger(__name__)

PROMPT_MESSAGE = "条件を指定して「検索」を押してください。"


class _WorkerSignals(QObject):
    finished = Signal(object)
    failed = Signal(str)


class _AsyncJob(QRunnable):
    """コルーチンをワーカースレッド上の専用イベントループで実行する。"""

    def __init__(self, make_coro: Callable[[], Any]) -> None:
        super().__init__()
        self.signals = _WorkerSignals()
        self._make_coro = make_coro

    def run(self) -> None:
        try:
            result = asyncio.run(self._make_coro())
        except SheetFetchError as e:
            self.signals.failed.emit(str(e))
            return
        except Exception as e:
            logger.exception("バックグラウンド処理で例外が発生しました")
            self.signals.failed.emit(f"読み込みエラー: {e}")
            return
        self.signals.finished.emit(result)


class MainWindow(QMainWindow):
    """
    MemoCards のメインウィンドウ。

    頻度範囲・タグでカードを絞り込んで一覧表示する。
    """

    def __init__(
        self,
        store: DatasetStore,
        config: AppConfig,
        thumbnails: Optional[ThumbnailLookup] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("MemoCards - メモカードビューア")
        self.resize(900, 700)

        self._store = store
        self._config = config
        self._thumbnails = thumbnails
        self._pool = QThreadPool.globalInstance()
        self._jobs: List[_AsyncJob] = []

        # 絞り込み状態
        self._selected_keys: List[str] = []
        self._has_searched = False
        self._thumb_by_url: Dict[str, Optional[str]] = {}

        self._create_central_widgets()
        self._create_actions()
        self._create_menus()
        self._create_status_bar()
        self._refresh_freq_view()

    @property
    def dataset(self) -> Dataset:
        return self._store.current

    # ─────────────────────────────
    # UI 構築
    # ─────────────────────────────
    def _create_central_widgets(self) -> None:
        root = QWidget(self)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(4)

        # 上段: 頻度範囲 + タグ入力 + 検索
        toolbar = QHBoxLayout()
        toolbar.addWidget(QLabel("頻度:", root))

        self.freq_min_spin = QSpinBox(root)
        self.freq_min_spin.setRange(FREQ_MIN, FREQ_MAX)
        self.freq_min_spin.setValue(FREQ_MIN)
        self.freq_max_spin = QSpinBox(root)
        self.freq_max_spin.setRange(FREQ_MIN, FREQ_MAX)
        self.freq_max_spin.setValue(FREQ_MAX)
        self.freq_view = QLabel("", root)

        toolbar.addWidget(self.freq_min_spin)
        toolbar.addWidget(QLabel("〜", root))
        toolbar.addWidget(self.freq_max_spin)
        toolbar.addWidget(self.freq_view)

        self.tag_input = QLineEdit(root)
        self.tag_input.setPlaceholderText("タグ（読みでも可。例: どうぶつ）")
        toolbar.addWidget(self.tag_input, 1)

        self.search_btn = QPushButton("検索", root)
        toolbar.addWidget(self.search_btn)
        layout.addLayout(toolbar)

        # 候補リスト（入力中のみ表示）
        self.suggest_list = QListWidget(root)
        self.suggest_list.setMaximumHeight(160)
        self.suggest_list.hide()
        layout.addWidget(self.suggest_list)

        # 選択中タグ
        selected_row = QHBoxLayout()
        self.selected_label = QLabel("", root)
        self.clear_selection_btn = QPushButton("選択解除", root)
        self.clear_selection_btn.setEnabled(False)
        selected_row.addWidget(self.selected_label, 1)
        selected_row.addWidget(self.clear_selection_btn)
        layout.addLayout(selected_row)

        # カード一覧
        self.cards_view = QTextBrowser(root)
        self.cards_view.setOpenLinks(False)
        layout.addWidget(self.cards_view, 1)

        self.setCentralWidget(root)

        self.freq_min_spin.valueChanged.connect(self._on_filter_changed)
        self.freq_max_spin.valueChanged.connect(self._on_filter_changed)
        self.tag_input.textEdited.connect(self._on_tag_input_edited)
        self.tag_input.returnPressed.connect(self._on_search)
        self.search_btn.clicked.connect(self._on_search)
        self.suggest_list.itemClicked.connect(self._on_suggestion_clicked)
        self.clear_selection_btn.clicked.connect(self._on_clear_selection)
        self.cards_view.anchorClicked.connect(self._on_card_link_clicked)

    def _create_actions(self) -> None:
        self.open_action = QAction("開く(&O)...", self)
        self.open_action.setShortcut("Ctrl+O")
        self.open_action.triggered.connect(self._on_open_file)

        self.reload_action = QAction("シートを再読み込み(&R)", self)
        self.reload_action.setShortcut("F5")
        self.reload_action.triggered.connect(self.reload_sheet)

        self.exit_action = QAction("終了(&Q)", self)
        self.exit_action.setShortcut("Ctrl+Q")
        self.exit_action.triggered.connect(self.close)

    def _create_menus(self) -> None:
        file_menu = self.menuBar().addMenu("ファイル(&F)")
        file_menu.addAction(self.open_action)
        file_menu.addAction(self.reload_action)
        file_menu.addSeparator()
        file_menu.addAction(self.exit_action)

    def _create_status_bar(self) -> None:
        self.setStatusBar(QStatusBar(self))
        self.statusBar().showMessage(PROMPT_MESSAGE)

    # ─────────────────────────────
    # 読み込み
    # ─────────────────────────────
    def _start_job(
        self,
        make_coro: Callable[[], Any],
        on_done: Callable[[Any], None],
        on_failed: Optional[Callable[[str], None]] = None,
    ) -> None:
        job = _AsyncJob(make_coro)
        job.signals.finished.connect(on_done)
        job.signals.failed.connect(on_failed or self.statusBar().showMessage)
        # QRunnable の寿命を Python 側でも保持しておく
        self._jobs.append(job)
        job.signals.finished.connect(lambda _=None, j=job: self._forget_job(j))
        job.signals.failed.connect(lambda _=None, j=job: self._forget_job(j))
        self._pool.start(job)

    def _forget_job(self, job: _AsyncJob) -> None:
        if job in self._jobs:
            self._jobs.remove(job)

    def load_source(self, source: Source) -> None:
        self.statusBar().showMessage("読み込み中...")
        self._start_job(
            lambda: self._store.reload(source), self._on_dataset_loaded, self._on_load_failed
        )

    def _on_load_failed(self, message: str) -> None:
        # 公開済みのデータはそのまま残るので、表示もそれに合わせる
        if self._has_searched:
            self._render()
        self.statusBar().showMessage(message)

    def reload_sheet(self) -> None:
        self.load_source(self._config.sheet_url)

    def _on_open_file(self) -> None:
        path_str, _ = QFileDialog.getOpenFileName(
            self,
            "CSVファイルを開く",
            "",
            "CSVファイル (*.csv *.txt);;すべてのファイル (*.*)",
        )
        if not path_str:
            return
        self.load_source(Path(path_str))

    def _on_dataset_loaded(self, dataset: Optional[Dataset]) -> None:
        if dataset is None:
            # より新しい読み込みが公開済み
            return
        self._selected_keys = [k for k in self._selected_keys if k in dataset.tag_index]
        self._update_selected_label()
        if self._has_searched:
            self._render()
        else:
            self.statusBar().showMessage(PROMPT_MESSAGE)
        self._start_thumbnail_lookup(dataset)

    def _start_thumbnail_lookup(self, dataset: Dataset) -> None:
        lookup = self._thumbnails
        if lookup is None or not lookup.enabled:
            return
        urls = [rec.source_url for rec in dataset.records if rec.source_url]
        if not urls:
            return
        self._start_job(lambda: lookup.lookup_many(urls), self._on_thumbnails_loaded)

    def _on_thumbnails_loaded(self, result: Dict[str, Optional[str]]) -> None:
        self._thumb_by_url.update(result or {})
        if self._has_searched:
            self._render()

    # ─────────────────────────────
    # 絞り込み
    # ─────────────────────────────
    def current_condition(self) -> SearchCondition:
        return SearchCondition(
            freq_a=self.freq_min_spin.value(),
            freq_b=self.freq_max_spin.value(),
            selected_keys=frozenset(self._selected_keys),
            query=self.tag_input.text(),
            mode=self._config.mode,
        )

    def _refresh_freq_view(self) -> None:
        lo, hi = self.current_condition().freq_range
        self.freq_view.setText(f"{freq_stars(lo)} 〜 {freq_stars(hi)}")

    def _on_filter_changed(self, _value: int = 0) -> None:
        self._refresh_freq_view()
        if self._has_searched:
            self._render()

    def _on_tag_input_edited(self, _text: str) -> None:
        # 入力し直したら明示的なタグ選択は解除して自由入力に戻す
        self._selected_keys = []
        self._update_selected_label()
        self._render_suggestions()

    def _render_suggestions(self) -> None:
        self.suggest_list.clear()
        q_fold = kana_fold(self.tag_input.text())
        candidates = self.dataset.tag_index.candidates(
            q_fold, limit=self._config.suggest_limit, mode=self._config.mode
        )
        if not candidates:
            self.suggest_list.hide()
            return
        for tag in candidates:
            text = f"{tag.label}（{tag.reading}）" if tag.reading and tag.reading != tag.label else tag.label
            item = QListWidgetItem(text)
            item.setData(Qt.UserRole, tag.key)
            self.suggest_list.addItem(item)
        self.suggest_list.show()

    def _select_tag(self, key: str, add: bool = False) -> None:
        key = normalize(key)
        if not key:
            return
        if add:
            if key not in self._selected_keys:
                self._selected_keys.append(key)
        else:
            self._selected_keys = [key]
        tag = self.dataset.tag_index.get(key)
        self.tag_input.setText(tag.label if tag is not None else key)
        self.suggest_list.hide()
        self._update_selected_label()

    def _update_selected_label(self) -> None:
        if not self._selected_keys:
            self.selected_label.setText("")
            self.clear_selection_btn.setEnabled(False)
            return
        self.selected_label.setText("選択中: " + " ＋ ".join(self._selected_labels()))
        self.clear_selection_btn.setEnabled(True)

    def _on_suggestion_clicked(self, item: QListWidgetItem) -> None:
        self._select_tag(str(item.data(Qt.UserRole) or ""))
        if self._has_searched:
            self._render()

    def _on_clear_selection(self) -> None:
        self._selected_keys = []
        self.tag_input.clear()
        self._update_selected_label()
        if self._has_searched:
            self._render()

    def _on_search(self) -> None:
        if not self._selected_keys or normalize(self.tag_input.text()) not in self._selected_labels():
            key = commit_query(self.dataset.tag_index, self.tag_input.text())
            self._selected_keys = [key] if key else []
        self.suggest_list.hide()
        self._update_selected_label()
        self._has_searched = True
        self._render()

    def _selected_labels(self) -> List[str]:
        labels = []
        for key in self._selected_keys:
            tag = self.dataset.tag_index.get(key)
            labels.append(tag.label if tag is not None else key)
        return labels

    def _on_card_link_clicked(self, url: QUrl) -> None:
        if url.scheme() != TAG_LINK_SCHEME:
            return
        key = unquote(url.path(QUrl.ComponentFormattingOption.FullyEncoded))
        add = bool(QApplication.keyboardModifiers() & Qt.ControlModifier)
        self._select_tag(key, add=add)
        self._has_searched = True
        self._render()

    def _render(self) -> None:
        if not self._has_searched:
            self.statusBar().showMessage(PROMPT_MESSAGE)
            self.cards_view.clear()
            return

        rows = filter_records(self.dataset.records, self.current_condition())
        self.statusBar().showMessage(f"{len(rows)}件ヒット")
        if not rows:
            self.cards_view.setHtml("<div>ヒットなし</div>")
            return

        self.cards_view.setHtml(
            "".join(card_html(rec, self._thumb_by_url.get(rec.source_url)) for rec in rows)
        )
