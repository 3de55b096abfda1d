# src/memocards/config.py

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from memocards.logic.tag_index import DEFAULT_SUGGEST_LIMIT, MatchMode

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".memocards_config.json"

SHEET_ID = "1NU7bDfFbkyvyq8qEMARUixSO2jJOhGvljidnwo5Gq2c"
GID = "0"
DEFAULT_SHEET_URL = (
    f"https://docs.google.com/spreadsheets/d/{SHEET_ID}/gviz/tq?tqx=out:csv&gid={GID}"
)


@dataclass
class AppConfig:
    sheet_url: str = DEFAULT_SHEET_URL
    match_mode: str = MatchMode.SUBSTRING.value
    suggest_limit: int = DEFAULT_SUGGEST_LIMIT
    thumbnail_endpoint: str = ""      # 空ならサムネイル取得をしない
    thumbnail_workers: int = 4
    request_timeout: float = 15.0

    @property
    def mode(self) -> MatchMode:
        return MatchMode.parse(self.match_mode)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """既知のキーだけ拾う。型が合わない値は既定値のまま。"""
        cfg = cls()
        for f in fields(cls):
            if f.name not in data:
                continue
            default = getattr(cfg, f.name)
            value = data[f.name]
            try:
                setattr(cfg, f.name, type(default)(value))
            except (TypeError, ValueError):
                logger.warning("設定値 %s=%r を無視しました", f.name, value)
        return cfg


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    設定ファイルを読み込む。

    ファイルが無い・壊れている場合は既定値で起動を続ける。
    """
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        return AppConfig()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("設定ファイルを読み込めませんでした (%s): %s", config_path, e)
        return AppConfig()
    if not isinstance(data, dict):
        return AppConfig()
    return AppConfig.from_dict(data)


def save_config(cfg: AppConfig, path: Optional[Path] = None) -> None:
    config_path = path or CONFIG_PATH
    config_path.write_text(
        json.dumps(asdict(cfg), ensure_ascii=False, indent=2), encoding="utf-8"
    )
