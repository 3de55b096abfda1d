from __future__ import annotations

from typing import Dict, List

import pytest

from memocards.logic.morph_analyzer import AnalyzerProvider, MorphUnit

SCENARIO_CSV = "メモ,頻度,タグ\n犬,3,動物(どうぶつ)\n猫,9,動物\n"


class FakeAnalyzer:
    """表層形 → 読み の辞書で形態素を返すだけの解析器。"""

    def __init__(self, readings: Dict[str, str]) -> None:
        self.readings = readings
        self.calls: List[str] = []

    def tokenize(self, text: str) -> List[MorphUnit]:
        self.calls.append(text)
        units: List[MorphUnit] = []
        pos = 0
        while pos < len(text):
            for surface in sorted(self.readings, key=len, reverse=True):
                if text.startswith(surface, pos):
                    units.append(MorphUnit(surface, self.readings[surface]))
                    pos += len(surface)
                    break
            else:
                units.append(MorphUnit(text[pos], "*"))
                pos += 1
        return units


@pytest.fixture
def scenario_csv() -> str:
    return SCENARIO_CSV


@pytest.fixture
def fake_analyzer() -> FakeAnalyzer:
    return FakeAnalyzer({"薔薇": "バラ", "紫陽花": "アジサイ", "鬱": "ウツ"})


@pytest.fixture
def fake_provider(fake_analyzer: FakeAnalyzer) -> AnalyzerProvider:
    return AnalyzerProvider(lambda: fake_analyzer)


@pytest.fixture
def broken_provider() -> AnalyzerProvider:
    def factory():
        raise RuntimeError("dictionary not found")

    return AnalyzerProvider(factory)
