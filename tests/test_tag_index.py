import asyncio

from memocards.dataset import build_records
from memocards.logic.reading_resolver import ReadingResolver
from memocards.logic.tag_index import MatchMode, TagIndex, sort_tags
from memocards.models.memo_record import MemoRecord
from memocards.parser.tag_parser import parse_tag_token


def _records(*tag_rows):
    return [
        MemoRecord(memo=f"m{i}", tags=tuple(parse_tag_token(t) for t in row))
        for i, row in enumerate(tag_rows)
    ]


def test_first_seen_tag_wins(scenario_csv):
    records = build_records(scenario_csv)
    index = TagIndex.build(records)

    assert len(index) == 1
    tag = index.get("動物")
    assert tag is records[0].tags[0]
    assert tag.reading == "どうぶつ"
    # 後の行のタグは自分のレコードにそのまま残る
    assert records[1].tags[0] is not tag


def test_first_seen_wins_even_if_later_annotation_differs():
    records = _records(["花"], ["花(はな)"], ["花(か)"])
    index = TagIndex.build(records)
    assert index.get("花").reading == ""
    assert records[1].tags[0].reading == "はな"
    assert records[2].tags[0].reading == "か"


def test_index_size_and_keys_match_labels():
    records = _records(["あ", "い"], ["い", "う(う)"], [], ["あ"])
    index = TagIndex.build(records)
    total_tokens = sum(len(r.tags) for r in records)
    assert len(index) <= total_tokens
    assert len(index) == 3
    for tag in index.tags:
        assert tag.key == tag.label
        assert index.get(tag.key) is tag
    assert "あ" in index and "え" not in index


def test_tags_are_sorted_deterministically():
    records = _records(["さかな", "あひる", "かえる"], ["いぬ"])
    labels = [t.label for t in TagIndex.build(records).tags]
    assert labels == ["あひる", "いぬ", "かえる", "さかな"]
    again = [t.label for t in sort_tags(reversed(TagIndex.build(records).tags))]
    assert again == labels


def test_mixed_scripts_use_japanese_collation():
    records = _records(["さかな", "カエル", "いぬ", "アヒル", "動物"])
    labels = [t.label for t in TagIndex.build(records).tags]
    # ひらがなとカタカナは五十音順で混ざり、漢字はその後ろ
    assert labels == ["アヒル", "いぬ", "カエル", "さかな", "動物"]


def test_find_exact_matches_label_or_reading():
    records = _records(["動物(どうぶつ)", "TOEIC", "ネコ"])
    index = TagIndex.build(records)
    assert index.find_exact("どうぶつ").key == "動物"
    assert index.find_exact("動物").key == "動物"
    assert index.find_exact("toeic").key == "TOEIC"
    assert index.find_exact("ねこ").key == "ネコ"
    assert index.find_exact("どう") is None
    assert index.find_exact("") is None


def test_substring_candidates_match_reading(scenario_csv):
    index = TagIndex.build(build_records(scenario_csv))
    assert [t.key for t in index.candidates("どう")] == ["動物"]
    assert [t.key for t in index.candidates("ぶつ")] == ["動物"]
    assert index.candidates("ぶつ", mode=MatchMode.PREFIX) == []
    assert [t.key for t in index.candidates("どう", mode=MatchMode.PREFIX)] == ["動物"]


def test_candidates_respect_limit_and_empty_query():
    records = _records([f"tag{i}" for i in range(30)])
    index = TagIndex.build(records)
    assert len(index.candidates("tag")) == 12
    assert len(index.candidates("tag", limit=3)) == 3
    assert index.candidates("") == []
    assert index.candidates("tag", limit=0) == []


def test_unresolved_tags_still_match_by_label(broken_provider):
    records = _records(["薔薇"])
    asyncio.run(ReadingResolver(broken_provider).resolve_records(records))
    index = TagIndex.build(records)
    assert [t.key for t in index.candidates("薔")] == ["薔薇"]
    assert index.candidates("ばら") == []


def test_match_mode_parse_falls_back_to_substring():
    assert MatchMode.parse("prefix") is MatchMode.PREFIX
    assert MatchMode.parse(" PREFIX ") is MatchMode.PREFIX
    assert MatchMode.parse("bogus") is MatchMode.SUBSTRING
    assert MatchMode.parse(None) is MatchMode.SUBSTRING
