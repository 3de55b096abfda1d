from memocards.dataset import build_records
from memocards.logic.search_filter import (
    SearchCondition,
    build_predicate,
    commit_query,
    filter_records,
)
from memocards.logic.tag_index import MatchMode, TagIndex
from memocards.models.memo_record import MemoRecord
from memocards.parser.tag_parser import parse_tag_token


def _rec(memo, freq, *tokens):
    return MemoRecord(memo=memo, freq=freq, tags=tuple(parse_tag_token(t) for t in tokens))


RECORDS = [
    _rec("a", 1, "動物(どうぶつ)", "哺乳類(ほにゅうるい)"),
    _rec("b", 5, "動物(どうぶつ)"),
    _rec("c", None, "植物(しょくぶつ)"),
    _rec("d", 3),
    _rec("e", 4, "哺乳類(ほにゅうるい)", "動物(どうぶつ)", "ペット"),
]


def _memos(records):
    return [r.memo for r in records]


def test_selected_tag_with_full_range_returns_both(scenario_csv):
    records = build_records(scenario_csv)
    cond = SearchCondition(1, 5, selected_keys=frozenset({"動物"}))
    assert _memos(filter_records(records, cond)) == ["犬", "猫"]


def test_selected_tag_with_narrow_range(scenario_csv):
    records = build_records(scenario_csv)
    # 猫は頻度不明なので頻度条件は常に通る
    cond = SearchCondition(4, 5, selected_keys=frozenset({"動物"}))
    assert _memos(filter_records(records, cond)) == ["猫"]
    assert _memos(filter_records(records[:1], cond)) == []


def test_free_text_substring_matches_reading(scenario_csv):
    records = build_records(scenario_csv)
    cond = SearchCondition(1, 5, query="ドウ")
    assert _memos(filter_records(records, cond)) == ["犬"]


def test_no_condition_passes_everything():
    assert _memos(filter_records(RECORDS, SearchCondition())) == ["a", "b", "c", "d", "e"]


def test_frequency_bounds_are_order_normalized():
    cond = SearchCondition(freq_a=4, freq_b=2)
    assert cond.freq_range == (2, 4)
    assert _memos(filter_records(RECORDS, cond)) == ["c", "d", "e"]


def test_selected_tags_use_and_semantics():
    cond = SearchCondition(selected_keys=frozenset({"動物", "哺乳類"}))
    assert _memos(filter_records(RECORDS, cond)) == ["a", "e"]


def test_selection_suppresses_free_text():
    cond = SearchCondition(selected_keys=frozenset({"植物"}), query="どうぶつ")
    assert _memos(filter_records(RECORDS, cond)) == ["c"]


def test_prefix_mode_is_stricter_than_substring():
    sub = SearchCondition(query="ぶつ")
    pre = SearchCondition(query="ぶつ", mode=MatchMode.PREFIX)
    assert _memos(filter_records(RECORDS, sub)) == ["a", "b", "c", "e"]
    assert _memos(filter_records(RECORDS, pre)) == []


def test_free_text_matches_folded_label():
    cond = SearchCondition(query="ぺっと")
    assert _memos(filter_records(RECORDS, cond)) == ["e"]


def test_output_is_order_preserving_subsequence():
    conds = [
        SearchCondition(),
        SearchCondition(2, 4),
        SearchCondition(query="に"),
        SearchCondition(selected_keys=frozenset({"動物"})),
    ]
    for cond in conds:
        out = filter_records(RECORDS, cond)
        positions = [RECORDS.index(r) for r in out]
        assert positions == sorted(positions)


def test_predicate_is_reusable():
    predicate = build_predicate(SearchCondition(5, 5))
    assert [predicate(r) for r in RECORDS] == [False, True, True, False, False]


def test_commit_query_finds_exact_tag_only():
    index = TagIndex.build(RECORDS)
    assert commit_query(index, "ドウブツ") == "動物"
    assert commit_query(index, " 動物 ") == "動物"
    assert commit_query(index, "どう") == ""
    assert commit_query(index, "") == ""
