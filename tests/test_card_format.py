from memocards.gui.card_format import card_html, freq_stars, split_sub_memo_lines, tag_href
from memocards.models.memo_record import MemoRecord
from memocards.parser.tag_parser import parse_tag_token


def test_freq_stars():
    assert freq_stars(None) == "-"
    assert freq_stars(0) == "-"
    assert freq_stars(1) == "★"
    assert freq_stars(5) == "★★★★★"
    assert freq_stars(9) == "★★★★★"


def test_split_sub_memo_lines():
    assert split_sub_memo_lines("") == []
    assert split_sub_memo_lines("一行") == ["一行"]
    assert split_sub_memo_lines("一\\\\二¥¥三￥￥ 四 ") == ["一", "二", "三", "四"]
    assert split_sub_memo_lines("\\\\一\\\\\\\\") == ["一"]


def test_card_html_escapes_and_links_tags():
    rec = MemoRecord(
        memo="<b>犬</b>",
        sub_memo="a\\\\b",
        freq=2,
        tags=(parse_tag_token("動物(どうぶつ)"),),
    )
    out = card_html(rec)
    assert "&lt;b&gt;犬&lt;/b&gt;" in out
    assert "★★" in out
    assert "<li>a</li><li>b</li>" in out
    assert tag_href("動物") in out


def test_card_html_without_tags():
    assert "タグなし" in card_html(MemoRecord(memo="x"))
