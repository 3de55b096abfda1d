from memocards.parser.csv_parser import parse_csv


def test_basic_rows_and_line_endings():
    text = "a,b\r\nc,d\re,f\ng,h"
    assert parse_csv(text) == [["a", "b"], ["c", "d"], ["e", "f"], ["g", "h"]]


def test_quoted_cell_keeps_comma_and_newline():
    text = 'メモ,タグ\n"一行目\n二行目","犬,猫"\n'
    assert parse_csv(text) == [["メモ", "タグ"], ["一行目\n二行目", "犬,猫"]]


def test_doubled_quote_inside_quotes_is_literal():
    assert parse_csv('"say ""hi"""') == [['say "hi"']]


def test_quote_mid_token_toggles_quoting():
    # セル途中の '"' でも引用モードが切り替わる
    assert parse_csv('ab"c,d"e,f') == [["abc,de", "f"]]


def test_blank_rows_are_dropped():
    text = "a,b\n , \n\n\r\nc,d\n,\n"
    assert parse_csv(text) == [["a", "b"], ["c", "d"]]


def test_final_row_without_terminator_is_flushed():
    assert parse_csv("x,y\n1,2") == [["x", "y"], ["1", "2"]]


def test_malformed_input_never_raises():
    for text in ['"', '"""', 'a,"b\n', "\r", ",,,", '"\r\n"\r\n']:
        rows = parse_csv(text)
        assert isinstance(rows, list)


def test_unterminated_quote_swallows_rest():
    assert parse_csv('a,"b\nc') == [["a", "b\nc"]]


def test_empty_input():
    assert parse_csv("") == []
