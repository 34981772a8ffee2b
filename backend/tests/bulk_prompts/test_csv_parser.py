from integrations.bulk_prompts.csv_parser import tokenize


def test_simple_rows():
    assert tokenize("title,content,tag\na,b,c") == [
        ["title", "content", "tag"],
        ["a", "b", "c"],
    ]


def test_escaped_quote_inside_quoted_field():
    assert tokenize('"a,b""c"') == [['a,b"c']]


def test_embedded_newline_in_quotes():
    assert tokenize('"line1\nline2",x') == [["line1\nline2", "x"]]


def test_blank_line_between_rows_is_skipped():
    text = "title,content\na,b\n\nc,d\n"
    assert tokenize(text) == [["title", "content"], ["a", "b"], ["c", "d"]]


def test_crlf_counts_as_one_terminator():
    assert tokenize("a,b\r\nc,d\r\n") == [["a", "b"], ["c", "d"]]


def test_bare_carriage_return_ends_row():
    assert tokenize("a,b\rc,d") == [["a", "b"], ["c", "d"]]


def test_crlf_inside_quotes_is_literal():
    assert tokenize('"x\r\ny",z') == [["x\r\ny", "z"]]


def test_trailing_empty_field_is_kept():
    assert tokenize("a,b,\n") == [["a", "b", ""]]


def test_row_of_empty_fields_is_kept():
    # Only fully blank lines are dropped; ",," still has fields
    assert tokenize("a\n,,\nb") == [["a"], ["", "", ""], ["b"]]


def test_empty_input():
    assert tokenize("") == []
    assert tokenize("\n\r\n\n") == []


def test_unterminated_quote_consumes_rest_of_input():
    assert tokenize('a,"open field\nnext,line') == [["a", "open field\nnext,line"]]


def test_quotes_in_middle_of_field_toggle_quoting():
    assert tokenize('ab"c,d"e,f') == [["abc,de", "f"]]


def test_leading_bom_is_dropped():
    assert tokenize("\ufefftitle,tag\nx,y") == [["title", "tag"], ["x", "y"]]


def test_empty_quoted_field():
    assert tokenize('"",x') == [["", "x"]]


def test_deterministic():
    text = 'title,content\n"Hello, ""world""","multi\nline"\n'
    assert tokenize(text) == tokenize(text)
    assert tokenize(text)[1] == ['Hello, "world"', "multi\nline"]
