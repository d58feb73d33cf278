from ryoiki.services.sanitizer import sanitize, split_lines


def test_sanitize_strips_comments_and_strings() -> None:
    code = """
            // This is a comment
            let x = 1; /* Block comment */
            let s = "String // not a comment";
        """
    cleaned = sanitize(code)

    assert "This is a comment" not in cleaned
    assert "Block comment" not in cleaned
    assert "let x = 1;" in cleaned
    # String bodies and their quotes are gone, the assignment shape is not.
    assert "String" not in cleaned
    assert "let s = ;" in cleaned


def test_sanitize_preserves_newline_count_for_single_line_regions() -> None:
    code = 'a(); // one\nb = "two";\nc /* three */ = 3;\n'
    cleaned = sanitize(code)

    assert cleaned.count("\n") == code.count("\n")
    assert cleaned == "a(); \nb = ;\nc  = 3;\n"


def test_sanitize_handles_escaped_quotes() -> None:
    cleaned = sanitize(r'x = "a \" still string"; y = 1;')
    assert cleaned == "x = ; y = 1;"


def test_sanitize_char_literals() -> None:
    cleaned = sanitize(r"let c = '\''; let d = 'x';")
    assert cleaned == "let c = ; let d = ;"


def test_sanitize_block_comment_drops_its_newlines() -> None:
    cleaned = sanitize("a\n/* one\ntwo */b\n")
    assert cleaned == "a\nb\n"


def test_sanitize_leaves_plain_code_untouched() -> None:
    code = "fn main() {\n    let y = x / 2 * 3;\n}\n"
    assert sanitize(code) == code


def test_split_lines_ignores_trailing_newline() -> None:
    assert split_lines("") == []
    assert split_lines("a\nb\n") == ["a", "b"]
    assert split_lines("a\n\nb") == ["a", "", "b"]
