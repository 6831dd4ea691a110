from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from calc.calc_constants import KEYWORDS
from calc.calc_lexer import Token, tokenize
from calc.calc_parser import Parser, ParserOptions, is_identifier, is_number, parse
from calc.calc_result import Accept, Error
from calc.calc_tree import ParseNode


def accept(source: str, options: ParserOptions | None = None) -> ParseNode:
    result = parse(source, options)
    assert isinstance(result, Accept), str(result)
    return result.tree


def parser_for(source: str) -> Parser:
    tokens = tokenize(source)
    assert not isinstance(tokens, Error)
    return Parser(tokens)


@pytest.mark.parametrize(
    "source,expected",
    [
        ("$$", "program(stmt_list(), '$$')"),
        (
            "x=5;$$",
            "program(stmt_list(stmt(id('x'), '=', expr(num(numsign(), '5'), etail()), ';'), "
            "stmt_list()), '$$')",
        ),
        (
            "read x;$$",
            "program(stmt_list(stmt('read', id('x'), ';'), stmt_list()), '$$')",
        ),
        (
            "write a+-3;$$",
            "program(stmt_list(stmt('write', expr(id('a'), etail('+', expr(num(numsign('-'), '3'), "
            "etail()))), ';'), stmt_list()), '$$')",
        ),
        (
            "if(x<=5)\n  write x;\nendif;\n$$",
            "program(stmt_list(stmt('if', '(', expr(id('x'), etail(compare('<='), "
            "expr(num(numsign(), '5'), etail()))), ')', stmt_list(stmt('write', "
            "expr(id('x'), etail()), ';'), stmt_list()), 'endif', ';'), stmt_list()), '$$')",
        ),
    ],
)  # type: ignore[misc]
def test_accepted_programs(source: str, expected: str) -> None:
    result = parse(source)
    assert result.ok
    assert str(result) == f"Accept:{expected}"


def test_assignment_tree_shape() -> None:
    tree = accept("x=5;$$")
    assert tree.tag == "program"
    stmt_list, end = tree.children
    assert end == "$$"
    assert isinstance(stmt_list, ParseNode)
    stmt = stmt_list.children[0]
    assert stmt == ParseNode(
        "stmt",
        [
            ParseNode("id", ["x"]),
            "=",
            ParseNode("expr", [ParseNode("num", [ParseNode("numsign"), "5"]), ParseNode("etail")]),
            ";",
        ],
    )


def test_statement_list_is_right_nested() -> None:
    tree = accept("read a; read b; read c; $$")
    names = [n.children[0] for n in tree.nodes("id")]
    assert names == ["a", "b", "c"]
    lists = tree.nodes("stmt_list")
    assert len(lists) == 4
    assert lists[-1].is_empty


def test_expression_chain_is_flat_right_recursive() -> None:
    tree = accept("x = a < b + 1 == -2;$$")
    tails = [t for t in tree.nodes("etail") if not t.is_empty]
    ops = [t.children[0] for t in tails]
    assert ops == [ParseNode("compare", ["<"]), "+", ParseNode("compare", ["=="])]


def test_nested_if_blocks() -> None:
    source = "if (a > 1)\n if (b >= 2)\n  write a - b;\n endif;\nendif;\n$$"
    tree = accept(source)
    assert len(tree.nodes("stmt")) == 3
    assert [c.children[0] for c in tree.nodes("compare")] == [">", ">="]


def test_empty_if_body() -> None:
    tree = accept("if (x) endif; $$")
    stmt = tree.nodes("stmt")[0]
    assert stmt.children[4] == ParseNode("stmt_list")


def test_signed_numbers() -> None:
    tree = accept("x = +1 - -2;$$")
    signs = [n.children[0] for n in tree.nodes("numsign")]
    assert signs == ["+", "-"]


def test_not_equal_comparison_from_tokens() -> None:
    line = "x=y!=1;$$"
    tokens = [
        Token("IDENT", "x", 1, 1, line),
        Token("ASSIGN", "=", 1, 2, line),
        Token("IDENT", "y", 1, 3, line),
        Token("NE", "!=", 1, 4, line),
        Token("NUMBER", "1", 1, 6, line),
        Token("SEMI", ";", 1, 7, line),
        Token("END", "$$", 1, 8, line),
    ]
    tree = Parser(tokens).parse_program()
    assert isinstance(tree, ParseNode)
    assert tree.nodes("compare") == [ParseNode("compare", ["!="])]


@pytest.mark.parametrize(
    "source,expected",
    [
        (
            "if(x<5)write x;endif",
            "Syntax error at line 1: Expected ';' but found '' if(x<5)write x;endif",
        ),
        (
            "read x write y;$$",
            "Syntax error at line 1: Expected ';' but found 'write' read x write y;$$",
        ),
        ("x=+;$$", "Syntax error at line 1: Expected digit but found ';' x=+;$$"),
        (
            "if = 1;",
            "Syntax error at line 1: Expected id, if, read or write but found '=' if = 1;",
        ),
        ("x=5;", "Syntax error at line 1: Expected '$$' but found '' x=5;"),
        ("x=5;\n\n", "Syntax error at line 1: Expected '$$' but found '' x=5;"),
        ("x=5;$", "Syntax error at line 1: Expected '$$' but found '$' x=5;$"),
        ("x 5;$$", "Syntax error at line 1: Expected '=' but found '5' x 5;$$"),
        ("write ;$$", "Syntax error at line 1: Expected id or number but found ';' write ;$$"),
        ("read 5;$$", "Syntax error at line 1: Expected id but found '5' read 5;$$"),
        ("read endif;$$", "Syntax error at line 1: Expected id but found 'endif' read endif;$$"),
        (
            "if(x)x=1;$$",
            "Syntax error at line 1: Expected 'endif' but found '$$' if(x)x=1;$$",
        ),
        (
            "if(x x=1;endif;$$",
            "Syntax error at line 1: Expected ')' but found 'x' if(x x=1;endif;$$",
        ),
        ("endif;$$", "Syntax error at line 1: Expected '$$' but found 'endif' endif;$$"),
        ("x = 1;\ny = ;\n$$", "Syntax error at line 2: Expected id or number but found ';' y = ;"),
        ("x=1;\n\n\nread 7;\n$$", "Syntax error at line 4: Expected id but found '7' read 7;"),
        ("", "Syntax error at line 0: Expected '$$' but found '' "),
    ],
)  # type: ignore[misc]
def test_syntax_errors(source: str, expected: str) -> None:
    result = parse(source)
    assert isinstance(result, Error)
    assert result.kind == "syntax"
    assert str(result) == expected


def test_if_without_paren_is_not_reparsed() -> None:
    # `if` stays consumed; the following `write` is never taken as a statement
    result = parse("if write x;\nendif;$$")
    assert isinstance(result, Error)
    assert result.message == (
        "Syntax error at line 1: Expected id, if, read or write but found 'write' if write x;"
    )


@pytest.mark.parametrize("keyword", sorted(KEYWORDS))  # type: ignore[misc]
def test_keyword_never_used_as_identifier(keyword: str) -> None:
    result = parse(f"{keyword} = 1;$$")
    assert isinstance(result, Error)
    assert result.kind == "syntax"
    assert not is_identifier(keyword)


def test_scanning_error_takes_precedence() -> None:
    result = parse("x 1;\ny = 2;@\n$$")
    assert isinstance(result, Error)
    assert result.kind == "scanning"
    assert str(result) == "Scanning error at line 2: Invalid character '@'"


def test_trailing_tokens_after_end_marker_are_ignored() -> None:
    assert parse("x=1;$$ y = garbage ;;").ok
    assert parse("$$$$").ok


def test_strict_end_rejects_trailing_tokens() -> None:
    strict = ParserOptions(strict_end=True)
    result = parse("x=1;$$ y = garbage ;;", strict)
    assert isinstance(result, Error)
    assert result.message == (
        "Syntax error at line 1: Expected end of input but found 'y' x=1;$$ y = garbage ;;"
    )
    assert parse("x=1;\n$$\n", strict).ok


@pytest.mark.parametrize(
    "value,expected", [("1", True), ("TRUE", True), ("yes", True), ("0", False), ("", False)]
)  # type: ignore[misc]
def test_options_from_env(
    monkeypatch: pytest.MonkeyPatch, value: str, expected: bool
) -> None:
    monkeypatch.setenv("CALC_STRICT_END", value)
    assert ParserOptions.from_env().strict_end is expected


def test_options_from_env_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CALC_STRICT_END", raising=False)
    assert ParserOptions.from_env() == ParserOptions()


def test_sign_is_not_unconsumed() -> None:
    parser = parser_for("- ;")
    result = parser.parse_num()
    assert isinstance(result, Error)
    assert parser.cursor.position == 1


def test_parse_compare_rejects_non_operator() -> None:
    parser = parser_for("+")
    result = parser.parse_compare()
    assert isinstance(result, Error)
    assert "Expected comparison operator" in result.message


def test_lexical_predicates() -> None:
    assert is_identifier("abc")
    assert not is_identifier("a1")
    assert not is_identifier("")
    assert is_number("0042")
    assert not is_number("-1")
    assert not is_number("")


def test_long_program_does_not_hit_recursion_limit() -> None:
    source = "x = 1;\n" * 3000 + "$$"
    tree = accept(source)
    assert len(tree.nodes("stmt")) == 3000
    assert parse(source) == parse(source)
    assert hash(parse(source)) == hash(parse(source))
    assert tree.to_tuple()[0] == "program"
    assert tree.to_dict()["children"][1] == "$$"


def test_long_expression_does_not_hit_recursion_limit() -> None:
    terms = 5000
    tree = accept("x = " + " + ".join(["1"] * terms) + ";$$")
    assert len(tree.nodes("num")) == terms
    tails = [t for t in tree.nodes("etail") if not t.is_empty]
    assert len(tails) == terms - 1
    assert all(t.children[0] == "+" for t in tails)


def test_long_expression_error_keeps_first_failure() -> None:
    result = parse("x = " + " + ".join(["1"] * 2000) + " + ;$$")
    assert isinstance(result, Error)
    assert result.message.startswith(
        "Syntax error at line 1: Expected id or number but found ';' "
    )


def test_parse_etail_reads_one_tail() -> None:
    tokens = tokenize("- 2 < y)")
    assert isinstance(tokens, list)
    parser = Parser(tokens)
    tail = parser.parse_etail()
    assert str(tail) == (
        "etail('-', expr(num(numsign(), '2'), etail(compare('<'), "
        "expr(id('y'), etail()))))"
    )
    assert parser.cursor.peek() == ")"


IDENT = st.from_regex(r"[a-zA-Z]{1,5}", fullmatch=True).filter(lambda s: s not in KEYWORDS)
NUMBER = st.builds(
    lambda sign, n: f"{sign}{n}", st.sampled_from(["", "+", "-"]), st.integers(0, 10**6)
)
OPERATORS = ["+", "-", "<", "<=", ">", ">=", "=="]


@composite  # type: ignore[misc]
def expressions(draw: Any) -> str:
    operands = draw(st.lists(st.one_of(IDENT, NUMBER), min_size=1, max_size=4))
    parts = [operands[0]]
    for operand in operands[1:]:
        parts.append(draw(st.sampled_from(OPERATORS)))
        parts.append(operand)
    return " ".join(parts)


@composite  # type: ignore[misc]
def statements(draw: Any, depth: int = 2) -> tuple[str, int]:
    """Returns the statement text and the number of statements it contains."""
    kinds = ["assign", "read", "write"] + (["if"] if depth > 0 else [])
    kind = draw(st.sampled_from(kinds))
    if kind == "assign":
        return f"{draw(IDENT)} = {draw(expressions())};", 1
    if kind == "read":
        return f"read {draw(IDENT)};", 1
    if kind == "write":
        return f"write {draw(expressions())};", 1
    body = draw(st.lists(statements(depth - 1), max_size=3))
    inner = "\n".join(text for text, _ in body)
    return f"if ({draw(expressions())})\n{inner}\nendif;", 1 + sum(n for _, n in body)


@composite  # type: ignore[misc]
def programs(draw: Any) -> tuple[str, int]:
    body = draw(st.lists(statements(), max_size=5))
    text = "\n".join(text for text, _ in body) + "\n$$"
    return text, sum(n for _, n in body)


@settings(max_examples=100)  # type: ignore[misc]
@given(programs())  # type: ignore[misc]
def test_generated_programs_are_accepted(program: tuple[str, int]) -> None:
    source, count = program
    tree = accept(source)
    assert tree.tag == "program"
    assert len(tree.nodes("stmt")) == count


@given(st.text(alphabet="abif xyz019$=;()+-<>\n", max_size=40))  # type: ignore[misc]
def test_parse_is_idempotent(source: str) -> None:
    assert str(parse(source)) == str(parse(source))
    assert parse(source) == parse(source)


@given(programs())  # type: ignore[misc]
def test_truncated_programs_fail_with_syntax_error(program: tuple[str, int]) -> None:
    source, _ = program
    result = parse(source[: source.rindex("$$")])
    assert isinstance(result, Error)
    assert result.kind == "syntax"
