import pytest

from carrion.carrion_ast import (
    NODE_TYPES,
    ASTNode,
    BlockStatement,
    CallExpression,
    ExpressionStatement,
    Identifier,
    InfixExpression,
    IntegerLiteral,
    MemberExpression,
    PrefixExpression,
    Program,
    ReturnStatement,
    SpellbookDeclaration,
    SpellDeclaration,
    StringLiteral,
    VariableDeclaration,
)


def test_astnode_repr() -> None:
    node = Identifier("x")
    assert repr(node) == "ASTNode(identifier, value='x')"


def test_astnode_repr_skips_empty_fields() -> None:
    node = ReturnStatement()
    assert repr(node) == "ASTNode(return_statement)"
    assert repr(CallExpression(Identifier("f"), [])) == (
        "ASTNode(call_expression, function=ASTNode(identifier, value='f'))"
    )


def test_astnode_eq_equal() -> None:
    n1 = InfixExpression(IntegerLiteral(1), "+", IntegerLiteral(2), line=1, col=3)
    n2 = InfixExpression(IntegerLiteral(1), "+", IntegerLiteral(2), line=1, col=3)
    assert n1 == n2


def test_astnode_eq_not_equal_kind() -> None:
    assert Identifier("x") != StringLiteral("x")


def test_astnode_eq_not_equal_children() -> None:
    n1 = PrefixExpression("-", Identifier("x"))
    n2 = PrefixExpression("-", Identifier("y"))
    assert n1 != n2


def test_astnode_eq_compares_position() -> None:
    assert Identifier("x", 1, 1) != Identifier("x", 2, 1)


def test_astnode_to_dict_basic() -> None:
    node = VariableDeclaration(Identifier("x", 1, 1), IntegerLiteral(1, 1, 5), line=1, col=1)
    d = node.to_dict()
    assert d["kind"] == "variable_declaration"
    assert d["line"] == 1
    assert d["col"] == 1
    assert d["name"] == {"kind": "identifier", "line": 1, "col": 1, "value": "x"}  # type: ignore[typeddict-item]
    assert d["type_hint"] is None  # type: ignore[typeddict-item]
    assert d["value"]["value"] == 1  # type: ignore[typeddict-item]


def test_astnode_to_dict_lists() -> None:
    node = CallExpression(Identifier("f"), [IntegerLiteral(1), StringLiteral("s")])
    d = node.to_dict()
    args = d["arguments"]  # type: ignore[typeddict-item]
    assert [a["kind"] for a in args] == ["integer_literal", "string_literal"]


def test_base_node_has_no_source_rendering() -> None:
    with pytest.raises(NotImplementedError):
        ASTNode().to_source()


def test_kinds_are_unique() -> None:
    kinds = [cls.kind for cls in NODE_TYPES]
    assert len(kinds) == len(set(kinds))
    assert "node" not in kinds


def test_member_expression_fields() -> None:
    node = MemberExpression(Identifier("munin"), Identifier("print"))
    assert node.object == Identifier("munin")
    assert node.property == Identifier("print")
    assert str(node) == "munin.print"


def test_spell_rendering() -> None:
    body = BlockStatement(
        [ReturnStatement(InfixExpression(Identifier("a"), "+", Identifier("b")))]
    )
    spell = SpellDeclaration(
        Identifier("add"), [Identifier("a"), Identifier("b")], body, Identifier("int")
    )
    assert spell.signature() == "spell add(a, b) -> int"
    assert str(spell) == "spell add(a, b) -> int:\n    return (a + b)"
    assert spell.to_source() == "spell add(a, b) -> int:\n    return a + b"


def test_spellbook_rendering() -> None:
    book = SpellbookDeclaration(
        Identifier("Book"),
        [VariableDeclaration(Identifier("title"), StringLiteral("x"), Identifier("str"))],
    )
    assert book.to_source() == 'spellbook Book:\n    title: str = "x"'


def test_program_rendering() -> None:
    program = Program(
        [
            ExpressionStatement(PrefixExpression("-", IntegerLiteral(3))),
            ReturnStatement(),
        ]
    )
    assert str(program) == "(-3)\nreturn"
    assert program.to_source() == "-3\nreturn"


def test_nested_block_lines_leave_string_text_alone() -> None:
    inner = SpellDeclaration(
        Identifier("inner"), [], BlockStatement([ReturnStatement(StringLiteral("a\nb"))])
    )
    outer = SpellDeclaration(Identifier("outer"), [], BlockStatement([inner]))
    assert outer.lines(str) == [
        "spell outer():",
        "    spell inner():",
        '        return "a\nb"',
    ]
    assert outer.to_source() == 'spell outer():\n    spell inner():\n        return "a\nb"'
