"""
Tag Expression Evaluator — Parses and evaluates boolean conditions over tags.

Example: "USES_CONNECTION && !HAS_TRY_WITH_RESOURCES"

Grammar (lowest precedence first):
    or_expr  → and_expr ( "||" and_expr )*
    and_expr → not_expr ( "&&" not_expr )*
    not_expr → "!" not_expr | primary
    primary  → TAG | "(" or_expr ")"
    TAG      → [A-Z0-9_]+

Expressions are parsed once into an immutable AST and cached per string, so
evaluating the same rule condition across many files never re-parses it.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable, Set
from dataclasses import dataclass, field
from typing import Union

from taglint.errors import ExpressionSyntaxError

logger = logging.getLogger("taglint.expression")

PARSE_CACHE_SIZE = 2048


# ── AST ──


@dataclass(frozen=True)
class Atom:
    """A tag reference. `negated` is set when `!` applies directly to it."""

    name: str
    negated: bool = False


@dataclass(frozen=True)
class Not:
    """Negation of a parenthesized or nested sub-expression."""

    operand: Node


@dataclass(frozen=True)
class And:
    left: Node
    right: Node


@dataclass(frozen=True)
class Or:
    left: Node
    right: Node


Node = Union[Atom, Not, And, Or]


@dataclass(frozen=True)
class EvaluationResult:
    result: bool
    matched_tags: list[str] = field(default_factory=list)
    expression: str = ""


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None


# ── Tokenizer ──


@dataclass(frozen=True)
class Token:
    kind: str  # TAG, AND, OR, NOT, LPAREN, RPAREN, EOF
    value: str
    position: int


class _Tokenizer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.length = len(text)
        self.pos = 0

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while self.pos < self.length:
            ch = self.text[self.pos]
            if ch.isspace():
                self.pos += 1
                continue
            if ch == "(":
                tokens.append(Token("LPAREN", ch, self.pos))
                self.pos += 1
                continue
            if ch == ")":
                tokens.append(Token("RPAREN", ch, self.pos))
                self.pos += 1
                continue
            if ch == "!":
                tokens.append(Token("NOT", ch, self.pos))
                self.pos += 1
                continue
            if self.text.startswith("&&", self.pos):
                tokens.append(Token("AND", "&&", self.pos))
                self.pos += 2
                continue
            if self.text.startswith("||", self.pos):
                tokens.append(Token("OR", "||", self.pos))
                self.pos += 2
                continue
            if _is_tag_char(ch):
                tokens.append(self._read_tag())
                continue
            raise ExpressionSyntaxError(
                f"Unexpected character '{ch}' at position {self.pos}",
                expression=self.text,
                position=self.pos,
            )
        tokens.append(Token("EOF", "", self.length))
        return tokens

    def _read_tag(self) -> Token:
        start = self.pos
        while self.pos < self.length and _is_tag_char(self.text[self.pos]):
            self.pos += 1
        return Token("TAG", self.text[start:self.pos], start)


def _is_tag_char(ch: str) -> bool:
    return ("A" <= ch <= "Z") or ("0" <= ch <= "9") or ch == "_"


# ── Parser ──


class _Parser:
    def __init__(self, tokens: list[Token], text: str) -> None:
        self.tokens = tokens
        self.text = text
        self.pos = 0

    def parse(self) -> Node:
        node = self._parse_or()
        token = self._peek()
        if token.kind != "EOF":
            raise self._error(f"Unexpected trailing token '{token.value}'", token)
        return node

    def _parse_or(self) -> Node:
        node = self._parse_and()
        while self._peek().kind == "OR":
            self.pos += 1
            node = Or(node, self._parse_and())
        return node

    def _parse_and(self) -> Node:
        node = self._parse_not()
        while self._peek().kind == "AND":
            self.pos += 1
            node = And(node, self._parse_not())
        return node

    def _parse_not(self) -> Node:
        if self._peek().kind != "NOT":
            return self._parse_primary()
        self.pos += 1
        if self._peek().kind == "TAG":
            return Atom(self._advance().value, negated=True)
        return Not(self._parse_not())

    def _parse_primary(self) -> Node:
        token = self._peek()
        if token.kind == "TAG":
            self.pos += 1
            return Atom(token.value)
        if token.kind == "LPAREN":
            self.pos += 1
            node = self._parse_or()
            closing = self._peek()
            if closing.kind != "RPAREN":
                raise self._error("Expected ')' to close group", closing)
            self.pos += 1
            return node
        if token.kind == "EOF":
            raise self._error("Unexpected end of expression", token)
        raise self._error(f"Unexpected token '{token.value}'", token)

    def _peek(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _error(self, message: str, token: Token) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(
            f"{message} at position {token.position}",
            expression=self.text,
            position=token.position,
        )


@functools.lru_cache(maxsize=PARSE_CACHE_SIZE)
def parse_expression(expression: str) -> Node:
    """Parse an expression string into its AST. Raises ExpressionSyntaxError."""
    if expression is None or not expression.strip():
        raise ExpressionSyntaxError("Empty expression", expression=expression or "")
    tokens = _Tokenizer(expression).tokenize()
    return _Parser(tokens, expression).parse()


# ── Operations ──


def _evaluate_node(node: Node, tags: Set[str]) -> tuple[bool, list[str]]:
    if isinstance(node, Atom):
        present = node.name in tags
        if node.negated:
            return not present, []
        return present, [node.name] if present else []

    if isinstance(node, Not):
        inner, _ = _evaluate_node(node.operand, tags)
        return not inner, []

    if isinstance(node, And):
        left, left_tags = _evaluate_node(node.left, tags)
        if not left:
            return False, []
        right, right_tags = _evaluate_node(node.right, tags)
        if not right:
            return False, []
        return True, left_tags + right_tags

    if isinstance(node, Or):
        left, left_tags = _evaluate_node(node.left, tags)
        if left:
            return True, left_tags
        return _evaluate_node(node.right, tags)

    raise TypeError(f"Unknown expression node: {node!r}")


def _unique(names: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(names))


def evaluate(expression: str, tags: Iterable[str]) -> EvaluationResult:
    """
    Evaluate an expression against a tag set.

    matched_tags lists the present tags that made a sub-expression true along
    the evaluation path. Tags that are absent are never reported, even when a
    negation turns their absence into a true result.
    """
    tag_set = tags if isinstance(tags, Set) else frozenset(tags)
    node = parse_expression(expression)
    result, matched = _evaluate_node(node, tag_set)
    return EvaluationResult(result=result, matched_tags=_unique(matched), expression=expression)


def _walk_atoms(node: Node) -> Iterable[Atom]:
    if isinstance(node, Atom):
        yield node
    elif isinstance(node, Not):
        yield from _walk_atoms(node.operand)
    else:
        yield from _walk_atoms(node.left)
        yield from _walk_atoms(node.right)


def depends_on_tags(expression: str) -> list[str]:
    """
    Every referenced tag, left to right, de-duplicated.

    A tag is prefixed with '!' when the negation applies directly to it;
    tags inside a negated group keep their plain name.
    """
    node = parse_expression(expression)
    return _unique(
        f"!{atom.name}" if atom.negated else atom.name for atom in _walk_atoms(node)
    )


def depends_on(expression: str, tag: str) -> bool:
    """True if the expression references the tag at all."""
    return any(atom.name == tag for atom in _walk_atoms(parse_expression(expression)))


def _contains_or(node: Node) -> bool:
    if isinstance(node, Or):
        return True
    if isinstance(node, Atom):
        return False
    if isinstance(node, Not):
        return _contains_or(node.operand)
    return _contains_or(node.left) or _contains_or(node.right)


def required_tags(expression: str) -> list[str]:
    """
    Tags that must be present for the expression to be true.

    Only AND-only expressions yield required tags; any '||' means none can be
    guaranteed. Negated tags and negated groups contribute nothing.
    """
    node = parse_expression(expression)
    if _contains_or(node):
        return []

    required: list[str] = []
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, And):
            stack.append(current.right)
            stack.append(current.left)
        elif isinstance(current, Atom) and not current.negated:
            required.append(current.name)
    return _unique(required)


def validate(expression: str) -> ValidationResult:
    """Syntax-only check; referenced tags need not exist anywhere."""
    try:
        parse_expression(expression)
    except ExpressionSyntaxError as e:
        return ValidationResult(valid=False, error=str(e))
    return ValidationResult(valid=True)


def _node_complexity(node: Node) -> int:
    if isinstance(node, Atom):
        return 2 if node.negated else 1
    if isinstance(node, Not):
        return 1 + _node_complexity(node.operand)
    return 2 + _node_complexity(node.left) + _node_complexity(node.right)


def complexity(expression: str) -> int:
    """Weighted size: 1 per tag, 1 per '!', 2 per '&&' or '||'."""
    return _node_complexity(parse_expression(expression))


class TagExpressionEvaluator:
    """
    Stateless facade over the module-level operations.

    The parse cache is process-wide and shared by every instance.
    """

    def evaluate(self, expression: str, tags: Iterable[str]) -> EvaluationResult:
        return evaluate(expression, tags)

    def depends_on_tags(self, expression: str) -> list[str]:
        return depends_on_tags(expression)

    def depends_on(self, expression: str, tag: str) -> bool:
        return depends_on(expression, tag)

    def required_tags(self, expression: str) -> list[str]:
        return required_tags(expression)

    def validate(self, expression: str) -> ValidationResult:
        return validate(expression)

    def complexity(self, expression: str) -> int:
        return complexity(expression)

    @staticmethod
    def cache_info():
        return parse_expression.cache_info()

    @staticmethod
    def clear_cache() -> None:
        parse_expression.cache_clear()
        logger.debug("Expression parse cache cleared")
