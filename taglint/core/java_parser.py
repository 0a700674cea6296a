"""
TagLint — Java syntax summary producer using tree-sitter.

Walks the tree-sitter-java tree and reports the structural facts the tag
extractor's metric and node tiers consume.
"""

from __future__ import annotations

import threading

import tree_sitter_java as tsjava
from tree_sitter import Language, Node, Parser, Tree

from taglint.models.syntax_models import SyntaxSummary

JAVA_LANGUAGE = Language(tsjava.language())

METHOD_NODES = frozenset({"method_declaration", "constructor_declaration"})
LOOP_NODES = frozenset({"for_statement", "enhanced_for_statement", "while_statement", "do_statement"})
BRANCH_NODES = frozenset({"if_statement", "catch_clause", "ternary_expression"}) | LOOP_NODES
# catch and finally clauses are children of their try node and share its level
NESTING_NODES = frozenset(
    {
        "if_statement",
        "switch_expression",
        "try_statement",
        "try_with_resources_statement",
    }
) | LOOP_NODES
SHORT_CIRCUIT_OPERATORS = frozenset({"&&", "||"})


def _node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _is_else_if(node: Node) -> bool:
    parent = node.parent
    if node.type != "if_statement" or parent is None or parent.type != "if_statement":
        return False
    alternative = parent.child_by_field_name("alternative")
    return alternative is not None and alternative.id == node.id


class JavaParser:
    """Thin wrapper around tree-sitter for Java source code.

    Keeps one tree-sitter parser per thread so a single instance can serve
    the batch worker's thread pool.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    @property
    def _parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = self._local.parser = Parser(JAVA_LANGUAGE)
        return parser

    def parse(self, code: str) -> tuple[Tree, bytes]:
        """Parse Java source and return (tree, source_bytes).

        Raises ValueError if the code cannot be parsed.
        """
        source_bytes = code.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        if tree.root_node.has_error:
            raise ValueError("Failed to parse Java source code")
        return tree, source_bytes

    def summarize(self, code: str) -> SyntaxSummary:
        """Parse and summarize. Raises ValueError on syntax errors."""
        tree, source_bytes = self.parse(code)
        return summarize_tree(tree, source_bytes, line_count=len(code.split("\n")))


def summarize_tree(tree: Tree, source: bytes, line_count: int = 0) -> SyntaxSummary:
    """Collect method count, complexity, nesting and loop facts from a tree."""
    method_count = 0
    decision_points = 0
    max_nesting = 0
    has_loop = False
    has_nested_loop = False

    # (node, control nesting depth, loop depth)
    stack: list[tuple[Node, int, int]] = [(tree.root_node, 0, 0)]
    while stack:
        node, depth, loop_depth = stack.pop()
        kind = node.type

        if kind in METHOD_NODES:
            method_count += 1

        if kind in BRANCH_NODES:
            decision_points += 1
        elif kind == "switch_label" and _node_text(node, source).lstrip().startswith("case"):
            decision_points += 1
        elif kind == "binary_expression":
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type in SHORT_CIRCUIT_OPERATORS:
                decision_points += 1

        if kind in NESTING_NODES and not _is_else_if(node):
            depth += 1
            max_nesting = max(max_nesting, depth)

        if kind in LOOP_NODES:
            has_loop = True
            if loop_depth > 0:
                has_nested_loop = True
            loop_depth += 1

        for child in reversed(node.children):
            stack.append((child, depth, loop_depth))

    return SyntaxSummary(
        method_count=method_count,
        cyclomatic_complexity=1 + decision_points,
        max_nesting_depth=max_nesting,
        line_count=line_count,
        has_loop=has_loop,
        has_nested_loop=has_nested_loop,
    )
