"""Recursive-descent parser for unit conversion formulas.

Grammar (lowest to highest precedence)::

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("-" | "+") unary | power
    power      := primary (("^" | "**") unary)?
    primary    := NUMBER | "value" | "(" expression ")"

The only free identifier is ``value``. Anything else, including function
calls, is a syntax error.
"""

import operator
import re
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional, Union

from .errors import FormulaSyntaxError

VARIABLE_NAME = "value"
MAX_FORMULA_LENGTH = 256
MAX_NESTING_DEPTH = 32

_TOKEN_RE = re.compile(
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>\*\*|[-+*/^()])"
)


class Token(NamedTuple):
    kind: str
    text: str
    position: int


def _power(base: float, exponent: float) -> float:
    result = base**exponent
    if isinstance(result, complex):
        raise ValueError("complex result")
    return result


_BINARY_OPERATORS: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "^": _power,
}


@dataclass(frozen=True)
class Literal:
    number: float

    def evaluate(self, value: float) -> float:
        return self.number


@dataclass(frozen=True)
class Variable:
    def evaluate(self, value: float) -> float:
        return value


@dataclass(frozen=True)
class UnaryMinus:
    operand: "Node"

    def evaluate(self, value: float) -> float:
        return -self.operand.evaluate(value)


@dataclass(frozen=True)
class BinaryOp:
    operator: str
    left: "Node"
    right: "Node"

    def evaluate(self, value: float) -> float:
        func = _BINARY_OPERATORS[self.operator]
        return func(self.left.evaluate(value), self.right.evaluate(value))


Node = Union[Literal, Variable, UnaryMinus, BinaryOp]


def tokenize(formula: str) -> list[Token]:
    """Split a formula into number, name and operator tokens."""
    tokens = []
    pos = 0
    length = len(formula)
    while pos < length:
        if formula[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(formula, pos)
        if match is None:
            raise FormulaSyntaxError(f"Unexpected character {formula[pos]!r}", formula, pos)
        kind = match.lastgroup
        tokens.append(Token(kind, match.group(kind), pos))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, formula: str, tokens: list[Token]):
        self.formula = formula
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise FormulaSyntaxError("Empty formula", self.formula)
        node = self._expression()
        token = self._peek()
        if token is not None:
            raise FormulaSyntaxError(f"Unexpected token {token.text!r}", self.formula, token.position)
        return node

    def _peek(self) -> Optional[Token]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _accept(self, *ops: str) -> Optional[Token]:
        token = self._peek()
        if token is not None and token.kind == "op" and token.text in ops:
            self.pos += 1
            return token
        return None

    def _enter(self, token: Token):
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise FormulaSyntaxError("Formula nested too deeply", self.formula, token.position)

    def _expression(self) -> Node:
        node = self._term()
        while True:
            token = self._accept("+", "-")
            if token is None:
                return node
            node = BinaryOp(token.text, node, self._term())

    def _term(self) -> Node:
        node = self._unary()
        while True:
            token = self._accept("*", "/")
            if token is None:
                return node
            node = BinaryOp(token.text, node, self._unary())

    def _unary(self) -> Node:
        token = self._accept("-", "+")
        if token is None:
            return self._power()
        self._enter(token)
        operand = self._unary()
        self.depth -= 1
        if token.text == "-":
            return UnaryMinus(operand)
        return operand

    def _power(self) -> Node:
        base = self._primary()
        if self._accept("^", "**") is None:
            return base
        return BinaryOp("^", base, self._unary())

    def _primary(self) -> Node:
        token = self._peek()
        if token is None:
            raise FormulaSyntaxError("Unexpected end of formula", self.formula, len(self.formula))
        self.pos += 1

        if token.kind == "number":
            return Literal(float(token.text))

        if token.kind == "name":
            if token.text == VARIABLE_NAME:
                return Variable()
            following = self._peek()
            if following is not None and following.text == "(":
                raise FormulaSyntaxError(
                    f"Function calls are not supported: {token.text!r}", self.formula, token.position
                )
            raise FormulaSyntaxError(f"Unknown identifier {token.text!r}", self.formula, token.position)

        if token.text == "(":
            self._enter(token)
            node = self._expression()
            if self._accept(")") is None:
                raise FormulaSyntaxError("Missing closing parenthesis", self.formula, token.position)
            self.depth -= 1
            return node

        raise FormulaSyntaxError(f"Unexpected token {token.text!r}", self.formula, token.position)


def parse(formula: str) -> Node:
    """Parse a formula string into an AST.

    Raises:
        FormulaSyntaxError: If the formula is empty, too long, or does not
            match the grammar.
    """
    if not isinstance(formula, str):
        raise FormulaSyntaxError("Formula must be a string", repr(formula))
    if len(formula) > MAX_FORMULA_LENGTH:
        raise FormulaSyntaxError(f"Formula longer than {MAX_FORMULA_LENGTH} characters", formula[:32] + "...")
    return _Parser(formula, tokenize(formula)).parse()
