"""
Display logic - parses iDempiere-style conditions such as
`@HAZARD_LEVEL@='HIGH' | @HAZARD_LEVEL@='CRITICAL'` into a small tagged AST
and evaluates it with a pure interpreter over collected field values.

Nothing here executes host-language code; unknown syntax is a parse error.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple, Union

from .errors import DisplayLogicError


@dataclass(frozen=True)
class FieldRef:
    name: str

    def to_dict(self):
        return {"type": "field", "name": self.name}


@dataclass(frozen=True)
class Literal:
    value: Union[str, float]

    def to_dict(self):
        return {"type": "literal", "value": self.value}


@dataclass(frozen=True)
class Compare:
    op: str  # eq|neq|lt|lte|gt|gte
    left: Union[FieldRef, Literal]
    right: Union[FieldRef, Literal]

    def to_dict(self):
        return {"type": "compare", "op": self.op, "left": self.left.to_dict(), "right": self.right.to_dict()}


@dataclass(frozen=True)
class BoolOp:
    op: str  # and|or
    operands: Tuple[Any, ...]

    def to_dict(self):
        return {"type": "bool", "op": self.op, "operands": [o.to_dict() for o in self.operands]}


Expression = Union[Compare, BoolOp]

_TOKEN_RE = re.compile(r"""
    \s*(?:
        (?P<field>@[A-Za-z_][A-Za-z0-9_]*@)
      | (?P<string>'[^']*'|"[^"]*")
      | (?P<number>-?\d+(?:\.\d+)?)
      | (?P<op>==|!=|<=|>=|&&|\|\||[=!<>&|()])
    )""", re.VERBOSE)

_COMPARE_OPS = {"=": "eq", "==": "eq", "!=": "neq", "!": "neq", "<": "lt", "<=": "lte", ">": "gt", ">=": "gte"}
_AND_OPS = {"&", "&&"}
_OR_OPS = {"|", "||"}


def _tokenize(text: str) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if not match or match.end() == pos:
            raise DisplayLogicError(f"Unexpected character at position {pos} in display logic: {text!r}")
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def _peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else (None, None)

    def _take(self):
        token = self._peek()
        self.pos += 1
        return token

    def parse(self) -> Expression:
        if not self.tokens:
            raise DisplayLogicError("Empty display logic expression")
        expr = self._or()
        if self.pos != len(self.tokens):
            raise DisplayLogicError(f"Unexpected token {self._peek()[1]!r} in display logic: {self.text!r}")
        return expr

    def _or(self):
        operands = [self._and()]
        while self._peek()[1] in _OR_OPS:
            self._take()
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else BoolOp("or", tuple(operands))

    def _and(self):
        operands = [self._atom()]
        while self._peek()[1] in _AND_OPS:
            self._take()
            operands.append(self._atom())
        return operands[0] if len(operands) == 1 else BoolOp("and", tuple(operands))

    def _atom(self):
        if self._peek()[1] == "(":
            self._take()
            expr = self._or()
            if self._take()[1] != ")":
                raise DisplayLogicError(f"Missing ')' in display logic: {self.text!r}")
            return expr
        left = self._operand()
        kind, value = self._take()
        if kind != "op" or value not in _COMPARE_OPS:
            raise DisplayLogicError(f"Expected comparison operator in display logic: {self.text!r}")
        right = self._operand()
        return Compare(_COMPARE_OPS[value], left, right)

    def _operand(self):
        kind, value = self._take()
        if kind == "field":
            return FieldRef(value[1:-1])
        if kind == "string":
            return Literal(value[1:-1])
        if kind == "number":
            return Literal(float(value))
        raise DisplayLogicError(f"Expected field or literal in display logic: {self.text!r}")


def parse(text: str) -> Expression:
    """Parse a display-logic string into an expression tree."""
    return _Parser(text).parse()


def _lookup(values: Mapping[str, Any], name: str) -> Any:
    value = values.get(name)
    if value is None:
        return ""
    if isinstance(value, Mapping):
        return value.get("key") if value.get("key") is not None else value.get("raw", "")
    key = getattr(value, "key", None)
    if key is not None:
        return key
    if hasattr(value, "raw"):
        return "" if value.raw is None else value.raw
    return value


def _coerce_number(x: Any):
    if isinstance(x, bool):
        return float(int(x))
    if isinstance(x, (int, float)):
        return float(x)
    if isinstance(x, str) and x.strip() != "":
        try:
            return float(x.strip())
        except ValueError:
            return None
    return None


def _compare(op: str, lhs: Any, rhs: Any) -> bool:
    ln = _coerce_number(lhs)
    rn = _coerce_number(rhs)
    if ln is None or rn is None:
        # Y/N flags and enumeration keys compare as strings
        if isinstance(lhs, bool):
            lhs = "Y" if lhs else "N"
        if isinstance(rhs, bool):
            rhs = "Y" if rhs else "N"
        ln, rn = str(lhs), str(rhs)

    if op == "eq":
        return ln == rn
    if op == "neq":
        return ln != rn
    if op == "lt":
        return ln < rn
    if op == "lte":
        return ln <= rn
    if op == "gt":
        return ln > rn
    if op == "gte":
        return ln >= rn
    raise DisplayLogicError(f"Unknown comparison operator: {op}")


def _value_of(node, values):
    if isinstance(node, FieldRef):
        return _lookup(values, node.name)
    return node.value


def evaluate(expr: Expression, values: Mapping[str, Any]) -> bool:
    """Evaluate an expression tree. `values` maps field id to FieldValue, dict or plain value."""
    if isinstance(expr, BoolOp):
        if expr.op == "and":
            return all(evaluate(o, values) for o in expr.operands)
        return any(evaluate(o, values) for o in expr.operands)
    if isinstance(expr, Compare):
        return _compare(expr.op, _value_of(expr.left, values), _value_of(expr.right, values))
    raise DisplayLogicError(f"Unsupported display logic node: {expr!r}")


def is_visible(expr, values: Mapping[str, Any]) -> bool:
    """A field without display logic is always visible."""
    if expr is None:
        return True
    return evaluate(expr, values)
