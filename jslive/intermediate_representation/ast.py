from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Union


class MalformedTreeError(ValueError):
    """Raised when a syntax tree violates the shape the analysis relies on."""

    def __init__(self, kind: str, offset: int | None, message: str) -> None:
        location = f"offset {offset}" if offset is not None else "unknown offset"
        super().__init__(f"{kind} at {location}: {message}")
        self.kind = kind
        self.offset = offset


@dataclass(frozen=True)
class Node:
    """Base tree node; `offset` is the node's character offset in the source."""

    offset: int

    @property
    def kind(self) -> str:
        return type(self).__name__


# Expressions


@dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True)
class Literal(Node):
    value: Any
    raw: str | None = None

    @property
    def truth(self) -> bool | None:
        """Static truth of the literal when used as a test, or None."""
        if self.value is True:
            return True
        if self.value is False or self.value is None:
            return False
        return None


@dataclass(frozen=True)
class MemberExpression(Node):
    object: "Expression"
    property: "Expression"
    computed: bool = False

    def dotted_name(self) -> str | None:
        """`console.log` style name for plain (non-computed) member chains."""
        if self.computed or not isinstance(self.property, Identifier):
            return None
        if isinstance(self.object, Identifier):
            prefix = self.object.name
        elif isinstance(self.object, MemberExpression):
            prefix = self.object.dotted_name()
            if prefix is None:
                return None
        else:
            return None
        return f"{prefix}.{self.property.name}"


@dataclass(frozen=True)
class CallExpression(Node):
    callee: "Expression"
    arguments: tuple["Expression", ...] = field(default_factory=tuple)

    def callee_name(self) -> str | None:
        if isinstance(self.callee, Identifier):
            return self.callee.name
        if isinstance(self.callee, MemberExpression):
            return self.callee.dotted_name()
        return None


@dataclass(frozen=True)
class AssignmentExpression(Node):
    operator: str
    target: "Expression"
    value: "Expression"


@dataclass(frozen=True)
class UpdateExpression(Node):
    operator: str
    target: "Expression"


@dataclass(frozen=True)
class Operation(Node):
    """Any other expression (binary, logical, unary, conditional, ...)."""

    syntax: str
    operator: str | None = None
    operands: tuple["Expression", ...] = field(default_factory=tuple)

    @property
    def kind(self) -> str:
        return self.syntax


Expression = Union[
    Identifier,
    Literal,
    MemberExpression,
    CallExpression,
    AssignmentExpression,
    UpdateExpression,
    Operation,
]


# Statements


@dataclass(frozen=True)
class Block(Node):
    body: tuple["Statement", ...] = field(default_factory=tuple)

    @property
    def kind(self) -> str:
        return "BlockStatement"

    def __iter__(self) -> Iterator["Statement"]:
        return iter(self.body)

    def __len__(self) -> int:
        return len(self.body)


@dataclass(frozen=True)
class Program(Block):
    """Top-level statement list."""

    @property
    def kind(self) -> str:
        return "Program"


@dataclass(frozen=True)
class ExpressionStatement(Node):
    expression: Expression


@dataclass(frozen=True)
class Declarator(Node):
    name: str | None
    init: Expression | None = None


@dataclass(frozen=True)
class VariableDeclaration(Node):
    declarations: tuple[Declarator, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class WhileStatement(Node):
    test: Expression
    body: Block


@dataclass(frozen=True)
class IfStatement(Node):
    test: Expression
    consequent: Block
    alternate: Block | None = None
    # Set once constant-branch folding has kept only the live branch.
    folded: bool = False


@dataclass(frozen=True)
class ThrowStatement(Node):
    argument: Expression | None = None


@dataclass(frozen=True)
class BreakStatement(Node):
    label: str | None = None


@dataclass(frozen=True)
class ContinueStatement(Node):
    label: str | None = None


@dataclass(frozen=True)
class TryStatement(Node):
    block: Block
    handler: Block
    finalizer: Block | None = None
    param: str | None = None


@dataclass(frozen=True)
class UnsupportedStatement(Node):
    """Statement kind outside the analysed subset; skipped by every pass."""

    syntax: str

    @property
    def kind(self) -> str:
        return self.syntax


Statement = Union[
    Block,
    ExpressionStatement,
    VariableDeclaration,
    WhileStatement,
    IfStatement,
    ThrowStatement,
    BreakStatement,
    ContinueStatement,
    TryStatement,
    UnsupportedStatement,
]

SIMPLE_STATEMENTS = (
    ExpressionStatement,
    VariableDeclaration,
    ThrowStatement,
    BreakStatement,
    ContinueStatement,
)


def program_point(statement: Node) -> int | None:
    """Label of the program point a statement denotes, if it has one of its own."""
    if isinstance(statement, SIMPLE_STATEMENTS):
        return statement.offset
    if isinstance(statement, (IfStatement, WhileStatement)):
        return statement.test.offset
    return None


def child_blocks(statement: Node) -> Iterable[Block]:
    """Nested statement blocks of a compound statement, in source order."""
    if isinstance(statement, Block):
        yield statement
    elif isinstance(statement, WhileStatement):
        yield statement.body
    elif isinstance(statement, IfStatement):
        yield statement.consequent
        if statement.alternate is not None:
            yield statement.alternate
    elif isinstance(statement, TryStatement):
        yield statement.block
        yield statement.handler
        if statement.finalizer is not None:
            yield statement.finalizer


def iter_statements(block: Block) -> Iterator[Node]:
    """Pre-order walk over every statement nested in `block`."""
    for statement in block.body:
        yield statement
        for nested in child_blocks(statement):
            yield from iter_statements(nested)


def iter_expressions(expression: Node | None) -> Iterator[Node]:
    """Pre-order walk over an expression subtree."""
    if expression is None:
        return
    yield expression
    if isinstance(expression, MemberExpression):
        yield from iter_expressions(expression.object)
        yield from iter_expressions(expression.property)
    elif isinstance(expression, CallExpression):
        yield from iter_expressions(expression.callee)
        for argument in expression.arguments:
            yield from iter_expressions(argument)
    elif isinstance(expression, AssignmentExpression):
        yield from iter_expressions(expression.target)
        yield from iter_expressions(expression.value)
    elif isinstance(expression, UpdateExpression):
        yield from iter_expressions(expression.target)
    elif isinstance(expression, Operation):
        for operand in expression.operands:
            yield from iter_expressions(operand)


def referenced_names(expression: Node | None) -> list[str]:
    """Identifier names read by an expression, in source order.

    Property names of non-computed member accesses (`b` in `a.b`) are names,
    not variable references, and are left out.
    """
    names: list[str] = []
    if expression is None:
        return names
    if isinstance(expression, Identifier):
        names.append(expression.name)
    elif isinstance(expression, MemberExpression):
        names.extend(referenced_names(expression.object))
        if expression.computed:
            names.extend(referenced_names(expression.property))
    elif isinstance(expression, CallExpression):
        names.extend(referenced_names(expression.callee))
        for argument in expression.arguments:
            names.extend(referenced_names(argument))
    elif isinstance(expression, AssignmentExpression):
        names.extend(referenced_names(expression.target))
        names.extend(referenced_names(expression.value))
    elif isinstance(expression, UpdateExpression):
        names.extend(referenced_names(expression.target))
    elif isinstance(expression, Operation):
        for operand in expression.operands:
            names.extend(referenced_names(operand))
    return names


def assign_labels(program: Block) -> dict[int, Node]:
    """Map every program point label to the statement or test it denotes."""
    labels: dict[int, Node] = {}
    for statement in iter_statements(program):
        label = program_point(statement)
        if label is None:
            continue
        node = statement.test if isinstance(statement, (IfStatement, WhileStatement)) else statement
        if label in labels and labels[label] is not node:
            raise MalformedTreeError(
                statement.kind,
                label,
                f"label already used by {labels[label].kind}",
            )
        labels[label] = node
    return labels
