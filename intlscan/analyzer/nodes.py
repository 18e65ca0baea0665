"""Node classification and text helpers over tree-sitter ECMAScript trees.

The folder and collector only ever branch on `NodeKind`, never on raw
tree-sitter type strings, so grammar differences stay in this module.
"""
import re
from enum import Enum
from typing import List, Optional, Union

from tree_sitter import Node


class NodeKind(Enum):
    """Closed set of node shapes the analyzer understands."""
    WRAPPER = 'wrapper'
    STRING = 'string'
    TEMPLATE = 'template'
    ARRAY = 'array'
    OBJECT = 'object'
    IDENTIFIER = 'identifier'
    BINARY = 'binary'
    CALL = 'call'
    AWAIT = 'await'
    MEMBER = 'member'
    OTHER = 'other'


NODE_KINDS = {
    'as_expression': NodeKind.WRAPPER,
    'satisfies_expression': NodeKind.WRAPPER,
    'non_null_expression': NodeKind.WRAPPER,
    'type_assertion': NodeKind.WRAPPER,
    'parenthesized_expression': NodeKind.WRAPPER,
    'string': NodeKind.STRING,
    'template_string': NodeKind.TEMPLATE,
    'array': NodeKind.ARRAY,
    'object': NodeKind.OBJECT,
    'identifier': NodeKind.IDENTIFIER,
    'binary_expression': NodeKind.BINARY,
    'call_expression': NodeKind.CALL,
    'await_expression': NodeKind.AWAIT,
    'member_expression': NodeKind.MEMBER,
}

FUNCTION_TYPES = {
    'function_declaration',
    'generator_function_declaration',
    'function_expression',
    'function',
    'generator_function',
    'arrow_function',
    'method_definition',
}

_ESCAPE = re.compile(
    r'\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-7]{1,3}|\r\n|.)',
    re.DOTALL,
)

_SIMPLE_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    'v': '\v',
}

_LINE_CONTINUATIONS = {'\n', '\r', '\r\n', '\u2028', '\u2029'}

MAX_CODE_POINT = 0x10FFFF


class InvalidEscapeError(ValueError):
    """A literal holds an escape no engine accepts, e.g. `\\u{110000}`."""


def kind_of(node: Optional[Node]) -> NodeKind:
    if node is None:
        return NodeKind.OTHER
    return NODE_KINDS.get(node.type, NodeKind.OTHER)


def node_text(node: Node) -> str:
    return node.text.decode('utf-8')


def named_children(node: Node) -> List[Node]:
    """Named children with comments filtered out."""
    return [child for child in node.named_children if child.type != 'comment']


def first_named_child(node: Optional[Node]) -> Optional[Node]:
    if node is None:
        return None
    children = named_children(node)
    return children[0] if children else None


def unwrap_assertions(node: Optional[Node]) -> Optional[Node]:
    """Strip type assertions, non-null assertions, `satisfies` and parentheses.

    `x as const`, `<T>x`, `x!`, `x satisfies T` and `(x)` all evaluate to `x`.
    """
    while node is not None and kind_of(node) is NodeKind.WRAPPER:
        children = named_children(node)
        if not children:
            return None
        # `<T>x` puts the type first; every other wrapper puts the expression first
        node = children[-1] if node.type == 'type_assertion' else children[0]
    return node


def call_arguments(call: Node) -> Optional[List[Node]]:
    """Argument nodes of a call, or None for tagged templates and malformed calls."""
    args = call.child_by_field_name('arguments')
    if args is None or args.type != 'arguments':
        return None
    return named_children(args)


def cook(raw: str) -> str:
    """Decode ECMAScript escape sequences in string or template text.

    Raises:
        InvalidEscapeError: For `\\u{...}` escapes beyond U+10FFFF, which
            are syntax errors tree-sitter does not flag
    """
    return _ESCAPE.sub(_decode_escape, raw)


def _decode_escape(match: re.Match) -> str:
    body = match.group(1)
    if body in _LINE_CONTINUATIONS:
        return ''
    if body in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[body]
    if body.startswith('u{'):
        code_point = int(body[2:-1], 16)
        if code_point > MAX_CODE_POINT:
            raise InvalidEscapeError(f"Code point out of range: \\{body}")
        return chr(code_point)
    if body[0] in 'ux' and len(body) > 1:
        return chr(int(body[1:], 16))
    if body[0] in '01234567':
        return chr(int(body, 8))
    return body


def string_value(node: Node) -> str:
    """Cooked value of a quoted string literal."""
    return cook(node_text(node)[1:-1])


def template_parts(node: Node):
    """Split a template literal into cooked quasis and substitution expressions.

    Returns:
        (quasis, expressions) with len(quasis) == len(expressions) + 1
    """
    source = node.text
    base = node.start_byte
    quasis = []
    expressions = []
    cursor = base + 1  # opening backtick

    for child in node.named_children:
        if child.type != 'template_substitution':
            continue
        quasis.append(_cook_template(source[cursor - base:child.start_byte - base]))
        expressions.append(first_named_child(child))
        cursor = child.end_byte

    quasis.append(_cook_template(source[cursor - base:node.end_byte - base - 1]))
    return quasis, expressions


def _cook_template(raw: bytes) -> str:
    return cook(raw.decode('utf-8').replace('\r\n', '\n'))


class OffsetMap:
    """Converts tree-sitter byte offsets into str character offsets."""

    def __init__(self, source: Union[str, bytes]):
        if isinstance(source, str):
            source = source.encode('utf-8')
        self._source = source
        self._ascii = source.isascii()

    def char_offset(self, byte_offset: int) -> int:
        if self._ascii:
            return byte_offset
        return len(self._source[:byte_offset].decode('utf-8', errors='replace'))
