"""Constant folding of ECMAScript expressions.

`fold_constant` evaluates an expression to a string, an array of strings or an
array of flat string records without running the program. Anything it cannot
decide comes back as `ResolvedValue.dynamic()`.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Union

from tree_sitter import Node

from .nodes import (
    NodeKind,
    kind_of,
    named_children,
    node_text,
    string_value,
    template_parts,
    unwrap_assertions,
)
from .parser import LanguageParser
from .scope import NULL_SCOPE, BindingKind, ScopeLike

logger = logging.getLogger(__name__)

MAX_FOLD_DEPTH = 5

Importer = Callable[[str], Optional[str]]
Record = Dict[str, str]
FoldedValue = Union[str, Tuple[str, ...], Tuple[Record, ...]]


@dataclass(frozen=True)
class ResolvedValue:
    value: Optional[FoldedValue]
    is_dynamic: bool

    @classmethod
    def dynamic(cls) -> 'ResolvedValue':
        return _DYNAMIC

    @classmethod
    def of(cls, value: FoldedValue) -> 'ResolvedValue':
        return cls(value=value, is_dynamic=False)

    @property
    def is_string(self) -> bool:
        return not self.is_dynamic and isinstance(self.value, str)

    @property
    def strings(self) -> Optional[Tuple[str, ...]]:
        """Elements of a resolved string array, else None."""
        if self.is_dynamic or not isinstance(self.value, tuple):
            return None
        if self.value and isinstance(self.value[0], str):
            return self.value
        return None

    @property
    def records(self) -> Optional[Tuple[Record, ...]]:
        """Elements of a resolved object array, else None."""
        if self.is_dynamic or not isinstance(self.value, tuple):
            return None
        if self.value and isinstance(self.value[0], dict):
            return self.value
        return None


_DYNAMIC = ResolvedValue(value=None, is_dynamic=True)


class ArrayShape(Enum):
    UNKNOWN = 'unknown'
    STRINGS = 'strings'
    OBJECTS = 'objects'
    MIXED = 'mixed'


def _merge_shape(shape: ArrayShape, element: ArrayShape) -> ArrayShape:
    if element is ArrayShape.MIXED:
        return ArrayShape.MIXED
    if shape is ArrayShape.UNKNOWN or shape is element:
        return element
    return ArrayShape.MIXED


def fold_constant(node: Optional[Node], scope: ScopeLike,
                  importer: Optional[Importer] = None, depth: int = 0) -> ResolvedValue:
    """Statically evaluate `node`.

    Args:
        node: Expression node, or None
        scope: Anything exposing `resolve(name) -> Binding | None`
        importer: Maps an import source string to that module's text
        depth: Current recursion depth; above MAX_FOLD_DEPTH the result is dynamic

    Returns:
        ResolvedValue holding a str, a tuple of str or a tuple of dicts
    """
    node = unwrap_assertions(node)
    if node is None:
        return ResolvedValue.dynamic()

    if depth > MAX_FOLD_DEPTH:
        return ResolvedValue.dynamic()

    handler = _HANDLERS.get(kind_of(node))
    if handler is None:
        return ResolvedValue.dynamic()
    return handler(node, scope, importer, depth)


def _fold_string(node: Node, scope, importer, depth) -> ResolvedValue:
    return ResolvedValue.of(string_value(node))


def _fold_array(node: Node, scope, importer, depth) -> ResolvedValue:
    shape = ArrayShape.UNKNOWN
    strings = []
    records = []

    for element in named_children(node):
        element_shape, value = _fold_element(element, scope, importer, depth + 1)
        shape = _merge_shape(shape, element_shape)
        if shape is ArrayShape.MIXED:
            break
        if element_shape is ArrayShape.STRINGS:
            strings.append(value)
        else:
            records.append(value)

    if shape is ArrayShape.STRINGS:
        return ResolvedValue.of(tuple(strings))
    if shape is ArrayShape.OBJECTS:
        return ResolvedValue.of(tuple(records))
    return ResolvedValue.dynamic()


def _fold_element(element: Node, scope, importer, depth):
    """Classify one array element as a string, a flat record or neither."""
    res = fold_constant(element, scope, importer, depth)
    if res.is_string:
        return ArrayShape.STRINGS, res.value

    element = unwrap_assertions(element)
    if kind_of(element) is NodeKind.OBJECT:
        return ArrayShape.OBJECTS, _fold_record(element, scope, importer, depth)

    return ArrayShape.MIXED, None


def _fold_record(node: Node, scope, importer, depth) -> Record:
    """Collect `identifier: <string>` pairs and `{ name }` shorthands; other properties are dropped."""
    record = {}
    for prop in named_children(node):
        if prop.type == 'shorthand_property_identifier':
            # `{ label }` is `{ label: label }`
            key = prop
            res = _fold_identifier(prop, scope, importer, depth)
        elif prop.type == 'pair':
            key = prop.child_by_field_name('key')
            if key is None or key.type != 'property_identifier':
                continue
            res = fold_constant(prop.child_by_field_name('value'), scope, importer, depth)
        else:
            continue
        if res.is_string:
            record[node_text(key)] = res.value
    return record


def _fold_identifier(node: Node, scope, importer, depth) -> ResolvedValue:
    binding = scope.resolve(node_text(node))
    if binding is None:
        return ResolvedValue.dynamic()

    if binding.kind is BindingKind.MODULE:
        return _fold_import(binding.import_info, importer, depth)

    if binding.kind is BindingKind.LOCAL:
        return fold_constant(unwrap_assertions(binding.initializer), scope, importer, depth + 1)

    # Parameters are expanded by the usage collector's `.map` handling
    return ResolvedValue.dynamic()


def _fold_import(info, importer: Optional[Importer], depth: int) -> ResolvedValue:
    if info is None or not info.is_named or importer is None:
        return ResolvedValue.dynamic()

    code = importer(info.source_module)
    if not code:
        return ResolvedValue.dynamic()

    tree = LanguageParser.parse_source(code)
    if tree is None:
        logger.debug("Could not parse module %r imported for %r", info.source_module, info.original_name)
        return ResolvedValue.dynamic()

    declarator = find_exported_declarator(tree.root_node, info.original_name)
    if declarator is None:
        logger.debug("Module %r has no exported variable %r", info.source_module, info.original_name)
        return ResolvedValue.dynamic()

    # Exports are folded without scope: only top-level literal-ish values resolve
    return fold_constant(declarator.child_by_field_name('value'), NULL_SCOPE, None, depth + 1)


def find_exported_declarator(root: Node, name: str) -> Optional[Node]:
    """Find `export const|let|var <name> = ...` at the top level of a module."""
    for statement in named_children(root):
        if statement.type != 'export_statement':
            continue
        declaration = statement.child_by_field_name('declaration')
        if declaration is None or declaration.type not in ('lexical_declaration', 'variable_declaration'):
            continue
        for declarator in named_children(declaration):
            if declarator.type != 'variable_declarator':
                continue
            name_node = declarator.child_by_field_name('name')
            if name_node is not None and name_node.type == 'identifier' and node_text(name_node) == name:
                return declarator
    return None


def fold_template(node: Node, scope, importer, depth) -> ResolvedValue:
    """Join a template literal's quasis with its folded substitutions."""
    quasis, expressions = template_parts(node)
    parts = [quasis[0]]
    for expression, quasi in zip(expressions, quasis[1:]):
        res = fold_constant(expression, scope, importer, depth + 1)
        if not res.is_string:
            return ResolvedValue.dynamic()
        parts.append(res.value)
        parts.append(quasi)
    return ResolvedValue.of(''.join(parts))


def _fold_binary(node: Node, scope, importer, depth) -> ResolvedValue:
    operator = node.child_by_field_name('operator')
    if operator is None or operator.type != '+':
        return ResolvedValue.dynamic()

    left = fold_constant(node.child_by_field_name('left'), scope, importer, depth + 1)
    if not left.is_string:
        return ResolvedValue.dynamic()
    right = fold_constant(node.child_by_field_name('right'), scope, importer, depth + 1)
    if not right.is_string:
        return ResolvedValue.dynamic()
    return ResolvedValue.of(left.value + right.value)


# Handlers in resolution-priority order; kinds not listed fold to dynamic
_HANDLERS = {
    NodeKind.STRING: _fold_string,
    NodeKind.ARRAY: _fold_array,
    NodeKind.IDENTIFIER: _fold_identifier,
    NodeKind.TEMPLATE: fold_template,
    NodeKind.BINARY: _fold_binary,
}
