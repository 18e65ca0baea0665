"""Lexical scopes over a tree-sitter ECMAScript tree.

Only the subset of binding semantics needed for constant propagation is
modelled: `let`/`const` are block scoped, `var` is hoisted to the enclosing
function, parameters belong to their function, and ESM imports live in the
program scope. Lookups ignore declaration order, so a name used before its
`const` declaration still resolves to it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Protocol

from tree_sitter import Node

from .js_import_tracker import ImportInfo, JSImportTracker
from .nodes import FUNCTION_TYPES, named_children, node_text


class BindingKind(Enum):
    MODULE = 'module'
    LOCAL = 'local'
    PARAM = 'param'
    OTHER = 'other'


@dataclass(frozen=True)
class Binding:
    """What a name refers to at some point in the program.

    `declaration` is the variable_declarator for LOCAL bindings, the import
    specifier for MODULE bindings and the parameter identifier for PARAM
    bindings.
    """
    name: str
    kind: BindingKind
    declaration: Node
    function: Optional[Node] = None  # owning function (PARAM)
    position: int = -1  # parameter index (PARAM)
    is_simple: bool = True  # bound directly by an identifier, not a pattern
    import_info: Optional[ImportInfo] = None  # MODULE

    @property
    def initializer(self) -> Optional[Node]:
        if self.kind is not BindingKind.LOCAL:
            return None
        return self.declaration.child_by_field_name('value')


class ScopeLike(Protocol):
    def resolve(self, name: str) -> Optional[Binding]:
        ...


class Scope:
    """A single lexical scope: program, function or block."""

    def __init__(self, node: Node, parent: Optional['Scope'] = None, is_function: bool = False):
        self.node = node
        self.parent = parent
        self.is_function = is_function or parent is None
        self.bindings: Dict[str, Binding] = {}

    def declare(self, binding: Binding):
        self.bindings[binding.name] = binding

    def function_scope(self) -> 'Scope':
        scope = self
        while not scope.is_function:
            scope = scope.parent
        return scope

    def resolve(self, name: str) -> Optional[Binding]:
        scope = self
        while scope is not None:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def __repr__(self) -> str:
        return f"Scope({self.node.type}@{self.node.start_point[0] + 1}, {sorted(self.bindings)})"


class NullScope:
    """Scope that knows no names; used when folding exports of another module."""

    def resolve(self, name: str) -> Optional[Binding]:
        return None


NULL_SCOPE = NullScope()

BLOCK_SCOPE_TYPES = {
    'statement_block',
    'for_statement',
    'for_in_statement',
    'catch_clause',
    'switch_body',
}


def _key(node: Node):
    return (node.start_byte, node.end_byte, node.type)


class ScopeTree:
    """Builds every scope of a program once and answers `scope_for(node)`."""

    def __init__(self, root: Node):
        self.root = root
        self._scopes: Dict[tuple, Scope] = {}
        self.program = Scope(root)
        self._scopes[_key(root)] = self.program
        self._declare_imports()
        self._build()

    def scope_for(self, node: Node) -> Scope:
        """Innermost scope enclosing `node`."""
        current = node
        while current is not None:
            scope = self._scopes.get(_key(current))
            if scope is not None:
                return scope
            current = current.parent
        return self.program

    def _declare_imports(self):
        for name, info in JSImportTracker().analyze_imports(self.root).items():
            self.program.declare(Binding(
                name=name,
                kind=BindingKind.MODULE,
                declaration=info.specifier,
                import_info=info,
            ))

    def _build(self):
        stack = [(child, self.program) for child in reversed(named_children(self.root))]

        while stack:
            node, scope = stack.pop()
            node_type = node.type
            children = named_children(node)

            if node_type in FUNCTION_TYPES:
                scope = self._enter_function(node, scope)
                body = node.child_by_field_name('body')
                if body is not None and body.type == 'statement_block':
                    # The body block shares the function scope
                    self._scopes[_key(body)] = scope
                    children = [c for c in children if _key(c) != _key(body)] + named_children(body)

            elif node_type in BLOCK_SCOPE_TYPES:
                scope = Scope(node, scope)
                self._scopes[_key(node)] = scope
                if node_type == 'catch_clause':
                    self._declare_pattern(node.child_by_field_name('parameter'), scope, node)
                elif node_type == 'for_in_statement':
                    self._declare_for_in(node, scope)

            elif node_type == 'lexical_declaration':
                self._declare_variables(node, scope)

            elif node_type == 'variable_declaration':
                self._declare_variables(node, scope.function_scope())

            elif node_type == 'class_declaration':
                self._declare_pattern(node.child_by_field_name('name'), scope, node)

            stack.extend((child, scope) for child in reversed(children))

    def _enter_function(self, node: Node, scope: Scope) -> Scope:
        name_node = node.child_by_field_name('name')
        if node.type in ('function_declaration', 'generator_function_declaration'):
            self._declare_pattern(name_node, scope, node)

        function_scope = Scope(node, scope, is_function=True)
        self._scopes[_key(node)] = function_scope

        if node.type in ('function_expression', 'function', 'generator_function'):
            self._declare_pattern(name_node, function_scope, node)

        for position, param in enumerate(self._parameters(node)):
            names = _pattern_names(param)
            simple = len(names) == 1 and _peel_parameter(param).type == 'identifier'
            for ident in names:
                function_scope.declare(Binding(
                    name=node_text(ident),
                    kind=BindingKind.PARAM,
                    declaration=ident,
                    function=node,
                    position=position,
                    is_simple=simple,
                ))
        return function_scope

    @staticmethod
    def _parameters(function: Node) -> List[Node]:
        single = function.child_by_field_name('parameter')
        if single is not None:
            return [single]
        params = function.child_by_field_name('parameters')
        if params is None:
            return []
        return named_children(params)

    def _declare_variables(self, declaration: Node, scope: Scope):
        for declarator in named_children(declaration):
            if declarator.type != 'variable_declarator':
                continue
            name_node = declarator.child_by_field_name('name')
            if name_node is None:
                continue
            if name_node.type == 'identifier':
                scope.declare(Binding(
                    name=node_text(name_node),
                    kind=BindingKind.LOCAL,
                    declaration=declarator,
                ))
            else:
                # Destructured names do not equal the initializer's value
                self._declare_pattern(name_node, scope, declarator)

    def _declare_for_in(self, node: Node, scope: Scope):
        kind = node.child_by_field_name('kind')
        if kind is None:
            return
        target = scope.function_scope() if node_text(kind) == 'var' else scope
        self._declare_pattern(node.child_by_field_name('left'), target, node)

    def _declare_pattern(self, pattern: Optional[Node], scope: Scope, declaration: Node):
        if pattern is None:
            return
        for ident in _pattern_names(pattern):
            scope.declare(Binding(
                name=node_text(ident),
                kind=BindingKind.OTHER,
                declaration=declaration,
                is_simple=False,
            ))


def _peel_parameter(param: Node) -> Node:
    """Strip TS parameter wrappers and default values down to the bound pattern."""
    while True:
        if param.type in ('required_parameter', 'optional_parameter'):
            inner = param.child_by_field_name('pattern')
        elif param.type == 'assignment_pattern':
            inner = param.child_by_field_name('left')
        else:
            return param
        if inner is None:
            return param
        param = inner


def _pattern_names(pattern: Optional[Node]) -> List[Node]:
    """Identifier nodes bound by a declaration or parameter pattern."""
    if pattern is None:
        return []

    pattern = _peel_parameter(pattern)
    pattern_type = pattern.type

    if pattern_type in ('identifier', 'shorthand_property_identifier_pattern', 'type_identifier'):
        return [pattern]
    if pattern_type == 'pair_pattern':
        return _pattern_names(pattern.child_by_field_name('value'))
    if pattern_type == 'object_assignment_pattern':
        return _pattern_names(pattern.child_by_field_name('left'))
    if pattern_type in ('object_pattern', 'array_pattern', 'rest_pattern'):
        names = []
        for child in named_children(pattern):
            names.extend(_pattern_names(child))
        return names
    return []
