"""Discover translation accessors and the keys looked up through them.

Two linear passes over one file:

1. `discover_accessors` finds `const t = useTranslations(ns)` style bindings.
2. `discover_usages` finds `t('key')`, `t.rich('key')`, ... calls and resolves
   each key, expanding `ITEMS.map(item => t(item))` over literal arrays.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional

from tree_sitter import Node

from .folding import Importer, fold_constant
from .namespace_resolver import resolve_namespace
from .nodes import (
    NodeKind,
    OffsetMap,
    call_arguments,
    kind_of,
    named_children,
    node_text,
    unwrap_assertions,
)
from .parser import LanguageParser
from .scope import Binding, BindingKind, Scope, ScopeTree

ACCESSOR_NAMES = {'useTranslations', 'getTranslations'}
LOOKUP_METHODS = {'rich', 'markup', 'raw'}
DEFAULT_DELIMITER = '.'


@dataclass(frozen=True)
class SourceLocation:
    start: int
    end: int
    line: int


@dataclass(frozen=True)
class NamespaceBinding:
    """A variable bound to a translation accessor call."""
    variable_name: str
    namespace: Optional[str]
    is_dynamic: bool
    dynamic_placeholder: Optional[str]
    location: SourceLocation


@dataclass(frozen=True)
class AnalyzedKey:
    """One fully-qualified key looked up at a call site."""
    key: str
    start: int
    end: int
    quoted: bool  # the key argument is written as a literal
    variable_name: str
    namespace: Optional[str] = None


def iter_nodes(root: Node, node_type: str) -> Iterator[Node]:
    """Yield nodes of `node_type` in pre-order, source order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == node_type:
            yield node
        stack.extend(reversed(node.named_children))


def accessor_call(init: Optional[Node]) -> Optional[Node]:
    """Return the `useTranslations(...)` call an initializer consists of, if any.

    Accepts `useTranslations(...)`, `await getTranslations(...)` and member
    callees such as `intl.getTranslations(...)`.
    """
    if init is None:
        return None
    if kind_of(init) is NodeKind.AWAIT:
        children = named_children(init)
        init = children[0] if children else None
    if kind_of(init) is not NodeKind.CALL:
        return None

    callee = init.child_by_field_name('function')
    if kind_of(callee) is NodeKind.IDENTIFIER:
        name = node_text(callee)
    elif kind_of(callee) is NodeKind.MEMBER:
        prop = callee.child_by_field_name('property')
        if prop is None or prop.type != 'property_identifier':
            return None
        name = node_text(prop)
    else:
        return None

    return init if name in ACCESSOR_NAMES else None


def discover_accessors(source: str, file_label: str = 'unknown',
                       importer: Optional[Importer] = None) -> List[NamespaceBinding]:
    """Find every variable declared from a translation accessor call.

    Args:
        source: Program text
        file_label: Used in placeholders for unresolved namespaces
        importer: Maps an import source string to that module's text

    Returns:
        NamespaceBinding per accessor declaration, in declaration order; empty
        if the source cannot be parsed
    """
    tree = LanguageParser.parse_source(source)
    if tree is None:
        return []

    scopes = ScopeTree(tree.root_node)
    offsets = OffsetMap(source)
    results = []

    for declarator in iter_nodes(tree.root_node, 'variable_declarator'):
        name_node = declarator.child_by_field_name('name')
        if name_node is None or name_node.type != 'identifier':
            continue

        call = accessor_call(declarator.child_by_field_name('value'))
        if call is None:
            continue

        line = declarator.start_point[0] + 1
        res = resolve_namespace(call, scopes.scope_for(declarator), importer, file_label, line)

        results.append(NamespaceBinding(
            variable_name=node_text(name_node),
            namespace=res.namespace,
            is_dynamic=res.is_dynamic,
            dynamic_placeholder=res.dynamic_placeholder,
            location=SourceLocation(
                start=offsets.char_offset(declarator.start_byte),
                end=offsets.char_offset(declarator.end_byte),
                line=line,
            ),
        ))

    return results


def discover_usages(source: str, fallback_map: Optional[Mapping[str, str]] = None,
                    importer: Optional[Importer] = None, delimiter: str = DEFAULT_DELIMITER,
                    file_label: str = 'unknown') -> List[AnalyzedKey]:
    """Find every key looked up through a translation function.

    Args:
        source: Program text
        fallback_map: variable name -> namespace, consulted only when the
            variable's own declaration does not resolve a namespace
        importer: Maps an import source string to that module's text
        delimiter: Joins namespace and local key
        file_label: Used in placeholders for unresolved namespaces

    Returns:
        AnalyzedKey per resolved key, in call order; empty if the source
        cannot be parsed
    """
    tree = LanguageParser.parse_source(source)
    if tree is None:
        return []

    collector = _UsageCollector(
        scopes=ScopeTree(tree.root_node),
        offsets=OffsetMap(source),
        fallback_map=fallback_map or {},
        importer=importer,
        delimiter=delimiter,
        file_label=file_label,
    )

    results = []
    for call in iter_nodes(tree.root_node, 'call_expression'):
        results.extend(collector.keys_for_call(call))
    return results


class _UsageCollector:
    """Per-file state for the usage pass."""

    def __init__(self, scopes: ScopeTree, offsets: OffsetMap, fallback_map: Mapping[str, str],
                 importer: Optional[Importer], delimiter: str, file_label: str):
        self.scopes = scopes
        self.offsets = offsets
        self.fallback_map = fallback_map
        self.importer = importer
        self.delimiter = delimiter
        self.file_label = file_label

    def keys_for_call(self, call: Node) -> List[AnalyzedKey]:
        variable_name = _lookup_variable(call)
        if variable_name is None:
            return []

        scope = self.scopes.scope_for(call)
        namespace = self._namespace_for(variable_name, scope)
        if namespace is None and variable_name not in self.fallback_map:
            return []

        args = call_arguments(call)
        if not args:
            return []
        first = args[0]

        local_keys = self._local_keys(first, scope)
        start = self.offsets.char_offset(first.start_byte)
        end = self.offsets.char_offset(first.end_byte)
        quoted = kind_of(first) in (NodeKind.STRING, NodeKind.TEMPLATE)

        return [
            AnalyzedKey(
                key=f"{namespace}{self.delimiter}{key}" if namespace else key,
                start=start,
                end=end,
                quoted=quoted,
                variable_name=variable_name,
                namespace=namespace,
            )
            for key in local_keys
        ]

    def _namespace_for(self, variable_name: str, scope: Scope) -> Optional[str]:
        binding = scope.resolve(variable_name)
        if binding is not None and binding.kind is BindingKind.LOCAL:
            accessor = accessor_call(binding.initializer)
            if accessor is not None:
                declarator = binding.declaration
                # Resolve where `t` was declared, not where it is called
                res = resolve_namespace(
                    accessor,
                    self.scopes.scope_for(declarator),
                    self.importer,
                    self.file_label,
                    declarator.start_point[0] + 1,
                )
                if not res.is_dynamic:
                    return res.namespace

        return self.fallback_map.get(variable_name)

    def _local_keys(self, arg: Node, scope: Scope) -> List[str]:
        res = fold_constant(arg, scope, self.importer)
        if res.is_string:
            return [res.value]

        arg = unwrap_assertions(arg)
        arg_kind = kind_of(arg)

        if arg_kind is NodeKind.IDENTIFIER:
            mapped = self._mapped_array(scope.resolve(node_text(arg)))
            if mapped is not None and mapped.strings:
                return list(mapped.strings)

        elif arg_kind is NodeKind.MEMBER:
            obj = arg.child_by_field_name('object')
            prop = arg.child_by_field_name('property')
            if kind_of(obj) is NodeKind.IDENTIFIER and prop is not None and prop.type == 'property_identifier':
                mapped = self._mapped_array(scope.resolve(node_text(obj)))
                if mapped is not None and mapped.records:
                    prop_name = node_text(prop)
                    return [record[prop_name] for record in mapped.records if record.get(prop_name)]

        return []

    def _mapped_array(self, binding: Optional[Binding]):
        """Fold `X` when `binding` is the item parameter of `X.map(item => ...)`."""
        if binding is None or binding.kind is not BindingKind.PARAM:
            return None
        if not binding.is_simple or binding.position != 0:
            return None

        arguments = binding.function.parent
        if arguments is None or arguments.type != 'arguments' or len(named_children(arguments)) != 1:
            return None

        map_call = arguments.parent
        if kind_of(map_call) is not NodeKind.CALL:
            return None

        callee = map_call.child_by_field_name('function')
        if kind_of(callee) is not NodeKind.MEMBER:
            return None
        prop = callee.child_by_field_name('property')
        obj = callee.child_by_field_name('object')
        if prop is None or node_text(prop) != 'map' or kind_of(obj) is not NodeKind.IDENTIFIER:
            return None

        return fold_constant(obj, self.scopes.scope_for(map_call), self.importer)


def _lookup_variable(call: Node) -> Optional[str]:
    """Name of the variable a lookup call goes through: `t(...)` or `t.rich(...)`."""
    callee = call.child_by_field_name('function')
    callee_kind = kind_of(callee)

    if callee_kind is NodeKind.IDENTIFIER:
        return node_text(callee)

    if callee_kind is NodeKind.MEMBER:
        obj = callee.child_by_field_name('object')
        prop = callee.child_by_field_name('property')
        if kind_of(obj) is not NodeKind.IDENTIFIER or prop is None:
            return None
        if prop.type != 'property_identifier' or node_text(prop) not in LOOKUP_METHODS:
            return None
        return node_text(obj)

    return None


def build_namespace_map(bindings: List[NamespaceBinding],
                        include_placeholders: bool = False) -> Dict[str, str]:
    """Variable -> namespace map from accessor bindings; later bindings win.

    With `include_placeholders`, variables bound to an unresolved namespace map
    to their placeholder, taking precedence over resolved bindings of the same
    name, so their usages are still reported.
    """
    namespace_map = {}
    placeholders = {}
    for binding in bindings:
        if binding.is_dynamic:
            if binding.dynamic_placeholder:
                placeholders[binding.variable_name] = binding.dynamic_placeholder
        elif binding.namespace:
            namespace_map[binding.variable_name] = binding.namespace

    if include_placeholders:
        namespace_map.update(placeholders)
    return namespace_map
