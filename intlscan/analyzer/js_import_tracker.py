from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from tree_sitter import Node

from .nodes import named_children, node_text, string_value


@dataclass
class ImportInfo:
    source_module: str
    original_name: Optional[str] = None  # 'default' for default imports
    is_namespace: bool = False
    specifier: Optional[Node] = None

    @property
    def is_named(self) -> bool:
        """True for `import { x }` / `import { x as y }` specifiers."""
        return (not self.is_namespace and self.original_name is not None
                and self.original_name != 'default')


class JSImportTracker:
    def analyze_imports(self, root_node: Node) -> Dict[str, ImportInfo]:
        """
        Maps local names bound by top-level ESM import statements to their sources.
        CommonJS `require` calls are not bindings a constant can be read from.
        """
        imports: Dict[str, ImportInfo] = {}

        for statement in named_children(root_node):
            if statement.type != 'import_statement' or _is_type_only(statement):
                continue

            source_node = statement.child_by_field_name('source')
            if source_node is None:
                continue
            module_name = string_value(source_node)

            # `import_clause` is a plain child, not a field, in older grammars
            for clause in named_children(statement):
                if clause.type == 'import_clause':
                    for local_name, info in self._clause_bindings(clause, module_name):
                        imports[local_name] = info

        return imports

    def _clause_bindings(self, clause: Node, module_name: str) -> Iterator[Tuple[str, ImportInfo]]:
        for child in named_children(clause):
            if child.type == 'identifier':
                # import x from 'mod'
                yield node_text(child), ImportInfo(module_name, 'default', specifier=child)

            elif child.type == 'namespace_import':
                # import * as ns from 'mod'
                for ns_child in named_children(child):
                    if ns_child.type == 'identifier':
                        yield node_text(ns_child), ImportInfo(module_name, is_namespace=True, specifier=ns_child)

            elif child.type == 'named_imports':
                # import { x, y as z } from 'mod'
                for specifier in named_children(child):
                    binding = self._named_binding(specifier, module_name)
                    if binding is not None:
                        yield binding

    @staticmethod
    def _named_binding(specifier: Node, module_name: str) -> Optional[Tuple[str, ImportInfo]]:
        if specifier.type != 'import_specifier' or _is_type_only(specifier):
            return None

        name_node = specifier.child_by_field_name('name')
        if name_node is None:
            return None
        alias_node = specifier.child_by_field_name('alias')

        # `import { 'quoted name' as x }` is legal ES2022
        original = string_value(name_node) if name_node.type == 'string' else node_text(name_node)
        local_name = node_text(alias_node) if alias_node is not None else original
        return local_name, ImportInfo(module_name, original, specifier=specifier)


def _is_type_only(node: Node) -> bool:
    """`import type ...` and `{ type X }` bind nothing at runtime."""
    return any(child.type in ('type', 'typeof') for child in node.children)
