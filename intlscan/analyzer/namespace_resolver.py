"""Resolve the namespace argument of `useTranslations` / `getTranslations` calls."""
from dataclasses import dataclass
from typing import Optional

from tree_sitter import Node

from .folding import Importer, fold_constant
from .nodes import NodeKind, call_arguments, kind_of, template_parts
from .scope import ScopeLike


@dataclass(frozen=True)
class NamespaceResolution:
    namespace: Optional[str]
    is_dynamic: bool
    dynamic_placeholder: Optional[str] = None


def resolve_namespace(call: Node, scope: ScopeLike, importer: Optional[Importer] = None,
                      file_label: str = 'unknown', line: int = 0) -> NamespaceResolution:
    """Determine the namespace a translation accessor call is bound to.

    Unresolvable namespaces carry a placeholder such as `<dynamic:page.tsx:L12>`
    so callers can still group occurrences by file and line.
    """
    args = call_arguments(call) or []
    if not args:
        return NamespaceResolution(
            namespace=None,
            is_dynamic=True,
            dynamic_placeholder=f"<no-namespace:{file_label}:L{line}>",
        )

    first = args[0]
    res = fold_constant(first, scope, importer)
    if res.is_string:
        return NamespaceResolution(namespace=res.value, is_dynamic=False)

    # Substitutions get a fresh depth budget here, one level more than the
    # template fold above allows
    if kind_of(first) is NodeKind.TEMPLATE:
        namespace = _join_template(first, scope, importer)
        if namespace is not None:
            return NamespaceResolution(namespace=namespace, is_dynamic=False)

    return NamespaceResolution(
        namespace=None,
        is_dynamic=True,
        dynamic_placeholder=f"<dynamic:{file_label}:L{line}>",
    )


def _join_template(node: Node, scope: ScopeLike, importer: Optional[Importer]) -> Optional[str]:
    quasis, expressions = template_parts(node)
    parts = [quasis[0]]
    for expression, quasi in zip(expressions, quasis[1:]):
        res = fold_constant(expression, scope, importer)
        if not res.is_string:
            return None
        parts.append(res.value)
        parts.append(quasi)
    return ''.join(parts)
