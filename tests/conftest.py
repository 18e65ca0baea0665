"""Shared helpers for analyzer tests."""
import pytest

from intlscan.analyzer.folding import fold_constant
from intlscan.analyzer.parser import LanguageParser
from intlscan.analyzer.scope import ScopeTree
from intlscan.analyzer.usage_collector import iter_nodes


def find_declarator(root, name):
    """Last `variable_declarator` binding `name`."""
    found = None
    for declarator in iter_nodes(root, 'variable_declarator'):
        name_node = declarator.child_by_field_name('name')
        if name_node is not None and name_node.text.decode('utf-8') == name:
            found = declarator
    return found


@pytest.fixture
def fold_source():
    """Fold the initializer of the last `result` declaration in a snippet."""
    def _fold(code, importer=None, name='result'):
        tree = LanguageParser.parse_source(code)
        assert tree is not None, "snippet failed to parse"
        scopes = ScopeTree(tree.root_node)
        declarator = find_declarator(tree.root_node, name)
        assert declarator is not None, f"no declaration of {name!r}"
        return fold_constant(declarator.child_by_field_name('value'), scopes.scope_for(declarator), importer)
    return _fold
