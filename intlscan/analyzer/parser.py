"""Tree-sitter parsing of ECMAScript-family source text.

tree-sitter never raises on bad input; it recovers and marks error nodes. A
parse here only counts when the grammar produced a tree without errors.
"""
import logging
import re
from typing import Dict, Optional, Sequence, Union
from tree_sitter import Language, Node, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript

from .nodes import MAX_CODE_POINT

logger = logging.getLogger(__name__)

Source = Union[str, bytes]


class LanguageParser:
    """One tree-sitter grammar (tsx, typescript or javascript)."""

    # tsx first: it takes JSX and nearly all TypeScript. Plain typescript is
    # the only grammar that accepts `<Type>value` assertions.
    DEFAULT_GRAMMARS = ('tsx', 'typescript', 'javascript')

    def __init__(self, language: str):
        """
        Args:
            language: 'tsx', 'typescript' or 'javascript'

        Raises:
            ValueError: For any other grammar name
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        if self.language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        elif self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'javascript':
            lang = Language(tsjavascript.language())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        # tree-sitter 0.25 takes the language in the constructor
        return Parser(lang)

    def parse(self, source: Source) -> Optional[Tree]:
        """Tree for `source`, or None when this grammar hit a syntax error."""
        if isinstance(source, str):
            try:
                source = source.encode('utf-8')
            except UnicodeEncodeError:
                # Lone surrogates have no UTF-8 form for tree-sitter to read
                logger.debug("Source holds characters with no UTF-8 encoding")
                return None
        tree = self.parser.parse(source)
        if tree.root_node.has_error or _has_invalid_escape(tree.root_node):
            return None
        return tree

    @classmethod
    def parse_source(cls, source: Source,
                     grammars: Sequence[str] = DEFAULT_GRAMMARS) -> Optional[Tree]:
        """Parse with each grammar in turn.

        Returns:
            The first error-free tree, or None when no grammar accepts the text
        """
        for language in grammars:
            tree = _parser_for(language).parse(source)
            if tree is not None:
                return tree

        logger.debug("Source rejected by every grammar (%s)", ', '.join(grammars))
        return None


_PARSERS: Dict[str, LanguageParser] = {}


def _parser_for(language: str) -> LanguageParser:
    if language not in _PARSERS:
        _PARSERS[language] = LanguageParser(language)
    return _PARSERS[language]


_CODE_POINT_ESCAPE = re.compile(rb'\\u\{([0-9a-fA-F]+)\}')


def _has_invalid_escape(root: Node) -> bool:
    """True if a literal escapes a code point beyond U+10FFFF.

    tree-sitter accepts `'\\u{110000}'`; JavaScript engines reject it as a
    syntax error.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == 'escape_sequence':
            match = _CODE_POINT_ESCAPE.fullmatch(node.text)
            if match and int(match.group(1), 16) > MAX_CODE_POINT:
                return True
        stack.extend(node.named_children)
    return False
