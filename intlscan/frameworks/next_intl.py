"""next-intl integration: turns analyzer results into document keys and scope ranges."""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..analyzer.folding import Importer
from ..analyzer.module_resolver import ModuleResolver
from ..analyzer.usage_collector import (
    AnalyzedKey,
    build_namespace_map,
    discover_accessors,
    discover_usages,
)

NAMESPACE_OBJECT_RE = re.compile(r"""namespace:\s*['"`]([^'"`]+)['"`]""")


@dataclass(frozen=True)
class KeyInDocument:
    key: str
    start: int
    end: int
    quoted: bool


@dataclass(frozen=True)
class ScopeRange:
    start: int
    end: int
    namespace: str


class NextIntlFramework:
    """Key detection for projects using next-intl's `useTranslations` API."""

    namespace_delimiter = '.'
    namespace_delimiters = ['.']

    language_ids = [
        'javascript',
        'typescript',
        'javascriptreact',
        'typescriptreact',
        'ejs',
    ]

    EXTENSION_LANGUAGE_IDS = {
        '.js': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.jsx': 'javascriptreact',
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'typescriptreact',
        '.ejs': 'ejs',
    }

    def __init__(self, resolver: Optional[ModuleResolver] = None, delimiter: str = None):
        """
        Args:
            resolver: Resolves imports for cross-file constants; None disables them
            delimiter: Overrides the namespace delimiter
        """
        self.resolver = resolver
        if delimiter:
            self.namespace_delimiter = delimiter
            self.namespace_delimiters = [delimiter]
        self._delimiters_re = re.compile('|'.join(re.escape(d) for d in self.namespace_delimiters))

    def language_id_for(self, file_path: Union[str, Path]) -> Optional[str]:
        return self.EXTENSION_LANGUAGE_IDS.get(Path(file_path).suffix.lower())

    def supports(self, file_path: Union[str, Path], language_id: Optional[str] = None) -> bool:
        return (language_id or self.language_id_for(file_path)) in self.language_ids

    def create_importer(self, file_path: Union[str, Path]) -> Optional[Importer]:
        if self.resolver is None:
            return None
        return self.resolver.create_importer(file_path, cached=True)

    def refactor_templates(self, keypath: str) -> List[str]:
        """Replacement snippets for a keypath.

        The namespace in scope is unknown here, so every suffix of the keypath
        is offered: `one.two.three` gives `three`, `two.three`, `one.two.three`.
        """
        parts = keypath.split('.')
        keypaths = ['.'.join(parts[len(parts) - index - 1:]) for index in range(len(parts))]
        return [f"{{t('{cur}')}}" for cur in keypaths] + [f"t('{cur}')" for cur in keypaths]

    def rewrite_keys(self, key: str, namespace: Optional[str] = None) -> str:
        """Normalize delimiters and drop a namespace prefix the key repeats."""
        dotted_key = '.'.join(self._delimiters_re.split(key))

        if namespace and any(delimiter in key for delimiter in self.namespace_delimiters):
            dotted_namespace = '.'.join(self._delimiters_re.split(namespace))
            if dotted_key.startswith(dotted_namespace):
                # +1 for the delimiter after the namespace
                return dotted_key[len(namespace) + 1:]

        return dotted_key

    def analyze_usages(self, text: str, file_path: Union[str, Path],
                       language_id: Optional[str] = None,
                       importer: Optional[Importer] = None) -> Optional[List[AnalyzedKey]]:
        """Run both analyzer passes over a document.

        Returns:
            AnalyzedKey list, or None if the language is not handled
        """
        if not self.supports(file_path, language_id):
            return None

        if importer is None:
            importer = self.create_importer(file_path)
        file_label = Path(file_path).name

        bindings = discover_accessors(text, file_label, importer)
        namespace_map = build_namespace_map(bindings)

        return discover_usages(text, namespace_map, importer, self.namespace_delimiter, file_label)

    def detect_keys(self, text: str, file_path: Union[str, Path],
                    language_id: Optional[str] = None,
                    importer: Optional[Importer] = None) -> Optional[List[KeyInDocument]]:
        """Every translation key used in a document.

        Returns:
            KeyInDocument list, or None if the language is not handled
        """
        analyzed_keys = self.analyze_usages(text, file_path, language_id, importer)
        if analyzed_keys is None:
            return None
        return [
            KeyInDocument(key=ak.key, start=ak.start, end=ak.end, quoted=ak.quoted)
            for ak in analyzed_keys
        ]

    def get_scope_ranges(self, text: str, file_path: Union[str, Path],
                         language_id: Optional[str] = None,
                         importer: Optional[Importer] = None) -> Optional[List[ScopeRange]]:
        """Text ranges belonging to a namespace, one per key usage.

        Usages whose namespace could not be resolved get their placeholder
        namespace. Without any usage, the last `namespace: '...'` object literal
        scopes the rest of the document.
        """
        if not self.supports(file_path, language_id):
            return None

        if importer is None:
            importer = self.create_importer(file_path)
        file_label = Path(file_path).name

        ranges = []
        bindings = discover_accessors(text, file_label, importer)
        combined_map = build_namespace_map(bindings, include_placeholders=True)

        if combined_map:
            usages = discover_usages(text, combined_map, importer, self.namespace_delimiter, file_label)
            for usage in usages:
                if usage.namespace:
                    ranges.append(ScopeRange(start=usage.start, end=usage.end, namespace=usage.namespace))

        if not ranges:
            last_match = None
            for match in NAMESPACE_OBJECT_RE.finditer(text):
                last_match = match
            if last_match is not None:
                ranges.append(ScopeRange(start=last_match.start(), end=len(text), namespace=last_match.group(1)))

        return ranges
