"""Resolve import strings to module text for cross-file constant folding."""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Tried in order after the bare path; mirrors what bundlers try for `import './x'`
MODULE_SUFFIXES = ['.ts', '.tsx', '.js', '.jsx', '/index.ts', '/index.tsx', '/index.js', '/index.jsx']


class ModuleResolver:
    """
    Turns the import strings of one project into files on disk.
    Only project sources are resolved; bare package imports (node_modules) are not.
    """

    def __init__(self, project_root: Union[str, Path], aliases: Dict[str, str] = None):
        """
        Args:
            project_root: Directory `@/` imports are relative to
            aliases: Extra prefix -> directory mappings, e.g. {"~": "app"}
                     (tsconfig style "~/*" keys are accepted too)
        """
        self.root = Path(project_root).resolve()
        self.aliases = {}
        for alias, target in (aliases or {}).items():
            self.aliases[alias.replace('/*', '')] = target.replace('/*', '')

    def resolve_path(self, current_file: Union[str, Path], import_string: str) -> Optional[Path]:
        """
        Determines the file an import string refers to.

        Args:
            current_file: The file containing the import.
            import_string: The string used in the import statement (e.g., './constants', '@/lib/nav').
        """
        if not import_string:
            return None

        current_file = Path(current_file)

        # 1. Relative Imports
        if import_string.startswith('.'):
            return self._find_module_file((current_file.parent / import_string).resolve())

        # 2. Project root alias: try root/x then root/src/x
        if import_string.startswith('@/'):
            remainder = import_string[2:]
            for base in (self.root, self.root / 'src'):
                found = self._find_module_file(base / remainder)
                if found is not None:
                    return found
            return None

        # 3. Configured aliases
        for alias, target in self.aliases.items():
            if import_string == alias or import_string.startswith(alias + '/'):
                remainder = import_string[len(alias):].lstrip('/')
                return self._find_module_file(self.root / target / remainder)

        # Bare specifiers point into node_modules, which is never read
        return None

    def read_module(self, current_file: Union[str, Path], import_string: str) -> Optional[str]:
        path = self.resolve_path(current_file, import_string)
        if path is None:
            logger.debug("Unresolved import %r from %s", import_string, current_file)
            return None
        return _read_text(path)

    def create_importer(self, current_file: Union[str, Path],
                        cached: bool = False) -> Callable[[str], Optional[str]]:
        """Importer callable for the analyzer, bound to the importing file.

        Args:
            current_file: The file being analyzed
            cached: Memoize module text per import string for this importer
        """
        def importer(import_string: str) -> Optional[str]:
            return self.read_module(current_file, import_string)

        if cached:
            return lru_cache(maxsize=None)(importer)
        return importer

    @staticmethod
    def _find_module_file(path: Path) -> Optional[Path]:
        """
        Looks for the module file:
        1. Exact match
        2. Extensions (.ts, .tsx, .js, .jsx)
        3. Directory index files
        """
        candidates: List[Path] = [path]
        candidates.extend(Path(str(path) + suffix) for suffix in MODULE_SUFFIXES)

        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding='utf-8')
    except (UnicodeDecodeError, OSError):
        # Unreadable modules fold to dynamic like missing ones
        logger.debug("Could not read module %s", path)
        return None
