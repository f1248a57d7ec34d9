# Path: kpi_dash/kpi_engine/reference_resolver.py
"""
Reference Resolver

Finds the KPI references embedded in formula text ({{ref}} or [ref]) and
maps each one to a KPI id of the brand catalog.

Resolution order:
1. Exact id match
2. Case-insensitive, whitespace-trimmed name match (first catalog entry wins)
3. None - callers substitute 0 for that occurrence
"""

import re
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from constants import REFERENCE_TOKEN_PATTERN

from .kpi_models import Kpi, normalize_text


_REFERENCE_RE = re.compile(REFERENCE_TOKEN_PATTERN)


def _token_text(match: 're.Match') -> str:
    return match.group(1) if match.group(1) is not None else match.group(2)


def extract_reference_tokens(expr: str) -> List[str]:
    """
    List the trimmed reference tokens of a formula in order of appearance.

    Duplicates are kept; every occurrence is substituted independently.

    Example:
        extract_reference_tokens('{{k1}} / [Satış Adedi] + {{k1}}')
        # ['k1', 'Satış Adedi', 'k1']
    """
    return [_token_text(m).strip() for m in _REFERENCE_RE.finditer(expr or '')]


def substitute_references(expr: str, replace: Callable[[str], str]) -> str:
    """
    Replace every reference token with replace(token).

    Args:
        expr: Formula text
        replace: Called with the trimmed inner text of each token

    Returns:
        Formula text with all tokens replaced
    """
    return _REFERENCE_RE.sub(lambda m: replace(_token_text(m).strip()), expr or '')


def to_decimal_string(value: float) -> str:
    """
    Render a number as plain decimal text the evaluator can tokenize.

    Exponent notation (1e-07, 1e+21) is expanded. Negative values keep
    their sign, which the evaluator rejects as a leading term.
    """
    if value == 0:
        return '0'
    text = repr(float(value))
    if 'e' in text or 'E' in text:
        text = format(Decimal(text), 'f')
    return text


class ReferenceResolver:
    """
    Resolves formula tokens against one brand catalog.

    Example:
        resolver = ReferenceResolver(snapshot.kpis)
        resolver.resolve('k1')             # 'k1'
        resolver.resolve(' satış adedi ')  # 'k1'
        resolver.resolve('unknown')        # None
    """

    def __init__(self, catalog: Iterable[Kpi]):
        self._ids: Dict[str, str] = {}
        self._names: Dict[str, str] = {}
        for kpi in catalog:
            self._ids.setdefault(kpi.id, kpi.id)
            self._names.setdefault(normalize_text(kpi.name), kpi.id)

    def resolve(self, token: str) -> Optional[str]:
        """
        Map a reference token to a KPI id.

        Args:
            token: Inner text of {{...}} or [...]

        Returns:
            KPI id, or None when nothing matches
        """
        text = str(token or '').strip()
        if not text:
            return None
        if text in self._ids:
            return self._ids[text]
        return self._names.get(normalize_text(text))


def resolve(token: str, catalog: Iterable[Kpi]) -> Optional[str]:
    """Resolve one token against a catalog (see ReferenceResolver)."""
    return ReferenceResolver(catalog).resolve(token)


__all__ = [
    'extract_reference_tokens',
    'substitute_references',
    'to_decimal_string',
    'ReferenceResolver',
    'resolve',
]
