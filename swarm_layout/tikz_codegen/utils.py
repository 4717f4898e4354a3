import math
import re
from typing import Dict, Tuple

_HEX_COLOR_RE = re.compile(r'^#?([0-9a-fA-F]{6})$')
_NAMED_COLOR_RE = re.compile(r'^[A-Za-z]+(![0-9]{1,3}(![A-Za-z]+)?)?$')

_LATEX_SPECIALS = {
    '\\': r'\textbackslash{}',
    '&': r'\&',
    '%': r'\%',
    '$': r'\$',
    '#': r'\#',
    '_': r'\_',
    '{': r'\{',
    '}': r'\}',
    '~': r'\textasciitilde{}',
    '^': r'\textasciicircum{}',
}


def latex_escape(text: str) -> str:
    """Escape ``text`` for use inside a TikZ node."""
    return ''.join(_LATEX_SPECIALS.get(c, c) for c in str(text))


def format_float(value: float) -> str:
    if math.isnan(value) or math.isinf(value):
        raise ValueError('Cannot format non-finite float for TikZ output')
    formatted = f'{value:.4f}'.rstrip('0').rstrip('.')
    if formatted in ('', '-0'):
        return '0'
    return formatted


class ColorRegistry:
    """Turns opaque node colors into TikZ color names.

    Hex strings get a ``\\definecolor``; plain xcolor names pass through;
    anything else falls back to ``default``.
    """

    def __init__(self, default: str = 'gray') -> None:
        self.default = default
        self._defined: Dict[str, str] = {}

    def resolve(self, color: object) -> str:
        if not isinstance(color, str):
            return self.default
        match = _HEX_COLOR_RE.match(color.strip())
        if match:
            code = match.group(1).upper()
            return self._defined.setdefault(code, f'swarm{len(self._defined)}')
        if _NAMED_COLOR_RE.match(color.strip()):
            return color.strip()
        return self.default

    def definitions(self) -> Tuple[str, ...]:
        return tuple(
            f'\\definecolor{{{name}}}{{HTML}}{{{code}}}' for code, name in self._defined.items()
        )
