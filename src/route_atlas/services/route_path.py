import re
from typing import Optional, Tuple

ROOT = '/'

_PATH_KEY = re.compile(r'\{(\w+)(?::[^}]*)?\}|:(\w+)')


def normalize(path: Optional[str]) -> str:
    """Leading slash, no repeated slashes, no trailing slash (except root)."""
    if not path or not path.strip():
        return ROOT
    path = re.sub(r'/{2,}', '/', ROOT + path.strip())
    if len(path) > 1 and path.endswith('/'):
        path = path.rstrip('/') or ROOT
    return path


def join(prefix: Optional[str], pattern: Optional[str]) -> str:
    parts = [part.strip() for part in (prefix, pattern) if part is not None and part.strip()]
    return normalize('/'.join(parts))


def path_keys(pattern: str) -> Tuple[str, ...]:
    """``/users/{id}/posts/:post`` -> ``('id', 'post')``."""
    keys = []
    for match in _PATH_KEY.finditer(pattern):
        keys.append(match.group(1) or match.group(2))
    return tuple(keys)
