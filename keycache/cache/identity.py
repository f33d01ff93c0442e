"""Principal scoping for per-user cache keys."""

from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import quote

SCOPE_SEPARATOR = "|"


@dataclass(frozen=True)
class Principal:
    """The caller identity supplied by the surrounding session layer.

    ``user_id`` is set for authenticated users; anonymous visitors only carry
    a ``session_id``.
    """

    user_id: Optional[str] = None
    session_id: Optional[str] = None


PrincipalProvider = Callable[[], Optional[Principal]]


def principal_scope(principal: Optional[Principal]) -> Optional[str]:
    """Return the key scope for a principal, or None when there is nothing to scope by."""
    if principal is None:
        return None
    if principal.user_id not in (None, ""):
        return "user:" + quote(str(principal.user_id), safe="")
    if principal.session_id not in (None, ""):
        return "anon:" + quote(str(principal.session_id), safe="")
    return None


def scoped_key(key: str, scope: str) -> str:
    """Derive the per-principal key.

    The scope is percent-encoded and never contains the separator, so the
    first ``|`` splits the key back into (scope, key) unambiguously.
    """
    return f"{scope}{SCOPE_SEPARATOR}{key}"
