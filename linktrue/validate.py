"""
linktrue.validate — username validation.

Rules, checked in this order (first failure wins):

1. non-empty
2. length ≤ `limits.max_username_length` (30 by default)
3. only `a-z`, `0-9` and `_`
4. not a reserved name, and not containing a reserved substring
   (`admin`, `system`, `linktrue`; `link_true`, `link__true` by default)

Pure and deterministic: the same input and config always give the same
answer. Registration and rename share this validator.

Public API
----------
check_username(name, *, config=None) -> Optional[str]
    The verbatim failure message, or None when the name is acceptable.
validate_username(name, *, config=None) -> None
    Raises linktrue.errors.ValidationError on the first failing rule.
is_valid_username(name, *, config=None) -> bool
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from .config import RegistryConfig, get_config
from .errors import (MSG_USERNAME_CHARSET, MSG_USERNAME_EMPTY,
                     MSG_USERNAME_RESERVED, MSG_USERNAME_TOO_LONG,
                     ValidationError)

_CHARSET_RE = re.compile(r"[a-z0-9_]*")


def _first_failure(name: str, cfg: RegistryConfig) -> Optional[Tuple[str, str]]:
    if not isinstance(name, str) or name == "":
        return "USERNAME_EMPTY", MSG_USERNAME_EMPTY
    limit = cfg.limits.max_username_length
    if len(name) > limit:
        return "USERNAME_TOO_LONG", MSG_USERNAME_TOO_LONG.format(limit=limit)
    if not _CHARSET_RE.fullmatch(name):
        return "USERNAME_CHARSET", MSG_USERNAME_CHARSET
    if cfg.reserved.matches(name):
        return "USERNAME_RESERVED", MSG_USERNAME_RESERVED
    return None


def check_username(name: str, *, config: Optional[RegistryConfig] = None) -> Optional[str]:
    failure = _first_failure(name, config or get_config())
    return None if failure is None else failure[1]


def validate_username(name: str, *, config: Optional[RegistryConfig] = None) -> None:
    failure = _first_failure(name, config or get_config())
    if failure is not None:
        reason, message = failure
        raise ValidationError(message, reason=reason, data={"username": name})


def is_valid_username(name: str, *, config: Optional[RegistryConfig] = None) -> bool:
    return _first_failure(name, config or get_config()) is None


__all__ = ["check_username", "validate_username", "is_valid_username"]
