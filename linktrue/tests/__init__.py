# -*- coding: utf-8 -*-
"""
linktrue.tests package bootstrap.

Registers named Hypothesis profiles (dev/ci/fast/stress) and selects one:
HYPOTHESIS_PROFILE wins, otherwise "ci" when the CI env var is truthy and
"dev" locally.

Usage in tests:
    from linktrue.tests import given, st, usernames

Environment knobs:
- HYPOTHESIS_PROFILE=dev|ci|fast|stress
- CI=true (auto-pick the 'ci' profile if HYPOTHESIS_PROFILE not set)
"""
from __future__ import annotations

import os
from typing import Final, Tuple

from hypothesis import HealthCheck, Verbosity, given, settings
from hypothesis import strategies as st

# ---- profile registry --------------------------------------------------------


def _hc(*items: HealthCheck) -> Tuple[HealthCheck, ...]:
    return items


settings.register_profile(
    "dev",
    settings(
        max_examples=100,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow, HealthCheck.filter_too_much),
        verbosity=Verbosity.normal,
        derandomize=False,
    ),
)

settings.register_profile(
    "ci",
    settings(
        max_examples=200,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow, HealthCheck.filter_too_much),
        verbosity=Verbosity.verbose,
        derandomize=True,
    ),
)

settings.register_profile(
    "fast",
    settings(
        max_examples=25,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow),
        verbosity=Verbosity.normal,
        derandomize=False,
    ),
)

settings.register_profile(
    "stress",
    settings(
        max_examples=1000,
        deadline=None,
        suppress_health_check=_hc(
            HealthCheck.too_slow,
            HealthCheck.filter_too_much,
            HealthCheck.data_too_large,
        ),
        verbosity=Verbosity.normal,
        derandomize=True,
    ),
)


def _env_truthy(name: str) -> bool:
    v = os.getenv(name)
    return (v or "").lower() not in ("", "0", "false", "no", "off")


_active: Final[str] = os.getenv("HYPOTHESIS_PROFILE") or ("ci" if _env_truthy("CI") else "dev")
settings.load_profile(_active)

# ---- shared strategies -------------------------------------------------------


def usernames(max_size: int = 12):
    """Candidate usernames drawn from the accepted alphabet (may still be reserved)."""
    return st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_", min_size=1, max_size=max_size)


def link_keys(max_size: int = 6):
    return st.text(alphabet="abcdefgh", min_size=1, max_size=max_size)


__all__ = ["st", "given", "usernames", "link_keys"]
