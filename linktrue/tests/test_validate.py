import re

import pytest

from linktrue.config import load_config
from linktrue.errors import (MSG_USERNAME_CHARSET, MSG_USERNAME_EMPTY,
                             MSG_USERNAME_RESERVED, ValidationError)
from linktrue.tests import given, st, usernames
from linktrue.validate import check_username, is_valid_username, validate_username


@pytest.mark.parametrize("name", ["admin", "system", "linktrue", "link_true", "link__true", "my_link_true_page"])
def test_reserved_names_rejected(name):
    with pytest.raises(ValidationError, match=re.escape(MSG_USERNAME_RESERVED)) as ei:
        validate_username(name)
    assert ei.value.reason == "USERNAME_RESERVED"


def test_reserved_exact_names_only_match_whole_name():
    # "admin" and friends are exact names, not substrings
    assert is_valid_username("admin2")
    assert is_valid_username("my_system")
    assert is_valid_username("linktrue_fan") is True


def test_empty_username():
    with pytest.raises(ValidationError, match=MSG_USERNAME_EMPTY):
        validate_username("")


def test_length_limit_boundary():
    assert is_valid_username("a" * 30)
    with pytest.raises(ValidationError, match=re.escape("Username max length is 30 characters!")) as ei:
        validate_username("a" * 31)
    assert ei.value.reason == "USERNAME_TOO_LONG"


@pytest.mark.parametrize("name", ["#", "|", "A", "Z", "-", "user@name", "A.", "ab cd", "é"])
def test_charset_rejected(name):
    with pytest.raises(ValidationError, match=re.escape(MSG_USERNAME_CHARSET)):
        validate_username(name)


def test_first_failure_wins():
    # too long *and* bad charset → length reported first
    assert check_username("A" * 31) == "Username max length is 30 characters!"
    # bad charset *and* reserved-looking → charset first
    assert check_username("ADMIN") == MSG_USERNAME_CHARSET


def test_check_username_returns_none_for_valid():
    assert check_username("valid_username1") is None
    assert check_username("0") is None
    assert check_username("_") is None


def test_limits_follow_config():
    cfg = load_config(env={"LINKTRUE_MAX_USERNAME_LENGTH": "5", "LINKTRUE_RESERVED_NAMES": "root"})
    assert check_username("abcdef", config=cfg) == "Username max length is 5 characters!"
    assert check_username("root", config=cfg) == MSG_USERNAME_RESERVED
    assert is_valid_username("admin", config=cfg)


def test_error_carries_username():
    with pytest.raises(ValidationError) as ei:
        validate_username("Bad")
    assert ei.value.data == {"username": "Bad"}
    assert ei.value.code == "VALIDATION"


@given(usernames(max_size=30))
def test_accepted_alphabet_is_valid_unless_reserved(name):
    reserved = name in ("admin", "system", "linktrue") or "link_true" in name or "link__true" in name
    assert is_valid_username(name) is (not reserved)


@given(st.text(min_size=1, max_size=30))
def test_validator_is_deterministic(name):
    assert check_username(name) == check_username(name)
    assert is_valid_username(name) is (check_username(name) is None)
