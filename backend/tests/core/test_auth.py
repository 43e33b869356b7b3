"""Bearer token verification."""

from datetime import timedelta

import pytest

from app.auth import create_access_token, principal_from_token
from app.core.enums import RoleName
from app.core.exceptions import UnauthorizedException


def test_valid_token_yields_principal():
    token = create_access_token({"sub": "01HF4G12ABCDEF3456789XYZAB", "role": "teacher"})
    principal = principal_from_token(token)
    assert principal.id == "01HF4G12ABCDEF3456789XYZAB"
    assert principal.role == RoleName.TEACHER
    assert principal.is_teacher and not principal.is_admin


def test_role_claim_is_case_insensitive():
    token = create_access_token({"sub": "u1", "role": "ADMIN"})
    assert principal_from_token(token).is_admin


@pytest.mark.parametrize(
    "token",
    [
        None,
        "",
        "not-a-jwt",
    ],
)
def test_missing_or_malformed_token_is_unauthorized(token):
    with pytest.raises(UnauthorizedException):
        principal_from_token(token)


def test_expired_token_is_unauthorized():
    token = create_access_token({"sub": "u1", "role": "student"}, timedelta(seconds=-5))
    with pytest.raises(UnauthorizedException):
        principal_from_token(token)


def test_token_without_subject_or_with_unknown_role_is_unauthorized():
    with pytest.raises(UnauthorizedException):
        principal_from_token(create_access_token({"role": "student"}))
    with pytest.raises(UnauthorizedException):
        principal_from_token(create_access_token({"sub": "u1", "role": "janitor"}))
