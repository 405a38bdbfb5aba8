from datetime import datetime, timedelta, timezone

import pytest

from netmgmt.extractor import (
    ACCOUNT_ID_SUFFIX,
    DOMAIN_CATEGORY_SUFFIX,
    DOMAIN_ID_SUFFIX,
    INVITED,
    LAST_LOGIN_SUFFIX,
    ClaimsExtractor,
    UserAuth,
    parse_time,
)


def test_default_user_id_claim():
    extractor = ClaimsExtractor()
    assert extractor.to_user_auth({"sub": "user-1"}) == UserAuth(user_id="user-1")


def test_custom_user_id_claim():
    extractor = ClaimsExtractor(user_id_claim="oid")
    assert extractor.to_user_auth({"oid": "user-2", "sub": "other"}).user_id == "user-2"


@pytest.mark.parametrize("claims", [{}, {"sub": 42}, {"sub": None}])
def test_missing_user_id_raises(claims):
    with pytest.raises(ValueError, match="user ID claim token value is empty"):
        ClaimsExtractor().to_user_auth(claims)


def test_empty_audience_claim_is_bare_suffix():
    assert ClaimsExtractor().audience_claim(ACCOUNT_ID_SUFFIX) == ACCOUNT_ID_SUFFIX


@pytest.mark.parametrize("audience", ["https://example.com", "https://example.com/"])
def test_audience_claim_joins_url(audience):
    extractor = ClaimsExtractor(audience=audience)
    assert extractor.audience_claim(ACCOUNT_ID_SUFFIX) == "https://example.com/wt_account_id"


def test_to_user_auth_reads_namespaced_claims():
    extractor = ClaimsExtractor(audience="https://example.com/")
    claims = {
        "sub": "user-1",
        extractor.audience_claim(ACCOUNT_ID_SUFFIX): "account-1",
        extractor.audience_claim(DOMAIN_ID_SUFFIX): "example.com",
        extractor.audience_claim(DOMAIN_CATEGORY_SUFFIX): "private",
        extractor.audience_claim(LAST_LOGIN_SUFFIX): "2023-05-01T10:20:30Z",
        extractor.audience_claim(INVITED): True,
    }
    user_auth = extractor.to_user_auth(claims)
    assert user_auth.account_id == "account-1"
    assert user_auth.domain == "example.com"
    assert user_auth.domain_category == "private"
    assert user_auth.last_login == datetime(2023, 5, 1, 10, 20, 30, tzinfo=timezone.utc)
    assert user_auth.invited is True


def test_non_bool_invited_is_ignored():
    extractor = ClaimsExtractor()
    user_auth = extractor.to_user_auth({"sub": "u", extractor.audience_claim(INVITED): "yes"})
    assert user_auth.invited is False


def test_non_string_account_claim_raises():
    extractor = ClaimsExtractor()
    with pytest.raises(TypeError):
        extractor.to_user_auth({"sub": "u", extractor.audience_claim(ACCOUNT_ID_SUFFIX): 7})


@pytest.mark.parametrize("value", ["", "garbage", "2023-13-01T00:00:00Z", "2023-05-01 10:20:30Z"])
def test_parse_time_invalid(value):
    assert parse_time(value) is None


def test_parse_time_with_offset_and_fraction():
    parsed = parse_time("2023-05-01T10:20:30.123456789+02:00")
    assert parsed == datetime(
        2023, 5, 1, 10, 20, 30, 123456, tzinfo=timezone(timedelta(hours=2))
    )


def test_to_groups_keeps_strings_only():
    extractor = ClaimsExtractor()
    claims = {"groups": ["admins", 3, "devs", None]}
    assert extractor.to_groups(claims, "groups") == ["admins", "devs"]


@pytest.mark.parametrize("claims", [{}, {"groups": "admins"}, {"groups": 5}])
def test_to_groups_without_list(claims):
    assert ClaimsExtractor().to_groups(claims, "groups") == []