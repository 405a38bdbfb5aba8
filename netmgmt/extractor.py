"""Extraction of user authentication data from JWT claims."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

ACCOUNT_ID_SUFFIX = "wt_account_id"
DOMAIN_ID_SUFFIX = "wt_account_domain"
DOMAIN_CATEGORY_SUFFIX = "wt_account_domain_category"
USER_ID_CLAIM = "sub"
LAST_LOGIN_SUFFIX = "nb_last_login"
INVITED = "nb_invited"

ERR_USER_ID_CLAIM_EMPTY = "user ID claim token value is empty"

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass
class UserAuth:
    """Authentication data of a user making a request."""

    user_id: str = ""
    account_id: str = ""
    domain: str = ""
    domain_category: str = ""
    last_login: datetime | None = None
    invited: bool = False
    is_child: bool = False
    is_pat: bool = False
    groups: list[str] = field(default_factory=list)


def parse_time(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp; return None when empty or invalid."""
    match = _RFC3339.fullmatch(value or "")
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        try:
            tz = timezone(sign * offset)
        except ValueError:
            return None
    micros = int((fraction or "").ljust(6, "0")[:6])
    try:
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micros, tz
        )
    except ValueError:
        return None


def _clean(path: str) -> str:
    rooted = path.startswith("/")
    parts: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not rooted:
                parts.append("..")
            continue
        parts.append(segment)
    joined = "/".join(parts)
    if rooted:
        return "/" + joined
    return joined or "."


def _join(*elements: str) -> str:
    present = [element for element in elements if element]
    return _clean("/".join(present)) if present else ""


def _require_str(value: Any, claim: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"claim {claim!r} is not a string")
    return value


class ClaimsExtractor:
    """Builds a UserAuth from the claims of a validated token."""

    def __init__(self, audience: str = "", user_id_claim: str = "") -> None:
        self.audience = audience
        self.user_id_claim = user_id_claim or USER_ID_CLAIM

    def audience_claim(self, claim_name: str) -> str:
        """Return the name of a claim namespaced under the audience URL."""
        fallback = self.audience + claim_name
        if _BAD_ESCAPE.search(self.audience) or self.audience.startswith(":"):
            return fallback
        try:
            parts = urlsplit(self.audience)
        except ValueError:
            return fallback
        base = parts.path
        if base.startswith("/"):
            path = _join(base, claim_name)
        else:
            path = _join("/" + base, claim_name)[1:]
        if claim_name.endswith("/") and not path.endswith("/"):
            path += "/"
        if parts.netloc and path and not path.startswith("/"):
            path = "/" + path
        return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))

    def to_user_auth(self, claims: Mapping[str, Any]) -> UserAuth:
        """Build a UserAuth from the token claims.

        Raises ValueError when the user id claim is missing or not a string.
        """
        user_id = claims.get(self.user_id_claim)
        if not isinstance(user_id, str):
            raise ValueError(ERR_USER_ID_CLAIM_EMPTY)
        user_auth = UserAuth(user_id=user_id)

        key = self.audience_claim(ACCOUNT_ID_SUFFIX)
        if key in claims:
            user_auth.account_id = _require_str(claims[key], key)
        key = self.audience_claim(DOMAIN_ID_SUFFIX)
        if key in claims:
            user_auth.domain = _require_str(claims[key], key)
        key = self.audience_claim(DOMAIN_CATEGORY_SUFFIX)
        if key in claims:
            user_auth.domain_category = _require_str(claims[key], key)
        key = self.audience_claim(LAST_LOGIN_SUFFIX)
        if key in claims:
            user_auth.last_login = parse_time(_require_str(claims[key], key))
        key = self.audience_claim(INVITED)
        if isinstance(claims.get(key), bool):
            user_auth.invited = claims[key]

        return user_auth

    def to_groups(self, claims: Mapping[str, Any], claim_name: str) -> list[str]:
        """Return the string groups listed under ``claim_name``."""
        if claim_name not in claims:
            logger.debug("JWT claim %r is not a string array", claim_name)
            return []
        claim = claims[claim_name]
        if not isinstance(claim, (list, tuple)):
            return []
        groups = []
        for group in claim:
            if isinstance(group, str):
                groups.append(group)
            else:
                logger.debug(
                    "JWT claim %r contains a non-string group (type: %s): %r",
                    claim_name,
                    type(group).__name__,
                    group,
                )
        return groups