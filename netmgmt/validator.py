"""Validation of JWTs against keys published as a JSON Web Key Set."""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import logging
import re
import threading
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlsplit

import jwt
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, rsa

logger = logging.getLogger(__name__)

P256 = "P-256"
P384 = "P-384"
P521 = "P-521"

ERR_KEY_NOT_FOUND = "unable to find appropriate key"
ERR_INVALID_AUDIENCE = "invalid audience"
ERR_INVALID_ISSUER = "invalid issuer"
ERR_TOKEN_EMPTY = "required authorization token not found"
ERR_TOKEN_PARSING = "token could not be parsed"

_CURVES = {P256: ec.SECP256R1, P384: ec.SECP384R1, P521: ec.SECP521R1}
_SUPPORTED_ALGORITHMS = frozenset(
    {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512", "ES256", "ES384", "ES512"}
)
_REFRESH_MARGIN = timedelta(seconds=5)
_HTTP_TIMEOUT = 30.0
_RAW_URL_B64 = re.compile(r"[A-Za-z0-9_-]*")
_DECIMAL = re.compile(r"[+-]?[0-9]+")


class TokenError(Exception):
    """Raised when a token is missing, malformed or fails validation."""


class _KeyNotFoundError(TokenError):
    pass


@dataclass
class JSONWebKey:
    """A single JSON Web Key."""

    kty: str = ""
    kid: str = ""
    use: str = ""
    n: str = ""
    e: str = ""
    crv: str = ""
    x: str = ""
    y: str = ""
    x5c: list[str] = field(default_factory=list)

    @classmethod
    def _from_json(cls, data: Any) -> JSONWebKey:
        if not isinstance(data, dict):
            raise ValueError("JSON web key is not an object")
        values: dict[str, Any] = {}
        for name in ("kty", "kid", "use", "n", "e", "crv", "x", "y"):
            value = data.get(name)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"JSON web key field {name!r} is not a string")
            values[name] = value
        x5c = data.get("x5c")
        if x5c is not None:
            if not isinstance(x5c, list) or not all(isinstance(c, str) for c in x5c):
                raise ValueError("JSON web key field 'x5c' is not a string array")
            values["x5c"] = list(x5c)
        return cls(**values)


@dataclass
class Jwks:
    """A set of JSON Web Keys and the time until which it may be cached."""

    keys: list[JSONWebKey] = field(default_factory=list)
    expires_in_time: datetime | None = None

    def still_valid(self) -> bool:
        """Return whether the keys remain usable for a few more seconds."""
        if self.expires_in_time is None:
            return False
        return datetime.now(timezone.utc) + _REFRESH_MARGIN < self.expires_in_time


def get_max_age_from_cache_header(cache_control: str) -> int:
    """Return the max-age directive of a Cache-Control header, or 0."""
    for directive in cache_control.split(","):
        directive = directive.strip()
        if directive.startswith("max-age="):
            value = directive[len("max-age="):]
            return int(value) if _DECIMAL.fullmatch(value) else 0
    return 0


def get_pem_keys(keys_location: str) -> Jwks:
    """Download the key set from ``keys_location``.

    Raises ValueError for an unusable location or payload and OSError
    when the request fails.
    """
    if not keys_location:
        raise ValueError("empty url")
    if not urlsplit(keys_location).scheme and not keys_location.startswith("/"):
        raise ValueError(f"invalid URI for request: {keys_location!r}")

    try:
        response = urllib.request.urlopen(keys_location, timeout=_HTTP_TIMEOUT)
    except urllib.error.HTTPError as err:
        response = err
    with response:
        body = response.read()
        cache_control = response.headers.get("Cache-Control", "")

    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("JSON web key set is not an object")
    keys = data.get("keys") or []
    if not isinstance(keys, list):
        raise ValueError("JSON web key set field 'keys' is not an array")

    expires_in = get_max_age_from_cache_header(cache_control)
    return Jwks(
        keys=[JSONWebKey._from_json(key) for key in keys],
        expires_in_time=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )


def _raw_url_decode(value: str) -> bytes:
    if not _RAW_URL_B64.fullmatch(value) or len(value) % 4 == 1:
        raise ValueError(f"illegal base64 data: {value!r}")
    try:
        return base64.b64decode(value + "=" * (-len(value) % 4), altchars=b"-_", validate=True)
    except binascii.Error as err:
        raise ValueError(f"illegal base64 data: {err}") from None


def _rsa_key_from_certificate(encoded: str) -> rsa.RSAPublicKey:
    try:
        der = base64.b64decode("".join(encoded.split()), validate=True)
    except binascii.Error as err:
        raise ValueError(f"invalid certificate encoding: {err}") from None
    certificate = x509.load_der_x509_certificate(der)
    public_key = certificate.public_key()
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise ValueError("Key is not a valid RSA public key")
    return public_key


def get_public_key_from_rsa(jwk: JSONWebKey) -> rsa.RSAPublicKey:
    """Build an RSA public key from the modulus and exponent of ``jwk``."""
    exponent = int.from_bytes(_raw_url_decode(jwk.e), "big")
    modulus = int.from_bytes(_raw_url_decode(jwk.n), "big")
    return rsa.RSAPublicNumbers(exponent, modulus).public_key()


def get_public_key_from_ecdsa(jwk: JSONWebKey) -> ec.EllipticCurvePublicKey:
    """Build an elliptic-curve public key from the coordinates of ``jwk``."""
    if not jwk.x or not jwk.y or not jwk.crv:
        raise ValueError("ecdsa key incomplete")
    x_coordinate = int.from_bytes(_raw_url_decode(jwk.x), "big")
    y_coordinate = int.from_bytes(_raw_url_decode(jwk.y), "big")
    curve = _CURVES.get(jwk.crv)
    if curve is None:
        raise ValueError(f"unsupported elliptic curve {jwk.crv!r}")
    return ec.EllipticCurvePublicNumbers(x_coordinate, y_coordinate, curve()).public_key()


def get_public_key(header: dict[str, Any], jwks: Jwks) -> Any:
    """Return the public key of ``jwks`` matching the token header's kid.

    Raises TokenError when no key matches.
    """
    kid = header.get("kid")
    for key in jwks.keys:
        if kid != key.kid:
            continue
        if key.x5c:
            return _rsa_key_from_certificate(key.x5c[0])
        if key.kty == "RSA":
            return get_public_key_from_rsa(key)
        if key.kty == "EC":
            return get_public_key_from_ecdsa(key)
    raise _KeyNotFoundError(ERR_KEY_NOT_FOUND)


def _verify_audience(claims: dict[str, Any], expected: str) -> bool:
    aud = claims.get("aud")
    if isinstance(aud, str):
        values = [aud]
    elif isinstance(aud, list):
        if not all(isinstance(value, str) for value in aud):
            return False
        values = aud
    else:
        values = []
    if not "".join(values):
        return True
    return any(hmac.compare_digest(value.encode(), expected.encode()) for value in values)


def _verify_issuer(claims: dict[str, Any], expected: str) -> bool:
    issuer = claims.get("iss")
    if not isinstance(issuer, str) or not issuer:
        return True
    return hmac.compare_digest(issuer.encode(), expected.encode())


def _numeric(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _validate_times(claims: dict[str, Any]) -> None:
    now = int(time.time())
    errors = []
    expires = _numeric(claims.get("exp"))
    if expires and now > expires:
        errors.append("Token is expired")
    issued = _numeric(claims.get("iat"))
    if issued and now < issued:
        errors.append("Token used before issued")
    not_before = _numeric(claims.get("nbf"))
    if not_before and now < not_before:
        errors.append("Token is not valid yet")
    if errors:
        raise TokenError(errors[-1])


class Validator:
    """Validates JWTs against an issuer, audiences and a remote key set."""

    def __init__(
        self,
        issuer: str,
        audience_list: list[str],
        keys_location: str,
        idp_signkey_refresh_enabled: bool = False,
    ) -> None:
        self.issuer = issuer
        self.audience_list = list(audience_list)
        self.keys_location = keys_location
        self.idp_signkey_refresh_enabled = idp_signkey_refresh_enabled
        self._lock = threading.Lock()
        try:
            self.keys = get_pem_keys(keys_location)
        except (ValueError, OSError) as err:
            logger.error("could not get keys from location %s: %s", keys_location, err)
            self.keys = Jwks()

    def _refresh_keys(self) -> None:
        with self._lock:
            if self.keys.still_valid():
                return
            try:
                refreshed = get_pem_keys(self.keys_location)
            except (ValueError, OSError) as err:
                logger.debug("cannot get JSONWebKey: %s, falling back to old keys", err)
                refreshed = self.keys
            logger.debug(
                "keys refreshed, new UTC expiration time: %s", refreshed.expires_in_time
            )
            self.keys = refreshed

    def _key_for(self, header: dict[str, Any], claims: dict[str, Any]) -> Any:
        if not any(_verify_audience(claims, audience) for audience in self.audience_list):
            raise TokenError(ERR_INVALID_AUDIENCE)
        if not _verify_issuer(claims, self.issuer):
            raise TokenError(ERR_INVALID_ISSUER)

        if self.idp_signkey_refresh_enabled and not self.keys.still_valid():
            self._refresh_keys()

        try:
            return get_public_key(header, self.keys)
        except (ValueError, UnsupportedAlgorithm, TokenError) as err:
            if isinstance(err, _KeyNotFoundError) and not self.idp_signkey_refresh_enabled:
                logger.error(
                    "getPublicKey error: %s. You can enable key refresh by setting "
                    "HttpServerConfig.IdpSignKeyRefreshEnabled to true in your "
                    "management.json file and restart the service",
                    err,
                )
            else:
                logger.error("getPublicKey error: %s", err)
            raise

    def _parse(self, token: str) -> dict[str, Any]:
        jws = jwt.PyJWS()
        unverified = jws.decode_complete(token, options={"verify_signature": False})
        header = unverified["header"]
        claims = json.loads(unverified["payload"])
        if not isinstance(claims, dict):
            raise ValueError("token claims are not an object")

        algorithm = header.get("alg")
        if algorithm not in _SUPPORTED_ALGORITHMS:
            raise TokenError("signing method (alg) is unavailable.")

        key = self._key_for(header, claims)
        jws.decode(token, key=key, algorithms=[algorithm])
        _validate_times(claims)
        return claims

    def validate_and_parse(self, token: str) -> dict[str, Any]:
        """Validate ``token`` and return its claims.

        Raises TokenError when the token is empty or does not validate.
        """
        if not token:
            logger.debug("  Error: No credentials found (CredentialsOptional=false)")
            raise TokenError(ERR_TOKEN_EMPTY)
        try:
            return self._parse(token)
        except (TokenError, jwt.PyJWTError, ValueError, UnsupportedAlgorithm) as err:
            error = TokenError(f"{ERR_TOKEN_PARSING}: {err}")
            logger.error("%s", error)
            raise error from err