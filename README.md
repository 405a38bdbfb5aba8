# netmgmt

A library of building blocks for a network management service.

## What is in it

- **Activity codes** (`netmgmt.codes`): the `Activity` integer enum lists
  everything that can happen in an account (peers added, groups updated, routes
  removed, ...). `Activity.message()` gives a human message and
  `Activity.string_code()` a stable code such as `"peer.user.add"`; unknown
  values give `"UNKNOWN_ACTIVITY"`. `register_activity_map` adds or replaces
  codes at runtime.
- **Events** (`netmgmt.event`): the `Event` dataclass; `Event.copy()` returns a
  copy with its own `meta` dict.
- **Event stores** (`netmgmt.store`, `netmgmt.sqlite_store`): the abstract
  `Store` (`save`, `get`, `close`, usable as a context manager),
  `InMemoryEventStore` (its `get` returns all events of an account and ignores
  offset, limit and order), and `SQLiteStore`, opened with
  `new_sqlite_store(data_dir, encryption_key)`, which keeps events in
  `events.db`. When an event's meta holds both `email` and `name`, they are
  stored encrypted as a deleted user and removed from the meta; reading events
  back puts the decrypted `username` and `email` of deleted target users into
  the meta and fills in `initiator_name` / `initiator_email`.
- **Field encryption** (`netmgmt.crypt`): `generate_key()` returns a base64
  256-bit key; `FieldEncrypt` encrypts strings with AES-GCM (`encrypt` /
  `decrypt`) and still reads the older CBC format (`legacy_encrypt` /
  `legacy_decrypt`). Failures raise `ValueError`.
- **Migration** (`netmgmt.migration`): `migrate(crypt, conn)` creates the
  tables, adds missing `name` and `enc_algo` columns to `deleted_users`, and
  re-encrypts CBC-encrypted rows with GCM, skipping rows it cannot decrypt.
- **Activity manager** (`netmgmt.manager`): `Manager.store_event` saves events
  on background threads; `Manager.wait(timeout)` waits for them. Recording is
  switched off by setting `NB_EVENT_ACTIVITY_LOG_ENABLED` to a false value
  (`0`, `f`, `false`, ...), read by `ActivityConfig.from_env`.
- **Peer update channels** (`netmgmt.updatechannel`): `UpdateChannel` keeps one
  bounded `PeerChannel` (100 messages) per peer. `send_update` drops messages
  when the channel is full; `create_channel` replaces and closes any previous
  channel of the peer. An optional `metrics` object receives timings.
- **Auth bypass paths** (`netmgmt.bypass`): a process-wide set of glob patterns
  where `*` and `?` do not cross `/`. `add_bypass_path` raises
  `BadPatternError` for malformed patterns; `should_bypass(path, handler,
  *args)` calls `handler(*args)` and returns `True` on a match.
- **WSGI middleware** (`netmgmt.middleware`): `logging_middleware` logs each
  request at debug level; `recovery_middleware` turns unhandled exceptions into
  a `500 Internal Server Error` response.
- **JWT handling** (`netmgmt.validator`, `netmgmt.extractor`): `Validator`
  fetches a JSON Web Key Set, checks audience, issuer, signature (RSA, RSA-PSS,
  ECDSA) and time claims, and returns the claims or raises `TokenError`.
  `ClaimsExtractor.to_user_auth` builds a `UserAuth` from claims, reading
  account, domain, last login and invitation claims namespaced under the
  audience URL; `to_groups` reads a group list claim.

## Installation

```
pip install .
```

## Examples

Recording and reading events:

```python
from datetime import datetime, timezone

from netmgmt.codes import Activity
from netmgmt.crypt import generate_key
from netmgmt.event import Event
from netmgmt.sqlite_store import new_sqlite_store

with new_sqlite_store("/tmp", generate_key()) as store:
    store.save(Event(
        timestamp=datetime.now(timezone.utc),
        activity=Activity.PEER_ADDED_BY_USER,
        initiator_id="user_1",
        target_id="peer_1",
        account_id="account_1",
    ))
    for event in store.get("account_1", offset=0, limit=10, descending=True):
        print(event.timestamp, event.activity.message())
```

Delivering updates to a peer:

```python
from netmgmt.updatechannel import UpdateChannel, UpdateMessage

updates = UpdateChannel()
channel = updates.create_channel("peer_1")
updates.send_update("peer_1", UpdateMessage(update={"serial": 1}))
print(channel.get_nowait())
updates.close_channel("peer_1")
```

Skipping authentication for a webhook:

```python
from netmgmt.bypass import add_bypass_path, should_bypass

add_bypass_path("/webhook/*")
should_bypass("/webhook/github", print, "bypassed")
```

Reading user data from validated claims:

```python
from netmgmt.extractor import ClaimsExtractor
from netmgmt.validator import Validator

validator = Validator(
    issuer="https://auth.example.com/",
    audience_list=["https://api.example.com/"],
    keys_location="https://auth.example.com/.well-known/jwks.json",
)
claims = validator.validate_and_parse(raw_jwt)
user_auth = ClaimsExtractor(audience="https://api.example.com/").to_user_auth(claims)
```

## What it does not do

This is a library only. It has no command, runs no HTTP or gRPC server, has
no router and no middleware that authenticates requests itself, and does not
handle personal access tokens or manage accounts, users or peers. It provides
the pieces above for a service to use.

## Tests

```
pip install ".[test]"
pytest
```