"""Activity identifiers and their human-readable and machine codes."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass

UNKNOWN_ACTIVITY = "UNKNOWN_ACTIVITY"


@dataclass(frozen=True)
class Code:
    """Message and string code describing an activity."""

    message: str
    code: str


class Activity(enum.IntEnum):
    """Activity that triggered an event.

    Existing values must never change: they are persisted.
    """

    PEER_ADDED_BY_USER = 0
    PEER_ADDED_WITH_SETUP_KEY = 1
    USER_JOINED = 2
    USER_INVITED = 3
    ACCOUNT_CREATED = 4
    PEER_REMOVED_BY_USER = 5
    RULE_ADDED = 6
    RULE_UPDATED = 7
    RULE_REMOVED = 8
    POLICY_ADDED = 9
    POLICY_UPDATED = 10
    POLICY_REMOVED = 11
    SETUP_KEY_CREATED = 12
    SETUP_KEY_UPDATED = 13
    SETUP_KEY_REVOKED = 14
    SETUP_KEY_OVERUSED = 15
    GROUP_CREATED = 16
    GROUP_UPDATED = 17
    GROUP_ADDED_TO_PEER = 18
    GROUP_REMOVED_FROM_PEER = 19
    GROUP_ADDED_TO_USER = 20
    GROUP_REMOVED_FROM_USER = 21
    USER_ROLE_UPDATED = 22
    GROUP_ADDED_TO_SETUP_KEY = 23
    GROUP_REMOVED_FROM_SETUP_KEY = 24
    GROUP_ADDED_TO_DISABLED_MANAGEMENT_GROUPS = 25
    GROUP_REMOVED_FROM_DISABLED_MANAGEMENT_GROUPS = 26
    ROUTE_CREATED = 27
    ROUTE_REMOVED = 28
    ROUTE_UPDATED = 29
    PEER_SSH_ENABLED = 30
    PEER_SSH_DISABLED = 31
    PEER_RENAMED = 32
    PEER_LOGIN_EXPIRATION_ENABLED = 33
    PEER_LOGIN_EXPIRATION_DISABLED = 34
    NAMESERVER_GROUP_CREATED = 35
    NAMESERVER_GROUP_DELETED = 36
    NAMESERVER_GROUP_UPDATED = 37
    ACCOUNT_PEER_LOGIN_EXPIRATION_ENABLED = 38
    ACCOUNT_PEER_LOGIN_EXPIRATION_DISABLED = 39
    ACCOUNT_PEER_LOGIN_EXPIRATION_DURATION_UPDATED = 40
    PERSONAL_ACCESS_TOKEN_CREATED = 41
    PERSONAL_ACCESS_TOKEN_DELETED = 42
    SERVICE_USER_CREATED = 43
    SERVICE_USER_DELETED = 44
    USER_BLOCKED = 45
    USER_UNBLOCKED = 46
    USER_DELETED = 47
    GROUP_DELETED = 48
    USER_LOGGED_IN_PEER = 49
    PEER_LOGIN_EXPIRED = 50
    DASHBOARD_LOGIN = 51
    INTEGRATION_CREATED = 52
    INTEGRATION_UPDATED = 53
    INTEGRATION_DELETED = 54
    ACCOUNT_PEER_APPROVAL_ENABLED = 55
    ACCOUNT_PEER_APPROVAL_DISABLED = 56
    PEER_APPROVED = 57
    PEER_APPROVAL_REVOKED = 58
    TRANSFERRED_OWNER_ROLE = 59
    POSTURE_CHECK_CREATED = 60
    POSTURE_CHECK_UPDATED = 61
    POSTURE_CHECK_DELETED = 62
    PEER_INACTIVITY_EXPIRATION_ENABLED = 63
    PEER_INACTIVITY_EXPIRATION_DISABLED = 64
    ACCOUNT_PEER_INACTIVITY_EXPIRATION_ENABLED = 65
    ACCOUNT_PEER_INACTIVITY_EXPIRATION_DISABLED = 66
    ACCOUNT_PEER_INACTIVITY_EXPIRATION_DURATION_UPDATED = 67
    SETUP_KEY_DELETED = 68
    USER_GROUP_PROPAGATION_ENABLED = 69
    USER_GROUP_PROPAGATION_DISABLED = 70
    ACCOUNT_ROUTING_PEER_DNS_RESOLUTION_ENABLED = 71
    ACCOUNT_ROUTING_PEER_DNS_RESOLUTION_DISABLED = 72
    NETWORK_CREATED = 73
    NETWORK_UPDATED = 74
    NETWORK_DELETED = 75
    NETWORK_RESOURCE_CREATED = 76
    NETWORK_RESOURCE_UPDATED = 77
    NETWORK_RESOURCE_DELETED = 78
    NETWORK_ROUTER_CREATED = 79
    NETWORK_ROUTER_UPDATED = 80
    NETWORK_ROUTER_DELETED = 81
    RESOURCE_ADDED_TO_GROUP = 82
    RESOURCE_REMOVED_FROM_GROUP = 83

    @classmethod
    def _missing_(cls, value):
        # Unlisted integers stay usable as activities, e.g. after
        # registering extra codes at runtime.
        if isinstance(value, int) and not isinstance(value, bool):
            member = int.__new__(cls, value)
            member._name_ = f"UNREGISTERED_{value}"
            member._value_ = value
            return member
        return None

    def string_code(self) -> str:
        """Return the machine-readable code of the activity."""
        return string_code(self)

    def message(self) -> str:
        """Return the human-readable message of the activity."""
        return message(self)


_activity_map: dict[int, Code] = {
    Activity.PEER_ADDED_BY_USER: Code("Peer added", "peer.user.add"),
    Activity.PEER_ADDED_WITH_SETUP_KEY: Code("Peer added", "peer.setupkey.add"),
    Activity.USER_JOINED: Code("User joined", "user.join"),
    Activity.USER_INVITED: Code("User invited", "user.invite"),
    Activity.ACCOUNT_CREATED: Code("Account created", "account.create"),
    Activity.PEER_REMOVED_BY_USER: Code("Peer deleted", "user.peer.delete"),
    Activity.RULE_ADDED: Code("Rule added", "rule.add"),
    Activity.RULE_UPDATED: Code("Rule updated", "rule.update"),
    Activity.RULE_REMOVED: Code("Rule deleted", "rule.delete"),
    Activity.POLICY_ADDED: Code("Policy added", "policy.add"),
    Activity.POLICY_UPDATED: Code("Policy updated", "policy.update"),
    Activity.POLICY_REMOVED: Code("Policy deleted", "policy.delete"),
    Activity.SETUP_KEY_CREATED: Code("Setup key created", "setupkey.add"),
    Activity.SETUP_KEY_UPDATED: Code("Setup key updated", "setupkey.update"),
    Activity.SETUP_KEY_REVOKED: Code("Setup key revoked", "setupkey.revoke"),
    Activity.SETUP_KEY_OVERUSED: Code("Setup key overused", "setupkey.overuse"),
    Activity.GROUP_CREATED: Code("Group created", "group.add"),
    Activity.GROUP_UPDATED: Code("Group updated", "group.update"),
    Activity.GROUP_ADDED_TO_PEER: Code("Group added to peer", "peer.group.add"),
    Activity.GROUP_REMOVED_FROM_PEER: Code("Group removed from peer", "peer.group.delete"),
    Activity.GROUP_ADDED_TO_USER: Code("Group added to user", "user.group.add"),
    Activity.GROUP_REMOVED_FROM_USER: Code("Group removed from user", "user.group.delete"),
    Activity.USER_ROLE_UPDATED: Code("User role updated", "user.role.update"),
    Activity.GROUP_ADDED_TO_SETUP_KEY: Code("Group added to setup key", "setupkey.group.add"),
    Activity.GROUP_REMOVED_FROM_SETUP_KEY: Code(
        "Group removed from user setup key", "setupkey.group.delete"
    ),
    Activity.GROUP_ADDED_TO_DISABLED_MANAGEMENT_GROUPS: Code(
        "Group added to disabled management DNS setting",
        "dns.setting.disabled.management.group.add",
    ),
    Activity.GROUP_REMOVED_FROM_DISABLED_MANAGEMENT_GROUPS: Code(
        "Group removed from disabled management DNS setting",
        "dns.setting.disabled.management.group.delete",
    ),
    Activity.ROUTE_CREATED: Code("Route created", "route.add"),
    Activity.ROUTE_REMOVED: Code("Route deleted", "route.delete"),
    Activity.ROUTE_UPDATED: Code("Route updated", "route.update"),
    Activity.PEER_SSH_ENABLED: Code("Peer SSH server enabled", "peer.ssh.enable"),
    Activity.PEER_SSH_DISABLED: Code("Peer SSH server disabled", "peer.ssh.disable"),
    Activity.PEER_RENAMED: Code("Peer renamed", "peer.rename"),
    Activity.PEER_LOGIN_EXPIRATION_ENABLED: Code(
        "Peer login expiration enabled", "peer.login.expiration.enable"
    ),
    Activity.PEER_LOGIN_EXPIRATION_DISABLED: Code(
        "Peer login expiration disabled", "peer.login.expiration.disable"
    ),
    Activity.NAMESERVER_GROUP_CREATED: Code("Nameserver group created", "nameserver.group.add"),
    Activity.NAMESERVER_GROUP_DELETED: Code("Nameserver group deleted", "nameserver.group.delete"),
    Activity.NAMESERVER_GROUP_UPDATED: Code("Nameserver group updated", "nameserver.group.update"),
    Activity.ACCOUNT_PEER_LOGIN_EXPIRATION_DURATION_UPDATED: Code(
        "Account peer login expiration duration updated",
        "account.setting.peer.login.expiration.update",
    ),
    Activity.ACCOUNT_PEER_LOGIN_EXPIRATION_ENABLED: Code(
        "Account peer login expiration enabled",
        "account.setting.peer.login.expiration.enable",
    ),
    Activity.ACCOUNT_PEER_LOGIN_EXPIRATION_DISABLED: Code(
        "Account peer login expiration disabled",
        "account.setting.peer.login.expiration.disable",
    ),
    Activity.PERSONAL_ACCESS_TOKEN_CREATED: Code(
        "Personal access token created", "personal.access.token.create"
    ),
    Activity.PERSONAL_ACCESS_TOKEN_DELETED: Code(
        "Personal access token deleted", "personal.access.token.delete"
    ),
    Activity.SERVICE_USER_CREATED: Code("Service user created", "service.user.create"),
    Activity.SERVICE_USER_DELETED: Code("Service user deleted", "service.user.delete"),
    Activity.USER_BLOCKED: Code("User blocked", "user.block"),
    Activity.USER_UNBLOCKED: Code("User unblocked", "user.unblock"),
    Activity.USER_DELETED: Code("User deleted", "user.delete"),
    Activity.GROUP_DELETED: Code("Group deleted", "group.delete"),
    Activity.USER_LOGGED_IN_PEER: Code("User logged in peer", "user.peer.login"),
    Activity.PEER_LOGIN_EXPIRED: Code("Peer login expired", "peer.login.expire"),
    Activity.DASHBOARD_LOGIN: Code("Dashboard login", "dashboard.login"),
    Activity.INTEGRATION_CREATED: Code("Integration created", "integration.create"),
    Activity.INTEGRATION_UPDATED: Code("Integration updated", "integration.update"),
    Activity.INTEGRATION_DELETED: Code("Integration deleted", "integration.delete"),
    Activity.ACCOUNT_PEER_APPROVAL_ENABLED: Code(
        "Account peer approval enabled", "account.setting.peer.approval.enable"
    ),
    Activity.ACCOUNT_PEER_APPROVAL_DISABLED: Code(
        "Account peer approval disabled", "account.setting.peer.approval.disable"
    ),
    Activity.PEER_APPROVED: Code("Peer approved", "peer.approve"),
    Activity.PEER_APPROVAL_REVOKED: Code("Peer approval revoked", "peer.approval.revoke"),
    Activity.TRANSFERRED_OWNER_ROLE: Code("Transferred owner role", "transferred.owner.role"),
    Activity.POSTURE_CHECK_CREATED: Code("Posture check created", "posture.check.create"),
    Activity.POSTURE_CHECK_UPDATED: Code("Posture check updated", "posture.check.update"),
    Activity.POSTURE_CHECK_DELETED: Code("Posture check deleted", "posture.check.delete"),
    Activity.PEER_INACTIVITY_EXPIRATION_ENABLED: Code(
        "Peer inactivity expiration enabled", "peer.inactivity.expiration.enable"
    ),
    Activity.PEER_INACTIVITY_EXPIRATION_DISABLED: Code(
        "Peer inactivity expiration disabled", "peer.inactivity.expiration.disable"
    ),
    Activity.ACCOUNT_PEER_INACTIVITY_EXPIRATION_ENABLED: Code(
        "Account peer inactivity expiration enabled",
        "account.peer.inactivity.expiration.enable",
    ),
    Activity.ACCOUNT_PEER_INACTIVITY_EXPIRATION_DISABLED: Code(
        "Account peer inactivity expiration disabled",
        "account.peer.inactivity.expiration.disable",
    ),
    Activity.ACCOUNT_PEER_INACTIVITY_EXPIRATION_DURATION_UPDATED: Code(
        "Account peer inactivity expiration duration updated",
        "account.peer.inactivity.expiration.update",
    ),
    Activity.SETUP_KEY_DELETED: Code("Setup key deleted", "setupkey.delete"),
    Activity.USER_GROUP_PROPAGATION_ENABLED: Code(
        "User group propagation enabled", "account.setting.group.propagation.enable"
    ),
    Activity.USER_GROUP_PROPAGATION_DISABLED: Code(
        "User group propagation disabled", "account.setting.group.propagation.disable"
    ),
    Activity.ACCOUNT_ROUTING_PEER_DNS_RESOLUTION_ENABLED: Code(
        "Account routing peer DNS resolution enabled",
        "account.setting.routing.peer.dns.resolution.enable",
    ),
    Activity.ACCOUNT_ROUTING_PEER_DNS_RESOLUTION_DISABLED: Code(
        "Account routing peer DNS resolution disabled",
        "account.setting.routing.peer.dns.resolution.disable",
    ),
    Activity.NETWORK_CREATED: Code("Network created", "network.create"),
    Activity.NETWORK_UPDATED: Code("Network updated", "network.update"),
    Activity.NETWORK_DELETED: Code("Network deleted", "network.delete"),
    Activity.NETWORK_RESOURCE_CREATED: Code("Network resource created", "network.resource.create"),
    Activity.NETWORK_RESOURCE_UPDATED: Code("Network resource updated", "network.resource.update"),
    Activity.NETWORK_RESOURCE_DELETED: Code("Network resource deleted", "network.resource.delete"),
    Activity.NETWORK_ROUTER_CREATED: Code("Network router created", "network.router.create"),
    Activity.NETWORK_ROUTER_UPDATED: Code("Network router updated", "network.router.update"),
    Activity.NETWORK_ROUTER_DELETED: Code("Network router deleted", "network.router.delete"),
    Activity.RESOURCE_ADDED_TO_GROUP: Code("Resource added to group", "resource.group.add"),
    Activity.RESOURCE_REMOVED_FROM_GROUP: Code(
        "Resource removed from group", "resource.group.delete"
    ),
}


def string_code(activity: int) -> str:
    """Return the string code of an activity, or ``UNKNOWN_ACTIVITY``."""
    code = _activity_map.get(int(activity))
    return code.code if code is not None else UNKNOWN_ACTIVITY


def message(activity: int) -> str:
    """Return the message of an activity, or ``UNKNOWN_ACTIVITY``."""
    code = _activity_map.get(int(activity))
    return code.message if code is not None else UNKNOWN_ACTIVITY


def register_activity_map(codes: Mapping[int, Code]) -> None:
    """Add or replace activity codes."""
    _activity_map.update({int(key): value for key, value in codes.items()})