from donatehub.utils.constants import UserRole

PROFILE_READ = "profile:read"
PROFILE_UPDATE = "profile:update"
DONATION_RECEIVE = "donation:receive"
WITHDRAW_REQUEST = "withdraw:request"
WITHDRAW_SETTLE = "withdraw:settle"
ACCOUNTS_MODERATE = "accounts:moderate"
LEDGER_READ_ALL = "ledger:read-all"

ROLE_CAPABILITIES = {
    UserRole.UNREGISTERED: frozenset({PROFILE_READ, PROFILE_UPDATE}),
    UserRole.STREAMER: frozenset({
        PROFILE_READ,
        PROFILE_UPDATE,
        DONATION_RECEIVE,
        WITHDRAW_REQUEST,
    }),
    UserRole.ADMIN: frozenset({
        PROFILE_READ,
        PROFILE_UPDATE,
        WITHDRAW_SETTLE,
        ACCOUNTS_MODERATE,
        LEDGER_READ_ALL,
    }),
}


def capabilities_for(role):
    """Return the capability set granted to ``role``; unknown roles get none."""
    return ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(role, capability):
    return capability in capabilities_for(role)
