from stores.base import (
    CodeStore,
    ReferralCodeRecord,
    ReferralRecord,
    TokenRevocationStore,
    UserRecord,
    UserStore,
)

__all__ = [
    "CodeStore",
    "ReferralCodeRecord",
    "ReferralRecord",
    "TokenRevocationStore",
    "UserRecord",
    "UserStore",
]
