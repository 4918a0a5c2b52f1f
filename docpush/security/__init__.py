"""
Security Module.

Provides query-time authorization for pushed documents:
- Tri-state AuthzStatus decisions
- ACLs with inheritance, and named resources that carry them to the consumer
- Authorities answering batches of DocIds
"""

from docpush.security.authorization import (
    Acl,
    AclAuthority,
    AuthnIdentity,
    AuthzAuthority,
    AuthzStatus,
    ChainedAuthority,
    InheritanceType,
    NamedResource,
    PermitAllAuthority,
    combine_decisions,
)

__all__ = [
    "Acl",
    "AclAuthority",
    "AuthnIdentity",
    "AuthzAuthority",
    "AuthzStatus",
    "ChainedAuthority",
    "InheritanceType",
    "NamedResource",
    "PermitAllAuthority",
    "combine_decisions",
]
