"""
Authorization Module - Tri-state Access Decisions.

Resolves whether a user may see a document at query time:
- AuthzStatus: PERMIT, DENY or INDETERMINATE ("no opinion, ask someone else")
- Acl: permit/deny users and groups, with inheritance between ACLs
- AuthzAuthority implementations answering batches of DocIds
- combine_decisions for stacking independent resolvers
"""

from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

import structlog

from docpush.core.errors import ConfigurationError
from docpush.models.documents import DocId

logger = structlog.get_logger(__name__)


class AuthzStatus(str, Enum):
    """Closed set of authorization outcomes."""

    PERMIT = ("PERMIT", "Access is permitted")
    DENY = ("DENY", "Access is denied")
    INDETERMINATE = ("INDETERMINATE", "No decision; defer to another resolver")

    def __new__(cls, value: str, description: str):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj._description = description
        return obj

    @property
    def description(self) -> str:
        return self._description

    @classmethod
    def from_name(cls, name: str) -> "AuthzStatus":
        """Resolve a status name (case-insensitive) to its singleton member."""
        try:
            return cls[name.strip().upper()]
        except (KeyError, AttributeError):
            raise ConfigurationError(f"Unknown authz status: {name!r}") from None


def combine_decisions(statuses: Iterable[AuthzStatus]) -> AuthzStatus:
    """
    Combine the answers of independent resolvers, in priority order.

    The first PERMIT or DENY wins; INDETERMINATE defers to the next resolver.
    """
    for status in statuses:
        if status is not AuthzStatus.INDETERMINATE:
            return status
    return AuthzStatus.INDETERMINATE


@dataclass(frozen=True)
class AuthnIdentity:
    """Authenticated caller; ``user`` is None for anonymous requests."""

    user: str | None = None
    groups: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "groups", frozenset(self.groups))


Decision = Callable[[], AuthzStatus]


class InheritanceType(str, Enum):
    """Rule a parent ACL uses to combine its decision with its child's."""

    CHILD_OVERRIDES = "child-overrides"
    PARENT_OVERRIDES = "parent-overrides"
    AND_BOTH_PERMIT = "and-both-permit"
    LEAF_NODE = "leaf-node"

    def combine(self, child: Decision, parent: Decision) -> AuthzStatus:
        """Combine lazily computed decisions; a side is only evaluated if needed."""
        match self:
            case InheritanceType.CHILD_OVERRIDES:
                status = child()
                return parent() if status is AuthzStatus.INDETERMINATE else status
            case InheritanceType.PARENT_OVERRIDES:
                status = parent()
                return child() if status is AuthzStatus.INDETERMINATE else status
            case InheritanceType.AND_BOTH_PERMIT:
                if parent() is AuthzStatus.PERMIT and child() is AuthzStatus.PERMIT:
                    return AuthzStatus.PERMIT
                return AuthzStatus.DENY
            case InheritanceType.LEAF_NODE:
                logger.warning("Illegal ACL information: a leaf-node ACL is the parent of another ACL")
                return AuthzStatus.DENY
        raise ValueError(f"Unknown inheritance type: {self!r}")


def _frozen(values: Iterable[str] | None) -> frozenset[str]:
    return frozenset(values or ())


@dataclass(frozen=True)
class Acl:
    """
    Access control list of one document.

    Deny beats permit regardless of how specific the rule is: a permitted
    user in a denied group is denied.
    """

    permit_users: frozenset[str] = field(default_factory=frozenset)
    deny_users: frozenset[str] = field(default_factory=frozenset)
    permit_groups: frozenset[str] = field(default_factory=frozenset)
    deny_groups: frozenset[str] = field(default_factory=frozenset)
    inherit_from: DocId | None = None
    inheritance_type: InheritanceType = InheritanceType.CHILD_OVERRIDES

    def __post_init__(self) -> None:
        for name in ("permit_users", "deny_users", "permit_groups", "deny_groups"):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    @property
    def is_empty(self) -> bool:
        return not (self.permit_users or self.deny_users or self.permit_groups or self.deny_groups)

    def is_authorized_local(self, identity: AuthnIdentity) -> AuthzStatus:
        """Decision of this ACL alone, ignoring inheritance."""
        if identity.user in self.deny_users or self.deny_groups & identity.groups:
            return AuthzStatus.DENY
        if identity.user in self.permit_users or self.permit_groups & identity.groups:
            return AuthzStatus.PERMIT
        return AuthzStatus.INDETERMINATE

    @staticmethod
    def is_authorized(identity: AuthnIdentity, chain: Sequence["Acl"]) -> AuthzStatus:
        """
        Decision for the last ACL of ``chain``, which runs root to leaf.

        Each entry's local decision is combined with its child's decision
        through the entry's inheritance type; the leaf's type is ignored.
        A lone empty ACL means "no ACLs" and is INDETERMINATE, as is a chain
        with a leaf-node ACL above its last entry. Otherwise INDETERMINATE
        becomes DENY.

        Raises:
            ConfigurationError: the chain is empty or not linked root to leaf
        """
        if not chain:
            raise ConfigurationError("ACL chain must contain at least one ACL")
        if chain[0].inherit_from is not None:
            raise ConfigurationError("ACL chain must start at the root, which has no inherit_from")
        if any(acl.inherit_from is None for acl in chain[1:]):
            raise ConfigurationError("Every ACL in the chain except the root needs an inherit_from")

        if len(chain) == 1 and chain[0].is_empty:
            return AuthzStatus.INDETERMINATE
        if any(acl.inheritance_type is InheritanceType.LEAF_NODE for acl in chain[:-1]):
            logger.warning("Only the last ACL in a chain can be a leaf node", chain_length=len(chain))
            return AuthzStatus.INDETERMINATE

        result = Acl._decide(identity, chain)
        return AuthzStatus.DENY if result is AuthzStatus.INDETERMINATE else result

    @staticmethod
    def _decide(identity: AuthnIdentity, chain: Sequence["Acl"]) -> AuthzStatus:
        head = chain[0]
        if len(chain) == 1:
            return head.is_authorized_local(identity)
        return head.inheritance_type.combine(
            child=lambda: Acl._decide(identity, chain[1:]),
            parent=lambda: head.is_authorized_local(identity),
        )


@dataclass(frozen=True)
class NamedResource:
    """
    ACL pushed on its own for a DocId.

    The DocId may name a document or a resource that only exists to be
    inherited from, such as a shared folder or a share definition.
    """

    doc_id: DocId
    acl: Acl

    def __post_init__(self) -> None:
        if not isinstance(self.doc_id, DocId):
            raise ConfigurationError("NamedResource requires a DocId")
        if not isinstance(self.acl, Acl):
            raise ConfigurationError("NamedResource requires an Acl")


# =============================================================================
# Authorities
# =============================================================================


@runtime_checkable
class AuthzAuthority(Protocol):
    """Answers which of ``doc_ids`` the identity may access."""

    def is_user_authorized(
        self, identity: AuthnIdentity, doc_ids: Collection[DocId]
    ) -> dict[DocId, AuthzStatus]:
        ...


class PermitAllAuthority:
    """Authority for fully-public repositories: every DocId is PERMIT."""

    def is_user_authorized(
        self, identity: AuthnIdentity, doc_ids: Collection[DocId]
    ) -> dict[DocId, AuthzStatus]:
        return {doc_id: AuthzStatus.PERMIT for doc_id in doc_ids}


class AclAuthority:
    """
    Resolves DocIds through their ACL inheritance chains.

    ``acls`` maps a DocId to its Acl. A DocId whose chain cannot be built is
    INDETERMINATE, so another resolver may still answer for it: the DocId
    has no ACL, an inherited ACL is missing, or the inheritance has a cycle.
    """

    def __init__(self, acls: Mapping[DocId, Acl]):
        self._acls = acls

    def _chain(self, doc_id: DocId) -> list[Acl] | None:
        """Root-to-leaf chain for ``doc_id``, or None if it cannot be built."""
        chain: list[Acl] = []
        seen: set[DocId] = set()
        current: DocId | None = doc_id
        while current is not None:
            if current in seen:
                logger.warning("ACL inheritance cycle", doc_id=doc_id.unique_id, at=current.unique_id)
                return None
            seen.add(current)
            acl = self._acls.get(current)
            if acl is None:
                if chain:
                    logger.warning(
                        "Missing inherited ACL",
                        doc_id=doc_id.unique_id,
                        missing=current.unique_id,
                    )
                return None
            chain.append(acl)
            current = acl.inherit_from
        chain.reverse()
        return chain

    def is_user_authorized(
        self, identity: AuthnIdentity, doc_ids: Collection[DocId]
    ) -> dict[DocId, AuthzStatus]:
        results: dict[DocId, AuthzStatus] = {}
        for doc_id in doc_ids:
            chain = self._chain(doc_id)
            if chain is None:
                results[doc_id] = AuthzStatus.INDETERMINATE
            else:
                results[doc_id] = Acl.is_authorized(identity, chain)
        return results


class ChainedAuthority:
    """Asks each authority in turn; INDETERMINATE answers defer to the next one."""

    def __init__(self, authorities: Sequence[AuthzAuthority]):
        if not authorities:
            raise ConfigurationError("ChainedAuthority needs at least one authority")
        self._authorities = list(authorities)

    def is_user_authorized(
        self, identity: AuthnIdentity, doc_ids: Collection[DocId]
    ) -> dict[DocId, AuthzStatus]:
        answers = [a.is_user_authorized(identity, doc_ids) for a in self._authorities]
        return {
            doc_id: combine_decisions(
                answer.get(doc_id, AuthzStatus.INDETERMINATE) for answer in answers
            )
            for doc_id in doc_ids
        }
