"""
Identity Resolver Module

Expands members into the identities that save, borrow and receive a share
of profits. A member with named actions ("aliases") runs one independent
identity per action; a member without aliases is its own single identity.
Loans may also go to external clients, which are borrowers but never
identities in the distribution.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union


@dataclass(frozen=True)
class MemberIdentity:
    """A member, or one named action of a member"""
    member_id: str
    alias: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.member_id}:{self.alias}" if self.alias else self.member_id


@dataclass(frozen=True)
class ExternalBorrower:
    """A non-member client who took a loan"""
    client_name: str


Borrower = Union[MemberIdentity, ExternalBorrower]


def identities_for_member(member) -> List[MemberIdentity]:
    """One identity per alias, or a single alias-less identity"""
    if member.aliases:
        return [MemberIdentity(member.id, alias) for alias in member.aliases]
    return [MemberIdentity(member.id)]


def resolve_identities(members: Iterable, active_only: bool = False) -> List[MemberIdentity]:
    """
    Expand members into identities, keeping member order then alias order

    Args:
        members: Member snapshot
        active_only: Skip members flagged inactive

    Returns:
        List of identities; empty when there are no members
    """
    identities = []
    for member in members:
        if active_only and not member.active:
            continue
        identities.extend(identities_for_member(member))
    return identities


def belongs_to(identity: MemberIdentity, member_id: str, alias: Optional[str]) -> bool:
    """
    Whether a record keyed by (member_id, alias) counts toward identity

    An alias-less identity (member without actions) owns every row of its
    member, whatever alias the row carries.
    """
    if member_id != identity.member_id:
        return False
    return identity.alias is None or alias == identity.alias


def identity_label(identity: MemberIdentity, member=None) -> str:
    """Display name: "Name" or "Name (alias)" """
    name = member.name if member is not None else identity.member_id
    if identity.alias:
        return f"{name} ({identity.alias})"
    return name


class IdentityResolver:
    """Resolves identities and decides which records they own"""

    def resolve(self, members: Iterable, active_only: bool = False) -> List[MemberIdentity]:
        return resolve_identities(members, active_only)

    def owns(self, identity: MemberIdentity, member_id: str, alias: Optional[str]) -> bool:
        return belongs_to(identity, member_id, alias)
