"""
Module: ledger_kernel.selectors.profile_selector
Responsibility: Read-only profile queries, including caller identity
    resolution for the request layer.
Architecture position: Kernel > Selectors.

The request layer maps its opaque caller token to a profile id and calls
``resolve_caller``; the LedgerEngine itself never looks identities up.
"""

from sqlalchemy import func, select

from ledger_kernel.domain.dtos import CallerProfile, ProfileInfo, ProfileType
from ledger_kernel.domain.ledger_rules import is_storable_id
from ledger_kernel.models.profile import Profile
from ledger_kernel.selectors.base import BaseSelector


class ProfileSelector(BaseSelector):
    """Selector for profile lookups."""

    def resolve_caller(self, profile_id: int) -> CallerProfile | None:
        """Map a caller's profile id to its identity, or None if unknown."""
        if not is_storable_id(profile_id):
            return None
        profile = self.session.get(Profile, profile_id)
        if profile is None:
            return None
        return CallerProfile(id=profile.id, type=ProfileType(profile.type))

    def get_profile(self, profile_id: int) -> ProfileInfo | None:
        if not is_storable_id(profile_id):
            return None
        profile = self.session.get(Profile, profile_id)
        return ProfileInfo.from_model(profile) if profile else None

    def total_balance(self) -> int:
        """Sum of every profile balance.  Ledger operations never change it."""
        stmt = select(func.coalesce(func.sum(Profile.balance), 0))
        return int(self.session.execute(stmt).scalar_one())
