"""BusinessService - business profiles and company listings.

Enforces invariants at service layer:
- One business profile per user (ConflictFailure on a second)
- Only the profile owner may edit the profile (PermissionDenied)
- Listing monetary terms: a full-company sale carries asking_price and no
  equity_percentage; an equity offer carries 0 < equity_percentage <= 100
  and no asking_price. Re-validated on every update against the merged record.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from venturenest.errors import ConflictFailure, PermissionDenied, ValidationFailure
from venturenest.models.business import (
    BusinessProfile,
    CompanyListing,
    ListingStatus,
    normalize_industry_tags,
)
from venturenest.persistence import Collection, PersistenceGateway
from venturenest.services.documents import file_extension
from venturenest.session import Session
from venturenest.storage import ObjectStore, get_storage_bucket
from venturenest.timeutil import Clock, epoch_millis, to_iso, utc_now
from venturenest.validation import parse_input

logger = logging.getLogger(__name__)

LOGOS_PREFIX = "business-logos"
DEFAULT_LOGO_EXTENSION = "png"
MAX_EQUITY_PERCENTAGE = 100.0


def _require_text(v: str | None) -> str | None:
    if v is not None and not v.strip():
        raise ValueError("must not be blank")
    return v.strip() if v is not None else v


class CreateProfileInput(BaseModel):
    """Input model for creating a business profile."""

    company_name: str = Field(..., min_length=1, description="Company display name")
    description: str = Field(default="", description="Free-text description")
    logo_url: str | None = Field(default=None, description="Uploaded logo URL")
    industry_tags: list[str] = Field(default_factory=list, description="Industry tags")
    website_url: str | None = Field(default=None, description="Company website")
    social_media: dict[str, str | None] = Field(default_factory=dict, description="Social links")

    @field_validator("company_name")
    @classmethod
    def validate_company_name(cls, v: str) -> str:
        """Reject whitespace-only company names."""
        return _require_text(v) or v


class UpdateProfileInput(BaseModel):
    """Input model for updating a business profile."""

    model_config = ConfigDict(extra="forbid")

    company_name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    logo_url: str | None = None
    industry_tags: list[str] | None = None
    website_url: str | None = None
    social_media: dict[str, str | None] | None = None

    @field_validator("company_name")
    @classmethod
    def validate_company_name(cls, v: str | None) -> str | None:
        """Reject whitespace-only company names."""
        return _require_text(v)


class CreateListingInput(BaseModel):
    """Input model for creating a company listing."""

    title: str = Field(..., min_length=1, description="Listing title")
    description: str = Field(default="", description="Listing description")
    is_full_company: bool = Field(default=False, description="Full company sale flag")
    asking_price: float | None = Field(
        default=None, allow_inf_nan=False, description="Price for a full sale"
    )
    equity_percentage: float | None = Field(
        default=None, allow_inf_nan=False, description="Offered equity stake"
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject whitespace-only titles."""
        return _require_text(v) or v


class UpdateListingInput(BaseModel):
    """Input model for updating a company listing. Status has its own operation."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    is_full_company: bool | None = None
    asking_price: float | None = Field(default=None, allow_inf_nan=False)
    equity_percentage: float | None = Field(default=None, allow_inf_nan=False)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Reject whitespace-only titles."""
        return _require_text(v)


def validate_listing_terms(terms: Mapping[str, Any]) -> None:
    """Check the asking price / equity exclusivity of a listing record.

    Raises:
        ValidationFailure: If the monetary fields do not match is_full_company.
    """
    asking_price = terms.get("asking_price")
    equity = terms.get("equity_percentage")
    collection = Collection.COMPANY_LISTINGS.value

    if terms.get("is_full_company"):
        if asking_price is None:
            raise ValidationFailure(
                "A full company listing requires an asking price", collection=collection
            )
        if not math.isfinite(asking_price) or asking_price <= 0:
            raise ValidationFailure("Asking price must be positive", collection=collection)
        if equity is not None:
            raise ValidationFailure(
                "A full company listing cannot carry an equity percentage", collection=collection
            )
        return

    if equity is None:
        raise ValidationFailure(
            "An equity listing requires an equity percentage", collection=collection
        )
    if not math.isfinite(equity) or not 0 < equity <= MAX_EQUITY_PERCENTAGE:
        raise ValidationFailure(
            "Equity percentage must be greater than 0 and at most 100", collection=collection
        )
    if asking_price is not None:
        raise ValidationFailure(
            "An equity listing cannot carry an asking price", collection=collection
        )


class BusinessService:
    """Service layer for business profiles and their listings.

    Usage:
        service = BusinessService(gateway, object_store)
        profile = service.create_profile(session, CreateProfileInput(company_name="Acme"))
        listing = service.create_listing(profile.id, {...})
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        object_store: ObjectStore,
        bucket: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._gateway = gateway
        self._store = object_store
        self._bucket = bucket or get_storage_bucket()
        self._clock = clock

    # -- profiles ---------------------------------------------------------

    def create_profile(
        self,
        session: Session,
        data: CreateProfileInput | Mapping[str, Any],
    ) -> BusinessProfile:
        """Create the session user's business profile.

        Raises:
            ValidationFailure: Invalid input.
            ConflictFailure: The user already has a profile.
        """
        profile = parse_input(
            CreateProfileInput, data, collection=Collection.BUSINESS_PROFILES.value
        )
        if self._gateway.find_one(Collection.BUSINESS_PROFILES, {"user_id": session.user_id}):
            raise ConflictFailure(
                f"User {session.user_id} already has a business profile",
                collection=Collection.BUSINESS_PROFILES.value,
            )

        record = profile.model_dump()
        record["industry_tags"] = normalize_industry_tags(record["industry_tags"])
        row = self._gateway.insert(
            Collection.BUSINESS_PROFILES,
            {"user_id": session.user_id, "created_at": to_iso(self._clock()), **record},
        )
        logger.info("Created business profile %s for user %s", row["id"], session.user_id)
        return BusinessProfile.model_validate(row)

    def get_profile(self, profile_id: str) -> BusinessProfile:
        """Return a business profile.

        Raises:
            NotFoundFailure: The profile does not exist.
        """
        row = self._gateway.require(Collection.BUSINESS_PROFILES, profile_id)
        return BusinessProfile.model_validate(row)

    def get_profile_by_user(self, user_id: str) -> BusinessProfile | None:
        """Return the profile owned by a user, or None."""
        row = self._gateway.find_one(Collection.BUSINESS_PROFILES, {"user_id": user_id})
        return BusinessProfile.model_validate(row) if row else None

    def update_profile(
        self,
        session: Session,
        profile_id: str,
        patch: UpdateProfileInput | Mapping[str, Any],
    ) -> BusinessProfile:
        """Update the session user's own profile.

        Raises:
            NotFoundFailure: The profile does not exist.
            PermissionDenied: The session user is not the owner.
            ValidationFailure: Invalid input.
        """
        update = parse_input(
            UpdateProfileInput, patch, collection=Collection.BUSINESS_PROFILES.value
        )
        current = self._gateway.require(Collection.BUSINESS_PROFILES, profile_id)
        if current["user_id"] != session.user_id:
            raise PermissionDenied(
                "Only the owner may edit this business profile",
                collection=Collection.BUSINESS_PROFILES.value,
                record_id=profile_id,
            )

        changes = update.model_dump(exclude_unset=True)
        if changes.get("company_name", "") is None:
            del changes["company_name"]
        if "industry_tags" in changes:
            changes["industry_tags"] = normalize_industry_tags(changes["industry_tags"])
        if changes.get("description", "") is None:
            changes["description"] = ""
        if not changes:
            return BusinessProfile.model_validate(current)

        row = self._gateway.update(Collection.BUSINESS_PROFILES, profile_id, changes)
        logger.info("Updated business profile %s: %s", profile_id, sorted(changes))
        return BusinessProfile.model_validate(row)

    def upload_logo(
        self,
        session: Session,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        """Store a company logo and return its public URL.

        The URL is not attached to the profile; pass it to create_profile or
        update_profile.
        """
        ext = file_extension(filename) or DEFAULT_LOGO_EXTENSION
        key = f"{LOGOS_PREFIX}/{session.user_id}-{epoch_millis(self._clock())}.{ext}"
        stored = self._store.put(self._bucket, key, data, content_type=content_type)
        logger.info("Uploaded logo for user %s to %s", session.user_id, key)
        return stored.public_url

    # -- listings ---------------------------------------------------------

    def create_listing(
        self,
        business_profile_id: str,
        data: CreateListingInput | Mapping[str, Any],
    ) -> CompanyListing:
        """Create a draft listing for a profile.

        Raises:
            ValidationFailure: Invalid input or monetary terms.
            NotFoundFailure: The profile does not exist.
        """
        listing = parse_input(
            CreateListingInput, data, collection=Collection.COMPANY_LISTINGS.value
        )
        self._gateway.require(Collection.BUSINESS_PROFILES, business_profile_id)
        record = listing.model_dump()
        validate_listing_terms(record)

        row = self._gateway.insert(
            Collection.COMPANY_LISTINGS,
            {
                "business_profile_id": business_profile_id,
                "status": ListingStatus.DRAFT.value,
                "created_at": to_iso(self._clock()),
                **record,
            },
        )
        logger.info("Created listing %s for profile %s", row["id"], business_profile_id)
        return CompanyListing.model_validate(row)

    def get_listing(self, listing_id: str) -> CompanyListing:
        """Return a listing.

        Raises:
            NotFoundFailure: The listing does not exist.
        """
        return CompanyListing.model_validate(
            self._gateway.require(Collection.COMPANY_LISTINGS, listing_id)
        )

    def list_listings(self, business_profile_id: str) -> list[CompanyListing]:
        """Return a profile's listings, newest first."""
        rows = self._gateway.find_many(
            Collection.COMPANY_LISTINGS,
            {"business_profile_id": business_profile_id},
            order_by="created_at",
            descending=True,
        )
        return [CompanyListing.model_validate(row) for row in rows]

    def update_listing(
        self,
        listing_id: str,
        patch: UpdateListingInput | Mapping[str, Any],
    ) -> CompanyListing:
        """Update listing fields, re-checking the monetary terms.

        Switching between a full sale and an equity offer requires clearing
        the other monetary field in the same patch.

        Raises:
            ValidationFailure: Invalid input or resulting monetary terms.
            NotFoundFailure: The listing does not exist.
        """
        update = parse_input(
            UpdateListingInput, patch, collection=Collection.COMPANY_LISTINGS.value
        )
        current = self._gateway.require(Collection.COMPANY_LISTINGS, listing_id)
        changes = update.model_dump(exclude_unset=True)
        for field in ("title", "is_full_company", "description"):
            if field in changes and changes[field] is None:
                del changes[field]
        if not changes:
            return CompanyListing.model_validate(current)

        validate_listing_terms({**current, **changes})
        row = self._gateway.update(Collection.COMPANY_LISTINGS, listing_id, changes)
        logger.info("Updated listing %s: %s", listing_id, sorted(changes))
        return CompanyListing.model_validate(row)

    def set_listing_status(self, listing_id: str, status: ListingStatus | str) -> CompanyListing:
        """Set a listing's status label. Any status may follow any other.

        Raises:
            ValidationFailure: Unknown status.
            NotFoundFailure: The listing does not exist.
        """
        try:
            new_status = ListingStatus(status)
        except ValueError as e:
            raise ValidationFailure(
                f"Unknown listing status {status!r}",
                collection=Collection.COMPANY_LISTINGS.value,
                record_id=listing_id,
            ) from e
        row = self._gateway.update(
            Collection.COMPANY_LISTINGS, listing_id, {"status": new_status.value}
        )
        logger.info("Listing %s is now %s", listing_id, new_status.value)
        return CompanyListing.model_validate(row)

    def publish_listing(self, listing_id: str) -> CompanyListing:
        """Mark a listing as published."""
        return self.set_listing_status(listing_id, ListingStatus.PUBLISHED)
