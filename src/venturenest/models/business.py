"""Business profile and company listing models.

A BusinessProfile is the public-facing record of one user's company (1:1 with
the user). A CompanyListing is an offer tied to a profile: either the full
company for an asking price, or an equity stake expressed as a percentage.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

KNOWN_SOCIAL_PLATFORMS = ("linkedin", "twitter", "facebook", "instagram")


def normalize_industry_tags(tags: list[str] | None) -> list[str]:
    """Drop blanks and duplicates while keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags or []:
        cleaned = tag.strip()
        if not cleaned:
            continue
        key = cleaned.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


class ListingStatus(str, Enum):
    """Forward-moving listing label. No transition graph is enforced."""

    DRAFT = "draft"
    PUBLISHED = "published"
    UNDER_REVIEW = "under_review"
    SOLD = "sold"


class BusinessProfile(BaseModel):
    """Company profile owned by exactly one user.

    Attributes:
        id: Unique identifier.
        user_id: Owning user (unique across profiles).
        company_name: Display name of the company.
        description: Free-text description.
        logo_url: Public URL of the uploaded logo.
        industry_tags: Deduplicated industry tags.
        website_url: Company website.
        social_media: Platform name to URL mapping.
        created_at: Record creation timestamp.
        updated_at: Last update timestamp.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    company_name: Annotated[str, Field(min_length=1)]
    description: str = ""
    logo_url: str | None = None
    industry_tags: list[str] = Field(default_factory=list)
    website_url: str | None = None
    social_media: dict[str, str | None] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("industry_tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        """Keep industry tags unique."""
        return normalize_industry_tags(v)


class CompanyListing(BaseModel):
    """Sale offer for a full company or an equity stake."""

    model_config = ConfigDict(extra="ignore")

    id: str
    business_profile_id: str
    title: Annotated[str, Field(min_length=1)]
    description: str = ""
    asking_price: float | None = None
    equity_percentage: float | None = None
    is_full_company: bool = False
    status: ListingStatus = ListingStatus.DRAFT
    created_at: datetime | None = None
    updated_at: datetime | None = None
