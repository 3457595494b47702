"""VentureNest domain models: Pydantic models for persisted records."""

from venturenest.models.business import (
    KNOWN_SOCIAL_PLATFORMS,
    BusinessProfile,
    CompanyListing,
    ListingStatus,
    normalize_industry_tags,
)
from venturenest.models.document import (
    AccessRequestStatus,
    Document,
    DocumentAccessRequest,
    DocumentType,
)
from venturenest.models.notification import (
    CATEGORY_FLAGS,
    CHANNEL_FLAGS,
    PREFERENCE_FLAG_BY_TYPE,
    PREFERENCE_FLAGS,
    SKIPPED_NOTIFICATION_ID,
    Notification,
    NotificationPreferences,
    NotificationType,
)

__all__ = [
    "AccessRequestStatus",
    "BusinessProfile",
    "CATEGORY_FLAGS",
    "CHANNEL_FLAGS",
    "CompanyListing",
    "Document",
    "DocumentAccessRequest",
    "DocumentType",
    "KNOWN_SOCIAL_PLATFORMS",
    "ListingStatus",
    "Notification",
    "NotificationPreferences",
    "NotificationType",
    "PREFERENCE_FLAGS",
    "PREFERENCE_FLAG_BY_TYPE",
    "SKIPPED_NOTIFICATION_ID",
    "normalize_industry_tags",
]
