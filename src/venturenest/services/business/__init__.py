"""Business profile and listing services for VentureNest."""

from venturenest.services.business.service import (
    BusinessService,
    CreateListingInput,
    CreateProfileInput,
    UpdateListingInput,
    UpdateProfileInput,
    validate_listing_terms,
)

__all__ = [
    "BusinessService",
    "CreateListingInput",
    "CreateProfileInput",
    "UpdateListingInput",
    "UpdateProfileInput",
    "validate_listing_terms",
]
