from .property import (
    AgentListing,
    FilterIssue,
    FilterSpec,
    ListingDetail,
    ListingPage,
    ListingSummary,
    PaginationMeta,
    PersonalizedResponse,
    PreferenceOut,
    PreferenceUpdate,
)

__all__ = [
    "AgentListing",
    "FilterIssue",
    "FilterSpec",
    "ListingDetail",
    "ListingPage",
    "ListingSummary",
    "PaginationMeta",
    "PersonalizedResponse",
    "PreferenceOut",
    "PreferenceUpdate",
]
