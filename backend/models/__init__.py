"""
Pydantic models for AppSchmiede.

All data shapes defined here. No imports from db, repos, or routes.
"""

from backend.models.billing import (
    BillingUser,
    CoinPackage,
    PlanConfig,
    StripeEvent,
    WebhookResponse,
)
from backend.models.page import (
    AddNodeRequest,
    GeneratePageResponse,
    GeneratePagesResponse,
    MoveNodeRequest,
    MutationResponse,
    PageResponse,
    WidgetActionRequest,
)

__all__ = [
    # Billing models
    "BillingUser",
    "CoinPackage",
    "PlanConfig",
    "StripeEvent",
    "WebhookResponse",
    # Page models
    "AddNodeRequest",
    "GeneratePageResponse",
    "GeneratePagesResponse",
    "MoveNodeRequest",
    "MutationResponse",
    "PageResponse",
    "WidgetActionRequest",
]
