"""Input validation package."""

from subsentry.validation.validator import SubscriptionValidator, issues_from_pydantic

__all__ = ["SubscriptionValidator", "issues_from_pydantic"]
