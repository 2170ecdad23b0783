"""
UI contract models.

Every callback the UI layer invokes returns an ActionResult, which is all
a toast notification needs: did it work, and what to tell the user.
"""

from typing import Optional

from subsentry.models.base import CamelModel
from subsentry.models.subscription import Subscription
from subsentry.models.user import UserProfile


class ActionResult(CamelModel):
    """Completion signal for a UI-triggered operation."""

    success: bool
    message: str
    subscription: Optional[Subscription] = None
    user: Optional[UserProfile] = None

    @classmethod
    def ok(cls, message: str, **payload) -> "ActionResult":
        return cls(success=True, message=message, **payload)

    @classmethod
    def fail(cls, message: str) -> "ActionResult":
        return cls(success=False, message=message)
