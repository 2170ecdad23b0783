"""
Two-Stage Validation for Subscription Input

STAGE 1 - SCHEMA VALIDATION (pydantic):
- Types, enum membership, unknown fields
- Failures are converted to ValidationIssue via issues_from_pydantic()

STAGE 2 - SEMANTIC VALIDATION (this module):
- Name present
- Cost not negative
- Renewal date present for recurring cycles, absent for one-time
- Suspicious-but-allowed values reported as warnings

IMPORTANT: Validation NEVER silently fixes issues.
Errors block the save; warnings are passed along to the user.
"""

from collections.abc import Mapping
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from subsentry.models.base import as_day
from subsentry.models.subscription import BillingCycle, ValidationIssue


class SubscriptionValidator:
    """
    Semantic checks on a fully merged subscription draft.

    Works on a plain mapping of snake_case field names so the same rules
    apply to new drafts and to existing records with an update merged in.
    """

    def validate(
        self,
        fields: Mapping[str, Any],
        today: Optional[date] = None,
    ) -> list[ValidationIssue]:
        """
        Run the semantic rules.

        Returns:
            All issues found; any with severity "error" must block the save
        """
        today = as_day(today)
        issues = []

        name = (fields.get("name") or "").strip()
        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
                severity="error",
                suggested_fix="Enter the service name, e.g. Netflix",
            ))

        cost = fields.get("cost")
        if cost is None:
            issues.append(ValidationIssue(
                field="cost",
                issue_type="missing",
                message="Cost is required",
                severity="error",
            ))
        elif cost < 0:
            issues.append(ValidationIssue(
                field="cost",
                issue_type="invalid_value",
                message="Cost cannot be negative",
                severity="error",
                suggested_fix="Enter the amount charged per billing cycle",
            ))
        elif cost == 0:
            issues.append(ValidationIssue(
                field="cost",
                issue_type="suspicious_value",
                message="Cost is zero; this subscription won't add to your totals",
                severity="warning",
            ))

        cycle = fields.get("billing_cycle")
        renewal_date = fields.get("renewal_date")

        if cycle == BillingCycle.ONE_TIME:
            if renewal_date is not None:
                issues.append(ValidationIssue(
                    field="renewal_date",
                    issue_type="unexpected",
                    message="One-time purchases don't renew; clear the renewal date",
                    severity="error",
                ))
        elif renewal_date is None:
            issues.append(ValidationIssue(
                field="renewal_date",
                issue_type="missing",
                message="Renewal date is required for recurring subscriptions",
                severity="error",
                suggested_fix="Pick the date of the next charge",
            ))
        elif renewal_date < today:
            issues.append(ValidationIssue(
                field="renewal_date",
                issue_type="past_date",
                message=f"Renewal date ({renewal_date}) is in the past",
                severity="warning",
                suggested_fix="Update it to the next charge date to get renewal alerts",
            ))

        return issues

    @staticmethod
    def has_errors(issues: list[ValidationIssue]) -> bool:
        return any(issue.is_error for issue in issues)

    @staticmethod
    def summarize(issues: list[ValidationIssue]) -> str:
        """
        One-line, user-facing summary (used in toast messages).

        Errors are listed first; warnings only if there are no errors.
        """
        errors = [issue.message for issue in issues if issue.is_error]
        if errors:
            return "; ".join(errors)
        warnings = [issue.message for issue in issues if issue.severity == "warning"]
        return "; ".join(warnings)


def issues_from_pydantic(error: PydanticValidationError) -> list[ValidationIssue]:
    """Convert a stage-1 pydantic error into ValidationIssue entries."""
    issues = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "input"
        issues.append(ValidationIssue(
            field=field,
            issue_type=item.get("type", "invalid_value"),
            message=f"{field}: {item.get('msg', 'invalid value')}",
            severity="error",
        ))
    return issues
