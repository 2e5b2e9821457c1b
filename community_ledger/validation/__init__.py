"""Form validation package."""

from community_ledger.validation.validator import FormValidationError, FormValidator

__all__ = ["FormValidationError", "FormValidator"]
