"""Verification review and error reporting."""

from ledger_core.validation.validator import VerificationValidator, describe_error

__all__ = ["VerificationValidator", "describe_error"]
