"""Exceptions raised by the onboarding core.

Validation gaps in wizards and unsafe derived targets are *not* errors; they
block navigation or surface as warnings. These cover misuse of the flow.
"""

from __future__ import annotations


class FitKernelError(Exception):
    """Base class for fitkernel errors."""


class WizardStateError(FitKernelError):
    """A wizard action was invoked from a step that does not allow it."""


class SetupFlowError(FitKernelError):
    """The orchestrator was asked to complete a step that is not pending."""


class ConfirmationRequiredError(FitKernelError):
    """A low-confidence parse was committed without explicit user confirmation."""

    def __init__(self, confidence: float, threshold: float):
        super().__init__(
            f"Parsed with confidence {confidence:.2f} (< {threshold:.2f}); user confirmation required"
        )
        self.confidence = confidence
        self.threshold = threshold
