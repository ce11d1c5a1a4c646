"""CPA (one-time acquisition bonus)."""

from commission_engine.services.cpa.acquisition_engine import AcquisitionEngine
from commission_engine.services.cpa.eligibility import (
    CpaEligibilityEvaluator,
    EligibilityResult,
)

__all__ = ["AcquisitionEngine", "CpaEligibilityEvaluator", "EligibilityResult"]
