"""Claim reconcilers and the kopf handlers that feed them."""

from .claims import ClaimReconciler
from .watch import raise_for_outcome, register_claim_handlers

__all__ = [
    "ClaimReconciler",
    "raise_for_outcome",
    "register_claim_handlers",
]
