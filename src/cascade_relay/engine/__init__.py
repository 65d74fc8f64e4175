from cascade_relay.engine.reconciler import ClaimReconciler
from cascade_relay.engine.submission import SubmissionEngine

__all__ = ["ClaimReconciler", "SubmissionEngine"]
