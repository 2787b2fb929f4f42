"""Prometheus metrics for calculation faults, validation failures and status changes"""

from prometheus_client import Counter

# Calculation metrics
calculation_fault_counter = Counter(
    "engine_calculation_faults_total",
    "Calculations that produced a non-finite result",
    ["calculator"],  # fd_maturity | loan_emi | rd_maturity | loan_outstanding
)

validation_failure_counter = Counter(
    "engine_validation_failures_total",
    "Inputs rejected before calculation",
    ["kind"],  # out-of-range | non-numeric | malformed-record
)

# Lifecycle metrics
transition_counter = Counter(
    "engine_transitions_total",
    "Applied status transitions",
    ["instrument_type", "to_status"],
)

lifecycle_rejection_counter = Counter(
    "engine_lifecycle_rejections_total",
    "Rejected lifecycle requests",
    ["instrument_type", "event"],
)


def record_transition(instrument_type: str, from_status: str, to_status: str) -> None:
    """Count a status change; evaluations that leave the status unchanged are skipped"""
    if from_status == to_status:
        return
    transition_counter.labels(instrument_type=instrument_type, to_status=to_status).inc()
