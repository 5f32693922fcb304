"""
Pass-through admission: every request goes straight to the inventory, whose
reserve() is atomic and therefore the only place a sale can fail.
"""

from tickets.core.metrics import record_admission
from tickets.services.interfaces.admission import AdmissionStrategy


class OptimisticAdmission(AdmissionStrategy):
    """Default gate for ordinary sales where contention is low."""

    async def admit(self, ticket_type_id: str, number: int = 1) -> bool:
        record_admission(True)
        return True

    async def release(self, ticket_type_id: str, number: int = 1):
        pass

    async def sync(self, ticket_type_id: str, remaining: int):
        pass
