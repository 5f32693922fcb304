"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .admission import AdmissionStrategy
from .optimistic_admission import OptimisticAdmission
from .inventory import TicketInventory
from .memory_inventory import InMemoryInventory

__all__ = ['AdmissionStrategy', 'OptimisticAdmission', 'TicketInventory', 'InMemoryInventory']
