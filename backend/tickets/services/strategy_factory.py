"""
Admission strategy factory.
Configures which admission control strategy to use.
"""

from typing import Optional

from tickets.core.config import Settings, get_settings
from tickets.services.interfaces.admission import AdmissionStrategy
from tickets.services.interfaces.optimistic_admission import OptimisticAdmission


def get_admission_strategy(settings: Optional[Settings] = None) -> AdmissionStrategy:
    """
    Get configured admission strategy.

    Strategy selection via ADMISSION_STRATEGY:
    - optimistic: OptimisticAdmission (default)
    - redis: RedisAdmission (high-contention releases), only if REDIS_ENABLED
    """
    settings = settings or get_settings()

    if settings.ADMISSION_STRATEGY == 'redis' and settings.REDIS_ENABLED:
        from tickets.services.admission_service import RedisAdmission
        return RedisAdmission()
    return OptimisticAdmission()
