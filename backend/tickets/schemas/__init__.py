from tickets.schemas.settings import TicketingSettings, TicketDefinition, DiscountCodeDefinition, FinancialSettings
from tickets.schemas.catalogue import MoneySchema, PriceSchema, TicketTypeSchema, DiscountCodeSchema

__all__ = [
    "TicketingSettings", "TicketDefinition", "DiscountCodeDefinition", "FinancialSettings",
    "MoneySchema", "PriceSchema", "TicketTypeSchema", "DiscountCodeSchema",
]
