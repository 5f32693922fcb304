"""
Pydantic schemas validating the raw ticketing settings structure.

Keys mirror the settings file format (camelCase) so validation errors point
at the exact entry an operator has to fix.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, StrictBool, StrictInt


class MetadataDefinition(BaseModel):
    availableFrom: Any = None
    availableTo: Any = None


class TicketDefinition(BaseModel):
    cost: StrictInt = Field(..., ge=0)
    name: str = Field(..., min_length=1)
    description: str = ""
    supplementary: StrictBool = False
    available: StrictInt = Field(..., ge=0)
    metadata: MetadataDefinition = Field(default_factory=MetadataDefinition)


class DiscountCodeDefinition(BaseModel):
    type: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    options: dict[str, Any] = Field(default_factory=dict)
    metadata: MetadataDefinition = Field(default_factory=MetadataDefinition)


class FinancialSettings(BaseModel):
    currency: str = Field("GBP", pattern=r"^[A-Za-z]{3}$")
    taxRate: Decimal = Field(Decimal(0), ge=0)
    displayTax: bool = False


class TicketingSettings(BaseModel):
    tickets: dict[str, TicketDefinition] = Field(default_factory=dict)
    discountCodes: dict[str, DiscountCodeDefinition] = Field(default_factory=dict)
    financial: FinancialSettings = Field(default_factory=FinancialSettings)
