from tickets.models.ticket_counter import TicketCounterRow
from tickets.models.discount_code import DiscountCodeRow

__all__ = ["TicketCounterRow", "DiscountCodeRow"]
