"""Errors raised by the commission services."""


class CommissionError(Exception):
    """Base class for commission processing errors."""


class PartnerNotFoundError(CommissionError, LookupError):
    """The partner referenced by a conversion does not exist."""

    def __init__(self, partner_id: int):
        super().__init__(f"Partner {partner_id} not found")
        self.partner_id = partner_id

