"""
PropertyAvailabilityIndex - is a property already held by an open lead or deal?
"""
from estate_crm.repositories.deal_repo import DealRepository
from estate_crm.repositories.lead_repo import LeadRepository


class PropertyAvailabilityIndex:
    def __init__(self, lead_repo: LeadRepository, deal_repo: DealRepository):
        self.lead_repo = lead_repo
        self.deal_repo = deal_repo

    async def is_committed(self, property_id: int) -> bool:
        """
        True if an open lead or a non-terminal deal references the property.
        Two existence queries, the deal one only runs when no open lead matched.
        Store errors propagate unchanged.
        """
        if await self.lead_repo.has_open_lead_for_property(property_id):
            return True
        return await self.deal_repo.has_open_deal_for_property(property_id)
