from src.services.organizations import OrganizationService
from src.services.volunteers import VolunteerService

__all__ = ["OrganizationService", "VolunteerService"]
