from bizmanager.application.services.access_validator import AccessValidator
from bizmanager.application.services.authorization_service import AuthorizationService
from bizmanager.application.services.catalog_seed_service import CatalogSeedService
from bizmanager.application.services.company_deletion_service import \
    CompanyDeletionService
from bizmanager.application.services.company_provisioning_service import \
    CompanyProvisioningService
from bizmanager.application.services.company_service import CompanyService
from bizmanager.application.services.company_user_service import CompanyUserService

__all__ = [
    "AccessValidator",
    "AuthorizationService",
    "CatalogSeedService",
    "CompanyDeletionService",
    "CompanyProvisioningService",
    "CompanyService",
    "CompanyUserService",
]
