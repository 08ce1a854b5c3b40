"""
Database models for the commission engine.

All models are exported here for convenient imports:
    from commission_engine.models import Sale, AdvisorCommission, etc.
"""

from commission_engine.models.audit import AuditAction, AuditLog
from commission_engine.models.base import Base, BaseModel, CreatedAtMixin, TimestampMixin
from commission_engine.models.commission import (
    AdvisorCommission,
    BeneficiaryRole,
    ContributionStream,
)
from commission_engine.models.organization import Organization, User, UserRole
from commission_engine.models.product import Product
from commission_engine.models.prospect import PipelineStage, Prospect
from commission_engine.models.sale import FeeBasis, Sale

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "CreatedAtMixin",
    "TimestampMixin",
    # Tenant
    "Organization",
    "User",
    "UserRole",
    # Catalog
    "Product",
    # CRM
    "PipelineStage",
    "Prospect",
    # Sales
    "FeeBasis",
    "Sale",
    # Commissions
    "AdvisorCommission",
    "BeneficiaryRole",
    "ContributionStream",
    # Audit
    "AuditLog",
    "AuditAction",
]
