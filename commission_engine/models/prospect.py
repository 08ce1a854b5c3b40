"""
CRM-owned models the engine touches: prospects and pipeline stages.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import BaseModel


class PipelineStage(BaseModel):
    """
    A stage of an organization's sales pipeline.

    The stage flagged ``is_won`` is where a prospect lands once a sale
    is recorded.
    """

    __tablename__ = "pipeline_stages"
    __table_args__ = (
        UniqueConstraint("organization_id", "slug", name="uq_pipeline_stages_org_slug"),
    )

    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    slug: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    is_won: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_lost: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PipelineStage(org={self.organization_id}, slug='{self.slug}')>"


class Prospect(BaseModel):
    """Prospect/client of an organization."""

    __tablename__ = "crm_prospects"

    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    first_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    last_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    stage_slug: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="nouveau",
        server_default="nouveau",
        index=True,
    )
    assigned_to: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or f"Prospect #{self.id}"

    def __repr__(self) -> str:
        return f"<Prospect(id={self.id}, stage='{self.stage_slug}')>"
