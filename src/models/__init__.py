"""Plain data models shared by gateways, services and the CLI."""

from src.models.dashboard_models import (
    ACQUISITION_TYPES,
    DEFAULT_ACQUISITION_TYPE,
    AcquisitionBucket,
    DashboardStats,
    TenderStockRow,
    TenderSummary,
)
from src.models.delivery_models import DeliveryItem, DeliveryRecord, NewDeliveryRequest
from src.models.org_models import Dec, HierarchyIssue, NamedEntity, Office, OrgKind, Wing
from src.models.tender_models import (
    AssociationDisplay,
    KindDisplay,
    RawId,
    Tender,
    TenderAssociations,
    TenderView,
)

__all__ = [
    "ACQUISITION_TYPES",
    "DEFAULT_ACQUISITION_TYPE",
    "AcquisitionBucket",
    "AssociationDisplay",
    "DashboardStats",
    "Dec",
    "DeliveryItem",
    "DeliveryRecord",
    "HierarchyIssue",
    "KindDisplay",
    "NamedEntity",
    "NewDeliveryRequest",
    "Office",
    "OrgKind",
    "RawId",
    "Tender",
    "TenderAssociations",
    "TenderStockRow",
    "TenderSummary",
    "TenderView",
    "Wing",
]
