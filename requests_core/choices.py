# requests_core/choices.py
from django.db import models


class RequestStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    PENDING_APPROVAL = "pending_approval", "Pending approval"
    APPROVED = "approved", "Approved"
    ASSIGNED = "assigned", "Assigned"
    IN_PRODUCTION = "in_production", "In production"
    READY = "ready", "Ready"
    DISPATCHED = "dispatched", "Dispatched"
    RECEIVED = "received", "Received"
    REJECTED = "rejected", "Rejected"


class PickupMethod(models.TextChoices):
    SELF_PICKUP = "self_pickup", "Self pickup"
    COURIER = "courier", "Courier"
    COMPANY_VEHICLE = "company_vehicle", "Company vehicle"
    FIELD_BOY = "field_boy", "Field boy"
    THIRD_PARTY = "3rd_party", "3rd party"
    OTHER = "other", "Other"


class Priority(models.TextChoices):
    URGENT = "urgent", "Urgent"
    NORMAL = "normal", "Normal"


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    COORDINATOR = "coordinator", "Coordinator"
    REQUESTER = "requester", "Requester"
    MAKER = "maker", "Maker"
    DISPATCHER = "dispatcher", "Dispatcher"


# Statuses in which a request still counts against its deadline.
ACTIVE_STATUSES = (
    RequestStatus.PENDING_APPROVAL,
    RequestStatus.APPROVED,
    RequestStatus.ASSIGNED,
    RequestStatus.IN_PRODUCTION,
    RequestStatus.READY,
    RequestStatus.DISPATCHED,
)


class ProductType(models.TextChoices):
    MARBLE = "marble", "Marble"
    TILE = "tile", "Tile"
    MAGRO_STONE = "magro_stone", "Magro stone"
    TERRAZZO = "terrazzo", "Terrazzo"
    QUARTZ = "quartz", "Quartz"


# Product types sold without a surface finish.
FINISHLESS_PRODUCTS = (ProductType.TERRAZZO, ProductType.QUARTZ)
