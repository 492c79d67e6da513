from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used for authorization."""

    ADMIN = "admin"
    CUSTOMER = "customer"


class PlanType(str, Enum):
    """License plan sold at checkout and stored on the license row."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    LIFETIME = "lifetime"


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class IbStatus(str, Enum):
    """Profile-level IB status (free EA usage granted by an admin)."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MembershipStatus(str, Enum):
    """Status of one IB application for one broker."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VerifyStatus(str, Enum):
    """Result returned by the license verification endpoint."""

    ACTIVE = "active"
    EXPIRED = "expired"
    INVALID = "invalid"
    ERROR = "error"
