"""Shared enumerations and choices used across apps."""

from django.db import models


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    ACCOUNTS = "accounts", "Accounts"
    SALES = "sales", "Sales"
    WAREHOUSE = "warehouse", "Warehouse"
    MANAGER = "manager", "Manager"


class ProductCategory(models.TextChoices):
    API = "api", "API"
    EXCIPIENT = "excipient", "Excipient"
    SOLVENT = "solvent", "Solvent"
    OTHER = "other", "Other"


class Unit(models.TextChoices):
    KG = "kg", "Kilogram"
    LITRE = "litre", "Litre"
    TON = "ton", "Ton"
    PIECE = "piece", "Piece"


class MovementType(models.TextChoices):
    INBOUND = "in", "Inbound"
    OUTBOUND = "out", "Outbound"
    ADJUST = "adjust", "Adjust"
    RETURN = "return", "Return"


class ReservationState(models.TextChoices):
    ACTIVE = "active", "Active"
    RELEASED = "released", "Released"
    CONVERTED = "converted", "Converted"


class SalesOrderStatus(models.TextChoices):
    """Delivery lifecycle of a sales order."""

    PENDING_DELIVERY = "pending_delivery", "Pending delivery"
    PARTIALLY_DELIVERED = "partially_delivered", "Partially delivered"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class ApprovalStatus(models.TextChoices):
    """Approval states shared by delivery challans and material returns."""

    PENDING_APPROVAL = "pending_approval", "Pending approval"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class ReturnType(models.TextChoices):
    QUALITY_ISSUE = "quality_issue", "Quality issue"
    WRONG_PRODUCT = "wrong_product", "Wrong product"
    EXCESS_QUANTITY = "excess_quantity", "Excess quantity"
    DAMAGED = "damaged", "Damaged"
    EXPIRED = "expired", "Expired"
    OTHER = "other", "Other"


class ItemCondition(models.TextChoices):
    GOOD = "good", "Good"
    DAMAGED = "damaged", "Damaged"
    EXPIRED = "expired", "Expired"
    UNUSABLE = "unusable", "Unusable"


class PaymentStatus(models.TextChoices):
    """Invoice settlement status, derived from allocations."""

    PENDING = "pending", "Pending"
    PARTIAL = "partial", "Partial"
    PAID = "paid", "Paid"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"
    CHEQUE = "cheque", "Cheque"
    CREDIT_CARD = "credit_card", "Credit card"
    OTHER = "other", "Other"


class SourceModule(models.TextChoices):
    """Origin of a journal entry."""

    SALES_INVOICE = "sales_invoice", "Sales Invoice"
    SALES_INVOICE_COGS = "sales_invoice_cogs", "COGS Entry"
    PURCHASE_INVOICE = "purchase_invoice", "Purchase Invoice"
    RECEIPT = "receipt", "Receipt Voucher"
    PAYMENT = "payment", "Payment Voucher"
    PETTY_CASH = "petty_cash", "Petty Cash"
    FUND_TRANSFER = "fund_transfer", "Fund Transfer"
    MANUAL = "manual", "Manual Entry"


class AppointmentType(models.TextChoices):
    MEETING = "meeting", "In-Person Meeting"
    VIDEO_CALL = "video_call", "Video Call"
    PHONE_CALL = "phone_call", "Phone Call"


class AppointmentUrgency(models.TextChoices):
    COMPLETED = "completed", "Completed"
    OVERDUE = "overdue", "Overdue"
    DUE_SOON = "due_soon", "Due soon"
    UPCOMING = "upcoming", "Upcoming"
