from enum import Enum


class ConsultationType(str, Enum):
    phone = "phone"
    video = "video"
    in_person = "in_person"


class PaymentPreference(str, Enum):
    pay_now = "pay_now"
    pay_at_appointment = "pay_at_appointment"
    pay_cash = "pay_cash"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    refunded = "refunded"
    will_pay_later = "will_pay_later"


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


class ConsultationStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class FormType(str, Enum):
    new_client = "new_client"
    returning_client = "returning_client"
    quick_update = "quick_update"


class FormStatus(str, Enum):
    draft = "draft"
    submitted = "submitted"
    reviewed = "reviewed"
