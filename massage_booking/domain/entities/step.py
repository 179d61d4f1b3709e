from enum import IntEnum


class BookingStep(IntEnum):
    SERVICE = 1
    CONSULTATION_TYPE = 2
    DATE_TIME = 3
    CLIENT_INFO = 4
    INTAKE_FORM = 5
    PAYMENT_PREFERENCE = 6
    PAYMENT = 7
    CONFIRMATION = 8

    @property
    def title(self) -> str:
        return _TITLES[self]


_TITLES = {
    BookingStep.SERVICE: "Service",
    BookingStep.CONSULTATION_TYPE: "Consultation Type",
    BookingStep.DATE_TIME: "Date & Time",
    BookingStep.CLIENT_INFO: "Information",
    BookingStep.INTAKE_FORM: "Health Form",
    BookingStep.PAYMENT_PREFERENCE: "Payment Method",
    BookingStep.PAYMENT: "Payment",
    BookingStep.CONFIRMATION: "Confirmation",
}
