from enum import Enum


class StudentFeeStatus(str, Enum):
    pending = "pending"
    partial = "partial"
    paid = "paid"


class QueueEntryStatus(str, Enum):
    waiting = "waiting"
    processing = "processing"
    completed = "completed"


class PaymentMethod(str, Enum):
    cash = "cash"
    mobile_money = "mobile_money"
    bank_transfer = "bank_transfer"
    cheque = "cheque"
    card = "card"


class FeeType(str, Enum):
    tuition = "tuition"
    boarding = "boarding"
    transport = "transport"
    uniform = "uniform"
    exam = "exam"
    other = "other"
