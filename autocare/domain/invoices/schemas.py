"""Invoice domain schemas"""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import require_text


class TaskLine(BaseModel):
    taskName: str
    price: Decimal = Field(..., ge=0)

    @field_validator("taskName")
    @classmethod
    def validate_task_name(cls, v):
        return require_text(v, "Task name")


class GenerateInvoiceRequest(BaseModel):
    appointmentId: int
    taskBreakdown: list[TaskLine] = Field(default_factory=list)
    totalPrice: Decimal = Field(..., ge=0)
    sendToCustomer: bool = False
