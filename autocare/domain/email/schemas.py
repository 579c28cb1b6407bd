"""Email domain schemas"""

from pydantic import BaseModel, field_validator

from ...shared.validators import require_text, validate_email

MAX_MESSAGE_LENGTH = 5000


class SendEmailRequest(BaseModel):
    email: str
    message: str

    @field_validator("email")
    @classmethod
    def validate_recipient(cls, v):
        return validate_email(require_text(v, "Email"))

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        v = require_text(v, "Message")
        if len(v) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message must be at most {MAX_MESSAGE_LENGTH} characters")
        return v


class SendEmailResponse(BaseModel):
    status: str
    email: str
