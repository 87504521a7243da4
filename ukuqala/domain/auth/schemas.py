"""Doctor auth schemas"""

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email


class SignUpRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    firstName: str = Field(min_length=1)
    lastName: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class SignInRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class ResetPasswordRequest(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=6)
