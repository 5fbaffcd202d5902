from pydantic import BaseModel, EmailStr, field_validator
import re


class Token(BaseModel):
    access_token: str
    token_type: str


class CreateAdminRequest(BaseModel):
    email: EmailStr
    full_name: str = ""
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        """
        Password must be at least 8 characters and contain:
        - At least one letter
        - At least one digit
        """
        if len(value) < 8:
            raise ValueError('Password must be at least 8 characters')

        if not re.search(r'[A-Za-z]', value):
            raise ValueError('Password must contain at least one letter')

        if not re.search(r'\d', value):
            raise ValueError('Password must contain at least one digit')

        return value
