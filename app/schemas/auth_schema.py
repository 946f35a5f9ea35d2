from pydantic import BaseModel, Field, EmailStr

class UserRegister(BaseModel):
    user_email: EmailStr
    user_password: str = Field(min_length=8, max_length=64)

class RegisterResponse(BaseModel):
    user_id: str
    user_email: EmailStr
    message: str

class UserLogin(BaseModel):
    user_email: EmailStr
    user_password: str = Field(min_length=8, max_length=64)

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int

class TokenRefreshRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    user_email: EmailStr

class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=10)
    new_password: str = Field(min_length=8, max_length=64)

class MessageResponse(BaseModel):
    message: str
