from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

PHONE_PATTERN = r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$"


class AccountBase(BaseModel):
    """Shared fields for account schemas."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr


class AccountCreate(AccountBase):
    """Registration payload."""

    password: str = Field(min_length=6)


class AccountUpdate(BaseModel):
    """Profile update (all fields optional)."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)


class AccountOut(AccountBase):
    """Public account data."""

    id: int

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    """Credentials for obtaining an identity token."""

    email: EmailStr
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    """Account together with a freshly issued bearer token."""

    user: AccountOut
    token: str
    token_type: str = "bearer"


class Token(BaseModel):
    """OAuth2 token response."""

    access_token: str
    token_type: str = "bearer"


class PhoneNumberCreate(BaseModel):
    """Schema for adding a phone number."""

    phone_number: str = Field(pattern=PHONE_PATTERN, max_length=50)
    is_primary: bool = False


class PhoneNumberUpdate(BaseModel):
    """Schema for changing a phone number (all fields optional)."""

    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN, max_length=50)
    is_primary: Optional[bool] = None


class PhoneNumberOut(BaseModel):
    id: int
    account_id: int
    phone_number: str
    is_primary: bool
    is_verified: bool
    added_at: datetime

    class Config:
        from_attributes = True


class ProfileImageUpdate(BaseModel):
    profile_img_url: str = Field(min_length=1, max_length=500)


class ProfileImageOut(BaseModel):
    account_id: int
    profile_img_url: str
    uploaded_at: datetime

    class Config:
        from_attributes = True


class ProfileOut(AccountOut):
    """Own account with profile image and phone numbers."""

    profile_img_url: Optional[str] = None
    profile_img_uploaded: Optional[datetime] = None
    phone_numbers: List[PhoneNumberOut] = []


class SkillCreate(BaseModel):
    skill_name: str = Field(min_length=1, max_length=100)


class SkillOut(BaseModel):
    id: int
    skill_name: str

    class Config:
        from_attributes = True


class HandymanSkillCreate(BaseModel):
    """Attach a catalog skill to the current account."""

    skill_id: int = Field(ge=1)
    experience: int = Field(ge=0)


class HandymanSkillUpdate(BaseModel):
    experience: int = Field(ge=0)


class HandymanSkillOut(BaseModel):
    account_id: int
    skill_id: int
    skill_name: str
    experience: int

    class Config:
        from_attributes = True


class WorkCreate(BaseModel):
    """Schema for creating a work together with its photos."""

    title: str = Field(min_length=1, max_length=255)
    images: List[str] = []


class WorkUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class WorkImageIn(BaseModel):
    work_img_url: str = Field(min_length=1, max_length=500)


class WorkOut(BaseModel):
    """Work with its image URLs and rating statistics."""

    id: int
    account_id: int
    title: str
    images: List[str] = []
    review_count: int = 0
    average_rating: float = 0.0


class WorkImageOut(BaseModel):
    work_id: int
    work_img_url: str

    class Config:
        from_attributes = True


class WorkDetailOut(WorkOut):
    """Single work including the creator's name."""

    first_name: str
    last_name: str


class UserReviewCreate(BaseModel):
    reviewee_id: int = Field(ge=1)
    review_text: str = Field(min_length=10)


class UserReviewUpdate(BaseModel):
    review_text: str = Field(min_length=10)


class UserReviewOut(BaseModel):
    id: int
    reviewer_id: int
    reviewee_id: int
    review_text: str
    created_at: datetime

    class Config:
        from_attributes = True


class ReviewerInfo(BaseModel):
    """Reviewer fields attached to listed reviews."""

    reviewer_first_name: str
    reviewer_last_name: str
    reviewer_profile_img: Optional[str] = None


class UserReviewListItem(UserReviewOut, ReviewerInfo):
    pass


class WorkReviewCreate(BaseModel):
    work_id: int = Field(ge=1)
    rating: int = Field(ge=1, le=5)
    review_text: str = Field(min_length=10)


class WorkReviewUpdate(BaseModel):
    """Schema for updating a work review (all fields optional)."""

    rating: Optional[int] = Field(None, ge=1, le=5)
    review_text: Optional[str] = Field(None, min_length=10)


class WorkReviewOut(BaseModel):
    id: int
    reviewer_id: int
    work_id: int
    rating: int
    review_text: str
    created_at: datetime

    class Config:
        from_attributes = True


class WorkReviewListItem(WorkReviewOut, ReviewerInfo):
    pass


class WorkReviewList(BaseModel):
    """Reviews of one work with read-time statistics."""

    count: int
    average_rating: float
    reviews: List[WorkReviewListItem]


class Message(BaseModel):
    message: str
