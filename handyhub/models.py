"""Database models for the HandyHub API.

This module defines SQLAlchemy ORM models used by the application.
Every uniqueness rule is declared as a named constraint; the names are
what :mod:`handyhub.store` translates into domain conflicts.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base


class Account(Base):
    """
    SQLAlchemy model representing a marketplace account.

    An account may act as a customer, as a handyman, or both. It owns
    phone numbers, at most one profile image, advertised skills, works
    and the reviews it has written.
    """

    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("email", name="uq_accounts_email"),)

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    profile_image = relationship(
        "ProfileImage",
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
    )
    phone_numbers = relationship(
        "PhoneNumber",
        back_populates="account",
        cascade="all, delete-orphan",
    )
    works = relationship(
        "Work",
        back_populates="account",
        cascade="all, delete-orphan",
    )


class PhoneNumber(Base):
    """
    Phone number belonging to exactly one account.

    Numbers are unique across the whole system. At most one number per
    account is flagged primary; the service layer maintains that rule.
    """

    __tablename__ = "phone_numbers"
    __table_args__ = (
        UniqueConstraint("phone_number", name="uq_phone_numbers_phone_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phone_number = Column(String(50), nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    added_at = Column(DateTime, server_default=func.now(), nullable=False)

    account = relationship("Account", back_populates="phone_numbers")

    @property
    def owner_id(self) -> int:
        return self.account_id


class ProfileImage(Base):
    """Profile picture URL; an account has zero or one."""

    __tablename__ = "profile_images"

    account_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    profile_img_url = Column(String(500), nullable=False)
    uploaded_at = Column(DateTime, server_default=func.now(), nullable=False)

    account = relationship("Account", back_populates="profile_image")

    @property
    def owner_id(self) -> int:
        return self.account_id


class Skill(Base):
    """Global catalog entry, unique by name."""

    __tablename__ = "skills"
    __table_args__ = (UniqueConstraint("skill_name", name="uq_skills_skill_name"),)

    id = Column(Integer, primary_key=True, index=True)
    skill_name = Column(String(100), nullable=False)


class HandymanSkill(Base):
    """
    Skill advertised by an account together with years of experience.

    An account can register a given skill only once.
    """

    __tablename__ = "handyman_skills"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "skill_id", name="uq_handyman_skills_account_skill"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    skill_id = Column(
        Integer,
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
    )
    experience = Column(Integer, nullable=False, default=0)

    skill = relationship("Skill")

    @property
    def owner_id(self) -> int:
        return self.account_id

    @property
    def skill_name(self) -> str:
        return self.skill.skill_name


class Work(Base):
    """
    Portfolio entry created by an account.

    Images and reviews are removed together with the work.
    """

    __tablename__ = "works"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    account = relationship("Account", back_populates="works")
    images = relationship(
        "WorkImage",
        back_populates="work",
        cascade="all, delete-orphan",
        order_by="WorkImage.id",
    )
    reviews = relationship(
        "WorkReview",
        back_populates="work",
        cascade="all, delete-orphan",
    )

    @property
    def owner_id(self) -> int:
        return self.account_id


class WorkImage(Base):
    """Photo attached to a work; a URL appears at most once per work."""

    __tablename__ = "work_images"
    __table_args__ = (
        UniqueConstraint("work_id", "work_img_url", name="uq_work_images_work_url"),
    )

    id = Column(Integer, primary_key=True, index=True)
    work_id = Column(
        Integer,
        ForeignKey("works.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    work_img_url = Column(String(500), nullable=False)

    work = relationship("Work", back_populates="images")


class UserReview(Base):
    """
    Review written by one account about another.

    A reviewer reviews a given account at most once and never themself.
    """

    __tablename__ = "user_reviews"
    __table_args__ = (
        UniqueConstraint(
            "reviewer_id", "reviewee_id", name="uq_user_reviews_reviewer_reviewee"
        ),
        CheckConstraint("reviewer_id <> reviewee_id", name="ck_user_reviews_not_self"),
    )

    id = Column(Integer, primary_key=True, index=True)
    reviewer_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewee_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    review_text = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    reviewer = relationship("Account", foreign_keys=[reviewer_id])

    @property
    def owner_id(self) -> int:
        return self.reviewer_id


class WorkReview(Base):
    """Rated review of a work, at most one per reviewer and work."""

    __tablename__ = "work_reviews"
    __table_args__ = (
        UniqueConstraint("reviewer_id", "work_id", name="uq_work_reviews_reviewer_work"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_work_reviews_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    reviewer_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    work_id = Column(
        Integer,
        ForeignKey("works.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    reviewer = relationship("Account", foreign_keys=[reviewer_id])
    work = relationship("Work", back_populates="reviews")

    @property
    def owner_id(self) -> int:
        return self.reviewer_id
