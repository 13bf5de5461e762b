from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def new_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppointmentStatus(str, enum.Enum):
    """
    Stati riconosciuti dal flusso di lavoro dello staff.
    Su DB lo stato resta testo libero: qui è la variante chiusa lato applicazione.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: "str | AppointmentStatus | None") -> "AppointmentStatus | None":
        """Ritorna lo stato corrispondente o None se il testo non è riconosciuto."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class EntityKind(str, enum.Enum):
    DOCTOR = "doctor"
    SERVICE = "service"
    APPOINTMENT = "appointment"
    BLOG_POST = "blog_post"
    TESTIMONIAL = "testimonial"


class Doctor(Base):
    __tablename__ = "doctors"
    __table_args__ = (Index("idx_doctors_available", "available"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    specialty: Mapped[str] = mapped_column(String(120), nullable=False)
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)
    image_url: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    facebook_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    twitter_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    instagram_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    years_experience: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # niente cascade: alla cancellazione del medico gli appuntamenti restano (doctor_id -> NULL)
    appointments: Mapped[list["Appointment"]] = relationship(back_populates="doctor", passive_deletes=True)

    def __repr__(self) -> str:
        return f"Doctor({self.name}, {self.specialty})"


class Service(Base):
    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    icon: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    category: Mapped[str] = mapped_column(String(80), default="general", nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="service", passive_deletes=True)

    def __repr__(self) -> str:
        return f"Service({self.name}, {self.category})"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_date", "appointment_date"),
        Index("idx_appointments_doctor", "doctor_id"),
        Index("idx_appointments_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)

    patient_name: Mapped[str] = mapped_column(String(160), nullable=False)
    patient_email: Mapped[str] = mapped_column(String(160), nullable=False)
    patient_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)

    doctor_id: Mapped[str | None] = mapped_column(ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    service_id: Mapped[str | None] = mapped_column(ForeignKey("services.id", ondelete="SET NULL"), nullable=True)

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    appointment_time: Mapped[str] = mapped_column(String(40), nullable=False)  # etichetta dello slot, es. "10:00"
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # testo libero su DB (stati futuri), validato da lifecycle.py
    status: Mapped[str] = mapped_column(String(20), default=AppointmentStatus.PENDING.value, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    doctor: Mapped["Doctor"] = relationship(back_populates="appointments")
    service: Mapped["Service"] = relationship(back_populates="appointments")


class BlogPost(Base):
    __tablename__ = "blog_posts"
    __table_args__ = (Index("idx_blog_posts_published", "published"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    excerpt: Mapped[str] = mapped_column(Text, default="", nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    image_url: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    author: Mapped[str] = mapped_column(String(120), default="Admin", nullable=False)
    category: Mapped[str] = mapped_column(String(80), default="general", nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Testimonial(Base):
    __tablename__ = "testimonials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    patient_name: Mapped[str] = mapped_column(String(160), nullable=False)
    patient_title: Mapped[str] = mapped_column(String(160), default="", nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, default=5, nullable=False)  # 1..5, validato in services.py
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


MODEL_BY_KIND: dict[EntityKind, type[Base]] = {
    EntityKind.DOCTOR: Doctor,
    EntityKind.SERVICE: Service,
    EntityKind.APPOINTMENT: Appointment,
    EntityKind.BLOG_POST: BlogPost,
    EntityKind.TESTIMONIAL: Testimonial,
}
