from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from .models import AppointmentStatus


# Schemi Auth

class RegisterIn(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MeOut(BaseModel):
    id: str
    username: str
    is_active: bool


# Medici

class DoctorIn(BaseModel):
    name: str = Field(..., min_length=1)
    specialty: str = Field(..., min_length=1)
    bio: str = ""
    image_url: str = ""
    facebook_url: str | None = None
    twitter_url: str | None = None
    instagram_url: str | None = None
    linkedin_url: str | None = None
    years_experience: int = Field(0, ge=0)
    available: bool = True


class DoctorPatch(BaseModel):
    name: str | None = Field(None, min_length=1)
    specialty: str | None = Field(None, min_length=1)
    bio: str | None = None
    image_url: str | None = None
    facebook_url: str | None = None
    twitter_url: str | None = None
    instagram_url: str | None = None
    linkedin_url: str | None = None
    years_experience: int | None = Field(None, ge=0)
    available: bool | None = None


class DoctorOut(DoctorIn):
    id: str
    created_at: datetime
    updated_at: datetime


# Servizi

class ServiceIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    icon: str = ""
    category: str = "general"
    active: bool = True


class ServicePatch(BaseModel):
    name: str | None = Field(None, min_length=1)
    description: str | None = None
    icon: str | None = None
    category: str | None = None
    active: bool | None = None


class ServiceOut(ServiceIn):
    id: str
    created_at: datetime
    updated_at: datetime


# Appuntamenti

class AppointmentIn(BaseModel):
    # prenotazione dal sito pubblico: lo stato non si sceglie, parte sempre da 'pending'
    patient_name: str = Field(..., min_length=1)
    patient_email: str = Field(..., min_length=1)
    patient_phone: str | None = None
    doctor_id: str | None = None
    service_id: str | None = None
    appointment_date: date
    appointment_time: str = Field(..., min_length=1)
    notes: str | None = None


class AppointmentPatch(BaseModel):
    patient_name: str | None = Field(None, min_length=1)
    patient_email: str | None = Field(None, min_length=1)
    patient_phone: str | None = None
    doctor_id: str | None = None
    service_id: str | None = None
    appointment_date: date | None = None
    appointment_time: str | None = Field(None, min_length=1)
    notes: str | None = None
    status: str | None = None


class StatusIn(BaseModel):
    status: str


class AppointmentOut(BaseModel):
    id: str
    patient_name: str
    patient_email: str
    patient_phone: str | None
    doctor_id: str | None
    service_id: str | None
    appointment_date: date
    appointment_time: str
    notes: str | None
    # testo: uno stato futuro/legacy non deve rompere la lettura
    status: str
    created_at: datetime
    updated_at: datetime


class BookingOut(BaseModel):
    ok: bool = True
    appointment_id: str
    status: AppointmentStatus
    message: str


# Blog

class BlogPostPut(BaseModel):
    # sostituzione completa da staff: il contatore delle letture resta com'è
    title: str = Field(..., min_length=1)
    excerpt: str = ""
    content: str = ""
    image_url: str = ""
    author: str = "Admin"
    category: str = "general"
    published: bool = True


class BlogPostIn(BlogPostPut):
    views: int = Field(0, ge=0)


class BlogPostPatch(BaseModel):
    title: str | None = Field(None, min_length=1)
    excerpt: str | None = None
    content: str | None = None
    image_url: str | None = None
    author: str | None = None
    category: str | None = None
    published: bool | None = None
    views: int | None = Field(None, ge=0)


class BlogPostOut(BlogPostIn):
    id: str
    created_at: datetime
    updated_at: datetime


# Testimonianze

class TestimonialIn(BaseModel):
    patient_name: str = Field(..., min_length=1)
    patient_title: str = ""
    content: str = Field(..., min_length=1)
    rating: int = Field(5, ge=1, le=5)
    image_url: str | None = None
    active: bool = True


class TestimonialPatch(BaseModel):
    patient_name: str | None = Field(None, min_length=1)
    patient_title: str | None = None
    content: str | None = Field(None, min_length=1)
    rating: int | None = Field(None, ge=1, le=5)
    image_url: str | None = None
    active: bool | None = None


class TestimonialOut(TestimonialIn):
    id: str
    created_at: datetime
    updated_at: datetime
