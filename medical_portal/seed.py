from __future__ import annotations

import logging

from sqlalchemy import select

from .db import db_session
from .models import BlogPost, Doctor, Service, Testimonial

logger = logging.getLogger(__name__)

DOCTORS = [
    ("Dr. Sarah Johnson", "Cardiology",
     "Board-certified cardiologist with over 15 years of experience in treating heart conditions and preventive cardiology.",
     "img/doctor/doctor_1.png", 15),
    ("Dr. Michael Chen", "Internal Medicine",
     "Expert in internal medicine specializing in chronic disease management and preventive care.",
     "img/doctor/doctor_4.png", 12),
    ("Dr. Emily Rodriguez", "Pediatrics",
     "Dedicated pediatrician providing comprehensive care for children from infancy through adolescence.",
     "img/doctor/doctor_2.png", 10),
    ("Dr. James Williams", "Orthopedics",
     "Orthopedic surgeon specializing in sports injuries and joint replacement procedures.",
     "img/doctor/doctor_3.png", 18),
]

SERVICES = [
    ("Eye Treatment", "Comprehensive eye care including examinations, disease treatment, and surgical procedures.",
     "ti-eye", "specialty"),
    ("Skin Surgery", "Advanced dermatological procedures for skin conditions and cosmetic improvements.",
     "ti-layers", "surgery"),
    ("Diagnosis Clinic", "State-of-the-art diagnostic services with latest medical technology.",
     "ti-clipboard", "diagnostic"),
    ("Dental Care", "Full-service dental care including preventive, restorative, and cosmetic dentistry.",
     "ti-heart", "dental"),
    ("Neurology Service", "Expert neurological care for brain and nervous system disorders.",
     "ti-pulse", "specialty"),
    ("Plastic Surgery", "Reconstructive and cosmetic surgery performed by experienced surgeons.",
     "ti-user", "surgery"),
]

BLOG_POSTS = [
    ("The Importance of Regular Health Checkups",
     "Discover why annual health screenings are essential for maintaining optimal health and preventing disease.",
     "Regular health checkups are a cornerstone of preventive medicine...",
     "img/blog/blog_1.png", "Dr. Sarah Johnson", "Health Tips"),
    ("Understanding Heart Health",
     "Learn about cardiovascular health and simple lifestyle changes that can improve your heart function.",
     "Your heart is one of the most vital organs in your body...",
     "img/blog/blog_2.png", "Dr. Michael Chen", "Cardiology"),
    ("Nutrition Tips for a Healthy Life",
     "Expert advice on maintaining a balanced diet and making smart nutritional choices.",
     "Good nutrition is the foundation of good health...",
     "img/blog/blog_3.png", "Dr. Emily Rodriguez", "Nutrition"),
]

TESTIMONIALS = [
    ("John Anderson", "Business Executive",
     "The care I received at this medical center was exceptional. The doctors are knowledgeable, caring, "
     "and truly invested in their patients well-being.", 5),
    ("Maria Garcia", "Teacher",
     "Outstanding medical facility with state-of-the-art equipment and compassionate staff. "
     "I highly recommend their services.", 5),
    ("Robert Taylor", "Engineer",
     "Professional, efficient, and patient-centered care. The appointment system is easy to use "
     "and the staff is always helpful.", 5),
]


def seed_base() -> int:
    """
    Popola i contenuti di esempio del sito (idempotente, match per chiave naturale):
    - medici (nome + specialità)
    - servizi (nome)
    - articoli (titolo)
    - testimonianze (nome paziente + testo)
    Ritorna il numero di righe inserite.
    """
    added = 0
    with db_session() as s:
        for name, specialty, bio, image_url, years in DOCTORS:
            exists = s.execute(
                select(Doctor).where(Doctor.name == name, Doctor.specialty == specialty)
            ).scalar_one_or_none()
            if exists is None:
                s.add(Doctor(name=name, specialty=specialty, bio=bio, image_url=image_url, years_experience=years))
                added += 1

        for name, description, icon, category in SERVICES:
            if s.execute(select(Service).where(Service.name == name)).scalar_one_or_none() is None:
                s.add(Service(name=name, description=description, icon=icon, category=category))
                added += 1

        for title, excerpt, content, image_url, author, category in BLOG_POSTS:
            if s.execute(select(BlogPost).where(BlogPost.title == title)).scalar_one_or_none() is None:
                s.add(
                    BlogPost(
                        title=title, excerpt=excerpt, content=content,
                        image_url=image_url, author=author, category=category,
                    )
                )
                added += 1

        for patient_name, patient_title, content, rating in TESTIMONIALS:
            exists = s.execute(
                select(Testimonial).where(Testimonial.patient_name == patient_name, Testimonial.content == content)
            ).scalar_one_or_none()
            if exists is None:
                s.add(Testimonial(patient_name=patient_name, patient_title=patient_title, content=content, rating=rating))
                added += 1

    if added:
        logger.info("Seed: inserite %d righe", added)
    return added
