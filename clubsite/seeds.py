"""
Default records returned by the local fallback before anything is saved, and
the page text written to an empty remote store.
"""

from __future__ import annotations


def _avatar(name: str, background: str, color: str = "fff") -> str:
    return (
        "https://ui-avatars.com/api/?name="
        + name.replace(" ", "+")
        + f"&background={background}&color={color}"
    )


SAMPLE_USERS = [
    {
        "id": "admin1",
        "name": "Admin User",
        "email": "admin@folk.com",
        "role": "admin",
        "avatar": _avatar("Admin User", "C8102E"),
    },
    {
        "id": "mem1",
        "name": "Maria Dan",
        "email": "member@folk.com",
        "role": "member",
        "avatar": _avatar("Maria Dan", "002B7F"),
    },
    {
        "id": "mem2",
        "name": "Ion Popa",
        "email": "ion@folk.com",
        "role": "member",
        "avatar": _avatar("Ion Popa", "FCD116", "000"),
    },
]

SAMPLE_EVENTS = [
    {
        "id": "1",
        "title": "Spring Folk Festival",
        "date": "2024-03-15",
        "time": "14:00",
        "location": "Community Center Main Hall",
        "description": "Our annual spring festival with traditional dances from Transylvania.",
        "type": "performance",
        "attendees": [],
        "image": "https://images.unsplash.com/photo-1541963463532-d68292c34b19?auto=format&fit=crop&w=800&q=80",
    },
    {
        "id": "2",
        "title": "Beginner Dance Workshop",
        "date": "2024-04-10",
        "time": "18:30",
        "location": "Studio B",
        "description": "Learn the basics of the Hora. No partner needed.",
        "type": "workshop",
        "attendees": [],
        "image": "https://images.unsplash.com/photo-1516483638261-f4dbaf036963?auto=format&fit=crop&w=800&q=80",
    },
]

SAMPLE_GALLERY = [
    {
        "id": "1",
        "url": "https://images.unsplash.com/photo-1533174072545-e8d4aa97edf9?auto=format&fit=crop&w=600&q=80",
        "caption": "Festival 2023",
        "source": "upload",
        "dateAdded": "2023-09-15",
    },
    {
        "id": "2",
        "url": "https://images.unsplash.com/photo-1524368535928-5b5e00ddc76b?auto=format&fit=crop&w=600&q=80",
        "caption": "Costume details",
        "source": "instagram",
        "dateAdded": "2023-10-01",
    },
    {
        "id": "3",
        "url": "https://images.unsplash.com/photo-1504609773096-104ff2c73ba4?auto=format&fit=crop&w=600&q=80",
        "caption": "Group photo",
        "source": "upload",
        "dateAdded": "2023-11-20",
    },
]

SAMPLE_TESTIMONIALS = [
    {
        "id": "1",
        "author": "Elena Popescu",
        "role": "Member since 2020",
        "text": "This club reconnected me with my roots. The instructors are wonderful.",
        "approved": True,
    },
    {
        "id": "2",
        "author": "John Smith",
        "role": "Visitor",
        "text": "Saw them perform at the city parade. Incredible energy!",
        "approved": True,
    },
    {
        "id": "3",
        "author": "Ana Radu",
        "role": "Student",
        "text": "Still waiting for approval on this one.",
        "approved": False,
    },
]

DEFAULT_PAGE_CONTENT = [
    {
        "id": "hero_subtitle",
        "description": "Hero - Subtitle",
        "text": {
            "en": "Dance, music and tradition from Romania, right here in our community.",
            "ro": "Dans, muzică și tradiție din România, chiar aici în comunitatea noastră.",
            "fr": "Danse, musique et tradition de Roumanie, ici même dans notre communauté.",
        },
    },
    {
        "id": "about_text",
        "description": "About Us - Main Paragraph",
        "text": {
            "en": "Since 1995 we have kept Romanian heritage alive in the region through the Hora, our embroidered costumes and our community gatherings.",
            "ro": "Din 1995 păstrăm vie moștenirea românească în regiune prin Horă, costumele noastre brodate și întâlnirile comunității.",
            "fr": "Depuis 1995, nous faisons vivre le patrimoine roumain dans la région à travers la Hora, nos costumes brodés et nos rassemblements.",
        },
    },
    {
        "id": "contact_subtitle",
        "description": "Contact Section - Subtitle",
        "text": {
            "en": "Interested in joining the club, booking a performance, or just saying hello?",
            "ro": "Vrei să te alături clubului, să rezervi un spectacol sau doar să ne saluți?",
            "fr": "Envie de rejoindre le club, de réserver un spectacle ou simplement de dire bonjour ?",
        },
    },
]
