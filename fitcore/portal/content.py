"""
Static landing content: about highlights, membership plans and contact details.
"""

from __future__ import annotations

from dataclasses import dataclass

from fitcore.db.models import MembershipType


GYM_NAME = "FitCore"


@dataclass(frozen=True)
class Highlight:
    title: str
    text: str


@dataclass(frozen=True)
class PricingPlan:
    tier: MembershipType
    name: str
    monthly_price: int
    features: tuple[str, ...]
    featured: bool = False


@dataclass(frozen=True)
class ContactDetails:
    address: str
    phone: str
    email: str
    hours: tuple[str, ...]


ABOUT_HIGHLIGHTS: tuple[Highlight, ...] = (
    Highlight(
        "Expert Trainers",
        "Our certified trainers bring years of experience and personalized attention to every session.",
    ),
    Highlight(
        "Premium Equipment",
        "State-of-the-art machines and equipment to support all your fitness goals and preferences.",
    ),
    Highlight(
        "Supportive Community",
        "Join a motivated community that celebrates every victory and supports you through challenges.",
    ),
)

PRICING_PLANS: tuple[PricingPlan, ...] = (
    PricingPlan(
        MembershipType.BASIC,
        "Basic",
        29,
        ("Access to gym equipment", "Locker room access", "Basic fitness assessment"),
    ),
    PricingPlan(
        MembershipType.PRO,
        "Pro",
        59,
        (
            "Everything in Basic",
            "Group fitness classes",
            "Personal training (2 sessions)",
            "Nutrition consultation",
        ),
        featured=True,
    ),
    PricingPlan(
        MembershipType.ELITE,
        "Elite",
        99,
        (
            "Everything in Pro",
            "Unlimited personal training",
            "VIP amenities access",
            "Priority booking",
        ),
    ),
)

CONTACT_DETAILS = ContactDetails(
    address="123 Fitness Street, Gym City, GC 12345",
    phone="(555) 123-4567",
    email="info@fitcore.com",
    hours=("Mon-Fri: 5AM-11PM", "Sat-Sun: 7AM-9PM"),
)


def plan_for(tier: MembershipType) -> PricingPlan:
    for plan in PRICING_PLANS:
        if plan.tier is tier:
            return plan
    raise KeyError(tier)
