from __future__ import annotations

STATUS_ORDER: tuple[str, ...] = (
    "applied",
    "test_case",
    "hr_interview",
    "technical_interview",
    "management_interview",
    "offer",
    "accepted",
    "rejected",
)

STATUS_LABELS: dict[str, str] = {
    "applied": "Applied",
    "test_case": "Test Case",
    "hr_interview": "HR Interview",
    "technical_interview": "Technical Interview",
    "management_interview": "Management Interview",
    "offer": "Offer",
    "accepted": "Accepted",
    "rejected": "Rejected",
}

WORK_TYPES: tuple[str, ...] = ("remote", "hybrid", "onsite")

WORK_TYPE_LABELS: dict[str, str] = {
    "remote": "Remote",
    "hybrid": "Hybrid",
    "onsite": "On-site",
}

DEFAULT_SOURCES: tuple[str, ...] = (
    "LinkedIn",
    "Indeed",
    "Glassdoor",
    "Kariyer.net",
    "Company Website",
    "Referral",
    "AngelList",
    "WeWorkRemotely",
    "Remote.co",
    "Other",
)

DEFAULT_INDUSTRIES: tuple[str, ...] = (
    "Technology",
    "Finance",
    "Healthcare",
    "E-commerce",
    "Education",
    "Gaming",
    "Consulting",
    "Media & Entertainment",
    "Telecommunications",
    "Manufacturing",
    "Real Estate",
    "Travel & Hospitality",
    "Automotive",
    "Energy",
    "Food & Beverage",
    "Other",
)

RESUME_CONTENT_TYPE = "application/pdf"
RESUME_FILENAME = "resume.pdf"

VIEW_MODES: tuple[str, ...] = ("list", "kanban")
