"""Enums and fixed value lists for Deal Tracker."""

from enum import StrEnum


class UserRole(StrEnum):
    ADMIN = "admin"
    FOUNDER = "founder"


class MemberRole(StrEnum):
    FOUNDER = "founder"
    TEAM = "team"


class ProspectStage(StrEnum):
    NEW = "new"
    INTRO_MADE = "intro_made"
    RESPONDED_YES = "responded_yes"
    RESPONDED_NO = "responded_no"
    MEETING_SCHEDULED = "meeting_scheduled"
    DEMO_COMPLETED_YES = "demo_completed_yes"
    DEMO_COMPLETED_NO = "demo_completed_no"
    PROPOSAL_SENT = "proposal_sent"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]


STAGE_LABELS: dict[ProspectStage, str] = {
    ProspectStage.NEW: "New",
    ProspectStage.INTRO_MADE: "Intro Made",
    ProspectStage.RESPONDED_YES: "Responded (Yes)",
    ProspectStage.RESPONDED_NO: "Responded (No)",
    ProspectStage.MEETING_SCHEDULED: "Meeting Scheduled",
    ProspectStage.DEMO_COMPLETED_YES: "Demo Completed (Yes)",
    ProspectStage.DEMO_COMPLETED_NO: "Demo Completed (No)",
    ProspectStage.PROPOSAL_SENT: "Proposal Sent",
    ProspectStage.CLOSED_WON: "Closed Won",
    ProspectStage.CLOSED_LOST: "Closed Lost",
}


class ProspectFunction(StrEnum):
    MARKETING = "marketing"
    INSIGHTS = "insights"
    PARTNERSHIPS = "partnerships"
    OTHER = "other"


class MaterialType(StrEnum):
    PITCH_DECK = "pitch_deck"
    TREND_REPORT = "trend_report"
    OTHER = "other"


class ActivityType(StrEnum):
    STAGE_CHANGE = "stage_change"
    NOTE_ADDED = "note_added"
    MATERIAL_UPLOADED = "material_uploaded"
    PROSPECT_CREATED = "prospect_created"
    PROSPECT_UPDATED = "prospect_updated"


class ScriptChannel(StrEnum):
    TEXT = "text"
    EMAIL = "email"
    LINKEDIN = "linkedin"
    SOCIAL_MEDIA = "social_media"


INDUSTRIES: tuple[str, ...] = (
    "Advertising & Marketing",
    "Agency",
    "Alcohol & Spirits",
    "Apparel & Fashion",
    "Automotive",
    "Beauty & Cosmetics",
    "Consumer Electronics",
    "Consumer Packaged Goods (CPG)",
    "Entertainment & Media",
    "Financial Services",
    "Food & Beverage",
    "Gaming",
    "Healthcare & Pharma",
    "Hospitality & Travel",
    "Private Equity",
    "Quick Service Restaurant (QSR)",
    "Retail",
    "Sports & Fitness",
    "Technology",
    "Telecommunications",
    "Other",
)
