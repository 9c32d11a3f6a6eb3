"""Expert registry: the six advisor personas and their routing keywords."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExpertProfile:
    """Display metadata for one expert persona."""

    id: str
    name: str
    icon: str
    description: str


AVAILABLE_AGENTS: dict[str, ExpertProfile] = {
    "pension": ExpertProfile(
        id="pension",
        name="מומחה פנסיה",
        icon="🏦",
        description="פנסיה, פרישה, קצבאות, ביטוח חיים, אובדן כושר עבודה",
    ),
    "mortgage": ExpertProfile(
        id="mortgage",
        name="מומחה משכנתא",
        icon="🏠",
        description="משכנתא, הלוואות דיור, מיחזור, קנייה מול שכירות",
    ),
    "investment": ExpertProfile(
        id="investment",
        name="מומחה השקעות",
        icon="📈",
        description="השקעות, שוק ההון, קרנות, חיסכון, תשואות",
    ),
    "tax": ExpertProfile(
        id="tax",
        name="מומחה מיסוי",
        icon="🧾",
        description="מס הכנסה, מס שבח, זיכויים, ניכויים, תכנון מס",
    ),
    "budget": ExpertProfile(
        id="budget",
        name="מומחה תקציב",
        icon="📊",
        description="תקציב אישי, ניהול הוצאות, חובות, קרן חירום, חיסכון",
    ),
    "general": ExpertProfile(
        id="general",
        name="יועץ פיננסי כללי",
        icon="💼",
        description="ניתוח פיננסי כללי, חישובים, השוואות, מושגים",
    ),
}

DEFAULT_AGENT = "general"

# Substring keywords for the local classifier. Matching is done on the
# lower-cased message, so Latin keywords must be lower-case here.
# "מס רכישה" is listed under both mortgage and tax.
KEYWORDS: dict[str, list[str]] = {
    "pension": [
        "פנסיה", "קצבה", "פרישה", "גמל", "קרן השתלמות", "ביטוח מנהלים",
        "אובדן כושר", "ביטוח חיים", "פיצויים", "גיל פרישה", "קצבת זקנה",
    ],
    "mortgage": [
        "משכנתא", "הלוואה לדיור", "מיחזור משכנתא", "לוח סילוקין",
        "מסלול פריים", "שכירות מול קנייה", "קנייה מול שכירות", "מס רכישה",
        "הון עצמי לדירה",
    ],
    "investment": [
        "השקעה", "מניות", 'אג"ח', "תשואה", "תיק השקעות", "קרן נאמנות",
        "etf", "בורסה", "שוק ההון", "ריבית דריבית", "קריפטו",
        "פיזור סיכונים", "תעודת סל",
    ],
    "tax": [
        "מס הכנסה", "מס שבח", "מס רכישה", "ניכוי מס", "זיכוי מס",
        "נקודות זיכוי", "החזר מס", "ביטוח לאומי", "שומת מס", "תכנון מס",
        "מדרגות מס", "עצמאי מס",
    ],
    "budget": [
        "תקציב", "הוצאות", "ניהול כספים", "חובות", "קרן חירום",
        "חיסכון חודשי", "הכנסה נטו", "הלוואה צרכנית", "כרטיס אשראי",
        "אוברדרפט",
    ],
}


def get_profile(agent_id: str) -> ExpertProfile:
    """Profile for an expert id; unknown ids resolve to the general advisor."""
    return AVAILABLE_AGENTS.get(agent_id, AVAILABLE_AGENTS[DEFAULT_AGENT])
