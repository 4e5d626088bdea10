"""
Explanation-by-case narratives attached to every action as its reason.

Deadline bands:
  overdue      — consequence framing, immediate action
  ≤ 7 days     — urgent framing (grace-period caveat for skilled expatriates)
  ≤ 30 days    — start now to avoid last-minute complications
  further out  — early preparation
"""

from typing import Optional

from hayat_kernel.models.family import FamilyRole, ResidencyType
from hayat_kernel.models.obligation import EscalationLevel, ObligationRecord


def plural_days(days: int) -> str:
    days = abs(days)
    return f"{days} day" if days == 1 else f"{days} days"


def deadline_phrase(verb_past: str, verb_future: str, days: int) -> str:
    """e.g. ``expired 5 days ago`` / ``expires today`` / ``expires in 3 days``."""
    if days < 0:
        return f"{verb_past} {plural_days(days)} ago"
    if days == 0:
        return f"{verb_future} today"
    return f"{verb_future} in {plural_days(days)}"


def visa_reason(residency_type: Optional[ResidencyType], days: int) -> str:
    if days < 0:
        if residency_type == ResidencyType.TOURIST:
            return (
                "Overstaying as a tourist can result in fines and future entry bans. "
                "Immediate action required."
            )
        if residency_type == ResidencyType.DOMESTIC_WORKER:
            return (
                "Overstaying can result in fines and affect your employment status. "
                "Contact your sponsor immediately."
            )
        if residency_type == ResidencyType.SKILLED_EXPAT:
            return (
                "Overstaying your visa can result in fines, legal issues, and affect "
                "future residency applications. You may have a grace period, but "
                "action is urgent."
            )
        return (
            "Overstaying can result in fines and legal consequences. "
            "Immediate action required."
        )

    if days <= 7:
        if residency_type == ResidencyType.SKILLED_EXPAT:
            caveat = (
                "You may have a grace period after expiry, but renewal should be "
                "initiated now."
            )
        else:
            caveat = "Renewal must be completed before expiry."
        return f"Your visa expires in {plural_days(days)}. {caveat}"

    if days <= 30:
        return (
            f"Your visa expires in {plural_days(days)}. Starting renewal now ensures "
            f"completion before expiry and avoids last-minute complications."
        )

    return (
        f"Your visa expires in {plural_days(days)}. "
        f"Early preparation allows for smooth renewal."
    )


def emirates_id_reason(days: int) -> str:
    if days < 0:
        return (
            "Expired Emirates ID restricts access to government services and banking. "
            "Immediate action required."
        )
    if days <= 7:
        return (
            "Your Emirates ID expires within a week. Renew now to avoid losing access "
            "to government services."
        )
    if days <= 30:
        return (
            "Renewal should be started now and completed before expiry to avoid "
            "service disruptions and last-minute complications."
        )
    return "Early preparation ensures a smooth Emirates ID renewal."


def vaccination_reason(role: Optional[FamilyRole], days: int) -> str:
    if days < 0:
        if role == FamilyRole.CHILD:
            return (
                "Overdue vaccination can affect school enrollment and residency status "
                "for children. Immediate action required."
            )
        return (
            "Overdue mandatory vaccination can affect residency status. "
            "Immediate action required."
        )
    if days <= 7:
        return (
            "Vaccination is due soon. Missing mandatory vaccinations can result in "
            "school enrollment issues and affect residency status."
        )
    if days <= 30:
        return (
            "Vaccination is due this month. Book now to avoid last-minute "
            "complications with clinic availability."
        )
    return (
        "Upcoming vaccination requirement. Early scheduling ensures compliance "
        "and avoids last-minute issues."
    )


def medical_fitness_reason(days: int) -> str:
    if days < 0:
        return (
            "The medical fitness test has expired, which puts residency status at "
            "legal risk. Immediate action required."
        )
    if days <= 30:
        return (
            "Medical fitness test expiry can affect residency status. Start renewal "
            "now to avoid last-minute complications."
        )
    return "Medical fitness test renewal is coming up. Early preparation keeps residency on track."


def insurance_reason(days: int, valid: bool = True) -> str:
    if not valid:
        return "Invalid insurance can affect visa renewal and access to healthcare."
    if days < 0:
        return (
            "Health insurance has lapsed. Uninsured residents face fines and visa "
            "renewal is blocked. Immediate action required."
        )
    if days <= 30:
        return (
            "Insurance renewal is required for visa maintenance. Renew now to avoid "
            "a coverage gap."
        )
    return "Insurance renewal is required for visa maintenance. Early preparation avoids a coverage gap."


def fine_message(fine: ObligationRecord, escalation: EscalationLevel) -> str:
    """Tone-escalated message for one parking fine."""
    where = fine.issuer or "the UAE"
    amount = f"{fine.amount:g} AED" if fine.amount is not None else "the fine"
    if escalation == EscalationLevel.FRIENDLY:
        return (
            f"You have a parking fine in {where}. Pay within the discount window to "
            f"save money. The fine amount is {amount}, but you can pay a discounted "
            f"amount if you act soon."
        )
    if escalation == EscalationLevel.URGENT:
        return (
            f"Your parking fine discount window is closing soon. Pay now to avoid the "
            f"full fine amount. The fine is {amount} in {where}."
        )
    return (
        f"The discount window for your parking fine has expired. The full amount of "
        f"{amount} is now due. Please pay immediately to avoid additional penalties."
    )
