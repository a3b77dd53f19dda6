"""
Human-readable texts.

All customer- and translator-facing wording lives here as data; the engine
and dispatcher only pick which text to use.
"""

from datetime import datetime

from interpreter_booking.core.models import Job

DUE_FORMAT = "%Y-%m-%d %H:%M:%S"

# =============================================================================
# Result messages
# =============================================================================

FILL_ALL_FIELDS = "Du måste fylla in alla fält"
MAKE_A_CHOICE = "Du måste göra ett val här"
BOOKING_IN_PAST = "Can't create booking in past"
TRANSLATOR_CANNOT_BOOK = "Translator can not create booking"
INVALID_JOB_FOR = "Ogiltig kombination av önskemål"
INVALID_DUE = "Ogiltigt datum eller tid"

ALREADY_TAKEN = (
    "Denna tolkning har redan accepterats av annan tolk. Du har inte fått denna tolkning"
)
ONLY_TRANSLATORS_ACCEPT = "Endast tolkar kan acceptera bokningar"
CANNOT_WITHDRAW = "Bokningen kan inte avbokas i nuvarande status"
NO_ASSIGNMENT = "Bokningen har ingen tilldelad tolk"
NOT_YOUR_BOOKING = "Du är inte tilldelad denna bokning"
REOPENED = "Tolk cancelled!"
TRY_AGAIN = "Please try again!"
UPDATED = "Updated"
ADMIN_COMMENT_REQUIRED = "Admin comment is required for this status change"
SESSION_TIME_REQUIRED = "Session time is required to complete the booking"
TRANSLATOR_REQUIRED = "Assign a translator to mark the booking as assigned"
NOT_EXPIRED = "Bokningen har inte gått ut"
CHANGES_SAVED = "Changes saved"
RECORD_UPDATED = "Record updated!"
ADMIN_ONLY = "Only administrators can update bookings"
TRANSLATOR_NOT_FOUND = "Tolken finns inte"
CUSTOMER_NOT_FOUND = "Kunden finns inte"


def already_booked(due: datetime) -> str:
    return f"Du har redan en bokning den tiden {due:{DUE_FORMAT}}. Du har inte fått denna tolkning"


def accepted(language: str, job: Job) -> str:
    return (
        f"Du har nu accepterat och fått bokningen för {language}tolk "
        f"{job.duration}min {job.due:{DUE_FORMAT}}"
    )


def late_cancellation(support_phone: str) -> str:
    return (
        "Du kan inte avboka en bokning som sker inom 24 timmar genom DigitalTolk. "
        f"Vänligen ring på {support_phone} och gör din avbokning over telefon. Tack!"
    )


def reopening_comment(job_id: int) -> str:
    return f"This booking is a reopening of booking #{job_id}"


# =============================================================================
# E-mail subjects and templates
# =============================================================================

TEMPLATE_JOB_CREATED = "emails.job-created"
TEMPLATE_JOB_ACCEPTED = "emails.job-accepted"
TEMPLATE_SESSION_ENDED = "emails.session-ended"
TEMPLATE_STATUS_TO_CUSTOMER = "emails.job-change-status-to-customer"
TEMPLATE_CANCELLED_CUSTOMER = "emails.status-changed-from-pending-or-assigned-customer"
TEMPLATE_CANCELLED_TRANSLATOR = "emails.job-cancel-translator"
TEMPLATE_CHANGED_TRANSLATOR_CUSTOMER = "emails.job-changed-translator-customer"
TEMPLATE_CHANGED_TRANSLATOR_OLD = "emails.job-changed-translator-old-translator"
TEMPLATE_CHANGED_TRANSLATOR_NEW = "emails.job-changed-translator-new-translator"
TEMPLATE_CHANGED_DATE = "emails.job-changed-date"
TEMPLATE_CHANGED_LANGUAGE = "emails.job-changed-lang"


def subject_received(job_id: int) -> str:
    return f"Vi har mottagit er tolkbokning. Bokningsnr: #{job_id}"


def subject_accepted(job_id: int) -> str:
    return f"Bekräftelse - tolk har accepterat er bokning (bokning # {job_id})"


def subject_session_ended(job_id: int) -> str:
    return f"Information om avslutad tolkning för bokningsnummer # {job_id}"


def subject_reopened(language: str, job_id: int) -> str:
    return f"Vi har nu återöppnat er bokning av {language}tolk för bokning #{job_id}"


def subject_cancelled(job_id: int) -> str:
    return f"Avbokning av bokningsnr: #{job_id}"


def subject_changed_translator(job_id: int) -> str:
    return f"Meddelande om tilldelning av tolkuppdrag för uppdrag # {job_id})"


def subject_changed_booking(job_id: int) -> str:
    return f"Meddelande om ändring av tolkbokning för uppdrag # {job_id}"


# Invoice vs payout framing of the session-ended mail
FOR_TEXT_REQUESTER = "faktura"
FOR_TEXT_TRANSLATOR = "lön"


# =============================================================================
# Push texts
# =============================================================================


def suitable_job(language: str, job: Job) -> str:
    if job.immediate:
        return f"Ny akutbokning för {language}tolk {job.duration}min"
    return f"Ny bokning för {language}tolk {job.duration}min {job.due:{DUE_FORMAT}}"


def job_accepted(language: str, job: Job) -> str:
    return (
        f"Din bokning för {language}tolk, {job.duration}min, "
        f"{job.due:{DUE_FORMAT}} har accepterats av en tolk."
    )


def job_withdrawn(language: str, job: Job) -> str:
    return (
        f"Kunden har avbokat bokningen för {language}tolk, {job.duration}min, "
        f"{job.due:{DUE_FORMAT}}. Var god och kolla dina tidigare bokningar för detaljer."
    )


def translator_cancelled(language: str, job: Job) -> str:
    return (
        f"Er {language}tolk, {job.duration}min {job.due:{DUE_FORMAT}}, har avbokat "
        "tolkningen. Vi letar nu efter en ny tolk som kan ersätta denne. Tack."
    )


def job_expired(language: str, job: Job) -> str:
    return (
        f"Tyvärr har ingen tolk accepterat er bokning: ({language}, {job.duration}min, "
        f"{job.due:{DUE_FORMAT}}). Vänligen pröva boka om tiden."
    )


def session_ended(job: Job) -> str:
    return f"Tolkningen för bokning #{job.id} är avslutad. Glöm inte att ge feedback!"


def session_reminder(language: str, job: Job) -> str:
    day = f"{job.due:%Y-%m-%d}"
    clock = f"{job.due:%H:%M:%S}"
    if job.customer_physical_type:
        return (
            f"Detta är en påminnelse om att du har en {language}tolkning "
            f"(på plats i {job.town}) kl {clock} på {day} som vara i {job.duration} min. "
            "Lycka till och kom ihåg att ge feedback efter utförd tolkning!"
        )
    return (
        f"Detta är en påminnelse om att du har en {language}tolkning (telefon) "
        f"kl {clock} på {day} som vara i {job.duration} min. "
        "Lycka till och kom ihåg att ge feedback efter utförd tolkning!"
    )


# =============================================================================
# SMS texts
# =============================================================================


def convert_to_hours_mins(minutes: int) -> str:
    """Format a duration in minutes as "45min", "1h" or "01h 30min"."""
    if minutes < 60:
        return f"{minutes}min"
    if minutes == 60:
        return "1h"
    return f"{minutes // 60:02d}h {minutes % 60:02d}min"


def sms_phone_job(date: str, time: str, duration: str, job_id: int) -> str:
    return (
        f"Hej! Det finns en ny telefontolkning {date} kl {time}, {duration}. "
        f"Bokningsnr #{job_id}. Logga in i appen för att acceptera."
    )


def sms_physical_job(date: str, time: str, city: str, duration: str, job_id: int) -> str:
    return (
        f"Hej! Det finns en ny platstolkning i {city} {date} kl {time}, {duration}. "
        f"Bokningsnr #{job_id}. Logga in i appen för att acceptera."
    )


def session_time_text(session_time: str) -> str:
    """Render "H:MM:SS" as "H tim MM min"."""
    parts = session_time.split(":")
    minutes = parts[1] if len(parts) > 1 else "00"
    return f"{parts[0]} tim {minutes} min"
