"""
Translator eligibility matching.

Decides which translators may be offered a job, and the reverse: which
pending jobs a translator may take. Read-only.
"""

import logging

from interpreter_booking.core.contracts import JobStore, TranslatorDirectory
from interpreter_booking.core.models import (
    Certification,
    Job,
    JobStatus,
    JobType,
    TranslatorLevel,
    TranslatorProfile,
    TranslatorType,
)

logger = logging.getLogger(__name__)


JOB_TYPE_FOR_TRANSLATOR: dict[TranslatorType, JobType] = {
    TranslatorType.PROFESSIONAL: JobType.PAID,
    TranslatorType.RWS_TRANSLATOR: JobType.RWS,
    TranslatorType.VOLUNTEER: JobType.UNPAID,
}

CERTIFIED_LEVELS = frozenset(
    {
        TranslatorLevel.CERTIFIED,
        TranslatorLevel.CERTIFIED_LAW,
        TranslatorLevel.CERTIFIED_HEALTH,
    }
)
LAYMAN_LEVELS = frozenset({TranslatorLevel.LAYMAN, TranslatorLevel.READ_COURSES})

ACCEPTED_LEVELS: dict[Certification, frozenset[TranslatorLevel]] = {
    Certification.YES: CERTIFIED_LEVELS,
    Certification.BOTH: CERTIFIED_LEVELS | LAYMAN_LEVELS,
    Certification.LAW: frozenset({TranslatorLevel.CERTIFIED_LAW}),
    Certification.N_LAW: frozenset({TranslatorLevel.CERTIFIED_LAW}),
    Certification.HEALTH: frozenset({TranslatorLevel.CERTIFIED_HEALTH}),
    Certification.N_HEALTH: frozenset({TranslatorLevel.CERTIFIED_HEALTH}),
    Certification.NORMAL: LAYMAN_LEVELS,
}


def _normalize_towns(towns: set[str]) -> set[str]:
    return {town.strip().lower() for town in towns if town and town.strip()}


def accepts_level(certified: Certification | None, levels: set[TranslatorLevel]) -> bool:
    """Check a translator's levels against a job's certification requirement."""
    if certified is None:
        return True
    return bool(ACCEPTED_LEVELS[certified] & levels)


def is_eligible(
    job: Job,
    translator: TranslatorProfile,
    blacklist: set[int],
    requester_towns: set[str],
) -> bool:
    """
    Apply every eligibility filter to one translator.

    Filters, in order: job type, language, gender, certification, blacklist,
    and for physical-only jobs a shared town with the requester.
    """
    if JOB_TYPE_FOR_TRANSLATOR[translator.translator_type] != job.job_type:
        return False
    if job.from_language_id not in translator.languages:
        return False
    if job.gender is not None and translator.gender != job.gender:
        return False
    if not accepts_level(job.certified, translator.levels):
        return False
    if translator.user_id in blacklist:
        return False
    if job.is_physical_only:
        shared = _normalize_towns(translator.towns) & _normalize_towns(requester_towns)
        if not shared:
            return False
    return True


class EligibilityMatcher:
    """
    Filters the translator pool for a job.

    Usage:
        matcher = EligibilityMatcher(directory, store)
        translators = await matcher.find_eligible(job)
    """

    def __init__(self, directory: TranslatorDirectory, store: JobStore | None = None) -> None:
        self._directory = directory
        self._store = store

    async def _requester_towns(self, customer_id: int) -> set[str]:
        customer = await self._directory.customer(customer_id)
        if customer is None:
            return set()
        towns = set(customer.towns)
        if not towns and customer.city:
            towns.add(customer.city)
        return towns

    async def find_eligible(self, job: Job) -> list[TranslatorProfile]:
        """
        Find translators qualified for a job.

        Args:
            job: Job to match

        Returns:
            Eligible translators ordered by user id (may be empty)
        """
        blacklist = await self._directory.blacklist_of(job.user_id)
        towns = await self._requester_towns(job.user_id)

        seen: set[int] = set()
        eligible: list[TranslatorProfile] = []
        for translator in sorted(
            await self._directory.list_active(), key=lambda t: t.user_id
        ):
            if translator.user_id in seen:
                continue
            if is_eligible(job, translator, blacklist, towns):
                seen.add(translator.user_id)
                eligible.append(translator)

        logger.debug(f"Job {job.id}: {len(eligible)} eligible translators")
        return eligible

    async def find_potential_jobs(self, translator_id: int) -> list[Job]:
        """
        Find pending jobs a translator may accept.

        Args:
            translator_id: Translator user id

        Returns:
            Pending jobs the translator is eligible for, by due date
        """
        if self._store is None:
            raise RuntimeError("EligibilityMatcher needs a job store for job lookup")

        translator = await self._directory.profile(translator_id)
        if translator is None:
            return []

        potential: list[Job] = []
        for job in await self._store.list_by_status([JobStatus.PENDING]):
            blacklist = await self._directory.blacklist_of(job.user_id)
            towns = await self._requester_towns(job.user_id)
            if is_eligible(job, translator, blacklist, towns):
                potential.append(job)
        return sorted(potential, key=lambda j: j.due)
