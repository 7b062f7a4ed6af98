"""
Lead import pipeline for scraper CSV exports.

Flow:
1. Reject non-CSV uploads before reading any content
2. Parse the text into header-keyed rows (see csv_parser)
3. Map each row to a candidate Lead, scoring and tiering it
4. Drop rows whose name never resolved
5. Drop candidates whose name already exists in the store (case-insensitive)
6. Prepend the accepted leads, log one activity, persist

Partially garbled rows never block an import; they are skipped silently.
Duplicates are counted and dropped, never merged into the stored lead.
"""

from dataclasses import dataclass, field

import structlog

from ..errors import LeadImportError, NoValidRowsError, NotCSVError
from ..logging import PipelineTimer, logging_context
from ..models import ActivityType, Lead, LeadSource, LeadStatus, LeadTier, Platform
from ..store import Store
from ..utils import new_id, parse_int
from .csv_parser import parse_csv

logger = structlog.get_logger(__name__)

NAME_PLACEHOLDER = 'Unknown'
DEFAULT_SCORE = 50
CSV_CONTENT_TYPES = frozenset({
    'text/csv',
    'application/csv',
    'text/x-csv',
    'application/vnd.ms-excel',
})


# =============================================================================
# Row Mapping
# =============================================================================


def _first(row: dict[str, str], *keys: str, default: str = '') -> str:
    """First non-empty value among the named columns."""
    for key in keys:
        value = row.get(key)
        if value:
            return value
    return default


def lead_from_row(row: dict[str, str]) -> Lead:
    """
    Map one normalized CSV row to a candidate Lead.

    Numeric columns parse leniently; unparseable or missing values fall back
    to followers=0, avg viewers=0, score=50. Score is clamped to 0-100.
    """
    score = parse_int(_first(row, 'lead score', 'score'), DEFAULT_SCORE)

    return Lead(
        name=_first(row, 'display name', 'login', 'name', default=NAME_PLACEHOLDER),
        email=_first(row, 'business email', 'email'),
        platform=Platform.TWITCH,
        source=LeadSource.SCRAPER,
        followers=max(0, parse_int(row.get('followers'), 0)),
        avg_viewers=max(0, parse_int(row.get('avg viewers'), 0)),
        score=min(100, max(0, score)),
        status=LeadStatus.NEW,
        broadcaster_type=row.get('broadcaster type', ''),
        primary_game=row.get('primary game', ''),
        twitter=row.get('twitter', ''),
        youtube=row.get('youtube', ''),
        instagram=row.get('instagram', ''),
        discord=row.get('discord', ''),
        twitch_url=row.get('twitch url', ''),
        description=row.get('description', ''),
    )


# =============================================================================
# Result Models
# =============================================================================


@dataclass
class ImportPreview:
    """Candidate leads from a parsed file, before they touch the store."""

    leads: list[Lead]

    def count_tier(self, tier: LeadTier) -> int:
        return sum(1 for lead in self.leads if lead.tier == tier)

    @property
    def summary(self) -> str:
        return (
            f'Found {len(self.leads)} leads ready to import. '
            f'{self.count_tier(LeadTier.HOT)} hot, '
            f'{self.count_tier(LeadTier.WARM)} warm, '
            f'{self.count_tier(LeadTier.COLD)} cold.'
        )


@dataclass
class ImportResult:
    """
    Outcome of an import.

    error is set (and accepted is empty) when the file was rejected; the
    store is untouched in that case.
    """

    accepted: list[Lead] = field(default_factory=list)
    duplicate_count: int = 0
    error: LeadImportError | None = None
    timings: dict = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        if self.duplicate_count:
            return (
                f'Imported {len(self.accepted)} leads '
                f'({self.duplicate_count} duplicates skipped)'
            )
        return f'Imported {len(self.accepted)} leads'


# =============================================================================
# LeadImporter
# =============================================================================


class LeadImporter:
    """Parses scraper CSV exports and merges the new leads into a store."""

    def __init__(self, store: Store):
        self.store = store

    @staticmethod
    def check_file(filename: str | None = None, content_type: str | None = None) -> None:
        """
        Reject uploads that are not CSV files.

        Raises:
            NotCSVError: Wrong extension or content type
        """
        if filename is not None and not filename.lower().endswith('.csv'):
            raise NotCSVError('Please upload a CSV file', context={'filename': filename})
        if content_type is not None:
            mime = content_type.split(';', 1)[0].strip().lower()
            if mime not in CSV_CONTENT_TYPES:
                raise NotCSVError(
                    'Please upload a CSV file', context={'content_type': content_type}
                )

    def parse(
        self,
        csv_text: str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> list[Lead]:
        """
        Parse CSV text into candidate leads, without deduplication.

        Raises:
            NotCSVError: The upload is not a CSV file
            EmptyFileError: Fewer than two lines
            NoValidRowsError: No row resolved to a named lead
        """
        self.check_file(filename, content_type)

        parsed = parse_csv(csv_text)
        leads = []
        for row in parsed.rows:
            lead = lead_from_row(row)
            if lead.name and lead.name != NAME_PLACEHOLDER:
                leads.append(lead)

        logger.info(
            'importer.parsed',
            rows=len(parsed.rows),
            short_rows=parsed.skipped_short_rows,
            leads=len(leads),
        )

        if not leads:
            raise NoValidRowsError(
                'No valid leads found in file',
                context={'rows': len(parsed.rows)},
            )
        return leads

    def preview(
        self,
        csv_text: str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ImportPreview:
        """Parse a file for confirmation; raises the same errors as parse()."""
        return ImportPreview(leads=self.parse(csv_text, filename, content_type))

    def commit(self, candidates: list[Lead]) -> ImportResult:
        """
        Merge previously parsed candidates into the store.

        Candidates whose name matches a stored lead (case-insensitive) are
        counted as duplicates and dropped. Accepted leads are prepended in
        file order.
        """
        existing = {lead.name.lower() for lead in self.store.leads}
        accepted = [lead for lead in candidates if lead.name.lower() not in existing]
        result = ImportResult(
            accepted=accepted,
            duplicate_count=len(candidates) - len(accepted),
        )

        with self.store.transaction():
            self.store.leads[:0] = accepted
            self.store.add_activity(
                ActivityType.LEAD_ADDED,
                f'{len(accepted)} leads imported from Twitch Scraper',
            )

        logger.info(
            'importer.committed',
            accepted=len(accepted),
            duplicates=result.duplicate_count,
        )
        return result

    def import_leads(
        self,
        csv_text: str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ImportResult:
        """
        Parse, deduplicate and merge a CSV export in one step.

        Import problems (not a CSV, empty file, no valid rows) are reported
        in ImportResult.error; persistence failures propagate.

        Args:
            csv_text: Fully buffered file contents
            filename: Upload name, checked for a .csv extension
            content_type: Upload MIME type, if known

        Returns:
            ImportResult with accepted leads and the duplicate count
        """
        timer = PipelineTimer()
        with logging_context(operation='import_leads', import_batch=new_id()):
            try:
                with timer.stage('parse'):
                    candidates = self.parse(csv_text, filename, content_type)
            except LeadImportError as exc:
                logger.warning(
                    'importer.rejected',
                    error_type=type(exc).__name__,
                    error=exc.message,
                )
                return ImportResult(error=exc, timings=timer.summary())

            with timer.stage('commit'):
                result = self.commit(candidates)

        result.timings = timer.summary()
        timer.log('importer.timed', accepted=len(result.accepted))
        return result
