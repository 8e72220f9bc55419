"""
Component wiring.

Builds every pipeline component around one shared Database handle. Used by
both the API process and the headless worker.
"""

from dataclasses import dataclass

from shootingstar.core.database import Database
from shootingstar.extractors import get_extractor
from shootingstar.extractors.base import BaseExtractor
from shootingstar.labels.normalizer import LabelNormalizer
from shootingstar.processors.committer import TaskCommitter
from shootingstar.processors.cycle import ProcessingCycle
from shootingstar.processors.review import ReviewService
from shootingstar.scheduler import CycleScheduler
from shootingstar.services.gmail import GmailClient
from shootingstar.services.todoist import TodoistClient


@dataclass
class Pipeline:
    db: Database
    gmail: GmailClient
    todoist: TodoistClient
    extractor: BaseExtractor
    normalizer: LabelNormalizer
    committer: TaskCommitter
    cycle: ProcessingCycle
    review: ReviewService
    scheduler: CycleScheduler


def build_pipeline(db: Database | None = None) -> Pipeline:
    """Construct all components. Nothing is started."""
    db = db or Database()
    gmail = GmailClient(db)
    todoist = TodoistClient()
    normalizer = LabelNormalizer()
    extractor = get_extractor(normalizer)
    committer = TaskCommitter(db, gmail, todoist)
    cycle = ProcessingCycle(db, gmail, extractor, normalizer, committer)

    return Pipeline(
        db=db,
        gmail=gmail,
        todoist=todoist,
        extractor=extractor,
        normalizer=normalizer,
        committer=committer,
        cycle=cycle,
        review=ReviewService(db, normalizer, committer),
        scheduler=CycleScheduler(db, cycle),
    )
