"""
ARQ Background Worker for Async Jobs
Handles count report emails and the daily subscription maintenance crons
"""

import logging
import os

from arq.cron import cron

from .database import SessionLocal
from .domain.batches.repository import BatchRepository
from .domain.billing.subscription_service import SubscriptionService
from .services.background import get_redis_settings
from .services.notifications import send_count_reports

logger = logging.getLogger(__name__)


async def send_count_report_emails_task(_ctx, batch_id: int, church_id: str):
    """
    Email the count report for a finalized batch to every report recipient

    Args:
        ctx: ARQ context
        batch_id: Batch ID
        church_id: Owning church ID
    """
    logger.info(f"Starting count report emails for batch {batch_id}")

    db = SessionLocal()
    try:
        batch = BatchRepository.get_batch_by_id(db, batch_id, church_id, with_donations=True)
        if not batch:
            logger.warning(f"⚠️ Batch {batch_id} not found for church {church_id}, skipping count report")
            return {"status": "skipped", "sent": 0, "failed": 0}

        result = await send_count_reports(db, batch)
        logger.info(f"✅ Count report for batch {batch_id}: {result['sent']} sent, {result['failed']} failed")
        return {"status": "completed", **result}
    finally:
        db.close()


async def sync_stripe_subscriptions_task(ctx):
    """
    Daily cron job to pull the state of every linked Stripe subscription
    """
    logger.info("🔄 Starting Stripe subscription sync")

    db = SessionLocal()
    try:
        result = SubscriptionService(db).sync_all_from_stripe()
        logger.info(f"Stripe sync complete: {result['synced']} synced, {result['failed']} failed")
        return result
    finally:
        db.close()


async def expire_trials_task(ctx):
    """Daily cron job to mark lapsed trials as expired"""
    db = SessionLocal()
    try:
        expired = SubscriptionService(db).expire_trials()
        logger.info(f"⏰ Trial expiry check complete: {expired} expired")
        return {"expired": expired}
    finally:
        db.close()


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [
        send_count_report_emails_task,
        sync_stripe_subscriptions_task,
        expire_trials_task,
    ]
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "10"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "300"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))

    health_check_interval = 60
    max_tries = 3

    cron_jobs = [
        cron(expire_trials_task, hour=0, minute=5),  # 12:05 AM UTC
        cron(sync_stripe_subscriptions_task, hour=3, minute=0),  # 3 AM UTC
    ]

    logger.info(f"🔧 ARQ Worker configured: max_jobs={max_jobs}, timeout={job_timeout}s")
