"""FastAPI application for the site scanner."""

import asyncio
import json
import logging
import time
from collections import deque
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Set, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sse_starlette.sse import EventSourceResponse

from .config import DetectionConfig, settings
from .http_client import close_session, get_session
from .models import (
    ProgressEvent,
    ScanJob,
    ScanRequest,
    ScanResult,
    ScanStatus,
    SimilarityMatch,
    SimilarityRequest,
)
from .scanner import SiteScanner
from .similarity import find_top_similarity_matches

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL = 300  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown hooks."""
    cleanup_task = asyncio.create_task(cleanup_old_scans())
    logger.info("Scan cleanup task started")

    await get_session()
    logger.info("HTTP client initialized")

    yield

    cleanup_task.cancel()
    await close_session()
    logger.info("HTTP client closed")


app = FastAPI(
    title="Site Scanner",
    description="Duplicate content and plagiarism detection for WordPress site scans",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS: origins from CORS_ORIGINS env var (comma-separated)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


class BroadcastChannel:
    """Broadcast channel that supports multiple subscribers."""

    def __init__(self):
        self.subscribers: Set[asyncio.Queue] = set()
        self._lock = asyncio.Lock()

    async def broadcast(self, event: ProgressEvent):
        """Send event to all subscribers."""
        async with self._lock:
            dead_subs = set()
            for sub_queue in self.subscribers:
                try:
                    sub_queue.put_nowait(event)
                except asyncio.QueueFull:
                    logger.warning("Dropping slow SSE subscriber (queue full)")
                    dead_subs.add(sub_queue)
            self.subscribers -= dead_subs

    async def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=100)
        async with self._lock:
            self.subscribers.add(queue)
        return queue

    async def unsubscribe(self, queue: asyncio.Queue):
        async with self._lock:
            self.subscribers.discard(queue)


# In-memory storage for scans (with timestamps for TTL cleanup)
scans: Dict[str, Tuple[ScanJob, float]] = {}
broadcast_channels: Dict[str, BroadcastChannel] = {}
scan_progress_history: Dict[str, deque] = {}  # last 20 events per scan


def forget_scan(scan_id: str) -> None:
    scans.pop(scan_id, None)
    broadcast_channels.pop(scan_id, None)
    scan_progress_history.pop(scan_id, None)


async def cleanup_old_scans():
    """Remove scans older than SCAN_TTL to prevent memory leaks."""
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL)
        now = time.time()
        expired = [sid for sid, (_, ts) in scans.items() if now - ts > settings.SCAN_TTL]
        for sid in expired:
            forget_scan(sid)
            logger.info(f"Removed expired scan: {sid}")


def build_scanner(request: ScanRequest, progress_callback=None) -> SiteScanner:
    config = DetectionConfig.from_settings()
    if not request.external_check:
        config = config.model_copy(update={"external_enabled": False})
    return SiteScanner(
        config=config,
        language=request.language,
        progress_callback=progress_callback,
    )


async def run_scan(scan_id: str, request: ScanRequest) -> None:
    """Run a scan job and publish its progress."""
    job, _ = scans[scan_id]
    channel = broadcast_channels[scan_id]
    history = scan_progress_history[scan_id]

    async def emit_progress(event: ProgressEvent) -> None:
        job.status = event.status
        history.append(event)
        await channel.broadcast(event)

    try:
        scanner = build_scanner(request, progress_callback=emit_progress)
        job.result = await scanner.scan(request.pages)
        job.status = ScanStatus.COMPLETED
    except Exception as e:
        logger.error(f"Scan {scan_id} failed: {e}", exc_info=True)
        job.status = ScanStatus.FAILED
        job.error_message = str(e)
        await emit_progress(ProgressEvent(
            status=ScanStatus.FAILED,
            progress=100,
            message=str(e),
            pages_total=job.pages_total,
            stage="failed",
        ))
    finally:
        job.completed_at = datetime.utcnow()
        scans[scan_id] = (job, time.time())


@app.post("/api/workers/scan-site", response_model=ScanResult)
async def scan_site_worker(request: ScanRequest):
    """Scan the given pages and return the result in the response."""
    scanner = build_scanner(request)
    return await scanner.scan(request.pages)


@app.post("/api/scans")
async def start_scan(request: ScanRequest, background_tasks: BackgroundTasks):
    """Start a scan in the background."""
    job = ScanJob(pages_total=len(request.pages))
    scans[job.id] = (job, time.time())
    broadcast_channels[job.id] = BroadcastChannel()
    scan_progress_history[job.id] = deque(maxlen=20)

    background_tasks.add_task(run_scan, job.id, request)
    return {"scan_id": job.id, "status": "started"}


@app.get("/api/scans/{scan_id}", response_model=ScanJob)
async def get_scan(scan_id: str):
    if scan_id not in scans:
        raise HTTPException(status_code=404, detail="Scan not found")
    return scans[scan_id][0]


@app.get("/api/scans/{scan_id}/status")
async def scan_status(scan_id: str):
    """SSE stream for scan progress."""
    if scan_id not in scans:
        raise HTTPException(status_code=404, detail="Scan not found")

    async def event_generator():
        channel = broadcast_channels.get(scan_id)
        if channel is None:
            yield {"event": "error", "data": json.dumps({"error": "Broadcast channel not found"})}
            return

        queue = await channel.subscribe()
        try:
            # Replay history for clients that connect late
            for event in list(scan_progress_history.get(scan_id, [])):
                yield {"event": "progress", "data": event.model_dump_json()}
                if event.status in (ScanStatus.COMPLETED, ScanStatus.FAILED):
                    return

            job, _ = scans.get(scan_id, (None, 0))
            if job is None or job.status in (ScanStatus.COMPLETED, ScanStatus.FAILED):
                return

            while True:
                event = await queue.get()
                yield {"event": "progress", "data": event.model_dump_json()}
                if event.status in (ScanStatus.COMPLETED, ScanStatus.FAILED):
                    return
        finally:
            await channel.unsubscribe(queue)

    return EventSourceResponse(event_generator())


@app.post("/api/similarity", response_model=List[SimilarityMatch])
async def similarity(request: SimilarityRequest):
    """Rank candidate texts by shingle similarity to one text."""
    min_score = request.min_score if request.min_score is not None else settings.SIMILARITY_MIN_SCORE
    return find_top_similarity_matches(
        request.text,
        request.candidates,
        min_score=min_score,
        limit=request.limit,
        config=DetectionConfig.from_settings(),
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
