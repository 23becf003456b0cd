"""
speakeval.pipeline - Batch evaluation orchestration.

Processes the responses of one test session strictly one at a time:
acquire video → extract audio → transcribe → evaluate → persist → clean up.
A failure at any stage marks that response FAILED and the batch moves on;
temporary media is removed on every exit path.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from speakeval.acquire.media import acquire_media
from speakeval.extract.audio import extract_audio
from speakeval.io import remove_artifact
from speakeval.llm.evaluator import Evaluator
from speakeval.logging import logger
from speakeval.models import BatchReport, ItemOutcome, ItemState, ResponseRecord
from speakeval.store.repository import ResponseStore
from speakeval.transcribe.engine import Transcriber
from speakeval.utils import format_size

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")

# Stage being attempted -> name used in logs and reports
STAGE_NAMES: dict[ItemState, str] = {
    ItemState.ACQUIRED: "acquisition",
    ItemState.EXTRACTED: "extraction",
    ItemState.TRANSCRIBED: "transcription",
    ItemState.EVALUATED: "evaluation",
    ItemState.PERSISTED: "persistence",
}


def artifact_paths(work_dir: Path, response_id: str) -> tuple[Path, Path]:
    """Return the (video, audio) temp paths claimed by a response."""
    safe_id = _UNSAFE_CHARS.sub("_", response_id)
    return work_dir / f"tmp_{safe_id}.mp4", work_dir / f"tmp_{safe_id}.wav"


@contextmanager
def temp_artifacts(work_dir: Path, response_id: str) -> Iterator[tuple[Path, Path]]:
    """Claim temp video/audio paths for a response and remove them on exit."""
    video_path, audio_path = artifact_paths(work_dir, response_id)
    work_dir.mkdir(parents=True, exist_ok=True)
    try:
        yield video_path, audio_path
    finally:
        remove_artifact(video_path)
        remove_artifact(audio_path)


def evaluate_response(
    record: ResponseRecord,
    store: ResponseStore,
    transcriber: Transcriber,
    evaluator: Evaluator,
    config: Any,
) -> ItemOutcome:
    """Run one response through every pipeline stage.

    Never raises for per-item failures; the returned outcome carries the
    stage that failed and the cause.

    Args:
        record: Response snapshot to evaluate
        store: Open ResponseStore used for the write-back
        transcriber: Speech-to-text backend
        evaluator: Transcript scoring backend
        config: EvalConfig instance

    Returns:
        ItemOutcome in state CLEANED, FAILED, or SKIPPED
    """
    if not record.video_url:
        logger.info("Response %s has no video, skipping", record.id)
        return ItemOutcome(
            response_id=record.id,
            state=ItemState.SKIPPED,
            error="No media reference",
        )

    stage = ItemState.ACQUIRED
    transcript = None
    result = None

    with temp_artifacts(Path(config.work_dir), record.id) as (video_path, audio_path):
        try:
            logger.info("Acquiring video for response %s...", record.id)
            acquire_media(
                record.video_url,
                video_path,
                chunk_size=config.download_chunk_size,
            )
            logger.debug("Video for %s: %s", record.id, format_size(video_path))

            stage = ItemState.EXTRACTED
            logger.info("Extracting audio for response %s...", record.id)
            extract_audio(video_path, audio_path, ffmpeg=config.ffmpeg_path)

            stage = ItemState.TRANSCRIBED
            logger.info("Transcribing audio for response %s...", record.id)
            transcript = transcriber.transcribe(audio_path)

            stage = ItemState.EVALUATED
            logger.info("Evaluating transcript for response %s...", record.id)
            result = evaluator.evaluate(transcript, record.question_text)

            stage = ItemState.PERSISTED
            store.save_result(record.id, transcript, result)

        except Exception as e:
            logger.error(
                "Response %s failed during %s: %s",
                record.id,
                STAGE_NAMES[stage],
                e,
            )
            return ItemOutcome(
                response_id=record.id,
                state=ItemState.FAILED,
                failed_stage=stage,
                error=str(e),
            )

    return ItemOutcome(
        response_id=record.id,
        state=ItemState.CLEANED,
        transcript=transcript,
        result=result,
    )


def run_batch(
    candidate_test_id: str,
    store: ResponseStore,
    transcriber: Transcriber,
    evaluator: Evaluator,
    config: Any,
    skip_processed: bool = False,
    console=None,
) -> BatchReport:
    """Evaluate every response of a test session.

    Args:
        candidate_test_id: Test session whose responses are processed
        store: Open ResponseStore
        transcriber: Speech-to-text backend
        evaluator: Transcript scoring backend
        config: EvalConfig instance
        skip_processed: Leave responses that already have results untouched
        console: Optional rich console for output

    Returns:
        BatchReport with one outcome per response, in fetch order

    Raises:
        BatchLoadError: If the responses cannot be enumerated
    """
    from rich.table import Table

    report = BatchReport(candidate_test_id=candidate_test_id)
    records = store.fetch_responses(candidate_test_id)
    logger.info("Loaded %d response(s) for test %s", len(records), candidate_test_id)

    table = Table(title=f"Evaluation: {candidate_test_id}")
    table.add_column("Response", style="cyan")
    table.add_column("Score", style="green")
    table.add_column("Level", style="green")
    table.add_column("Status", style="yellow")

    for record in records:
        if skip_processed and record.is_processed:
            report.items.append(
                ItemOutcome(
                    response_id=record.id,
                    state=ItemState.SKIPPED,
                    error="Already evaluated",
                )
            )
            table.add_row(record.id, "-", "-", "[dim]Skipped (already evaluated)[/dim]")
            continue

        outcome = evaluate_response(record, store, transcriber, evaluator, config)
        report.items.append(outcome)

        if outcome.state == ItemState.CLEANED and outcome.result is not None:
            table.add_row(
                record.id,
                f"{outcome.result.score:.0f}",
                outcome.result.level.value,
                "[green]✓ Evaluated[/green]",
            )
        elif outcome.state == ItemState.SKIPPED:
            table.add_row(record.id, "-", "-", f"[dim]Skipped ({outcome.error})[/dim]")
        else:
            stage = STAGE_NAMES.get(outcome.failed_stage, "unknown")
            table.add_row(record.id, "-", "-", f"[red]Failed during {stage}: {outcome.error}[/red]")

    report.finished_at = datetime.now()

    if console:
        console.print(table)

    return report
