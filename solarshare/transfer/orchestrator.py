"""
Sends batches of files to one participant at a time.

Files go out one at a time, in the order given. A failed file does not stop
the batch; cancelling does, leaving the files that never started pending.
"""

import asyncio
import logging

from solarshare.config import DISPLAY_LINGER
from solarshare.errors import TransferCancelled
from solarshare.transfer.models import (
    TERMINAL_STATUSES,
    OutgoingFile,
    TransferJob,
    TransferStatus,
)

logger = logging.getLogger(__name__)


class TransferBatch:
    """The jobs and cancellation token of a single send_files call."""

    def __init__(self, jobs: list[TransferJob]) -> None:
        self.jobs = jobs
        self._cancelled = False
        self._in_flight: asyncio.Future | None = None
        self.finished = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop the batch: abort the current upload and start no more files."""
        if self.finished or self.cancelled:
            return
        self._cancelled = True
        if self._in_flight and not self._in_flight.done():
            self._in_flight.cancel()

    async def run_upload(self, func, *args):
        """Run a blocking upload in a worker thread, abandoning it on cancel."""
        if self.cancelled:
            raise TransferCancelled()
        self._in_flight = asyncio.ensure_future(asyncio.to_thread(func, *args))
        try:
            return await self._in_flight
        except asyncio.CancelledError:
            if self.cancelled:
                raise TransferCancelled() from None
            raise
        finally:
            self._in_flight = None


class TransferOrchestrator:
    """Drives file batches through an uploader and reports per-file status."""

    def __init__(self, uploader, linger: float = DISPLAY_LINGER) -> None:
        self._uploader = uploader
        self._linger = linger
        self._batches: list[TransferBatch] = []
        self._event_callbacks: list = []  # async fn(event_type, data)

    def on_event(self, callback) -> None:
        """Register callback: async fn(event_type: str, data: dict)."""
        self._event_callbacks.append(callback)

    async def _emit(self, event_type: str, data: dict) -> None:
        """Emit an event to all registered callbacks."""
        for cb in self._event_callbacks:
            try:
                await cb(event_type, data)
            except Exception as e:
                logger.error(f"Event callback error: {e}")

    @property
    def transfers(self) -> list[TransferJob]:
        """Jobs of every batch that is running or still lingering."""
        return [job for batch in self._batches for job in batch.jobs]

    @property
    def is_transferring(self) -> bool:
        return any(not b.finished for b in self._batches)

    def cancel(self, batch: TransferBatch | None = None) -> None:
        """Cancel `batch`, or the most recently started batch still running."""
        if batch is None:
            running = [b for b in self._batches if not b.finished]
            if not running:
                return
            batch = running[-1]
        logger.info("Cancelling transfer batch")
        batch.cancel()

    async def send_files(
        self,
        files: list[OutgoingFile],
        target_id: int,
        target_name: str,
        sender_id: int,
    ) -> None:
        """Upload `files` to `target_id` one after another."""
        if not files:
            return

        batch = TransferBatch([
            TransferJob(
                file_name=f.name,
                byte_size=f.size,
                target_id=target_id,
                target_name=target_name,
            )
            for f in files
        ])
        self._batches.append(batch)
        logger.info(f"Sending {len(files)} file(s) to {target_name} (ID: {target_id})")

        try:
            for job, file in zip(batch.jobs, files):
                if batch.cancelled:
                    break

                await self._set_status(job, TransferStatus.UPLOADING)
                try:
                    await batch.run_upload(self._uploader.upload, file, target_id, sender_id)
                except TransferCancelled:
                    job.error_message = "cancelled"
                    await self._set_status(job, TransferStatus.FAILED)
                    break
                except asyncio.CancelledError:
                    # The task running this batch was cancelled from outside
                    job.error_message = "interrupted"
                    await self._set_status(job, TransferStatus.FAILED)
                    raise
                except Exception as e:
                    logger.error(f"Failed to send {file.name}: {e}")
                    job.error_message = str(e)
                    await self._set_status(job, TransferStatus.FAILED)
                    continue

                job.progress_percent = 100.0
                await self._emit("transfer_progress", job.model_dump(mode="json"))
                await self._set_status(job, TransferStatus.COMPLETED)
                logger.info(f"File sent: {file.name} to {target_name}")
        finally:
            batch.finished = True
            asyncio.get_running_loop().call_later(self._linger, self._discard, batch)

        await self._emit("batch_finished", {
            "cancelled": batch.cancelled,
            "target_id": target_id,
            "completed": sum(j.status == TransferStatus.COMPLETED for j in batch.jobs),
            "failed": sum(j.status == TransferStatus.FAILED for j in batch.jobs),
            "pending": sum(j.status == TransferStatus.PENDING for j in batch.jobs),
        })
        if batch.cancelled:
            await self._emit("notification", {
                "type": "info",
                "message": f"Transfer to {target_name} cancelled.",
            })

    async def _set_status(self, job: TransferJob, status: TransferStatus) -> None:
        if job.status in TERMINAL_STATUSES:
            raise RuntimeError(f"{job.file_name} is already {job.status.value}")
        job.status = status
        await self._emit("transfer_state", job.model_dump(mode="json"))

        notification = None
        if status == TransferStatus.COMPLETED:
            notification = {
                "type": "success",
                "message": f"'{job.file_name}' sent to {job.target_name}.",
            }
        elif status == TransferStatus.FAILED and job.error_message != "cancelled":
            notification = {
                "type": "error",
                "message": f"Transfer of '{job.file_name}' failed: {job.error_message}",
            }
        if notification:
            await self._emit("notification", notification)

    def _discard(self, batch: TransferBatch) -> None:
        if batch in self._batches:
            self._batches.remove(batch)
