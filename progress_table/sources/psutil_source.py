from __future__ import annotations

import asyncio
import logging
import socket
from typing import Dict, List, Optional

import psutil

from ..table.events import AGGREGATE_SCOPE_ID, ProfileEventRow, ValueKind
from ..table.registry import MetricRegistry
from ..utils.errors import ProcessExitedError, SourceError

logger = logging.getLogger("progress_table.sources.psutil")


class PsutilEventSource:
    """Turn the resource counters of a local process into profiling events.

    psutil reports running totals; each sample emits the difference since the
    previous one as a cumulative event, so the first sample only sets the
    baseline. Memory and thread count are emitted as gauges.
    """

    def __init__(
        self,
        pid: Optional[int] = None,
        *,
        include_system_network: bool = True,
        host: Optional[str] = None,
    ) -> None:
        try:
            self.process = psutil.Process(pid)
        except psutil.Error as e:
            raise SourceError(f"Cannot observe process {pid}: {e}") from e
        self.include_system_network = include_system_network
        self.host = host or socket.gethostname()
        self._totals: Dict[str, int] = {}
        self._unavailable: set[str] = set()

    def _read_totals(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        with self.process.oneshot():
            cpu = self.process.cpu_times()
            totals["UserTimeMicroseconds"] = int(cpu.user * 1e6)
            totals["SystemTimeMicroseconds"] = int(cpu.system * 1e6)

            ctx = self.process.num_ctx_switches()
            totals["ContextSwitches"] = ctx.voluntary + ctx.involuntary

            if "io" not in self._unavailable:
                try:
                    io = self.process.io_counters()
                except (AttributeError, psutil.AccessDenied):
                    # Not provided on every platform.
                    logger.debug("I/O counters unavailable for pid %s", self.process.pid)
                    self._unavailable.add("io")
                else:
                    totals["OSReadBytes"] = io.read_bytes
                    totals["OSWriteBytes"] = io.write_bytes
                    totals["OSReadSyscalls"] = io.read_count
                    totals["OSWriteSyscalls"] = io.write_count

        if self.include_system_network:
            net = psutil.net_io_counters()
            if net is not None:
                totals["NetworkReceiveBytes"] = net.bytes_recv
                totals["NetworkSendBytes"] = net.bytes_sent
        return totals

    def sample(self) -> List[ProfileEventRow]:
        try:
            totals = self._read_totals()
            rss = self.process.memory_info().rss
            threads = self.process.num_threads()
        except psutil.NoSuchProcess as e:
            raise ProcessExitedError(f"Observed process {self.process.pid} exited") from e
        except psutil.Error as e:
            raise SourceError(f"Cannot sample process {self.process.pid}: {e}") from e

        rows: List[ProfileEventRow] = []
        for name, total in totals.items():
            previous = self._totals.get(name)
            self._totals[name] = total
            if previous is None:
                continue
            rows.append(
                ProfileEventRow(
                    AGGREGATE_SCOPE_ID, name, self.host, total - previous, ValueKind.CUMULATIVE
                )
            )
        rows.append(
            ProfileEventRow(AGGREGATE_SCOPE_ID, "MemoryResidentBytes", self.host, rss, ValueKind.GAUGE)
        )
        rows.append(
            ProfileEventRow(AGGREGATE_SCOPE_ID, "ThreadCount", self.host, threads, ValueKind.GAUGE)
        )
        return rows

    async def run(self, registry: MetricRegistry, interval: float) -> None:
        """Sample every ``interval`` seconds until cancelled or the process exits.

        Any other sampling failure propagates as :class:`SourceError`.
        """
        logger.info("Sampling pid %s every %.2fs", self.process.pid, interval)
        while True:
            try:
                # /proc reads block; keep them off the loop that drives rendering.
                rows = await asyncio.to_thread(self.sample)
            except ProcessExitedError:
                logger.warning("Stopped sampling pid %s: process exited", self.process.pid)
                return
            registry.ingest(rows)
            await asyncio.sleep(interval)
