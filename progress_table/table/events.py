from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Optional

# Rows with this scope id carry totals for the whole query on one host.
AGGREGATE_SCOPE_ID = 0


class ValueKind(IntEnum):
    CUMULATIVE = 0
    GAUGE = 1


class ValueType(str, Enum):
    NUMBER = "number"
    BYTES = "bytes"
    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"


@dataclass(frozen=True)
class ProfileEventRow:
    """One row of a profiling-event batch."""

    scope_id: int
    name: str
    host: str
    value: int
    kind: ValueKind = ValueKind.CUMULATIVE


@dataclass(frozen=True)
class EventInfo:
    value_type: ValueType
    documentation: str


EVENT_CATALOG: Dict[str, EventInfo] = {
    "Query": EventInfo(ValueType.NUMBER, "Number of queries to be interpreted and potentially executed."),
    "SelectedRows": EventInfo(ValueType.NUMBER, "Number of rows selected to read from all tables."),
    "SelectedBytes": EventInfo(ValueType.BYTES, "Number of bytes (uncompressed) selected to read from all tables."),
    "SelectedParts": EventInfo(ValueType.NUMBER, "Number of data parts selected to read from all tables."),
    "SelectedMarks": EventInfo(ValueType.NUMBER, "Number of marks (index granules) selected to read."),
    "ReadCompressedBytes": EventInfo(ValueType.BYTES, "Number of bytes read from compressed sources (files, network)."),
    "CompressedReadBufferBlocks": EventInfo(ValueType.NUMBER, "Number of compressed blocks read from compressed sources."),
    "InsertedRows": EventInfo(ValueType.NUMBER, "Number of rows inserted into all tables."),
    "InsertedBytes": EventInfo(ValueType.BYTES, "Number of bytes (uncompressed) inserted into all tables."),
    "RealTimeMicroseconds": EventInfo(ValueType.MICROSECONDS, "Total wall clock time spent in processing threads."),
    "UserTimeMicroseconds": EventInfo(ValueType.MICROSECONDS, "Total time spent executing user space code."),
    "SystemTimeMicroseconds": EventInfo(ValueType.MICROSECONDS, "Total time spent executing kernel code."),
    "OSCPUWaitMicroseconds": EventInfo(ValueType.MICROSECONDS, "Total time a thread was ready for execution but waiting to be scheduled."),
    "DiskReadElapsedMicroseconds": EventInfo(ValueType.MICROSECONDS, "Total time spent waiting for read syscall."),
    "NetworkReceiveElapsedMicroseconds": EventInfo(ValueType.MICROSECONDS, "Total time spent waiting for data to receive from network."),
    "QueryProfilerRuns": EventInfo(ValueType.NUMBER, "Number of times the query profiler has been run."),
    "LockAcquireNanoseconds": EventInfo(ValueType.NANOSECONDS, "Total time spent acquiring internal locks."),
    "ZooKeeperWaitMilliseconds": EventInfo(ValueType.MILLISECONDS, "Total time spent waiting for coordination responses."),
    "OSReadBytes": EventInfo(ValueType.BYTES, "Number of bytes read from disks or block devices."),
    "OSWriteBytes": EventInfo(ValueType.BYTES, "Number of bytes written to disks or block devices."),
    "OSReadSyscalls": EventInfo(ValueType.NUMBER, "Number of read system calls."),
    "OSWriteSyscalls": EventInfo(ValueType.NUMBER, "Number of write system calls."),
    "ContextSwitches": EventInfo(ValueType.NUMBER, "Number of voluntary and involuntary context switches."),
    "NetworkReceiveBytes": EventInfo(ValueType.BYTES, "Total number of bytes received from network."),
    "NetworkSendBytes": EventInfo(ValueType.BYTES, "Total number of bytes sent to network."),
    "MemoryResidentBytes": EventInfo(ValueType.BYTES, "Resident set size of the observed process."),
    "ThreadCount": EventInfo(ValueType.NUMBER, "Number of threads of the observed process."),
}


def get_event_info(name: str) -> Optional[EventInfo]:
    return EVENT_CATALOG.get(name)
