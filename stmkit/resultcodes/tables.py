"""Read-only lookup tables of known Task Scheduler and COM/OLE result codes."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class ResultCodeEntry:
    """Symbolic constant name and description for one known code."""

    name: str
    message: str


@dataclass(frozen=True)
class ResultCodeTablesDetails:
    """Summary of table coverage for diagnostics and logging."""

    sources: tuple[Path, ...]
    task_scheduler_count: int
    common_count: int


@dataclass(frozen=True)
class ResultCodeTables:
    """Both known-code tables, keyed by the unsigned 32-bit pattern of each code."""

    task_scheduler: Mapping[int, ResultCodeEntry]
    common: Mapping[int, ResultCodeEntry]
    sources: tuple[Path, ...] = ()

    def details(self) -> ResultCodeTablesDetails:
        return ResultCodeTablesDetails(
            sources=self.sources,
            task_scheduler_count=len(self.task_scheduler),
            common_count=len(self.common),
        )


def _freeze(rows: tuple[tuple[int, str, str], ...]) -> Mapping[int, ResultCodeEntry]:
    return MappingProxyType({code: ResultCodeEntry(name, message) for code, name, message in rows})


_TASK_SCHEDULER_ROWS: tuple[tuple[int, str, str], ...] = (
    (0x00041300, "SCHED_S_TASK_READY", "The task is ready to run at its next scheduled time."),
    (0x00041301, "SCHED_S_TASK_RUNNING", "The task is currently running."),
    (
        0x00041302,
        "SCHED_S_TASK_DISABLED",
        "The task will not run at the scheduled times because it has been disabled.",
    ),
    (0x00041303, "SCHED_S_TASK_HAS_NOT_RUN", "The task has not yet run."),
    (0x00041304, "SCHED_S_TASK_NO_MORE_RUNS", "There are no more runs scheduled for this task."),
    (
        0x00041305,
        "SCHED_S_TASK_NOT_SCHEDULED",
        "One or more of the properties that are needed to run this task on a schedule "
        "have not been set.",
    ),
    (0x00041306, "SCHED_S_TASK_TERMINATED", "The last run of the task was terminated by the user."),
    (
        0x00041307,
        "SCHED_S_TASK_NO_VALID_TRIGGERS",
        "Either the task has no triggers or the existing triggers are disabled or not set.",
    ),
    (0x00041308, "SCHED_S_EVENT_TRIGGER", "Event triggers do not have set run times."),
    (0x80041309, "SCHED_E_TRIGGER_NOT_FOUND", "A task's trigger is not found."),
    (
        0x8004130A,
        "SCHED_E_TASK_NOT_READY",
        "One or more of the properties required to run this task have not been set.",
    ),
    (0x8004130B, "SCHED_E_TASK_NOT_RUNNING", "There is no running instance of the task."),
    (
        0x8004130C,
        "SCHED_E_SERVICE_NOT_INSTALLED",
        "The Task Scheduler service is not installed on this computer.",
    ),
    (0x8004130D, "SCHED_E_CANNOT_OPEN_TASK", "The task object could not be opened."),
    (
        0x8004130E,
        "SCHED_E_INVALID_TASK",
        "The object is either an invalid task object or is not a task object.",
    ),
    (
        0x8004130F,
        "SCHED_E_ACCOUNT_INFORMATION_NOT_SET",
        "No account information could be found in the Task Scheduler security database "
        "for the task indicated.",
    ),
    (
        0x80041310,
        "SCHED_E_ACCOUNT_NAME_NOT_FOUND",
        "Unable to establish existence of the account specified.",
    ),
    (
        0x80041311,
        "SCHED_E_ACCOUNT_DBASE_CORRUPT",
        "Corruption was detected in the Task Scheduler security database; "
        "the database has been reset.",
    ),
    (
        0x80041312,
        "SCHED_E_NO_SECURITY_SERVICES",
        "Task Scheduler security services are available only on Windows NT.",
    ),
    (
        0x80041313,
        "SCHED_E_UNKNOWN_OBJECT_VERSION",
        "The task object version is either unsupported or invalid.",
    ),
    (
        0x80041314,
        "SCHED_E_UNSUPPORTED_ACCOUNT_OPTION",
        "The task has been configured with an unsupported combination of account settings "
        "and run time options.",
    ),
    (0x80041315, "SCHED_E_SERVICE_NOT_RUNNING", "The Task Scheduler Service is not running."),
    (0x80041316, "SCHED_E_UNEXPECTEDNODE", "The task XML contains an unexpected node."),
    (
        0x80041317,
        "SCHED_E_NAMESPACE",
        "The task XML contains an element or attribute from an unexpected namespace.",
    ),
    (
        0x80041318,
        "SCHED_E_INVALIDVALUE",
        "The task XML contains a value which is incorrectly formatted or out of range.",
    ),
    (
        0x80041319,
        "SCHED_E_MISSINGNODE",
        "The task XML is missing a required element or attribute.",
    ),
    (0x8004131A, "SCHED_E_MALFORMEDXML", "The task XML is malformed."),
    (
        0x0004131B,
        "SCHED_S_SOME_TRIGGERS_FAILED",
        "The task is registered, but not all specified triggers will start the task.",
    ),
    (
        0x0004131C,
        "SCHED_S_BATCH_LOGON_PROBLEM",
        "The task is registered, but may fail to start. Batch logon privilege needs to be "
        "enabled for the task principal.",
    ),
    (
        0x8004131D,
        "SCHED_E_TOO_MANY_NODES",
        "The task XML contains too many nodes of the same type.",
    ),
    (
        0x8004131E,
        "SCHED_E_PAST_END_BOUNDARY",
        "The task cannot be started after the trigger end boundary.",
    ),
    (0x8004131F, "SCHED_E_ALREADY_RUNNING", "An instance of this task is already running."),
    (
        0x80041320,
        "SCHED_E_USER_NOT_LOGGED_ON",
        "The task will not run because the user is not logged on.",
    ),
    (
        0x80041321,
        "SCHED_E_INVALID_TASK_HASH",
        "The task image is corrupt or has been tampered with.",
    ),
    (0x80041322, "SCHED_E_SERVICE_NOT_AVAILABLE", "The Task Scheduler service is not available."),
    (
        0x80041323,
        "SCHED_E_SERVICE_TOO_BUSY",
        "The Task Scheduler service is too busy to handle your request. Please try again later.",
    ),
    (
        0x80041324,
        "SCHED_E_TASK_ATTEMPTED",
        "The Task Scheduler service attempted to run the task, but the task did not run due "
        "to one of the constraints in the task definition.",
    ),
    (0x00041325, "SCHED_S_TASK_QUEUED", "The Task Scheduler service has asked the task to run."),
    (0x80041326, "SCHED_E_TASK_DISABLED", "The task is disabled."),
    (
        0x80041327,
        "SCHED_E_TASK_NOT_V1_COMPAT",
        "The task has properties that are not compatible with earlier versions of Windows.",
    ),
    (
        0x80041328,
        "SCHED_E_START_ON_DEMAND",
        "The task settings do not allow the task to start on demand.",
    ),
    (
        0x80041329,
        "SCHED_E_TASK_NOT_UBPM_COMPAT",
        "The combination of properties that task is using is not compatible with the "
        "scheduling engine.",
    ),
    (
        0x80041330,
        "SCHED_E_DEPRECATED_FEATURE_USED",
        "The task definition uses a deprecated feature.",
    ),
    (
        6200,
        "SCHED_E_SERVICE_NOT_LOCALSYSTEM",
        "The Task Scheduler service must be configured to run in the System account to "
        "function properly.",
    ),
)

# Well-known HRESULTs from winerror.h that scheduled task actions commonly report.
_COMMON_ROWS: tuple[tuple[int, str, str], ...] = (
    (0x00000000, "S_OK", "The operation completed successfully."),
    (0x8000FFFF, "E_UNEXPECTED", "Catastrophic failure."),
    (0x80004001, "E_NOTIMPL", "Not implemented."),
    (0x80004002, "E_NOINTERFACE", "No such interface supported."),
    (0x80004003, "E_POINTER", "Invalid pointer."),
    (0x80004004, "E_ABORT", "Operation aborted."),
    (0x80004005, "E_FAIL", "Unspecified error."),
    (0x80070005, "E_ACCESSDENIED", "General access denied error."),
    (0x80070006, "E_HANDLE", "Invalid handle."),
    (0x8007000E, "E_OUTOFMEMORY", "Failed to allocate necessary memory."),
    (0x80070057, "E_INVALIDARG", "One or more arguments are invalid."),
    (
        0x80040110,
        "CLASS_E_NOAGGREGATION",
        "Class does not support aggregation (or class object is remote).",
    ),
    (0x80040111, "CLASS_E_CLASSNOTAVAILABLE", "ClassFactory cannot supply requested class."),
    (0x80040154, "REGDB_E_CLASSNOTREG", "Class not registered."),
    (0x800401F0, "CO_E_NOTINITIALIZED", "CoInitialize has not been called."),
    (0x800401F3, "CO_E_CLASSSTRING", "Invalid class string."),
    (0x80010105, "RPC_E_SERVERFAULT", "The server threw an exception."),
    (0x80010106, "RPC_E_CHANGED_MODE", "Cannot change thread mode after it is set."),
    (0x80020005, "DISP_E_TYPEMISMATCH", "Type mismatch."),
    (0x80020009, "DISP_E_EXCEPTION", "Exception occurred."),
    (0x800706BA, "RPC_S_SERVER_UNAVAILABLE", "The RPC server is unavailable."),
    (
        0x800704DD,
        "ERROR_NOT_LOGGED_ON",
        "The operation being requested was not performed because the user has not logged on "
        "to the network.",
    ),
    (
        0x800710E0,
        "ERROR_REQUEST_REFUSED",
        "The operator or administrator has refused the request.",
    ),
    (
        0xC000013A,
        "STATUS_CONTROL_C_EXIT",
        "The application terminated as a result of a CTRL+C.",
    ),
)

TASK_SCHEDULER_CODES: Mapping[int, ResultCodeEntry] = _freeze(_TASK_SCHEDULER_ROWS)
COMMON_HRESULT_CODES: Mapping[int, ResultCodeEntry] = _freeze(_COMMON_ROWS)

FACILITY_NAMES: Mapping[int, str] = MappingProxyType(
    {
        0: "FACILITY_NULL",
        1: "FACILITY_RPC",
        2: "FACILITY_DISPATCH",
        3: "FACILITY_STORAGE",
        4: "FACILITY_ITF",
        7: "FACILITY_WIN32",
        8: "FACILITY_WINDOWS",
        9: "FACILITY_SECURITY",
        10: "FACILITY_CONTROL",
        11: "FACILITY_CERT",
        12: "FACILITY_INTERNET",
        13: "FACILITY_MEDIASERVER",
        14: "FACILITY_MSMQ",
        15: "FACILITY_SETUPAPI",
        16: "FACILITY_SCARD",
        17: "FACILITY_COMPLUS",
    }
)

FACILITY_WIN32 = 7

DEFAULT_TABLES = ResultCodeTables(
    task_scheduler=TASK_SCHEDULER_CODES,
    common=COMMON_HRESULT_CODES,
)


def facility_name(facility_code: int) -> str:
    """Return the symbolic name of an HRESULT facility number."""

    return FACILITY_NAMES.get(facility_code, f"FACILITY_{facility_code}")


__all__ = [
    "COMMON_HRESULT_CODES",
    "DEFAULT_TABLES",
    "FACILITY_NAMES",
    "FACILITY_WIN32",
    "ResultCodeEntry",
    "ResultCodeTables",
    "ResultCodeTablesDetails",
    "TASK_SCHEDULER_CODES",
    "facility_name",
]
