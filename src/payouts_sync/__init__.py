# payouts_sync package
__version__ = "0.1.0"

from .config import Settings
from .connectors import get_connectors
from .notifications import Notifier, get_notifier
from .retry import RetryPolicy
from .services import AccountingPaymentService

# Job exports
from .jobs import (
    BatchJob,
    BatchJobResult,
    BatchJobStatus,
    JobReportGenerator,
    JOB_NAMES,
    build_jobs,
)
