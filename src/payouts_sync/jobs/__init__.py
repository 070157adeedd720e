"""Batch jobs and their command-line entry point."""

from .batch import BatchJob, BatchJobItemResult, BatchJobResult, BatchJobStatus
from .definitions import (
    JOB_NAMES,
    INVOICES_JOB,
    CREDIT_NOTES_JOB,
    SELLERS_JOB,
    BANK_ACCOUNTS_JOB,
    KYC_DOCUMENTS_JOB,
    JobDefinition,
    JobFactory,
    build_jobs,
)
from .report import JobReportGenerator

__all__ = [
    "BatchJob",
    "BatchJobItemResult",
    "BatchJobResult",
    "BatchJobStatus",
    "JOB_NAMES",
    "INVOICES_JOB",
    "CREDIT_NOTES_JOB",
    "SELLERS_JOB",
    "BANK_ACCOUNTS_JOB",
    "KYC_DOCUMENTS_JOB",
    "JobDefinition",
    "JobFactory",
    "build_jobs",
    "JobReportGenerator",
]
