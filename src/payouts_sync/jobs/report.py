"""Report generation for batch job results."""

import json
from datetime import datetime

from .batch import BatchJobResult, BatchJobStatus


class JobReportGenerator:
    """Renders a job result as JSON or text."""

    def __init__(self, result: BatchJobResult):
        """Initialize the report generator.

        Args:
            result: The job result to generate output from.
        """
        self.result = result

    def to_json(self, include_details: bool = True, indent: int = 2) -> str:
        """Generate JSON representation of the result.

        Args:
            include_details: If True, include every item. If False, only the summary.
            indent: JSON indentation level.

        Returns:
            JSON string representation of the result.
        """
        data = self.result.to_full_dict() if include_details else self.result.to_summary_dict()

        def json_serializer(obj):
            if isinstance(obj, datetime):
                return obj.isoformat()
            if isinstance(obj, BatchJobStatus):
                return obj.value
            raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

        return json.dumps(data, indent=indent, default=json_serializer)

    def to_summary_text(self) -> str:
        summary = self.result.to_summary_dict()
        stats = summary["statistics"]

        lines = [
            "=" * 60,
            f"JOB REPORT: {summary['job_name']}",
            "=" * 60,
            f"Run ID: {summary['id']}",
            f"Status: {summary['status']}",
            f"Delta: {summary['delta'] or 'N/A'}",
            "",
            "Statistics:",
            f"  Total Items: {stats['total_items']}",
            f"  Processed: {stats['processed_items']}",
            f"  Failed: {stats['failed_items']}",
            "",
            f"Started At: {summary['started_at']}",
            f"Completed At: {summary['completed_at'] or 'N/A'}",
        ]

        if summary.get("error_message"):
            lines.extend([
                "",
                "Error:",
                f"  {summary['error_message']}",
            ])

        lines.append("=" * 60)
        return "\n".join(lines)

    def to_detailed_text(self) -> str:
        """Summary followed by every failed item."""
        lines = [self.to_summary_text()]
        failed = [item for item in self.result.items if not item.success]
        if failed:
            lines.extend(["", "FAILED ITEMS", "-" * 40])
            for item in failed:
                reason = f": {item.error_message}" if item.error_message else ""
                lines.append(f"  {item.item_id}{reason}")
        return "\n".join(lines)

    def render(self, output_format: str = "json", include_details: bool = True) -> str:
        """Render in one of ``json``, ``text`` or ``detailed_text``.

        Raises:
            ValueError: If the format is unknown.
        """
        if output_format == "json":
            return self.to_json(include_details=include_details)
        if output_format == "text":
            return self.to_summary_text()
        if output_format == "detailed_text":
            return self.to_detailed_text()
        raise ValueError(f"Unsupported format: {output_format}")
