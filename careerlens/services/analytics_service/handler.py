"""Analytics Service HTTP Handler - Administrator Dashboard API.

Read and maintenance endpoints over the anonymized analytics store.
Collection itself is triggered in-process by the submission pipeline
through AnalyticsService.collect_analytics.

Endpoints:
- GET /health - Health check
- GET /ready - Readiness check
- GET /analytics - Aggregated analytics
- GET /analytics/dashboard - Dashboard view
- GET /analytics/stats - Storage statistics
- GET /analytics/export - JSON or CSV download
- DELETE /analytics/cleanup - Retention cleanup
"""
import logging
import os
from datetime import datetime, timezone
from typing import Mapping, Optional

from flask import Flask, Response, jsonify, request

from careerlens.shared.models import format_timestamp
from .config import AnalyticsConfig
from .exporter import ExportFormat, export_filename
from .filters import AnalyticsFilter
from .service import AnalyticsService

logger = logging.getLogger(__name__)

app = Flask(__name__)


# Global service instance
_service: Optional[AnalyticsService] = None


def get_service() -> AnalyticsService:
    """Get or create the global service instance."""
    global _service
    if _service is None:
        _service = AnalyticsService()
    return _service


def set_service(service: AnalyticsService) -> None:
    """Set the global service (for testing)."""
    global _service
    _service = service


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_filter(args: Mapping[str, str], max_page_size: int) -> AnalyticsFilter:
    """Build a filter from query parameters.

    Invalid limit/offset values are ignored; limit is capped at max_page_size.
    """
    limit = _parse_int(args.get("limit"))
    offset = _parse_int(args.get("offset"))

    return AnalyticsFilter(
        date_from=args.get("dateFrom") or None,
        date_to=args.get("dateTo") or None,
        grade=args.get("grade") or None,
        board=args.get("board") or None,
        location=args.get("location") or None,
        rural_urban=args.get("ruralUrban") or None,
        language_preference=args.get("languagePreference") or None,
        income_range=args.get("incomeRange") or None,
        limit=min(limit, max_page_size) if limit is not None and limit > 0 else None,
        offset=offset if offset is not None and offset >= 0 else None,
    )


def _now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def _error(code: str, message: str, status: int = 500):
    return jsonify({"error": message, "code": code, "timestamp": _now()}), status


# Flask routes
@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({"status": "healthy", "service": "analytics-service"})


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check endpoint."""
    try:
        service = get_service()
        stats = service.get_analytics_stats()
    except Exception as e:
        logger.error("READINESS_CHECK_FAILED", extra={"error": str(e)})
        return jsonify({"status": "unavailable", "service": "analytics-service"}), 503

    return jsonify({
        "status": "ready",
        "service": "analytics-service",
        "storage": "populated" if stats["total_entries"] > 0 else "empty",
    })


@app.route("/analytics", methods=["GET"])
def analytics():
    """Get aggregated analytics data.

    Query params:
        dateFrom, dateTo: Optional - ISO-8601 bounds (inclusive)
        grade, board, location, ruralUrban, languagePreference, incomeRange: Optional
        limit: Optional - Page size (capped)
        offset: Optional - Records to skip
    """
    service = get_service()
    record_filter = parse_filter(request.args, service.config.max_page_size)

    try:
        aggregation = service.get_aggregated_data(record_filter)
        return jsonify({
            "data": aggregation.to_dict(),
            "metadata": {
                "total_records": aggregation.total_profiles,
                "generated_at": _now(),
                "filters": record_filter.to_dict(),
            },
        })
    except Exception:
        return _error("ANALYTICS_REQUEST_ERROR", "Failed to process analytics request")


@app.route("/analytics/dashboard", methods=["GET"])
def dashboard():
    """Get dashboard data. Accepts the same filters as /analytics."""
    service = get_service()
    record_filter = parse_filter(request.args, service.config.max_page_size)

    try:
        view = service.get_dashboard_data(record_filter)
        return jsonify({
            "data": view.to_dict(),
            "metadata": {
                "total_records": view.summary.total_users,
                "generated_at": _now(),
                "filters": record_filter.to_dict(),
            },
        })
    except Exception:
        return _error("DASHBOARD_REQUEST_ERROR", "Failed to generate dashboard data")


@app.route("/analytics/stats", methods=["GET"])
def stats():
    """Get storage statistics."""
    try:
        data = get_service().get_analytics_stats()
    except Exception:
        return _error("STATS_ERROR", "Failed to retrieve analytics statistics")

    return jsonify({"data": data, "timestamp": _now()})


@app.route("/analytics/export", methods=["GET"])
def export():
    """Download filtered records.

    Query params:
        format: Optional - json (default) or csv
        ...plus the /analytics filters
    """
    try:
        export_format = ExportFormat(request.args.get("format", "json").lower())
    except ValueError:
        return _error("INVALID_FORMAT", "format must be json or csv", 400)

    service = get_service()
    record_filter = parse_filter(request.args, service.config.max_page_size)

    try:
        body = service.export_bytes(record_filter, export_format)
    except Exception:
        return _error("EXPORT_ERROR", "Failed to export analytics data")

    mimetype = "text/csv" if export_format is ExportFormat.CSV else "application/json"
    filename = export_filename(export_format)

    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.route("/analytics/cleanup", methods=["DELETE"])
def cleanup():
    """Purge old records.

    Query params:
        retentionDays: Optional - Window in days (default from config)
    """
    service = get_service()
    retention_days = _parse_int(request.args.get("retentionDays"))
    if retention_days is None or retention_days < 0:
        retention_days = service.config.retention_days

    try:
        removed = service.cleanup_old_data(retention_days)
    except Exception:
        return _error("CLEANUP_ERROR", "Failed to cleanup analytics data")

    return jsonify({
        "data": {
            "removed_entries": removed,
            "retention_days": retention_days,
            "cleanup_date": _now(),
        },
        "message": f"Cleaned up {removed} old analytics entries",
    })


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    set_service(AnalyticsService(config=AnalyticsConfig.from_env()))
    port = int(os.getenv("PORT", "8080"))
    app.run(host="0.0.0.0", port=port)
