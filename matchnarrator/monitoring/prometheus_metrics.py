"""
Prometheus Metrics für den Match Narrator

Implementiert Metriken-Sammlung und -Export für Monitoring.
"""

import logging
from typing import Any, Optional

import psutil
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from ..core.config import Settings
from ..database.manager import DatabaseManager


class PrometheusMetrics:
    """Prometheus Metriken für API, Match-Uhr, Events und Import"""

    def __init__(self, settings: Settings, db_manager: Optional[DatabaseManager] = None):
        self.settings = settings
        self.db_manager = db_manager
        self.logger = logging.getLogger("prometheus_metrics")

        # Custom Registry für bessere Kontrolle
        self.registry = CollectorRegistry()

        # API Metriken
        self.api_requests_total = Counter(
            "api_requests_total",
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self.registry,
        )

        self.api_request_duration = Histogram(
            "api_request_duration_seconds",
            "API request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry,
        )

        # Match Metriken
        self.timer_actions_total = Counter(
            "match_timer_actions_total",
            "Total number of match timer actions",
            ["action"],
            registry=self.registry,
        )

        self.event_actions_total = Counter(
            "match_event_actions_total",
            "Total number of match event actions",
            ["action", "event_type"],
            registry=self.registry,
        )

        # Import Metriken
        self.import_items_total = Counter(
            "import_items_total",
            "Total number of imported items",
            ["source", "data_type"],
            registry=self.registry,
        )

        # System Metriken
        self.system_cpu_usage = Gauge(
            "system_cpu_usage_percent", "System CPU usage percentage", registry=self.registry
        )

        self.system_memory_usage = Gauge(
            "system_memory_usage_bytes", "System memory usage in bytes", registry=self.registry
        )

        self.database_connections_active = Gauge(
            "database_connections_active",
            "Number of checked out database connections",
            registry=self.registry,
        )

        self.app_info = Info("match_narrator", "Match Narrator information", registry=self.registry)
        self.app_info.info(
            {"version": "1.0.0", "environment": getattr(settings, "environment", "development")}
        )

    def record_api_request(self, method: str, endpoint: str, status: str, duration: float):
        """Zeichnet API Request auf"""
        self.api_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
        self.api_request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_timer_action(self, action: str):
        self.timer_actions_total.labels(action=action).inc()

    def record_event_action(self, action: str, event_type: str = "unknown"):
        self.event_actions_total.labels(action=action, event_type=event_type).inc()

    def record_import(self, source: str, data_type: str, items_count: int):
        """Zeichnet importierte Datensätze auf"""
        if items_count > 0:
            self.import_items_total.labels(source=source, data_type=data_type).inc(items_count)

    def update_system_metrics(self):
        """Aktualisiert System-Metriken"""
        try:
            self.system_cpu_usage.set(psutil.cpu_percent())
            self.system_memory_usage.set(psutil.virtual_memory().used)
        except Exception as e:
            self.logger.warning(f"Failed to update system metrics: {e}")

    def update_database_metrics(self):
        """Aktualisiert Database-Metriken"""
        engine = getattr(self.db_manager, "engine", None)
        if engine is None:
            return
        checkedout = getattr(engine.pool, "checkedout", None)
        if callable(checkedout):
            self.database_connections_active.set(checkedout())

    def get_metrics_summary(self) -> dict[str, Any]:
        """Holt Metriken-Zusammenfassung"""
        return {
            "system": {
                "cpu_usage_percent": psutil.cpu_percent(),
                "memory_usage_percent": psutil.virtual_memory().percent,
            },
            "metrics_endpoint": "/metrics",
        }

    def export_metrics(self) -> str:
        """Exportiert Metriken im Prometheus Format"""
        self.update_system_metrics()
        self.update_database_metrics()
        try:
            return generate_latest(self.registry).decode("utf-8")
        except Exception as e:
            self.logger.error(f"Failed to export metrics: {e}")
            return f"# Error exporting metrics: {e}\n"
