"""
Match Narrator - Hauptanwendung

Zentraler Einstiegspunkt: konfiguriert Logging, Datenbank und Metriken
und startet den API Server.
"""

import asyncio
import logging
import signal
import sys

import uvicorn

from matchnarrator.api.main import create_fastapi_app
from matchnarrator.common.logging_utils import configure_logging
from matchnarrator.core.config import Settings
from matchnarrator.database.manager import DatabaseManager
from matchnarrator.monitoring.prometheus_metrics import PrometheusMetrics

# Windows-specific asyncio policy to avoid 'Event loop is closed' and transport warnings
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


class MatchNarratorService:
    """Hauptklasse: besitzt DatabaseManager, Metriken und den API Server"""

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()
        configure_logging(
            "matchnarrator",
            level=self.settings.log_level,
            log_format=self.settings.log_format,
            log_dir=self.settings.log_file_path,
        )
        self.logger = logging.getLogger("matchnarrator")
        self.db_manager: DatabaseManager | None = None
        self.metrics: PrometheusMetrics | None = None
        self.fastapi_app = None
        self.shutdown_event = asyncio.Event()

    def _setup_signal_handlers(self):
        """Konfiguriert Signal Handlers für graceful shutdown"""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.shutdown_event.set)
            except NotImplementedError:
                # not available on Windows event loops
                pass

    def initialize(self):
        """Initialisiert alle Komponenten"""
        self.logger.info("Initializing Match Narrator...")
        self.db_manager = DatabaseManager(settings=self.settings)
        self.db_manager.initialize()
        if self.settings.database_auto_create:
            self.db_manager.create_tables()

        if self.settings.enable_metrics:
            self.metrics = PrometheusMetrics(self.settings, self.db_manager)

        self.fastapi_app = create_fastapi_app(
            self.settings, db_manager=self.db_manager, metrics=self.metrics
        )
        self.logger.info("Match Narrator initialization completed")

    async def run_api_server(self):
        """Startet den API Server"""
        config = uvicorn.Config(
            self.fastapi_app,
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_level=self.settings.log_level.lower(),
            access_log=True,
        )
        server = uvicorn.Server(config)
        self.logger.info(
            f"Starting API server on {self.settings.api_host}:{self.settings.api_port}"
        )

        server_task = asyncio.create_task(server.serve())
        stop_task = asyncio.create_task(self.shutdown_event.wait())
        await asyncio.wait({server_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

        # Stoppe Server gracefully
        server.should_exit = True
        await server_task
        stop_task.cancel()

    async def run(self):
        """Hauptausführung"""
        try:
            self.initialize()
            self._setup_signal_handlers()
            await self.run_api_server()
        finally:
            self.cleanup()

    def cleanup(self):
        """Räumt Ressourcen auf"""
        if self.db_manager is not None:
            self.db_manager.close()
        self.logger.info("Match Narrator stopped")


if __name__ == "__main__":
    asyncio.run(MatchNarratorService().run())
