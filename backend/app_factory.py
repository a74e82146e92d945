"""
Application Factory

Creates and configures Flask application with all dependencies.
This factory pattern improves testability by allowing dependency injection
and configuration overrides.
"""

import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from tempshare.application.dependency_container import DependencyContainer
from tempshare.application.event_publisher import EventPublisher
from tempshare.application.file_service import FileService
from tempshare.config.celery_config import make_celery
from tempshare.config.redis_config import get_redis_repository, init_redis
from tempshare.config.registry_config import RegistryConfig
from tempshare.domain.events import DomainEvent
from tempshare.domain.file_storage import (
    EvictionService,
    FileManager,
    FileRegistry,
    IFileStorageRepository,
    LinkIssuer,
    StatsReporter,
    TokenRepository,
)
from tempshare.infrastructure.event_handlers import LoggingEventHandler
from tempshare.infrastructure.redis_repository import RedisRepository
from tempshare.infrastructure.storage_factory import StorageFactory
from tempshare.tasks import SWEEP_EXPIRED, SWEEP_IDLE, SweepScheduler, run_sweep

logger = logging.getLogger(__name__)


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"


def create_app(
    config: Optional[AppConfig] = None,
    registry_config: Optional[RegistryConfig] = None,
    container: Optional[DependencyContainer] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        registry_config: Registry settings, read from the environment if None
        container: Pre-built dependency container (tests); built from
            registry_config if None

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()
    if registry_config is None:
        registry_config = RegistryConfig()

    # Create Flask app
    app = Flask(__name__)
    app.registry_config = registry_config

    # Configure CORS
    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type"],
                "expose_headers": ["Content-Type", "Content-Disposition"],
                "max_age": 3600,
            }
        },
    )

    # Initialize infrastructure
    redis_repo = _initialize_infrastructure(app, registry_config)

    # Initialize services
    app.container = container or build_container(registry_config, redis_repo)

    # Start in-process sweeps
    _start_scheduler(app, registry_config)

    # Register blueprints
    _register_blueprints(app, config)

    # Register health check endpoint
    _register_health_endpoint(app)

    return app


def _initialize_infrastructure(
    app: Flask, registry_config: RegistryConfig
) -> Optional[RedisRepository]:
    """
    Initialize Redis (when a Redis-backed feature is enabled) and Celery.

    Returns:
        RedisRepository when Redis is in use, else None
    """
    redis_repo = None
    if registry_config.backend == "redis" or registry_config.sweep_runner == "celery":
        init_redis()
        redis_repo = get_redis_repository()
        logger.info("Redis initialized successfully")

    try:
        app.celery = make_celery(app, registry_config)
        logger.info("Celery initialized successfully")
    except Exception as e:
        logger.warning(f"Could not initialize Celery: {e}")
        app.celery = None

    return redis_repo


def build_container(
    registry_config: RegistryConfig,
    redis_repo: Optional[RedisRepository] = None,
    file_registry: Optional[FileRegistry] = None,
    storage_repository: Optional[IFileStorageRepository] = None,
) -> DependencyContainer:
    """
    Build and register every service.

    All services are registered as singletons and resolved via
    container.resolve() in API handlers and tasks.

    Args:
        registry_config: Registry settings
        redis_repo: Redis repository, required for the redis backend and
            used for the Celery sweep run lock
        file_registry: Registry to use instead of the configured backend
        storage_repository: Blob store to use instead of local storage

    Returns:
        Populated DependencyContainer
    """
    container = DependencyContainer()

    if redis_repo is not None:
        container.register_singleton(RedisRepository, redis_repo)

    # Events
    event_publisher = EventPublisher()
    logging_handler = LoggingEventHandler(logging.getLogger("tempshare.events"))
    event_publisher.subscribe(DomainEvent, logging_handler.handle)
    container.register_singleton(EventPublisher, event_publisher)

    # Infrastructure adapters
    if file_registry is None:
        file_registry = StorageFactory.create_registry(registry_config, redis_repo)
    if storage_repository is None:
        storage_repository = StorageFactory.create_storage(registry_config)
    token_repository = StorageFactory.create_token_repository(registry_config, redis_repo)

    container.register_singleton(FileRegistry, file_registry)
    container.register_singleton(IFileStorageRepository, storage_repository)
    container.register_singleton(TokenRepository, token_repository)

    # Domain services
    file_manager = FileManager(
        file_registry,
        storage_repository,
        default_ttl=registry_config.file_ttl,
        event_publisher=event_publisher,
    )
    link_issuer = LinkIssuer(token_repository)
    stats_reporter = StatsReporter(file_registry)
    eviction_service = EvictionService(file_manager, registry_config.idle_threshold)

    container.register_singleton(FileManager, file_manager)
    container.register_singleton(LinkIssuer, link_issuer)
    container.register_singleton(StatsReporter, stats_reporter)
    container.register_singleton(EvictionService, eviction_service)

    # Application services
    file_service = FileService(
        file_manager,
        link_issuer,
        stats_reporter,
        handle_mode=registry_config.handle_mode,
        accept_raw_ids=registry_config.accept_raw_ids,
        event_publisher=event_publisher,
    )
    container.register_singleton(FileService, file_service)

    # Sweeps
    scheduler = SweepScheduler()
    scheduler.add_task(
        "expired",
        lambda: run_sweep(eviction_service, SWEEP_EXPIRED),
        registry_config.expiry_sweep_interval,
    )
    scheduler.add_task(
        "idle",
        lambda: run_sweep(eviction_service, SWEEP_IDLE),
        registry_config.idle_sweep_interval,
    )
    container.register_singleton(SweepScheduler, scheduler)

    logger.info(
        f"Application services initialized: {container.registration_count()} registrations, "
        f"backend={registry_config.backend}, handle_mode={registry_config.handle_mode}"
    )
    return container


def _start_scheduler(app: Flask, registry_config: RegistryConfig) -> None:
    if not registry_config.sweeps_enabled:
        logger.info("Sweeps disabled")
        return
    if registry_config.sweep_runner != "thread":
        logger.info("Sweeps delegated to Celery beat")
        return

    app.container.resolve(SweepScheduler).start()


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    """
    Register API blueprints.

    Args:
        app: Flask application
        config: Application configuration
    """
    from tempshare.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)

    logger.info(f"API {config.api_version} registered at /files with Swagger UI at /docs")


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of the registry and the sweeps.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    registry_config = app.registry_config
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "registry": "unknown",
        "registry_backend": registry_config.backend,
        "scheduler": "unknown",
        "config": registry_config.to_dict(),
    }

    # Registry backend
    try:
        if app.container.resolve(FileRegistry).health_check():
            health_status["registry"] = "available"
            health_status["files"] = app.container.resolve(StatsReporter).summary()
        else:
            health_status["registry"] = "unavailable"
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["registry"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    # Sweeps
    if not registry_config.sweeps_enabled:
        health_status["scheduler"] = "disabled"
    elif registry_config.sweep_runner == "celery":
        health_status["scheduler"] = "celery" if app.celery is not None else "unavailable"
        if app.celery is None:
            health_status["status"] = "degraded"
    elif app.container.resolve(SweepScheduler).is_running():
        health_status["scheduler"] = "running"
    else:
        health_status["scheduler"] = "stopped"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    """
    Register health check endpoint.

    Args:
        app: Flask application
    """

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the registry and the sweeps.
        """
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
