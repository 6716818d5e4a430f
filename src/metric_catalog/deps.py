"""Dependency injection singletons for the metric catalog."""

from metric_catalog.audit.service import AuditService
from metric_catalog.auth.capabilities import CapabilityChecker, StaticCapabilityChecker
from metric_catalog.catalog.service import CatalogFacade
from metric_catalog.common.config import get_settings
from metric_catalog.common.database import DatabaseManager
from metric_catalog.expressions.validator import ExpressionValidator, build_expression_validator
from metric_catalog.lifecycle.service import LifecycleController
from metric_catalog.metrics.policy import MetricPolicy
from metric_catalog.metrics.service import MetricRegistry
from metric_catalog.usage.service import UsageTracker

_db: DatabaseManager | None = None
_checker: CapabilityChecker | None = None
_validator: ExpressionValidator | None = None
_policy: MetricPolicy | None = None
_audit: AuditService | None = None
_usage: UsageTracker | None = None
_registry: MetricRegistry | None = None
_lifecycle: LifecycleController | None = None
_catalog: CatalogFacade | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_capability_checker() -> CapabilityChecker:
    global _checker
    if _checker is None:
        _checker = StaticCapabilityChecker(get_settings().grants)
    return _checker


def get_expression_validator() -> ExpressionValidator:
    global _validator
    if _validator is None:
        _validator = build_expression_validator(get_settings())
    return _validator


def get_metric_policy() -> MetricPolicy:
    global _policy
    if _policy is None:
        _policy = MetricPolicy(get_expression_validator())
    return _policy


def get_audit_service() -> AuditService:
    global _audit
    if _audit is None:
        _audit = AuditService(get_settings(), get_capability_checker())
    return _audit


def get_usage_tracker() -> UsageTracker:
    global _usage
    if _usage is None:
        _usage = UsageTracker(
            get_settings(), get_capability_checker(),
            audit_service=get_audit_service(),
        )
    return _usage


def get_metric_registry() -> MetricRegistry:
    global _registry
    if _registry is None:
        _registry = MetricRegistry(
            get_settings(), get_metric_policy(), get_capability_checker(),
            get_usage_tracker(),
            audit_service=get_audit_service(),
        )
    return _registry


def get_lifecycle_controller() -> LifecycleController:
    global _lifecycle
    if _lifecycle is None:
        _lifecycle = LifecycleController(
            get_metric_registry(), get_metric_policy(), get_capability_checker(),
            get_usage_tracker(),
            audit_service=get_audit_service(),
        )
    return _lifecycle


def get_catalog_facade() -> CatalogFacade:
    global _catalog
    if _catalog is None:
        _catalog = CatalogFacade(
            get_metric_registry(), get_usage_tracker(), get_capability_checker(),
        )
    return _catalog


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _checker, _validator, _policy, _audit, _usage, _registry, _lifecycle, _catalog
    _db = None
    _checker = None
    _validator = None
    _policy = None
    _audit = None
    _usage = None
    _registry = None
    _lifecycle = None
    _catalog = None
