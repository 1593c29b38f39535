"""
Wiring: AgentConfig -> fully assembled MonitoringLoop.

Initialization order:
    clock -> dispatcher -> store/detector -> collector + sources
    -> executors -> healer -> loop
"""

from typing import Iterable, List, Optional

from autoheal.alerting import AlertDispatcher
from autoheal.config import AgentConfig
from autoheal.logging import get_logger, LogStream
from autoheal.monitoring import (
    IssueDetector,
    IssueRegistry,
    MetricCollector,
    MetricStore,
    SourceHealthTracker,
    TelemetrySource,
    TrendAnalyzer,
)
from autoheal.recovery import (
    AutoHealer,
    ExecutorRegistry,
    FixHistory,
    WebhookActionExecutor,
)
from autoheal.runtime.loop import MonitoringLoop
from autoheal.sources import (
    ApplicationRuntimeSource,
    DataPlatformSource,
    DeploymentPlatformSource,
)
from autoheal.time import Clock, SystemClock


logger = get_logger(LogStream.SYSTEM)


def build_sources(config: AgentConfig, clock: Clock) -> List[TelemetrySource]:
    """Bundled sources that are configured (credentials present / enabled)."""
    sources: List[TelemetrySource] = []
    cfg = config.sources

    if cfg.deployment.enabled:
        sources.append(DeploymentPlatformSource(
            api_token=cfg.deployment.api_token,
            base_url=cfg.deployment.base_url,
            team_id=cfg.deployment.team_id,
            clock=clock
        ))

    if cfg.data_platform.enabled:
        sources.append(DataPlatformSource(
            url=cfg.data_platform.url,
            service_key=cfg.data_platform.service_key,
            slow_threshold_ms=cfg.data_platform.slow_threshold_ms,
            clock=clock
        ))

    if cfg.application.enabled:
        sources.append(ApplicationRuntimeSource(
            memory_threshold=cfg.application.memory_threshold,
            clock=clock
        ))

    return sources


def build_executors(config: AgentConfig) -> ExecutorRegistry:
    """Dry-run registry, or one webhook executor per configured action hook."""
    remediation = config.remediation
    if remediation.dry_run:
        return ExecutorRegistry.dry_run()

    return ExecutorRegistry({
        action_type: WebhookActionExecutor(url, timeout_seconds=remediation.hook_timeout_seconds)
        for action_type, url in remediation.action_hooks.items()
    })


def build_loop(
    config: AgentConfig,
    clock: Optional[Clock] = None,
    extra_sources: Iterable[TelemetrySource] = (),
    executors: Optional[ExecutorRegistry] = None
) -> MonitoringLoop:
    """
    Assemble the agent from configuration.

    Args:
        config: Validated configuration
        clock: Time source (SystemClock if None)
        extra_sources: Host-provided sources registered after the bundled ones
        executors: Host-provided executors (overrides remediation config)
    """
    clock = clock or SystemClock()

    dispatcher = AlertDispatcher(
        webhooks=config.alert_webhooks,
        system_name=config.system_name,
        timeout_seconds=config.alerting.timeout_seconds,
        max_retries=config.alerting.max_retries,
        clock=clock
    )

    store = MetricStore(capacity=config.series_capacity)
    detector = IssueDetector(registry=IssueRegistry(dedupe=config.dedupe_issues), clock=clock)

    collector = MetricCollector(
        timeout_seconds=config.source_timeout_seconds,
        health=SourceHealthTracker(),
        clock=clock
    )
    for source in [*build_sources(config, clock), *extra_sources]:
        collector.register(source)

    healer = AutoHealer(
        executors=executors or build_executors(config),
        registry=detector.registry,
        dispatcher=dispatcher,
        history=FixHistory(limit=config.fix_history_limit),
        clock=clock
    )

    logger.info("Agent assembled", extra={
        "sources": [s.name for s in collector.sources],
        "webhooks": len(config.alert_webhooks),
        "auto_fix_enabled": config.auto_fix_enabled,
        "dry_run": config.remediation.dry_run,
        "dedupe_issues": config.dedupe_issues
    })

    return MonitoringLoop(
        collector=collector,
        store=store,
        detector=detector,
        healer=healer,
        dispatcher=dispatcher,
        trend_analyzer=TrendAnalyzer(),
        clock=clock,
        interval_seconds=config.tick_interval_seconds,
        auto_fix_enabled=config.auto_fix_enabled,
        critical_realert_cooldown_seconds=config.critical_realert_cooldown_seconds
    )
