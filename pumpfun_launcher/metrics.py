"""
Prometheus instrumentation for the launch pipeline

Each stage (upload_metadata, build_transaction, sign_and_send) records an
attempt, then exactly one of a success or a failure labelled with the
exception class, plus its duration. Instruments live on a
``LaunchStageMetrics`` instance so tests and embedding services can register
them on their own ``CollectorRegistry``.
"""

from contextlib import contextmanager
from functools import wraps

from prometheus_client import REGISTRY, Counter, Histogram

# Launch stages finish in well under a minute; confirmation dominates
STAGE_DURATION_BUCKETS = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0)


class LaunchStageMetrics:
    """Attempt, outcome and duration instruments for launch stages"""

    def __init__(self, registry=REGISTRY, namespace='pumpfun_launch'):
        self.attempts = Counter(
            'stage_attempts_total',
            'Total number of launch stage attempts',
            ['stage'],
            namespace=namespace,
            registry=registry,
        )
        self.successes = Counter(
            'stage_successes_total',
            'Total number of successful launch stages',
            ['stage'],
            namespace=namespace,
            registry=registry,
        )
        self.failures = Counter(
            'stage_failures_total',
            'Total number of launch stage failures',
            ['stage', 'reason'],
            namespace=namespace,
            registry=registry,
        )
        self.duration = Histogram(
            'stage_duration_seconds',
            'Launch stage duration',
            ['stage'],
            namespace=namespace,
            registry=registry,
            buckets=STAGE_DURATION_BUCKETS,
        )

    @contextmanager
    def observe(self, stage):
        """Record one run of ``stage``; exceptions are counted and re-raised"""
        self.attempts.labels(stage=stage).inc()
        with self.duration.labels(stage=stage).time():
            try:
                yield
            except Exception as e:
                self.failures.labels(stage=stage, reason=type(e).__name__).inc()
                raise
        self.successes.labels(stage=stage).inc()

    def track(self, stage):
        """Decorate an async stage so every call goes through ``observe``"""
        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                with self.observe(stage):
                    return await func(*args, **kwargs)
            return wrapper
        return decorator


launch_metrics = LaunchStageMetrics()
track_launch_stage = launch_metrics.track
