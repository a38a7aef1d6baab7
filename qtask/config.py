"""
Configuration for task submission and polling.

Defaults can be overridden from the environment with :meth:`TaskConfig.from_env`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from urllib.parse import urlparse

from qtask.errors import ConfigurationError


DEFAULT_SHOTS = 1000
DEFAULT_RESULTS_POLL_TIMEOUT = 432000
DEFAULT_RESULTS_POLL_INTERVAL = 1

ENV_RESULTS_S3_URI = "QTASK_RESULTS_S3_URI"
ENV_JOB_TOKEN = "QTASK_JOB_TOKEN"
ENV_POLL_TIMEOUT = "QTASK_POLL_TIMEOUT_SECONDS"
ENV_POLL_INTERVAL = "QTASK_POLL_INTERVAL_SECONDS"
ENV_DEFAULT_SHOTS = "QTASK_DEFAULT_SHOTS"


def parse_s3_uri(uri: str) -> Tuple[str, str]:
    """
    Split an ``s3://bucket/prefix`` URI into ``(bucket, prefix)``.

    Raises:
        ConfigurationError: If the URI is not an S3 URI with a bucket and key.
    """
    parsed = urlparse(uri)
    bucket = parsed.netloc
    key = parsed.path.strip("/")
    if parsed.scheme != "s3" or not bucket or not key:
        raise ConfigurationError(f"Not a valid S3 uri: {uri}")
    return bucket, key


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class TaskConfig:
    """
    Defaults applied when preparing and polling tasks.

    Attributes:
        default_shots: Shots used when the caller does not give any
        poll_timeout_seconds: Total time to wait for a terminal state
        poll_interval_seconds: Sleep between status polls
        results_destination: ``(bucket, key_prefix)`` for task output
        job_token: Token identifying tasks created from inside a hybrid job
    """
    default_shots: int = DEFAULT_SHOTS
    poll_timeout_seconds: float = DEFAULT_RESULTS_POLL_TIMEOUT
    poll_interval_seconds: float = DEFAULT_RESULTS_POLL_INTERVAL
    results_destination: Optional[Tuple[str, str]] = None
    job_token: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> TaskConfig:
        env = os.environ if env is None else env
        uri = env.get(ENV_RESULTS_S3_URI)
        return cls(
            default_shots=_env_int(env, ENV_DEFAULT_SHOTS, DEFAULT_SHOTS),
            poll_timeout_seconds=_env_int(env, ENV_POLL_TIMEOUT, DEFAULT_RESULTS_POLL_TIMEOUT),
            poll_interval_seconds=_env_int(env, ENV_POLL_INTERVAL, DEFAULT_RESULTS_POLL_INTERVAL),
            results_destination=parse_s3_uri(uri) if uri else None,
            job_token=env.get(ENV_JOB_TOKEN) or None,
        )

    def destination(self) -> Tuple[str, str]:
        """Return the configured results destination."""
        if self.results_destination is None:
            raise ConfigurationError(
                f"No results destination configured; set {ENV_RESULTS_S3_URI} "
                "or pass a destination explicitly"
            )
        return self.results_destination
