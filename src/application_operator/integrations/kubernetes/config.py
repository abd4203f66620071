"""Operator configuration models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

_TRUTHY = {"1", "true", "yes", "on"}


class ClusterConfig(BaseModel):
    """How to reach the cluster API server."""

    model_config = ConfigDict(extra="forbid")

    kubeconfig: str | None = None
    context: str | None = None
    in_cluster: bool = False
    timeout: int = 30

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class ControllerConfig(BaseModel):
    """Scheduling and naming knobs of the Application controller."""

    model_config = ConfigDict(extra="forbid")

    watch_namespace: str | None = None
    max_concurrent_reconciles: int = 2
    ingress_class: str = "kong"
    field_manager: str = "application-controller"
    issuer_requeue_seconds: float = 30.0
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 300.0
    watch_timeout_seconds: int = 300
    issuer_fanout: Literal["all", "namespace"] = "all"

    @field_validator("max_concurrent_reconciles")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """At least one worker is required to make progress."""
        if v < 1:
            raise ValueError("max_concurrent_reconciles must be at least 1")
        return v

    @field_validator("issuer_requeue_seconds", "backoff_base_seconds", "watch_timeout_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate durations are positive."""
        if v <= 0:
            raise ValueError("durations must be positive")
        return v

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> ControllerConfig:
        """Backoff ceiling must not be below the base delay."""
        if self.backoff_max_seconds < self.backoff_base_seconds:
            raise ValueError("backoff_max_seconds must be >= backoff_base_seconds")
        return self


class OperatorConfig(BaseModel):
    """Complete operator configuration."""

    model_config = ConfigDict(extra="forbid")

    cluster: ClusterConfig = ClusterConfig()
    controller: ControllerConfig = ControllerConfig()
    retry_attempts: int = 3
    metrics_port: int = 8080
    log_json: bool = False

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate retry_attempts is at least one attempt."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v

    @field_validator("metrics_port")
    @classmethod
    def validate_metrics_port(cls, v: int) -> int:
        """Port 0 disables the metrics endpoint."""
        if not 0 <= v <= 65535:
            raise ValueError("metrics_port must be between 0 and 65535")
        return v

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> OperatorConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            APP_OPERATOR_KUBECONFIG: Kubeconfig path
            APP_OPERATOR_CONTEXT: Kubeconfig context
            APP_OPERATOR_IN_CLUSTER: Use the pod service account (true/false)
            APP_OPERATOR_WATCH_NAMESPACE: Restrict the Application watch to one namespace
            APP_OPERATOR_MAX_CONCURRENT_RECONCILES: Worker pool size
            APP_OPERATOR_INGRESS_CLASS: Ingress class for Ingresses and HTTP-01 solvers
            APP_OPERATOR_ISSUER_REQUEUE_SECONDS: Delay before re-checking issuer readiness
            APP_OPERATOR_METRICS_PORT: Prometheus endpoint port (0 disables)
            APP_OPERATOR_LOG_JSON: Emit JSON logs (true/false)
        """
        config_dict = dict(base_config) if base_config else {}
        cluster = dict(config_dict.get("cluster") or {})
        controller = dict(config_dict.get("controller") or {})

        if kubeconfig := os.environ.get("APP_OPERATOR_KUBECONFIG"):
            cluster["kubeconfig"] = kubeconfig

        if context := os.environ.get("APP_OPERATOR_CONTEXT"):
            cluster["context"] = context

        if in_cluster := os.environ.get("APP_OPERATOR_IN_CLUSTER"):
            cluster["in_cluster"] = in_cluster.strip().lower() in _TRUTHY

        if namespace := os.environ.get("APP_OPERATOR_WATCH_NAMESPACE"):
            controller["watch_namespace"] = namespace

        if workers := os.environ.get("APP_OPERATOR_MAX_CONCURRENT_RECONCILES"):
            controller["max_concurrent_reconciles"] = int(workers)

        if ingress_class := os.environ.get("APP_OPERATOR_INGRESS_CLASS"):
            controller["ingress_class"] = ingress_class

        if requeue := os.environ.get("APP_OPERATOR_ISSUER_REQUEUE_SECONDS"):
            controller["issuer_requeue_seconds"] = float(requeue)

        if metrics_port := os.environ.get("APP_OPERATOR_METRICS_PORT"):
            config_dict["metrics_port"] = int(metrics_port)

        if log_json := os.environ.get("APP_OPERATOR_LOG_JSON"):
            config_dict["log_json"] = log_json.strip().lower() in _TRUTHY

        config_dict["cluster"] = cluster
        config_dict["controller"] = controller
        return cls.model_validate(config_dict)
