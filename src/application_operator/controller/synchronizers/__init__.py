"""Synchronizers for the child resources of an Application."""

from application_operator.controller.synchronizers.base import ResourceSynchronizer
from application_operator.controller.synchronizers.configuration import (
    ConfigMapSynchronizer,
    SecretSynchronizer,
)
from application_operator.controller.synchronizers.deployment import DeploymentSynchronizer
from application_operator.controller.synchronizers.ingress import IngressSynchronizer
from application_operator.controller.synchronizers.service import ServiceSynchronizer

__all__ = [
    "ConfigMapSynchronizer",
    "DeploymentSynchronizer",
    "IngressSynchronizer",
    "ResourceSynchronizer",
    "SecretSynchronizer",
    "ServiceSynchronizer",
]
