"""Kubernetes resource managers used by the controller."""

from application_operator.services.kubernetes.application_manager import ApplicationManager
from application_operator.services.kubernetes.base import K8sBaseManager
from application_operator.services.kubernetes.certmanager_manager import CertManagerManager
from application_operator.services.kubernetes.configuration_manager import ConfigurationManager
from application_operator.services.kubernetes.networking_manager import NetworkingManager
from application_operator.services.kubernetes.workload_manager import WorkloadManager

__all__ = [
    "ApplicationManager",
    "CertManagerManager",
    "ConfigurationManager",
    "K8sBaseManager",
    "NetworkingManager",
    "WorkloadManager",
]
