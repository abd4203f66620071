"""Models for the custom resources the operator reads."""

from application_operator.integrations.kubernetes.models.application import (
    APPLICATION_API_VERSION,
    APPLICATION_GROUP,
    APPLICATION_KIND,
    APPLICATION_PLURAL,
    APPLICATION_VERSION,
    ACMEIssuerSpec,
    Application,
    ApplicationSpec,
    EnvVar,
    IngressSpec,
    IssuerSpec,
    ResourceLimits,
    ResourcesSpec,
    ServiceSpec,
    TLSSpec,
)
from application_operator.integrations.kubernetes.models.base import (
    Condition,
    ObjectMeta,
    parse_conditions,
    utc_now_rfc3339,
)
from application_operator.integrations.kubernetes.models.certmanager import (
    ClusterIssuerSummary,
)

__all__ = [
    "APPLICATION_API_VERSION",
    "APPLICATION_GROUP",
    "APPLICATION_KIND",
    "APPLICATION_PLURAL",
    "APPLICATION_VERSION",
    "ACMEIssuerSpec",
    "Application",
    "ApplicationSpec",
    "ClusterIssuerSummary",
    "Condition",
    "EnvVar",
    "IngressSpec",
    "IssuerSpec",
    "ObjectMeta",
    "ResourceLimits",
    "ResourcesSpec",
    "ServiceSpec",
    "TLSSpec",
    "parse_conditions",
    "utc_now_rfc3339",
]
