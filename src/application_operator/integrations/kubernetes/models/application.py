"""Application custom resource models.

The Application is the single source of truth for everything the controller
manages. Field names follow the CRD's camelCase schema on the wire and are
exposed in snake_case through pydantic aliases.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from application_operator.integrations.kubernetes.models.base import (
    Condition,
    ObjectMeta,
    parse_conditions,
)

# apps.example.com CRD coordinates
APPLICATION_GROUP = "apps.example.com"
APPLICATION_VERSION = "v1alpha1"
APPLICATION_PLURAL = "applications"
APPLICATION_KIND = "Application"
APPLICATION_API_VERSION = f"{APPLICATION_GROUP}/{APPLICATION_VERSION}"


class _SpecModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ServiceSpec(_SpecModel):
    """Optional Service section."""

    port: int = Field(description="Port exposed by the Service")
    type: str | None = Field(default=None, description="Service type, ClusterIP when unset")
    annotations: dict[str, str] | None = Field(default=None)


class IngressSpec(_SpecModel):
    """Optional Ingress section."""

    host: str = Field(default="", description="Virtual host of the single rule")
    path: str = Field(description="Path prefix routed to the Service")
    annotations: dict[str, str] | None = Field(default=None)


class EnvVar(_SpecModel):
    """A name/value pair; the name may carry a ``CM_`` or ``SEC_`` routing prefix."""

    name: str
    value: str = ""


class ResourceLimits(_SpecModel):
    cpu: str | None = None
    memory: str | None = None


class ResourcesSpec(_SpecModel):
    requests: ResourceLimits | None = None
    limits: ResourceLimits | None = None


class SecretKeySelector(_SpecModel):
    name: str = ""
    key: str | None = None


class ACMEIssuerSpec(BaseModel):
    """cert-manager ACME issuer configuration embedded in the Application.

    Only the fields the controller compares are modelled; everything else
    (``skipTLSVerify``, ``externalAccountBinding``, ...) is passed through
    to the ClusterIssuer untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    email: str = ""
    server: str = ""
    private_key_secret_ref: SecretKeySelector = Field(
        default_factory=SecretKeySelector, alias="privateKeySecretRef"
    )

    def to_k8s_object(self) -> dict[str, Any]:
        """Render to the ``spec.acme`` wire form."""
        body: dict[str, Any] = self.model_dump(by_alias=True, exclude_none=True)
        return body


class IssuerSpec(_SpecModel):
    acme_issuer: ACMEIssuerSpec = Field(default_factory=ACMEIssuerSpec, alias="acmeIssuer")


class TLSSpec(_SpecModel):
    enable: bool = False
    issuer: IssuerSpec | None = None


class ApplicationSpec(_SpecModel):
    """Desired state of an Application."""

    replicas: int | None = None
    image: str | None = None
    container_port: int = Field(alias="containerPort")
    service: ServiceSpec | None = None
    ingress: IngressSpec | None = None
    env_vars: list[EnvVar] = Field(default_factory=list, alias="envVars")
    resources: ResourcesSpec | None = None
    tls: TLSSpec | None = None

    @property
    def tls_requested(self) -> bool:
        """Whether the TLS state machine should run."""
        return self.tls is not None and self.tls.enable


class Application(BaseModel):
    """An Application as observed in the cluster."""

    model_config = ConfigDict(extra="ignore")

    metadata: ObjectMeta
    spec: ApplicationSpec
    conditions: list[Condition] = Field(default_factory=list)

    @classmethod
    def from_k8s_object(cls, obj: dict[str, Any]) -> Application:
        """Create from an Application custom object dict."""
        return cls(
            metadata=ObjectMeta.from_k8s_object(obj.get("metadata", {})),
            spec=ApplicationSpec.model_validate(obj.get("spec", {})),
            conditions=parse_conditions(obj.get("status")),
        )

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or "default"

    @property
    def is_deleting(self) -> bool:
        return self.metadata.deletion_timestamp is not None

    def owner_reference(self) -> dict[str, Any]:
        """Controller owner reference pointing back at this Application."""
        return {
            "apiVersion": APPLICATION_API_VERSION,
            "kind": APPLICATION_KIND,
            "name": self.name,
            "uid": self.metadata.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }

    def spec_problems(self) -> list[str]:
        """List reasons the spec cannot be applied, empty when it is usable."""
        problems: list[str] = []
        spec = self.spec
        if not spec.image:
            problems.append("spec.image is required")
        if spec.replicas is not None and spec.replicas < 0:
            problems.append("spec.replicas must not be negative")
        if spec.ingress is not None and spec.service is None:
            problems.append("spec.ingress requires spec.service to route to")
        tls = spec.tls
        if tls is not None and tls.enable:
            if tls.issuer is None:
                problems.append("spec.tls.issuer is required when TLS is enabled")
            elif not tls.issuer.acme_issuer.private_key_secret_ref.name:
                problems.append("spec.tls.issuer.acmeIssuer.privateKeySecretRef.name is required")
        return problems
