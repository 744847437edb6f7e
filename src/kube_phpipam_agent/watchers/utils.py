"""Conversion of Kubernetes service objects into engine snapshots."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ipam_reconciler.models import DEFAULT_SHARED_IP_ANNOTATION, ServiceSnapshot


def _ingress_ips(ingress: Optional[List[Any]], getter) -> List[str]:
    return [ip for ip in (getter(entry) for entry in ingress or []) if ip]


def service_from_k8s(
    service: Any, shared_ip_annotation: str = DEFAULT_SHARED_IP_ANNOTATION
) -> ServiceSnapshot:
    """Build a snapshot from a ``kubernetes.client.V1Service``."""

    metadata = service.metadata
    spec = service.spec
    status = service.status
    annotations = metadata.annotations or {}

    candidates: List[str] = []
    if spec is not None:
        candidates.append(spec.load_balancer_ip or "")
    if status is not None and status.load_balancer is not None:
        candidates.extend(
            _ingress_ips(status.load_balancer.ingress, lambda entry: entry.ip)
        )
    if spec is not None:
        candidates.append(spec.cluster_ip or "")
        candidates.extend(spec.external_i_ps or [])

    return ServiceSnapshot(
        namespace=metadata.namespace,
        name=metadata.name,
        service_type=spec.type if spec is not None else None,
        shared_ip_name=annotations.get(shared_ip_annotation),
        address_candidates=tuple(candidates),
    )


def service_from_mapping(
    service: Mapping[str, Any],
    shared_ip_annotation: str = DEFAULT_SHARED_IP_ANNOTATION,
) -> ServiceSnapshot:
    """Build a snapshot from a service in Kubernetes JSON form.

    Accepts the objects found under ``items`` in ``kubectl get services -A -o
    json`` output.
    """

    metadata = service.get("metadata") or {}
    spec = service.get("spec") or {}
    status = service.get("status") or {}
    annotations = metadata.get("annotations") or {}
    if "name" not in metadata:
        raise ValueError("service entry missing 'metadata.name'")

    candidates: List[str] = [str(spec.get("loadBalancerIP") or "")]
    candidates.extend(
        _ingress_ips(
            (status.get("loadBalancer") or {}).get("ingress"),
            lambda entry: entry.get("ip"),
        )
    )
    candidates.append(str(spec.get("clusterIP") or ""))
    candidates.extend(str(ip) for ip in spec.get("externalIPs") or [])

    return ServiceSnapshot(
        namespace=str(metadata.get("namespace", "default")),
        name=str(metadata["name"]),
        service_type=spec.get("type"),
        shared_ip_name=annotations.get(shared_ip_annotation),
        address_candidates=tuple(candidates),
    )
