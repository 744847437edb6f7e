"""Watcher implementations used by the kube-phpipam agent."""

from .file import FileServiceWatcher  # noqa: F401
from .k8s import KubernetesServiceWatcher  # noqa: F401

__all__ = ["FileServiceWatcher", "KubernetesServiceWatcher"]
