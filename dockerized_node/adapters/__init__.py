"""Adapter layer package for source, container runtime, and RPC boundaries."""

from .docker_compose import DockerComposeRuntimeAdapter
from .errors import ContainerRuntimeAdapterError, NodeAdapterError, SourceFetchError
from .git_source import GitSourceFetcher
from .interfaces import ContainerRuntimePort, ReadinessProbePort, SourceFetcherPort
from .rpc_probe import MainContractRpcProbe

__all__ = [
	"ContainerRuntimeAdapterError",
	"ContainerRuntimePort",
	"DockerComposeRuntimeAdapter",
	"GitSourceFetcher",
	"MainContractRpcProbe",
	"NodeAdapterError",
	"ReadinessProbePort",
	"SourceFetchError",
	"SourceFetcherPort",
]
