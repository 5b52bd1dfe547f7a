"""Dependency resolution: metadata sources and the resolver."""

from jxdeps.resolve.maven_central import MAVEN_CENTRAL, MavenCentralMetadataSource
from jxdeps.resolve.metadata import SAMPLE_TRANSITIVES, MetadataSource, StaticMetadataSource
from jxdeps.resolve.resolver import Resolver, effective_scope, wider_scope

__all__ = [
    "MAVEN_CENTRAL",
    "SAMPLE_TRANSITIVES",
    "MavenCentralMetadataSource",
    "MetadataSource",
    "Resolver",
    "StaticMetadataSource",
    "effective_scope",
    "wider_scope",
]
