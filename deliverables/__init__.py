"""Pluggable command units ("deliverables") and the host that runs them."""

from .deliverable import Deliverable, DeliverableResponse, ProvidesDirections, provides_directions
from .host import DeliverableHost
from .package_deliverable import PackageDeliverable
from .registry import DeliverableContext, DeliverableRegistry, build_registry

__all__ = [
    "Deliverable",
    "DeliverableContext",
    "DeliverableHost",
    "DeliverableRegistry",
    "DeliverableResponse",
    "PackageDeliverable",
    "ProvidesDirections",
    "build_registry",
    "provides_directions",
]
