"""Domains and domain snapshots."""

from .domain import Domain
from .snapshot import Snapshot
