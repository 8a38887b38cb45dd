"""Capture-to-insertion pipeline components."""

from .credentials import CredentialedExecutor
from .orchestrator import InsertionOrchestrator
from .staging import AssetStager
from .structure import DocumentStructureIndexer, build_outline

__all__ = [
    "AssetStager",
    "CredentialedExecutor",
    "DocumentStructureIndexer",
    "InsertionOrchestrator",
    "build_outline",
]
