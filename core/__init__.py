"""Synthesis orchestrator for Text2MP3.

This package contains the persisted state store, the file-system collaborator, the proxy manager,
the voice catalog, the synthesis job runner, the artifact history and the application facade
that wires them together.
"""

from core.app import Text2Mp3App
from core.file_access import Confirmer, FileAccess, LocalFileAccess
from core.history_store import HistoryStore
from core.progress import ProgressChannel, Subscription
from core.proxy_manager import ProxyManager
from core.state_storage import StateStorage
from core.synthesis_runner import SynthesisJobRunner
from core.version import VERSION
from core.voice_catalog import VoiceCatalog

__all__: list[str] = [
    "VERSION",
    "Confirmer",
    "FileAccess",
    "HistoryStore",
    "LocalFileAccess",
    "ProgressChannel",
    "ProxyManager",
    "StateStorage",
    "Subscription",
    "SynthesisJobRunner",
    "Text2Mp3App",
    "VoiceCatalog",
]
