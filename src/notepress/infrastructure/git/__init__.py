"""Git publishing — an isolated worker process that owns the shadow tree."""

from notepress.infrastructure.git.client import GitWorkerClient
from notepress.infrastructure.git.protocol import AuthInfo, GitInfo, MessageEvent, ProgressEvent

__all__ = ["AuthInfo", "GitInfo", "GitWorkerClient", "MessageEvent", "ProgressEvent"]
