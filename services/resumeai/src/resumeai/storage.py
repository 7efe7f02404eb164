from __future__ import annotations

import re
import threading
import uuid
from pathlib import Path

from common.utils import compact_utc_timestamp

from resumeai.models import StoredArtifact

_UNSAFE_PREFIX_CHARS = re.compile(r"[^a-zA-Z0-9_-]+")


class ArtifactStore:
    def __init__(self, root_dir: str, public_base_path: str = "/files") -> None:
        self.root_dir = Path(root_dir)
        self.public_base_path = public_base_path.rstrip("/")
        self._lock = threading.Lock()

    def ensure_root(self) -> None:
        with self._lock:
            self.root_dir.mkdir(parents=True, exist_ok=True)

    def build_filename(self, prefix: str, extension: str) -> str:
        safe_prefix = _UNSAFE_PREFIX_CHARS.sub("-", prefix).strip("-") or "artifact"
        return f"{safe_prefix}-{compact_utc_timestamp()}-{uuid.uuid4().hex[:8]}.{extension}"

    def save_pdf(self, content: bytes, *, prefix: str = "resume") -> StoredArtifact:
        self.ensure_root()
        filename = self.build_filename(prefix, "pdf")
        (self.root_dir / filename).write_bytes(content)
        return StoredArtifact(
            filename=filename,
            url=f"{self.public_base_path}/{filename}",
            size=len(content),
        )
