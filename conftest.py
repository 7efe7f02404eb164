from __future__ import annotations

import os
import tempfile

# Module-level apps read these at import time; keep test runs off the shared default paths.
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="resumeai-tests-")
os.environ.setdefault("RESUMEAI_DB_PATH", os.path.join(_TEST_DATA_DIR, "resumeai.sqlite3"))
os.environ.setdefault("RESUMEAI_ARTIFACT_DIR", os.path.join(_TEST_DATA_DIR, "artifacts"))
