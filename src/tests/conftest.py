"""Shared test setup."""

import os
import tempfile

# Keep the module-level storage in mdwiki.main out of the working directory
os.environ.setdefault("MDWIKI_DATA_DIR", tempfile.mkdtemp(prefix="mdwiki-test-"))
