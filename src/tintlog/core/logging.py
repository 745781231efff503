from __future__ import annotations

from tintlog.core.levels import Level
from tintlog.core.logger import Logger

# Package diagnostics (bad config files, unreadable color rules). Never escalates.
logger = Logger("tintlog")
logger.set_level(Level.WARN)
logger.escalation = "return"
