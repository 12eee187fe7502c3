import logging
from dataclasses import dataclass, field
from typing import Optional, List
from docscan.orchestrator.contracts import DocumentInfo, ScanState
from docscan.orchestrator.errors import ScanError

MAX_LOGS = 200

logger = logging.getLogger("docscan")

@dataclass
class StatusStore:
    busy: bool = False
    state: ScanState = ScanState.IDLE
    last_error: Optional[ScanError] = None
    last_document: Optional[DocumentInfo] = None
    logs: List[str] = field(default_factory=list)

    def set_busy(self, v: bool):
        self.busy = v

    def log(self, msg: str):
        logger.info(msg)
        self.logs.append(msg)
        if len(self.logs) > MAX_LOGS:
            self.logs = self.logs[-MAX_LOGS:]
