# crunch/: Range-partitioned Collatz search / Evidence-signed work units
from .contracts import (
    BlockResult, NodeInfo, UserCredentials, WorkAuthenticator, WorkEvidence,
    WorkPacket, WorkPacketError, WorkProgressReport, WorkStatus,
)
from .stepper import StepperConfig, iterate
from .partitioner import BLOCK_SIZE, partition
from .worker_entry import run_block
from .evidence import IN_PROGRESS, authenticate, build_report, verify
from .aggregator import SearchSummary, aggregate
from .orchestrator import SearchFailed, SearchOrchestrator

__version__ = "0.1.0"
