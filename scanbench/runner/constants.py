from pathlib import Path
import sys

# Workload generator shipped with this package; run with the current interpreter
SYNTHETIC_LOAD_NAME = "synthetic_load"
SYNTHETIC_LOAD_PATH = Path(__file__).resolve().parents[1] / f"{SYNTHETIC_LOAD_NAME}.py"
DEFAULT_LOAD_PROGRAM = [sys.executable, str(SYNTHETIC_LOAD_PATH)]

# Line protocol understood by the workload generator
DONE_SENTINEL = "Done"
CMD_SET_MEMORY_SIZE = "set-memory-size"
CMD_FILL = "fill"
CMD_FILL_RANDOM = "fill-random"
CMD_SET_ADDRESS = "set-address"
CMD_INFO = "info"
CMD_EXIT = "exit"

# -1 means the target is not passed a thread count at all
NTHREADS_NOT_APPLICABLE = -1

DEFAULT_SIZE_BYTES = 0x10000000
DEFAULT_STEP_BYTES = 0x1000
DEFAULT_STEP_FACTOR = 1.0
DEFAULT_ITERATIONS = 20
DEFAULT_SEED = 0x1

# Grace period between SIGTERM and SIGKILL when tearing down children
TERMINATE_GRACE_SECS = 5.0
