# config.py – Tree Editor configuration
# ======================================
# Module-level settings. Every value can be overridden through the
# environment (or a .env file, loaded by main.py before this module is used).

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


# =============================================================================
# SECTION 1: FUND VOCABULARY
# =============================================================================

# Ordered list of selectable funds. The machine does not validate
# membership; it only threads the selected string through.
FUNDS = [
    "FUND – AAA",
    "FUND – BBB",
    "FUND – CCC",
    "FUND – DDD",
    "FUND – EEE",
    "FUND – FFF",
]

# =============================================================================
# SECTION 2: SIMULATED BACKEND
# =============================================================================

OPERATION_LATENCY_MAX_S = _env_float("TREE_EDITOR_LATENCY_MAX_S", 1.0)
SIMULATED_FAILURE_RATE = _env_float("TREE_EDITOR_FAILURE_RATE", 0.0)
EMPTY_ASSETS = _env_bool("TREE_EDITOR_EMPTY_ASSETS", False)

# =============================================================================
# SECTION 3: MACHINE BEHAVIOUR
# =============================================================================

# True: a failed import returns the dialog to its idle sub-state.
# False: the dialog stays in "importing" until it is closed.
IMPORT_FAILURE_RECOVERY = _env_bool("TREE_EDITOR_IMPORT_FAILURE_RECOVERY", True)

# =============================================================================
# SECTION 4: LOGGING
# =============================================================================

LOG_LEVEL = os.getenv("TREE_EDITOR_LOG_LEVEL", "WARNING")
LOG_FILE = os.getenv("TREE_EDITOR_LOG_FILE") or None
