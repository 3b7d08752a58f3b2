"""CPU-only build configuration.

No acceleration library is linked; ggml runs its own SIMD kernels selected by
-march=native from the OS flags.
"""

from .model import Backend, BackendPlan


def check_environment():
    """CPU build always available."""
    print("CPU build environment ready.")
    return True


def get_plan(target, env):
    """CPU builds add nothing to the baseline units."""
    return BackendPlan()


def get_backend_name():
    return Backend.NONE.value
