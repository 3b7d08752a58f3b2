"""Backend selection: one backend per build, resolved into a BackendPlan."""

import os

from . import backend_blis
from . import backend_cuda
from . import backend_metal
from . import backend_none
from . import backend_opencl
from . import backend_openblas
from .errors import ConfigurationError
from .model import Backend

BACKEND_MODULES = {
    Backend.NONE: backend_none,
    Backend.OPENBLAS: backend_openblas,
    Backend.BLIS: backend_blis,
    Backend.OPENCL: backend_opencl,
    Backend.METAL: backend_metal,
    Backend.CUDA: backend_cuda,
}

BACKEND_CHOICES = [backend.value for backend in Backend]


def parse_backend(names):
    """Turn the requested backend names into a single Backend.

    No names selects the CPU-only build. Asking for more than one backend is an
    error: mixed accelerator defines can compile fine and then crash or
    mis-link at runtime.
    """
    requested = []
    for name in names or ():
        for part in str(name).split(","):
            part = part.strip().lower()
            if part and part not in requested:
                requested.append(part)

    unknown = [name for name in requested if name not in BACKEND_CHOICES]
    if unknown:
        raise ConfigurationError(
            f"Unknown backend: {', '.join(unknown)}. Choose one of: {', '.join(BACKEND_CHOICES)}"
        )

    if len(requested) > 1:
        raise ConfigurationError(f"Only one backend can be enabled at a time, got: {', '.join(requested)}")

    if not requested:
        return Backend.NONE
    return Backend(requested[0])


def get_backend_module(backend):
    try:
        return BACKEND_MODULES[Backend(backend)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unknown backend: {backend}") from None


def select_backend(target, env=None):
    """Resolve the BackendPlan for a target's backend."""
    if env is None:
        env = os.environ
    module = get_backend_module(target.backend)
    return module.get_plan(target, env)
