"""nvcc flag construction for the CUDA backend.

The three tuning parameters of the CUDA kernels can be overridden from the
environment; otherwise the defaults below are compiled in:

    LLAMA_CUDA_DMMV_X=32       -> -DGGML_CUDA_DMMV_X
    LLAMA_CUDA_DMMV_Y=1        -> -DGGML_CUDA_DMMV_Y
    LLAMA_CUDA_KQUANTS_ITER=2  -> -DK_QUANTS_PER_ITERATION
"""

import os
import shutil

from .model import EnvOverride

CUDA_ENV_OVERRIDES = (
    EnvOverride("LLAMA_CUDA_DMMV_X", "32", "GGML_CUDA_DMMV_X"),
    EnvOverride("LLAMA_CUDA_DMMV_Y", "1", "GGML_CUDA_DMMV_Y"),
    EnvOverride("LLAMA_CUDA_KQUANTS_ITER", "2", "K_QUANTS_PER_ITERATION"),
)

NVCC_DRIVER_FLAGS = ["--forward-unknown-to-host-compiler", "-arch=native"]


def generate_cuda_flags(table, env, cpp_flags=()):
    """Build the nvcc flag list.

    `env` is any mapping of environment variables (os.environ in a real build).
    The host C++ flags go last since nvcc hands most of them to the host compiler.
    """
    flags = list(NVCC_DRIVER_FLAGS)

    for override in table:
        value = env.get(override.env_var_name)
        if value is None:
            value = override.default_literal
        flags.append(f"-D{override.target_define_name}={value}")

    flags.extend(cpp_flags)
    return flags


def find_nvcc(env):
    """Find nvcc, preferring the one in $CUDA_PATH so it matches the toolkit's libraries."""
    nvcc_name = "nvcc.exe" if os.name == "nt" else "nvcc"

    cuda_path = env.get("CUDA_PATH")
    if cuda_path:
        nvcc_path = os.path.join(cuda_path, "bin", nvcc_name)
        if os.path.exists(nvcc_path):
            return nvcc_path

    return shutil.which("nvcc") or nvcc_name
