"""CUDA platform build configuration.

The CUDA kernels (ggml-cuda.cu) are compiled by nvcc into their own static
archive, separate from the C and C++ units, and linked into the binding
library together with cuBLAS and the CUDA runtime.

The kernels' tuning parameters come from the environment, see cuda_flags.py.
The toolkit is looked up in the two common install prefixes and, if set, in
$CUDA_PATH.
"""

import os
import subprocess

from .cuda_flags import find_nvcc
from .model import Backend, BackendPlan, LinkDirective

CUDA_SOURCE = "llama.cpp/ggml-cuda.cu"
CUDA_HEADER = "llama.cpp/ggml-cuda.h"

CUDA_LIB_DIRS = ["/usr/local/cuda/lib64", "/opt/cuda/lib64"]
CUDA_LIBS = ["cublas", "culibos", "cudart", "cublasLt", "pthread", "dl", "rt"]


def check_environment():
    """Check if CUDA environment is set up."""
    try:
        result = subprocess.run(["nvcc", "--version"], capture_output=True, text=True)
        if result.returncode == 0 and "nvcc" in result.stdout:
            print("CUDA environment detected.")
            return True
    except OSError:
        pass
    print("CUDA environment not found. Please install CUDA toolkit.")
    return False


def get_search_paths(env):
    search_paths = list(CUDA_LIB_DIRS)
    cuda_path = env.get("CUDA_PATH")
    if cuda_path:
        search_paths.append(f"{cuda_path}/targets/x86_64-linux/lib")
    return tuple(search_paths)


def get_plan(target, env):
    search_paths = get_search_paths(env)
    define = (("GGML_USE_CUBLAS", None),)
    return BackendPlan(
        c_defines=define,
        cpp_defines=define,
        cuda_sources=(CUDA_SOURCE,),
        cuda_include_paths=(os.path.dirname(CUDA_HEADER),),
        link_directives=tuple(LinkDirective(lib, search_paths=search_paths) for lib in CUDA_LIBS),
    )


def get_manifest_data(env):
    """Get additional manifest data for CUDA."""
    try:
        result = subprocess.run([find_nvcc(env), "--version"], capture_output=True, text=True)
    except OSError:
        return {}
    if result.returncode == 0:
        # Parse version from the line like "Cuda compilation tools, release 12.2, V12.2.91"
        for line in result.stdout.split("\n"):
            if "release" in line:
                version = line.split("release ")[1].split(",")[0]
                return {"cuda_version": version}
    return {}


def get_backend_name():
    return Backend.CUDA.value
