"""OpenBLAS build configuration.

ggml uses BLAS for large quantized matrix multiplications when
GGML_USE_OPENBLAS is defined. Headers and the shared library are expected in
the default /usr/local prefix.
"""

import os

from .model import Backend, BackendPlan, LinkDirective

OPENBLAS_INCLUDE_DIR = "/usr/local/include/openblas"


def check_environment():
    """Check that the OpenBLAS headers are installed."""
    if os.path.exists(os.path.join(OPENBLAS_INCLUDE_DIR, "cblas.h")):
        print("OpenBLAS environment detected.")
        return True
    print(f"OpenBLAS headers not found in {OPENBLAS_INCLUDE_DIR}. Please install OpenBLAS.")
    return False


def get_plan(target, env):
    return BackendPlan(
        c_defines=(("GGML_USE_OPENBLAS", None),),
        c_include_paths=(OPENBLAS_INCLUDE_DIR,),
        link_directives=(LinkDirective("openblas"),),
    )


def get_backend_name():
    return Backend.OPENBLAS.value
