"""BLIS build configuration.

BLIS is used through its BLAS compatibility layer, so ggml is compiled with the
same GGML_USE_OPENBLAS code path as for OpenBLAS. The library lives in
/usr/local/lib, which is not always on the default linker search path.
"""

import os

from .model import Backend, BackendPlan, LinkDirective

BLIS_INCLUDE_DIR = "/usr/local/include/blis"
BLIS_LIB_DIR = "/usr/local/lib"


def check_environment():
    """Check that the BLIS headers are installed."""
    if os.path.isdir(BLIS_INCLUDE_DIR):
        print("BLIS environment detected.")
        return True
    print(f"BLIS headers not found in {BLIS_INCLUDE_DIR}. Please install BLIS.")
    return False


def get_plan(target, env):
    return BackendPlan(
        c_defines=(("GGML_USE_OPENBLAS", None),),
        c_include_paths=(BLIS_INCLUDE_DIR,),
        link_directives=(LinkDirective("blis", search_paths=(BLIS_LIB_DIR,)),),
    )


def get_backend_name():
    return Backend.BLIS.value
