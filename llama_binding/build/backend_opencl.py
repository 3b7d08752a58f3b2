"""OpenCL (CLBlast) build configuration.

GGML_USE_CLBLAST must be defined for both the C core and the C++ binding
unit, and the OpenCL implementation is compiled into the binding unit.
OpenCL itself is a system library on Linux and a framework on macOS.
"""

import shutil
import subprocess

from .model import FRAMEWORK, Backend, BackendPlan, LinkDirective

OPENCL_SOURCE = "llama.cpp/ggml-opencl.cpp"

OPENCL_LIBS = {
    "linux": (LinkDirective("OpenCL"), LinkDirective("clblast")),
    "mac": (LinkDirective("OpenCL", FRAMEWORK), LinkDirective("clblast")),
}


def check_environment():
    """Check if CLBlast can be found through pkg-config."""
    if shutil.which("pkg-config"):
        result = subprocess.run(["pkg-config", "--exists", "clblast"], capture_output=True, text=True)
        if result.returncode == 0:
            print("CLBlast environment detected.")
            return True
    print("CLBlast not found. Please install CLBlast and an OpenCL runtime.")
    return False


def get_plan(target, env):
    define = (("GGML_USE_CLBLAST", None),)
    return BackendPlan(
        c_defines=define,
        cpp_defines=define,
        cpp_sources=(OPENCL_SOURCE,),
        link_directives=OPENCL_LIBS.get(target.os_name, ()),
    )


def get_backend_name():
    return Backend.OPENCL.value
