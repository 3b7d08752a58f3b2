"""Metal platform build configuration.

The Metal backend is Objective-C (ggml-metal.m) compiled into the C core. It
normally reads ggml-metal.metal from disk at runtime; the pipeline inlines the
shader into a patched copy of ggml-metal.m (see metal_embed.py) and compiles
that copy instead.
"""

import os
import platform

from .model import FRAMEWORK, Backend, BackendPlan, LinkDirective, ShaderPatch

METAL_SHADER_SOURCE = "llama.cpp/ggml-metal.metal"
METAL_RUNTIME_SOURCE = "llama.cpp/ggml-metal.m"
METAL_HEADER = "llama.cpp/ggml-metal.h"

METAL_FRAMEWORKS = ("Metal", "Foundation", "MetalPerformanceShaders", "MetalKit")


def check_environment():
    """Check if Metal is available (macOS only)."""
    if platform.system() == "Darwin":
        print("Metal environment detected (macOS).")
        return True
    print("Metal is only available on macOS.")
    return False


def get_plan(target, env):
    return BackendPlan(
        c_defines=(("GGML_USE_METAL", None), ("GGML_METAL_NDEBUG", None)),
        cpp_defines=(("GGML_USE_METAL", None),),
        c_sources=(METAL_RUNTIME_SOURCE,),
        c_include_paths=(os.path.dirname(METAL_HEADER),),
        link_directives=tuple(LinkDirective(name, FRAMEWORK) for name in METAL_FRAMEWORKS),
        shader_patch=ShaderPatch(METAL_SHADER_SOURCE, METAL_RUNTIME_SOURCE),
    )


def get_backend_name():
    return Backend.METAL.value
