"""Build the ggml core archive and the llama binding shared library.

Order of a build:

1. validate the target (supported OS, a single known backend)
2. resolve the OS flags and the backend plan
3. Metal: inline the shader into a patched ggml-metal.m.
   CUDA: compile ggml-cuda.cu with nvcc into its own archive.
4. compile the C core (ggml) into objects and a static archive
5. compile the C++ binding unit and link it, together with the core's object
   files, into the shared library
6. emit the link directives and the build manifest

The binding library embeds the core's object files directly, so the core unit
always finishes before the binding unit starts. Any failure aborts the build.
"""

import os

from . import common
from .backends import select_backend
from .cuda_flags import CUDA_ENV_OVERRIDES, find_nvcc, generate_cuda_flags
from .errors import ConfigurationError
from .flags import is_supported_os, resolve_flags
from .metal_embed import embed_shader
from .model import SHARED, STATIC, Backend, BuildResult, CompilationUnit
from .toolchain import C, CPP, CUDA, NvccCompiler, get_toolchain

CORE_SOURCES = [
    "llama.cpp/ggml.c",
    "llama.cpp/ggml-alloc.c",
    "llama.cpp/ggml-backend.c",
    "llama.cpp/ggml-quants.c",
]
CORE_INCLUDE_PATHS = ["llama.cpp"]
CORE_DEFINES = [("_GNU_SOURCE", None), ("GGML_USE_K_QUANTS", None)]

BINDING_SOURCES = [
    "llama.cpp/common/common.cpp",
    "llama.cpp/llama.cpp",
    "binding.cpp",
]
BINDING_INCLUDE_PATHS = ["llama.cpp/common", "llama.cpp", "include_shims"]

CUDA_EXTRA_FLAGS = ["-Wno-pedantic"]

CORE_NAME = "ggml"
BINDING_NAME = "binding"
CUDA_NAME = "ggml-cuda"


def validate_target(target):
    if not is_supported_os(target.os_name):
        raise ConfigurationError(f"Unsupported operating system: {target.os_name}")
    if not isinstance(target.backend, Backend):
        raise ConfigurationError(f"Exactly one backend must be selected, got: {target.backend!r}")


def source_path(source_dir, path):
    # absolute paths (system include dirs, patched sources) are kept as they are
    return os.path.join(source_dir, path)


def object_path(obj_dir, unit, source, suffix):
    basename = os.path.splitext(os.path.basename(source))[0]
    return os.path.join(obj_dir, unit.name, basename + suffix)


def make_core_unit(source_dir, c_flags, plan):
    return CompilationUnit(
        name=CORE_NAME,
        language=C,
        sources=tuple(source_path(source_dir, p) for p in CORE_SOURCES + list(plan.c_sources)),
        include_paths=tuple(source_path(source_dir, p) for p in CORE_INCLUDE_PATHS + list(plan.c_include_paths)),
        defines=tuple(CORE_DEFINES) + plan.c_defines,
        flags=tuple(c_flags),
        output_kind=STATIC,
    )


def make_binding_unit(source_dir, cpp_flags, plan):
    return CompilationUnit(
        name=BINDING_NAME,
        language=CPP,
        sources=tuple(source_path(source_dir, p) for p in BINDING_SOURCES + list(plan.cpp_sources)),
        include_paths=tuple(
            source_path(source_dir, p) for p in BINDING_INCLUDE_PATHS + list(plan.cpp_include_paths)
        ),
        defines=plan.cpp_defines,
        flags=tuple(cpp_flags),
        output_kind=SHARED,
    )


def make_cuda_unit(source_dir, cpp_flags, plan, env):
    flags = generate_cuda_flags(CUDA_ENV_OVERRIDES, env, cpp_flags) + CUDA_EXTRA_FLAGS
    return CompilationUnit(
        name=CUDA_NAME,
        language=CUDA,
        sources=tuple(source_path(source_dir, p) for p in plan.cuda_sources),
        include_paths=tuple(source_path(source_dir, p) for p in plan.cuda_include_paths),
        flags=tuple(flags),
        output_kind=STATIC,
    )


def patch_metal_source(core_unit, source_dir, build_dir, shader_patch):
    """Inline the Metal shader and swap the patched copy into the core unit's sources."""
    runtime_source = source_path(source_dir, shader_patch.runtime_source)
    patched_source = os.path.join(build_dir, "patched", os.path.basename(shader_patch.runtime_source))

    embed_shader(source_path(source_dir, shader_patch.shader_source), runtime_source, patched_source)

    sources = [patched_source if src == runtime_source else src for src in core_unit.sources]
    return core_unit.with_sources(sources), patched_source


def compile_unit(compiler, unit, obj_dir):
    return [compiler.compile(unit, src, object_path(obj_dir, unit, src, compiler.object_suffix)) for src in unit.sources]


def link_unit(toolchain, unit, objects, lib_dir, directives=()):
    """Produce the unit's artifact from `objects` according to its output kind."""
    if unit.output_kind == STATIC:
        return toolchain.archive(objects, os.path.join(lib_dir, toolchain.static_library_name(unit.name)))
    if unit.output_kind == SHARED:
        return toolchain.link_shared(
            objects, os.path.join(lib_dir, toolchain.shared_library_name(unit.name)), directives
        )
    raise ConfigurationError(f"Cannot produce a {unit.output_kind} artifact for {unit.name}")


def build_project(target, source_dir, build_dir, env=None, toolchain=None, nvcc=None, manifest_data=None):
    """Run a complete build for `target` and return a BuildResult.

    `toolchain` and `nvcc` default to the host compilers; `manifest_data` is merged
    into the manifest written next to the artifacts.
    """
    if env is None:
        env = os.environ

    validate_target(target)
    common.prepare_build(source_dir, build_dir, CORE_SOURCES + BINDING_SOURCES)

    if toolchain is None:
        toolchain = get_toolchain(target.os_name, env)

    c_flags, cpp_flags = resolve_flags(target.os_name)
    plan = select_backend(target, env)

    obj_dir = os.path.join(build_dir, "obj")
    lib_dir = os.path.join(build_dir, "lib")

    core_unit = make_core_unit(source_dir, c_flags, plan)
    binding_unit = make_binding_unit(source_dir, cpp_flags, plan)

    patched_sources = []
    if target.backend == Backend.METAL:
        core_unit, patched_source = patch_metal_source(core_unit, source_dir, build_dir, plan.shader_patch)
        patched_sources.append(patched_source)

    cuda_artifact = None
    if target.backend == Backend.CUDA:
        if nvcc is None:
            nvcc = NvccCompiler(find_nvcc(env), toolchain.object_suffix, toolchain.runner)
        cuda_unit = make_cuda_unit(source_dir, cpp_flags, plan, env)
        cuda_objects = compile_unit(nvcc, cuda_unit, obj_dir)
        cuda_artifact = link_unit(toolchain, cuda_unit, cuda_objects, lib_dir)

    core_objects = compile_unit(toolchain, core_unit, obj_dir)
    core_artifact = link_unit(toolchain, core_unit, core_objects, lib_dir)

    binding_objects = compile_unit(toolchain, binding_unit, obj_dir)
    link_inputs = binding_objects + core_objects
    if cuda_artifact:
        link_inputs.append(cuda_artifact)
    binding_artifact = link_unit(toolchain, binding_unit, link_inputs, lib_dir, plan.link_directives)

    print("Link directives:")
    for directive in plan.link_directives:
        print(f"  {directive.link_kind}: {directive.library_name} {' '.join(directive.search_paths)}".rstrip())

    result = BuildResult(
        target=target,
        core_artifact=core_artifact,
        binding_artifact=binding_artifact,
        cuda_artifact=cuda_artifact,
        core_objects=tuple(core_objects),
        patched_sources=tuple(patched_sources),
        link_directives=plan.link_directives,
    )

    manifest = common.get_manifest(result)
    if manifest_data:
        manifest.update(manifest_data)
    result.manifest_path = common.write_manifest(build_dir, target, manifest)

    return result
