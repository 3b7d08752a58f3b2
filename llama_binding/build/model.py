"""Data types shared by the build steps."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

STATIC = "static"
SHARED = "shared"

DYNAMIC = "dynamic"
FRAMEWORK = "framework"


class Backend(str, Enum):
    """The one acceleration backend a build is configured for."""

    NONE = "none"
    OPENBLAS = "openblas"
    BLIS = "blis"
    OPENCL = "opencl"
    METAL = "metal"
    CUDA = "cuda"


@dataclass(frozen=True)
class BuildTarget:
    os_name: str
    arch: str
    backend: Backend = Backend.NONE

    @property
    def name(self):
        """Identifier used for the build directory and the manifest, e.g. linux-x64-cuda."""
        return f"{self.os_name}-{self.arch}-{self.backend.value}"


@dataclass(frozen=True)
class LinkDirective:
    library_name: str
    link_kind: str = DYNAMIC
    search_paths: Tuple[str, ...] = ()

    def to_dict(self):
        return {"name": self.library_name, "kind": self.link_kind, "search_paths": list(self.search_paths)}


@dataclass(frozen=True)
class EnvOverride:
    env_var_name: str
    default_literal: str
    target_define_name: str


@dataclass(frozen=True)
class ShaderPatch:
    shader_source: str
    runtime_source: str


@dataclass(frozen=True)
class CompilationUnit:
    name: str
    language: str
    sources: Tuple[str, ...]
    include_paths: Tuple[str, ...] = ()
    defines: Tuple[Tuple[str, Optional[str]], ...] = ()
    flags: Tuple[str, ...] = ()
    output_kind: str = STATIC

    def __post_init__(self):
        # include paths behave as a set but keep their first-seen order for stable command lines
        object.__setattr__(self, "include_paths", tuple(dict.fromkeys(self.include_paths)))

    def with_sources(self, sources):
        return replace(self, sources=tuple(sources))


@dataclass(frozen=True)
class BackendPlan:
    c_defines: Tuple[Tuple[str, Optional[str]], ...] = ()
    cpp_defines: Tuple[Tuple[str, Optional[str]], ...] = ()
    c_sources: Tuple[str, ...] = ()
    cpp_sources: Tuple[str, ...] = ()
    c_include_paths: Tuple[str, ...] = ()
    cpp_include_paths: Tuple[str, ...] = ()
    cuda_sources: Tuple[str, ...] = ()
    cuda_include_paths: Tuple[str, ...] = ()
    link_directives: Tuple[LinkDirective, ...] = ()
    shader_patch: Optional[ShaderPatch] = None


@dataclass
class BuildResult:
    target: BuildTarget
    core_artifact: str
    binding_artifact: str
    cuda_artifact: Optional[str] = None
    core_objects: Tuple[str, ...] = ()
    patched_sources: Tuple[str, ...] = ()
    link_directives: Tuple[LinkDirective, ...] = ()
    manifest_path: Optional[str] = None
