from __future__ import annotations

import pytest

from llama_binding.build.backends import get_backend_module, parse_backend, select_backend
from llama_binding.build.errors import ConfigurationError
from llama_binding.build.model import FRAMEWORK, Backend, BackendPlan, BuildTarget, LinkDirective


def make_target(backend, os_name="linux"):
    return BuildTarget(os_name, "x64", backend)


def test_parse_backend_defaults_to_cpu_only():
    assert parse_backend(None) == Backend.NONE
    assert parse_backend([]) == Backend.NONE


def test_parse_backend_accepts_one_backend():
    assert parse_backend(["metal"]) == Backend.METAL
    assert parse_backend(["CUDA"]) == Backend.CUDA
    assert parse_backend(["cuda", "cuda"]) == Backend.CUDA


@pytest.mark.parametrize("names", [["cuda", "metal"], ["openblas,blis"], ["opencl", "none"]])
def test_two_backends_are_rejected(names, monkeypatch):
    def no_io(*args, **kwargs):
        raise AssertionError("file I/O before backend validation")

    monkeypatch.setattr("builtins.open", no_io)
    with pytest.raises(ConfigurationError, match="Only one backend"):
        parse_backend(names)


def test_unknown_backend_is_rejected():
    with pytest.raises(ConfigurationError, match="Unknown backend: vulkan"):
        parse_backend(["vulkan"])


def test_select_backend_unknown_identifier():
    with pytest.raises(ConfigurationError):
        select_backend(make_target("vulkan"), {})


@pytest.mark.parametrize("backend", list(Backend))
def test_select_backend_is_pure(backend):
    env = {"CUDA_PATH": "/opt/cuda-12"}
    assert select_backend(make_target(backend), env) == select_backend(make_target(backend), env)


def test_none_backend_is_empty():
    assert select_backend(make_target(Backend.NONE), {}) == BackendPlan()


def test_openblas_plan():
    plan = select_backend(make_target(Backend.OPENBLAS), {})
    assert plan.c_defines == (("GGML_USE_OPENBLAS", None),)
    assert plan.c_include_paths == ("/usr/local/include/openblas",)
    assert plan.link_directives == (LinkDirective("openblas"),)
    assert plan.cpp_defines == ()


def test_blis_plan_adds_search_path():
    plan = select_backend(make_target(Backend.BLIS), {})
    assert plan.c_defines == (("GGML_USE_OPENBLAS", None),)
    assert plan.link_directives == (LinkDirective("blis", search_paths=("/usr/local/lib",)),)


def test_opencl_plan_per_os():
    linux = select_backend(make_target(Backend.OPENCL, "linux"), {})
    mac = select_backend(make_target(Backend.OPENCL, "mac"), {})
    win = select_backend(make_target(Backend.OPENCL, "win"), {})

    assert linux.cpp_sources == ("llama.cpp/ggml-opencl.cpp",)
    assert linux.c_defines == linux.cpp_defines == (("GGML_USE_CLBLAST", None),)
    assert linux.link_directives == (LinkDirective("OpenCL"), LinkDirective("clblast"))
    assert mac.link_directives == (LinkDirective("OpenCL", FRAMEWORK), LinkDirective("clblast"))
    assert win.link_directives == ()


def test_metal_plan():
    plan = select_backend(make_target(Backend.METAL, "mac"), {})
    assert plan.c_defines == (("GGML_USE_METAL", None), ("GGML_METAL_NDEBUG", None))
    assert plan.cpp_defines == (("GGML_USE_METAL", None),)
    assert [d.library_name for d in plan.link_directives] == [
        "Metal",
        "Foundation",
        "MetalPerformanceShaders",
        "MetalKit",
    ]
    assert all(d.link_kind == FRAMEWORK for d in plan.link_directives)
    assert plan.c_sources == ("llama.cpp/ggml-metal.m",)
    assert plan.shader_patch.shader_source == "llama.cpp/ggml-metal.metal"
    assert plan.shader_patch.runtime_source == "llama.cpp/ggml-metal.m"


def test_cuda_plan_without_cuda_path():
    plan = select_backend(make_target(Backend.CUDA), {})
    names = [d.library_name for d in plan.link_directives]
    assert names == ["cublas", "culibos", "cudart", "cublasLt", "pthread", "dl", "rt"]
    assert plan.link_directives[0].search_paths == ("/usr/local/cuda/lib64", "/opt/cuda/lib64")
    assert plan.cuda_sources == ("llama.cpp/ggml-cuda.cu",)
    assert plan.c_sources == () and plan.cpp_sources == ()


def test_cuda_plan_with_cuda_path():
    plan = select_backend(make_target(Backend.CUDA), {"CUDA_PATH": "/opt/cuda-12"})
    assert plan.link_directives[0].search_paths == (
        "/usr/local/cuda/lib64",
        "/opt/cuda/lib64",
        "/opt/cuda-12/targets/x86_64-linux/lib",
    )


@pytest.mark.parametrize("backend", list(Backend))
def test_backend_module_names_itself(backend):
    assert get_backend_module(backend).get_backend_name() == backend.value
