from __future__ import annotations

import os

import pytest

from llama_binding.build.errors import FilesystemError, PatchInvariantViolation
from llama_binding.build.metal_embed import RUNTIME_LOAD_EXPRESSION, embed_shader, escape_c_string

RUNTIME = "int x;\n    " + RUNTIME_LOAD_EXPRESSION + "\n    return ctx;\n"


@pytest.fixture
def sources(tmp_path):
    shader = tmp_path / "ggml-metal.metal"
    runtime = tmp_path / "ggml-metal.m"
    shader.write_bytes(b'kernel void f() {\n    x = "a\\b";\r\n}\n')
    runtime.write_text(RUNTIME)
    return shader, runtime


def test_escape_order():
    assert escape_c_string('a\\b\n"c"\r') == 'a\\\\b\\n\\"c\\"\\r'
    # an escaped newline must not have its backslash escaped again
    assert escape_c_string("\n") == "\\n"
    assert escape_c_string("\\n") == "\\\\n"


def test_embed_replaces_load_expression(sources, tmp_path):
    shader, runtime = sources
    output = tmp_path / "out" / "ggml-metal.m"

    assert embed_shader(str(shader), str(runtime), str(output)) == str(output)

    patched = output.read_text()
    assert RUNTIME_LOAD_EXPRESSION not in patched
    assert 'NSString * src  = @"kernel void f() {\\n    x = \\"a\\\\b\\";\\r\\n}\\n";' in patched
    assert patched.startswith("int x;\n")
    assert patched.endswith("\n    return ctx;\n")


def test_embed_leaves_original_untouched(sources, tmp_path):
    shader, runtime = sources
    before = runtime.read_bytes()
    mtime = os.stat(runtime).st_mtime_ns

    embed_shader(str(shader), str(runtime), str(tmp_path / "out" / "ggml-metal.m"))

    assert runtime.read_bytes() == before
    assert os.stat(runtime).st_mtime_ns == mtime


def test_embed_is_idempotent(sources, tmp_path):
    shader, runtime = sources
    output = tmp_path / "out" / "ggml-metal.m"

    embed_shader(str(shader), str(runtime), str(output))
    first = output.read_bytes()
    embed_shader(str(shader), str(runtime), str(output))
    assert output.read_bytes() == first


def test_missing_expression_raises_and_writes_nothing(sources, tmp_path):
    shader, runtime = sources
    output = tmp_path / "out" / "ggml-metal.m"
    # a patched copy left over from an earlier build against the old source
    embed_shader(str(shader), str(runtime), str(output))
    assert output.exists()

    runtime.write_text(RUNTIME.replace("stringWithContentsOfFile", "stringWithContentsOfURL"))

    with pytest.raises(PatchInvariantViolation) as exc_info:
        embed_shader(str(shader), str(runtime), str(output))

    assert exc_info.value.path == str(runtime)
    assert exc_info.value.expected == RUNTIME_LOAD_EXPRESSION
    assert "reinvestigated" in str(exc_info.value)
    assert not output.exists()


def test_refuses_to_patch_in_place(sources):
    shader, runtime = sources
    with pytest.raises(FilesystemError):
        embed_shader(str(shader), str(runtime), str(runtime))


def test_missing_shader_is_filesystem_error(sources, tmp_path):
    _, runtime = sources
    with pytest.raises(FilesystemError):
        embed_shader(str(tmp_path / "missing.metal"), str(runtime), str(tmp_path / "out.m"))


@pytest.mark.parametrize("which", ["shader", "runtime"])
def test_undecodable_source_is_filesystem_error(sources, tmp_path, which):
    shader, runtime = sources
    broken = shader if which == "shader" else runtime
    broken.write_bytes(b"kernel \xff\xfe void f();\n")
    output = tmp_path / "out" / "ggml-metal.m"

    with pytest.raises(FilesystemError, match="Could not read"):
        embed_shader(str(shader), str(runtime), str(output))
    assert not output.exists()
