from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Ensure repo root is importable for all tests, regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

SHADER_TEXT = 'kernel void add(device const float * src0 [[buffer(0)]]) {\n    printf("a\\b");\r\n}\n'

RUNTIME_TEXT = (
    "#import \"ggml-metal.h\"\n"
    "\n"
    "struct ggml_metal_context * ggml_metal_init(int n_cb) {\n"
    "    NSError * error = nil;\n"
    "    NSString * src = [NSString stringWithContentsOfFile:sourcePath encoding:NSUTF8StringEncoding error:&error];\n"
    "    return ctx;\n"
    "}\n"
)


class RecordingRunner:
    """Stands in for the compilers: records each command and creates its output file."""

    def __init__(self):
        self.commands = []

    def __call__(self, cmd, output=None):
        self.commands.append(list(cmd))
        if output:
            os.makedirs(os.path.dirname(output), exist_ok=True)
            with open(output, "wb") as f:
                f.write(" ".join(cmd).encode())
        return ""


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def source_tree(tmp_path):
    """A minimal binding source tree with the files the pipeline expects."""
    root = tmp_path / "src"
    files = {
        "binding.cpp": "// binding\n",
        "llama.cpp/ggml.c": "// ggml\n",
        "llama.cpp/ggml-alloc.c": "",
        "llama.cpp/ggml-backend.c": "",
        "llama.cpp/ggml-quants.c": "",
        "llama.cpp/llama.cpp": "",
        "llama.cpp/common/common.cpp": "",
        "llama.cpp/ggml-opencl.cpp": "",
        "llama.cpp/ggml-cuda.cu": "",
        "llama.cpp/ggml-cuda.h": "",
        "llama.cpp/ggml-metal.h": "",
        "llama.cpp/ggml-metal.metal": SHADER_TEXT,
        "llama.cpp/ggml-metal.m": RUNTIME_TEXT,
    }
    for rel_path, text in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode("utf-8"))
    (root / "include_shims").mkdir()
    return root
