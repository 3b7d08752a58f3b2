"""Embed ggml-metal.metal into ggml-metal.m.

Upstream ggml-metal.m loads its shader source from a file next to the binary
at runtime. Packaged builds have no such file, so the read is replaced with a
string literal holding the shader source.
"""

import os

from .common import read_text, remove_file, write_text
from .errors import FilesystemError, PatchInvariantViolation

RUNTIME_LOAD_EXPRESSION = (
    "NSString * src = [NSString stringWithContentsOfFile:sourcePath "
    "encoding:NSUTF8StringEncoding error:&error];"
)


def escape_c_string(text):
    # backslash first, so the escapes added below are not escaped again
    return text.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r").replace('"', '\\"')


def embed_shader(shader_source_path, runtime_source_path, output_path):
    """Write a copy of `runtime_source_path` to `output_path` with the shader source inlined.

    The original runtime source is never modified. Raises PatchInvariantViolation
    and removes any earlier patched copy at `output_path` if the runtime source
    no longer contains the expected load expression.
    """
    if os.path.abspath(output_path) == os.path.abspath(runtime_source_path):
        raise FilesystemError(f"Refusing to patch {runtime_source_path} in place")

    shader = escape_c_string(read_text(shader_source_path))
    runtime = read_text(runtime_source_path)

    if RUNTIME_LOAD_EXPRESSION not in runtime:
        # a copy patched from an older runtime source must not outlive the drift
        remove_file(output_path)
        raise PatchInvariantViolation(runtime_source_path, RUNTIME_LOAD_EXPRESSION)

    patched = runtime.replace(RUNTIME_LOAD_EXPRESSION, f'NSString * src  = @"{shader}";')

    print(f"Embedding {shader_source_path} into {output_path}")
    write_text(output_path, patched)
    return output_path
