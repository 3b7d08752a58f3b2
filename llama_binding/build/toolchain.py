"""Compiler, archiver and linker command lines.

Commands are built as argument lists and handed to a runner, `common.run_cmd`
unless another one is injected (tests use a runner that only records them).
"""

import os

from .common import make_dirs, remove_file, run_cmd
from .model import FRAMEWORK

C = "c"
CPP = "c++"
CUDA = "cuda"


def define_args(defines, prefix="-D"):
    args = []
    for name, value in defines:
        if value is None:
            args.append(f"{prefix}{name}")
        else:
            args.append(f"{prefix}{name}={value}")
    return args


def link_args(directives, os_name):
    """Render link directives as linker arguments for the given OS."""
    search_paths = []
    libs = []
    for directive in directives:
        for path in directive.search_paths:
            if path not in search_paths:
                search_paths.append(path)

        if os_name == "win":
            libs.append(f"{directive.library_name}.lib")
        elif directive.link_kind == FRAMEWORK:
            libs += ["-framework", directive.library_name]
        else:
            libs.append(f"-l{directive.library_name}")

    if os_name == "win":
        return [f"/LIBPATH:{path}" for path in search_paths] + libs
    return [f"-L{path}" for path in search_paths] + libs


class Toolchain:
    """gcc/clang style drivers, honouring $CC, $CXX and $AR."""

    object_suffix = ".o"

    def __init__(self, os_name, env=None, runner=run_cmd):
        if env is None:
            env = os.environ
        self.os_name = os_name
        self.cc = env.get("CC") or "cc"
        self.cxx = env.get("CXX") or "c++"
        self.ar = env.get("AR") or "ar"
        self.runner = runner

    def static_library_name(self, name):
        return f"lib{name}.a"

    def shared_library_name(self, name):
        if self.os_name == "mac":
            return f"lib{name}.dylib"
        return f"lib{name}.so"

    def compile_command(self, unit, source, obj):
        compiler = self.cxx if unit.language == CPP else self.cc
        cmd = [compiler] + list(unit.flags)
        # objects of both units end up in a shared library
        if "-fPIC" not in unit.flags:
            cmd.append("-fPIC")
        cmd += define_args(unit.defines)
        cmd += [f"-I{path}" for path in unit.include_paths]
        cmd += ["-c", source, "-o", obj]
        return cmd

    def archive_command(self, objects, output):
        return [self.ar, "crs", output] + list(objects)

    def shared_command(self, objects, output, directives=()):
        return [self.cxx, "-shared", "-o", output] + list(objects) + link_args(directives, self.os_name)

    def compile(self, unit, source, obj):
        make_dirs(os.path.dirname(obj))
        print(f"Compiling: {source}")
        self.runner(self.compile_command(unit, source, obj), obj)
        return obj

    def archive(self, objects, output):
        make_dirs(os.path.dirname(output))
        # ar appends to an existing archive
        remove_file(output)
        print(f"Archiving: {output}")
        self.runner(self.archive_command(objects, output), output)
        return output

    def link_shared(self, objects, output, directives=()):
        make_dirs(os.path.dirname(output))
        print(f"Linking: {output}")
        self.runner(self.shared_command(objects, output, directives), output)
        return output


class MsvcToolchain(Toolchain):
    """cl.exe, lib.exe and link.exe from a configured Visual Studio environment."""

    object_suffix = ".obj"

    def __init__(self, os_name, env=None, runner=run_cmd):
        super().__init__(os_name, env, runner)
        self.cc = "cl.exe"
        self.cxx = "cl.exe"
        self.ar = "lib.exe"
        self.linker = "link.exe"

    def static_library_name(self, name):
        return f"{name}.lib"

    def shared_library_name(self, name):
        return f"{name}.dll"

    def compile_command(self, unit, source, obj):
        language = "/TP" if unit.language == CPP else "/TC"
        cmd = [self.cc, "/nologo", language] + list(unit.flags)
        cmd += define_args(unit.defines, prefix="/D")
        cmd += [f"/I{path}" for path in unit.include_paths]
        cmd += ["/c", source, f"/Fo{obj}"]
        return cmd

    def archive_command(self, objects, output):
        return [self.ar, "/nologo", f"/OUT:{output}"] + list(objects)

    def shared_command(self, objects, output, directives=()):
        return [self.linker, "/nologo", "/DLL", f"/OUT:{output}"] + list(objects) + link_args(directives, self.os_name)


class NvccCompiler:
    """Compiles CUDA units. nvcc is never used for the C or C++ units."""

    def __init__(self, nvcc, object_suffix=".o", runner=run_cmd):
        self.nvcc = nvcc
        self.object_suffix = object_suffix
        self.runner = runner

    def compile_command(self, unit, source, obj):
        cmd = [self.nvcc] + list(unit.flags)
        cmd += define_args(unit.defines)
        cmd += [f"-I{path}" for path in unit.include_paths]
        cmd += ["-c", source, "-o", obj]
        return cmd

    def compile(self, unit, source, obj):
        make_dirs(os.path.dirname(obj))
        print(f"Compiling: {source}")
        self.runner(self.compile_command(unit, source, obj), obj)
        return obj


def get_toolchain(os_name, env=None, runner=run_cmd):
    if os_name == "win":
        return MsvcToolchain(os_name, env, runner)
    return Toolchain(os_name, env, runner)
