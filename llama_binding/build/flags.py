"""Baseline compiler flags per OS family."""

POSIX_C_FLAGS = [
    "-std=c11",
    "-Wall",
    "-Wextra",
    "-Wpedantic",
    "-Wcast-qual",
    "-Wdouble-promotion",
    "-Wshadow",
    "-Wstrict-prototypes",
    "-Wpointer-arith",
    "-pthread",
    "-march=native",
    "-mtune=native",
]

POSIX_CPP_FLAGS = [
    "-std=c++11",
    "-Wall",
    "-Wdeprecated-declarations",
    "-Wunused-but-set-variable",
    "-Wextra",
    "-Wpedantic",
    "-Wcast-qual",
    "-Wno-unused-function",
    "-Wno-multichar",
    "-fPIC",
    "-pthread",
    "-march=native",
    "-mtune=native",
]

MSVC_FLAGS = ["/W4", "/Wall", "/wd4820", "/wd4710", "/wd4711", "/wd4820", "/wd4514"]

OS_FLAGS = {
    "linux": (POSIX_C_FLAGS, POSIX_CPP_FLAGS),
    "mac": (POSIX_C_FLAGS, POSIX_CPP_FLAGS),
    "win": (MSVC_FLAGS, MSVC_FLAGS),
}


def is_supported_os(os_name):
    return os_name in OS_FLAGS


def resolve_flags(os_name):
    """Return (c_flags, cpp_flags) for an OS family.

    Unknown OS families get two empty lists; whether the build can go ahead at
    all is decided by the pipeline's target validation.
    """
    c_flags, cpp_flags = OS_FLAGS.get(os_name, ([], []))
    return list(c_flags), list(cpp_flags)
