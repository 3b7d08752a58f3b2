import os
import sys
import argparse

from . import common
from .backends import BACKEND_CHOICES, get_backend_module, parse_backend
from .errors import BuildError
from .pipeline import build_project


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build the llama binding library for one backend.")
    parser.add_argument(
        "--backend",
        action="append",
        help=f"The backend to build for, one of: {', '.join(BACKEND_CHOICES)} "
        "(default: $LLAMA_BACKEND, or a CPU-only build)",
    )
    parser.add_argument(
        "--arch",
        choices=["x64", "arm64"],
        help="The architecture to build for (default: detected from current platform)",
    )
    parser.add_argument(
        "--source-dir",
        default=os.getcwd(),
        help="Directory containing binding.cpp and the llama.cpp checkout (default: current directory)",
    )
    parser.add_argument(
        "--build-dir",
        default=None,
        help="Output directory for this build (default: build/<os>-<arch>-<backend> in the source directory)",
    )
    parser.add_argument(
        "--skip-checks", action="store_true", help="Don't check that the backend's SDK is installed before building"
    )
    args = parser.parse_args(argv)

    env = os.environ
    names = args.backend
    if not names and env.get("LLAMA_BACKEND"):
        names = [env["LLAMA_BACKEND"]]

    try:
        backend = parse_backend(names)
        module = get_backend_module(backend)
        target = common.get_target(module.get_backend_name, args.arch)

        print(f"Building {target.name}")
        if not args.skip_checks and not module.check_environment():
            sys.exit(1)

        manifest_data_func = getattr(module, "get_manifest_data", None)
        manifest_data = manifest_data_func(env) if manifest_data_func else None

        build_dir = args.build_dir or common.get_build_dir(args.source_dir, target)
        result = build_project(target, args.source_dir, build_dir, env=env, manifest_data=manifest_data)
    except BuildError as e:
        print(f"Build failed: {e}")
        sys.exit(1)

    print("Build artifacts are located in:", os.path.dirname(result.binding_artifact))


if __name__ == "__main__":
    main()
