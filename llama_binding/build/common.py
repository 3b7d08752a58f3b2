import os
import subprocess
import hashlib
import json
import platform

from .errors import FilesystemError, ToolchainError
from .model import Backend, BuildTarget


def get_os():
    """Get OS name for target."""
    system = platform.system()
    if system == "Windows":
        return "win"
    elif system == "Darwin":
        return "mac"
    elif system == "Linux":
        return "linux"
    else:
        return system.lower()


def get_arch():
    """Get architecture for target."""
    machine = platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return "x64"
    elif machine in ("arm64", "aarch64"):
        return "arm64"
    else:
        return machine


def run_cmd(cmd, output=None):
    """Run a toolchain command, raising ToolchainError if it fails or does not produce `output`."""
    print(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, errors="replace")
    except OSError as e:
        raise ToolchainError(cmd, output=str(e)) from e

    # print output even on success to show warnings
    if result.stdout and result.stdout.strip():
        print(result.stdout)

    if result.returncode != 0:
        raise ToolchainError(cmd, result.returncode, result.stdout or "")

    if output and not os.path.exists(output):
        raise ToolchainError(cmd, result.returncode, f"Expected output {output} was not produced.")

    return result.stdout


def read_text(path):
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FilesystemError(f"Could not read {path}: {e}") from e


def write_text(path, text):
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as e:
        raise FilesystemError(f"Could not write {path}: {e}") from e


def remove_file(path):
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        raise FilesystemError(f"Could not remove {path}: {e}") from e


def make_dirs(path):
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Could not create directory {path}: {e}") from e


def compute_sha256(file_path):
    """Compute SHA256 hash of a file."""
    hash_sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(4096), b""):
            hash_sha256.update(chunk)
    return hash_sha256.hexdigest()


def get_target(get_backend_name_func, arch=None):
    """Get the target for the build.

    Args:
        get_backend_name_func: Function that returns the backend name
        arch: Architecture to build for. If None, uses the host architecture
    """
    backend = Backend(get_backend_name_func())
    return BuildTarget(get_os(), arch or get_arch(), backend)


def get_build_dir(project_root, target):
    """Default build-scoped output directory for a target: build/<os>-<arch>-<backend>."""
    return os.path.join(project_root, "build", target.name)


def prepare_build(source_dir, build_dir, required_files):
    """Check that the source tree is present and create the build directory."""
    for rel_path in required_files:
        if not os.path.exists(os.path.join(source_dir, rel_path)):
            raise FilesystemError(
                f"{rel_path} not found in {source_dir}. Is the llama.cpp submodule checked out?"
            )

    make_dirs(build_dir)


def get_manifest(result):
    """Build the manifest for a finished build: artifact hashes and link directives."""
    manifest = {"target": result.target.name, "backend": result.target.backend.value, "files": {}}

    artifacts = [result.core_artifact, result.binding_artifact, result.cuda_artifact]
    for file_path in artifacts:
        if not file_path:
            continue
        basename = os.path.basename(file_path)
        manifest["files"][basename] = {"path": file_path, "sha256": compute_sha256(file_path)}

    manifest["link"] = [directive.to_dict() for directive in result.link_directives]
    return manifest


def write_manifest(build_dir, target, manifest):
    """Write the manifest to the build directory and print it."""
    manifest_path = os.path.join(build_dir, f"{target.name}-manifest.json")
    try:
        with open(manifest_path, "w") as f:
            json.dump(manifest, f, indent=4)
    except OSError as e:
        raise FilesystemError(f"Could not write {manifest_path}: {e}") from e

    print(f"Target: {target.name}")
    print("Build manifest:")
    print(json.dumps(manifest, indent=4))

    return manifest_path
