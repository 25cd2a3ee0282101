"""Version command for turnpath CLI."""

import sys
from importlib.metadata import version, PackageNotFoundError


def cmd_version() -> int:
    """Display version information.

    Returns:
        Exit code (always 0).
    """
    try:
        tp_version = version("turnpath")
    except PackageNotFoundError:
        tp_version = "development"

    print(f"turnpath {tp_version}")
    print(f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")

    print("\nDependencies:")

    deps = [
        ("pyyaml", "YAML config support"),
        ("pydantic", "Config validation"),
    ]

    for pkg, desc in deps:
        try:
            status = f"v{version(pkg)}"
        except PackageNotFoundError:
            status = "not installed"
        print(f"  {pkg}: {status} ({desc})")

    return 0
