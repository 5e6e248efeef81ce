#!/usr/bin/env python3
"""
Developer commands for the OFDM Link Simulator, run through uv.

    python scripts/dev.py setup
    python scripts/dev.py test [--cov] [path]
    python scripts/dev.py smoke [snr_db]
"""

import shutil
import subprocess
import sys

PACKAGE = "ofdm_link_simulator"
SOURCES = [PACKAGE, "tests", "examples", "scripts"]

DEMOS = {
    "quick": "examples/quick_start_demo.py",
    "main": "examples/main_interface_demo.py",
    "config": "examples/config_demo.py",
    "orchestrator": "examples/orchestrator_demo.py",
    "export": "examples/result_export_demo.py",
    "errors": "examples/error_handling_demo.py",
}

SMOKE_SCRIPT = """
from {package} import quick_transmit
outcome = quick_transmit("HELLO LINK", snr_db={snr_db})
assert outcome.success, outcome
print(f"BER={{outcome.metrics.bit_error_rate:.4g}} "
      f"modulation={{outcome.modulation.value}} "
      f"symbols={{outcome.num_ofdm_symbols}}")
"""


def uv(args, description=""):
    """Run ``uv <args>``; returns True on a zero exit status."""
    cmd = ["uv"] + args
    print(f"$ {' '.join(cmd)}" + (f"  # {description}" if description else ""))
    try:
        return subprocess.run(cmd, text=True).returncode == 0
    except FileNotFoundError:
        print("  uv is not on PATH (https://docs.astral.sh/uv/)")
        return False


def setup(_args):
    if shutil.which("uv") is None:
        print("uv is not on PATH (https://docs.astral.sh/uv/)")
        return False
    if not uv(["sync", "--all-extras"], "install package with test and dev extras"):
        return False
    return uv(["run", "python", "-c", f"import {PACKAGE}; print({PACKAGE}.__version__)"])


def test(args):
    pytest_args = ["run", "pytest", "-v"]
    if "--cov" in args:
        pytest_args += [f"--cov={PACKAGE}", "--cov-report=term-missing"]
    pytest_args += [arg for arg in args if not arg.startswith("--")]
    return uv(pytest_args)


def lint(_args):
    checks = [
        ["run", "flake8"] + SOURCES,
        ["run", "black", "--check"] + SOURCES,
        ["run", "isort", "--check-only"] + SOURCES,
        ["run", "mypy", PACKAGE],
    ]
    # Run every check even after a failure so all findings are reported
    results = [uv(check) for check in checks]
    return all(results)


def format_code(_args):
    return uv(["run", "black"] + SOURCES) and uv(["run", "isort"] + SOURCES)


def demo(args):
    name = args[0] if args else "all"
    if name == "all":
        return all(uv(["run", "python", path], key) for key, path in DEMOS.items())
    if name not in DEMOS:
        print(f"Unknown demo '{name}'; choose from: {', '.join(DEMOS)}, all")
        return False
    return uv(["run", "python", DEMOS[name]])


def smoke(args):
    """Send one short message end to end and fail unless it is delivered."""
    snr_db = float(args[0]) if args else 25.0
    script = SMOKE_SCRIPT.format(package=PACKAGE, snr_db=snr_db)
    return uv(["run", "python", "-c", script], f"single transmission at {snr_db} dB")


COMMANDS = {
    "setup": (setup, "sync the environment and check the package imports"),
    "test": (test, "run pytest; --cov adds coverage, extra args select tests"),
    "lint": (lint, "flake8, black, isort and mypy in check mode"),
    "format": (format_code, "rewrite sources with black and isort"),
    "demo": (demo, f"run an example script ({'|'.join(DEMOS)}|all)"),
    "smoke": (smoke, "one end-to-end transmission, optional SNR in dB"),
}


def main(argv):
    if not argv or argv[0] not in COMMANDS:
        if argv:
            print(f"Unknown command: {argv[0]}\n")
        print("usage: python scripts/dev.py <command> [args]\n")
        for name, (_, help_text) in COMMANDS.items():
            print(f"  {name:<8} {help_text}")
        return 0 if not argv else 1

    handler, _ = COMMANDS[argv[0]]
    if handler(argv[1:]):
        return 0
    print(f"\n✗ {argv[0]} failed")
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
