#!/usr/bin/env python3
"""
Installer for Design Token Extract.
Installs the package (with the test extra when --dev is given) and the
Chromium build Playwright drives.
"""

import subprocess
import sys
from pathlib import Path
from typing import List, Tuple

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def install_steps(dev: bool) -> List[Tuple[str, List[str]]]:
    target = f"{PROJECT_ROOT}[test]" if dev else str(PROJECT_ROOT)
    return [
        ("Installing design-extract", [sys.executable, "-m", "pip", "install", "-e", target]),
        ("Installing Chromium browser", [sys.executable, "-m", "playwright", "install", "chromium"]),
    ]


def run_step(label: str, cmd: List[str]) -> bool:
    print(f"\n📦 {label}...")
    proc = subprocess.run(cmd, capture_output=True, text=True)
    if proc.returncode != 0:
        print(f"❌ {label} failed (exit {proc.returncode})")
        print(proc.stderr or proc.stdout)
        return False
    print(f"✅ {label} done")
    return True


def main():
    if sys.version_info < (3, 8):
        print("❌ Python 3.8+ required")
        sys.exit(1)

    print("🚀 Setting up Design Token Extract...")
    for label, cmd in install_steps(dev="--dev" in sys.argv[1:]):
        if not run_step(label, cmd):
            sys.exit(1)

    print("\n✅ Ready. Try:")
    print("   design-extract example.com")
    print("   design-extract example.com --slow --no-sandbox")


if __name__ == "__main__":
    main()
