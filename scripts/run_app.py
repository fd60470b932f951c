#!/usr/bin/env python
"""
Run the Streamlit configurator.

Usage:
    python scripts/run_app.py [streamlit options...]
"""
import subprocess
import sys
from pathlib import Path


def main():
    project_root = Path(__file__).parent.parent
    ui_path = project_root / 'src' / 'setup_pricing' / 'ui' / 'app_streamlit.py'

    if not ui_path.exists():
        print(f"ERROR: Configurator UI not found at {ui_path}")
        sys.exit(1)

    # Extra arguments go straight to streamlit (e.g. --server.port 8502)
    cmd = [sys.executable, '-m', 'streamlit', 'run', str(ui_path), *sys.argv[1:]]
    print(f"Starting configurator: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nConfigurator stopped.")


if __name__ == "__main__":
    main()
