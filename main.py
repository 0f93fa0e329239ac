"""
Cell Bank Dashboard - Root Entry Point

Usage:
    python main.py                 (then open http://localhost:8501 in browser)
    python main.py --headless      start without opening a browser
"""

import os
import subprocess
import sys


def run_web(headless: bool = False):
    streamlit_script = os.path.join(
        os.path.dirname(os.path.abspath(__file__)), 'web', 'streamlit_app.py'
    )
    return subprocess.run([
        sys.executable, '-m', 'streamlit', 'run', streamlit_script,
        '--server.headless', 'true' if headless else 'false'
    ]).returncode


if __name__ == '__main__':
    print("Starting web app at http://localhost:8501 ...")
    sys.exit(run_web('--headless' in sys.argv))
