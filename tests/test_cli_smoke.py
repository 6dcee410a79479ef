import subprocess
import sys


def test_cli_help() -> None:
    cp = subprocess.run(
        [sys.executable, "-m", "subclonecompat", "--help"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "SubcloneCompat" in cp.stdout or "subclonecompat" in cp.stdout.lower()
