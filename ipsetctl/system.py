import subprocess
import shutil

def find_cmd(name: str) -> str | None:
    return shutil.which(name)

def run_cmd(args) -> subprocess.CompletedProcess:
    # argv list, never a shell string
    return subprocess.run(list(args), capture_output=True, text=True, check=False)
