import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

CONTROL_SCRIPT_NAME = "shim.js"
_CONTROL_SCRIPT_SOURCE = Path(__file__).with_name(CONTROL_SCRIPT_NAME)


def ensure_work_dir(path: "str | os.PathLike[str] | None" = None) -> Path:
    """Create and return the directory the process runs its control script from.

    With no *path*, a fresh temporary directory is created.
    """
    if path is None:
        work_dir = Path(tempfile.mkdtemp(prefix="pyphantom-"))
    else:
        work_dir = Path(path)
        if os.name == "nt":
            work_dir.mkdir(parents=True, exist_ok=True)
        else:
            work_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
    return work_dir.resolve()


def read_control_script() -> str:
    """Return the packaged control script source."""
    return _CONTROL_SCRIPT_SOURCE.read_text(encoding="utf-8")


def ensure_control_script(work_dir: Path) -> Path:
    """Install the control script in *work_dir* unless a copy is already there.

    An existing file is reused as-is, so a customised script placed in a
    configured ``work_dir`` survives restarts.
    """
    script_path = work_dir / CONTROL_SCRIPT_NAME
    if script_path.exists():
        logger.debug("[PyPhantom] Reusing control script at %s", script_path)
        return script_path

    script_path.write_text(read_control_script(), encoding="utf-8")
    if os.name != "nt":
        os.chmod(script_path, 0o600)
    logger.debug("[PyPhantom] Wrote control script to %s", script_path)
    return script_path


def build_launch_command(bin_path: str, script_path: Path, port: int, options: list[str]) -> list[str]:
    """Build ``<binary> <control-script> <port> <option>...``.

    The order is fixed: the control script reads the port from its first
    argument, and options are passed through untouched.
    """
    return [bin_path, str(script_path), str(port), *options]


def remove_work_dir(path: Path) -> None:
    """Remove the working directory tree. A missing tree is not an error."""
    if not path.exists():
        return
    shutil.rmtree(path)
    logger.debug("[PyPhantom] Removed working directory %s", path)
