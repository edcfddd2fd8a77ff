"""
File access for generated projects.

Files created by the tool containers belong to root, so writes go through
a container as well. Three flavours share one interface:

- LocalProjectFiles: plain host filesystem (tests, already-owned trees)
- EphemeralContainerFiles: reads on the host, writes via a throwaway container
- ServiceContainerFiles: everything via ``docker compose exec`` in a running service

All paths are relative to the project root.
"""
import logging
import posixpath
import shutil
from pathlib import Path
from typing import Optional

from devstack.core.docker import Docker
from devstack.core.errors import ProvisioningError
from devstack.core.runner import ensure_success

logger = logging.getLogger(__name__)

# Positional parameters keep paths out of the script text
_WRITE_SCRIPT = 'mkdir -p "$(dirname "$1")" && cat > "$1"'
_CLEAR_SCRIPT = '[ ! -d "$1" ] || find "$1" -mindepth 1 -delete'


def _check_relative(relpath: str) -> str:
    normalized = posixpath.normpath(relpath)
    if normalized.startswith("/") or normalized.split("/")[0] == "..":
        raise ProvisioningError(f"Path escapes project root: {relpath}")
    return normalized


class ProjectFiles:
    """Read/write access to the files of one project."""

    def exists(self, relpath: str) -> bool:
        raise NotImplementedError

    def read_text(self, relpath: str) -> Optional[str]:
        """Return file content, or None when the file does not exist."""
        raise NotImplementedError

    def write_text(self, relpath: str, content: str) -> None:
        raise NotImplementedError

    def clear_directory(self, relpath: str) -> None:
        """Delete everything inside a directory, keeping the directory itself."""
        raise NotImplementedError

    def write_if_changed(self, relpath: str, content: str) -> bool:
        """Write ``content`` unless the file already holds it. Returns True on write."""
        if self.read_text(relpath) == content:
            return False
        self.write_text(relpath, content)
        return True


class LocalProjectFiles(ProjectFiles):
    """Host filesystem access rooted at ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, relpath: str) -> Path:
        return self.root / _check_relative(relpath)

    def exists(self, relpath: str) -> bool:
        return self._path(relpath).exists()

    def read_text(self, relpath: str) -> Optional[str]:
        path = self._path(relpath)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def write_text(self, relpath: str, content: str) -> None:
        path = self._path(relpath)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info(f"file_written path={relpath}", extra={"path": str(path)})

    def clear_directory(self, relpath: str) -> None:
        path = self._path(relpath)
        if not path.is_dir():
            return
        for child in path.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
        logger.info(f"directory_cleared path={relpath}")


class EphemeralContainerFiles(LocalProjectFiles):
    """Reads on the host; writes through a throwaway helper container."""

    def __init__(self, root: Path, docker: Docker, image: str):
        super().__init__(root)
        self.docker = docker
        self.image = image

    def write_text(self, relpath: str, content: str) -> None:
        relpath = _check_relative(relpath)
        result = self.docker.run_ephemeral(
            self.image,
            self.root,
            ["sh", "-c", _WRITE_SCRIPT, "sh", relpath],
            input_text=content,
        )
        ensure_success(result, f"Writing {relpath}")
        logger.info(f"file_written path={relpath} via={self.image}")

    def clear_directory(self, relpath: str) -> None:
        relpath = _check_relative(relpath)
        result = self.docker.run_ephemeral(
            self.image, self.root, ["sh", "-c", _CLEAR_SCRIPT, "sh", relpath]
        )
        ensure_success(result, f"Clearing {relpath}")
        logger.info(f"directory_cleared path={relpath} via={self.image}")


class ServiceContainerFiles(ProjectFiles):
    """Access to a project mounted inside a running compose service."""

    def __init__(self, docker: Docker, service: str, root: str, user: Optional[str] = "root"):
        self.docker = docker
        self.service = service
        self.root = root.rstrip("/")
        self.user = user

    def _path(self, relpath: str) -> str:
        return f"{self.root}/{_check_relative(relpath)}"

    def exists(self, relpath: str) -> bool:
        result = self.docker.compose_exec(self.service, ["test", "-e", self._path(relpath)])
        return result.exit_code == 0

    def read_text(self, relpath: str) -> Optional[str]:
        if not self.exists(relpath):
            return None
        result = self.docker.compose_exec(self.service, ["cat", self._path(relpath)])
        ensure_success(result, f"Reading {relpath}")
        return result.stdout

    def write_text(self, relpath: str, content: str) -> None:
        result = self.docker.compose_exec(
            self.service,
            ["sh", "-c", _WRITE_SCRIPT, "sh", self._path(relpath)],
            user=self.user,
            input_text=content,
        )
        ensure_success(result, f"Writing {relpath}")
        logger.info(f"file_written path={relpath} service={self.service}")

    def clear_directory(self, relpath: str) -> None:
        result = self.docker.compose_exec(
            self.service,
            ["sh", "-c", _CLEAR_SCRIPT, "sh", self._path(relpath)],
            user=self.user,
        )
        ensure_success(result, f"Clearing {relpath}")
